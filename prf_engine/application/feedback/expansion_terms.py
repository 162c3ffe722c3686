"""Expansion term collectors and their registry.

Base collector:
- BagExpansionTerms: bag-of-words statistics over all feedback documents

Wrapping collectors (filter the inner ranking, original query terms exempt):
- NoDigitsExpansionTerms: drop candidates containing a digit
- MinLengthExpansionTerms: drop candidates shorter than three characters
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from prf_engine.application.feedback.chain import ChainRegistry
from prf_engine.application.ports.expansion_terms_port import ExpansionTerms
from prf_engine.application.ports.index_port import (
    DirectIndexPort,
    DocumentIndexPort,
    LexiconPort,
)
from prf_engine.domain.errors import (
    FeedbackIOError,
    StructuralPreconditionError,
    ValidationError,
)
from prf_engine.domain.models import (
    CollectionStatistics,
    ExpandedTerm,
    ExpansionTerm,
    FeedbackDocument,
    MatchingQueryTerms,
)
from prf_engine.domain.services.expansion_models import (
    ExpansionModel,
    FeedbackStatistics,
    TermStatistics,
)
from prf_engine.domain.services.ranking import rank_by_score_desc, top_k

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ExpansionTermsDependencies:
    """Everything a base collector is built from."""

    collection_statistics: CollectionStatistics
    lexicon: LexiconPort
    direct_index: DirectIndexPort | None
    document_index: DocumentIndexPort
    min_documents: int = 2


class BagExpansionTerms(ExpansionTerms):
    """Accumulate term frequencies of the feedback set as one bag of words.

    Candidates seen in fewer than min_documents feedback documents are not
    proposed, unless they already occur in the query or the feedback set itself
    is smaller than min_documents.
    """

    def __init__(
        self,
        collection_statistics: CollectionStatistics,
        lexicon: LexiconPort,
        direct_index: DirectIndexPort | None,
        document_index: DocumentIndexPort,
        min_documents: int = 2,
    ) -> None:
        self.collection_statistics = collection_statistics
        self.lexicon = lexicon
        self.direct_index = direct_index
        self.document_index = document_index
        self.min_documents = min_documents
        self._terms: dict[str, ExpansionTerm] = {}
        self._total_length = 0.0
        self._documents = 0
        self._model: ExpansionModel | None = None
        self._original: frozenset[str] = frozenset()

    @classmethod
    def from_dependencies(cls, deps: ExpansionTermsDependencies) -> BagExpansionTerms:
        return cls(
            collection_statistics=deps.collection_statistics,
            lexicon=deps.lexicon,
            direct_index=deps.direct_index,
            document_index=deps.document_index,
            min_documents=deps.min_documents,
        )

    def set_model(self, model: ExpansionModel) -> None:
        self._model = model

    def set_original_query_terms(self, query: MatchingQueryTerms) -> None:
        self._original = frozenset(query.terms())

    def get_number_of_unique_terms(self) -> int:
        return len(self._terms)

    def insert_document(self, doc: FeedbackDocument) -> None:
        postings = doc.term_frequencies
        length = doc.length
        try:
            if postings is None:
                if self.direct_index is None:
                    raise StructuralPreconditionError("no direct index to read feedback postings")
                postings = self.direct_index.get_postings(doc.docid)
                if length is None:
                    length = self.document_index.get_document_length(doc.docid)
        except OSError as ex:
            raise FeedbackIOError(f"cannot read document {doc.docid}: {ex}") from ex
        if length is None:
            length = sum(postings.values())

        for term, tf in postings.items():
            if tf <= 0:
                continue
            acc = self._terms.get(term)
            if acc is None:
                acc = self._terms[term] = ExpansionTerm(term)
            acc.accumulate(tf)
        self._total_length += length
        self._documents += 1

    def _eligible(self, acc: ExpansionTerm) -> bool:
        if acc.term in self._original:
            return True
        if self._documents < self.min_documents:
            return True
        return acc.feedback_document_frequency >= self.min_documents

    def get_expanded_terms(self, k: int) -> list[ExpandedTerm]:
        model = self._model
        if model is None:
            raise ValidationError("set_model() must be called before get_expanded_terms()")
        if k < 0:
            raise ValidationError("k must be >= 0")

        feedback = FeedbackStatistics(
            total_document_length=self._total_length,
            number_of_feedback_documents=self._documents,
            collection=self.collection_statistics,
        )
        candidates: list[tuple[ExpansionTerm, TermStatistics]] = []
        for acc in self._terms.values():
            entry = self.lexicon.get(acc.term)
            if entry is None or not self._eligible(acc):
                continue
            candidates.append(
                (
                    acc,
                    TermStatistics(
                        within_feedback_frequency=acc.within_feedback_frequency,
                        feedback_document_frequency=acc.feedback_document_frequency,
                        collection_frequency=entry.frequency,
                        collection_document_frequency=entry.document_frequency,
                        term=acc.term,
                    ),
                )
            )
        if not candidates:
            return []

        scores = [model.score(stats, feedback) for _acc, stats in candidates]
        ranked = rank_by_score_desc(candidates, scores, key=lambda c: c[0].term)

        (top, top_stats), top_score = ranked[0]
        max_tf = max(acc.within_feedback_frequency for acc, _stats in candidates)
        normaliser = model.normaliser(top_stats, top_score, max_tf, feedback)
        logger.debug(
            "candidates_ranked",
            candidates=len(ranked),
            top_term=top.term,
            top_score=top_score,
            normaliser=normaliser,
        )

        if k == 0:
            ranked = [pair for pair in ranked if pair[0][0].term in self._original]
        expanded = [
            ExpandedTerm(term=acc.term, weight=model.weight(score, normaliser), score=score)
            for (acc, _stats), score in ranked
        ]
        # a zero weight would only lengthen the query; query terms are always kept
        expanded = [t for t in expanded if t.weight > 0 or t.term in self._original]
        return expanded if k == 0 else top_k(expanded, k)


class ExpansionTermsWrapper(ExpansionTerms):
    """Delegate to an inner collector and filter its ranking with accepts()."""

    def __init__(self, inner: ExpansionTerms) -> None:
        self.inner = inner
        self._original: frozenset[str] = frozenset()

    def accepts(self, term: str) -> bool:
        return True

    def set_model(self, model: ExpansionModel) -> None:
        self.inner.set_model(model)

    def insert_document(self, doc: FeedbackDocument) -> None:
        self.inner.insert_document(doc)

    def set_original_query_terms(self, query: MatchingQueryTerms) -> None:
        self._original = frozenset(query.terms())
        self.inner.set_original_query_terms(query)

    def get_number_of_unique_terms(self) -> int:
        return self.inner.get_number_of_unique_terms()

    def get_expanded_terms(self, k: int) -> list[ExpandedTerm]:
        if k == 0:
            return self.inner.get_expanded_terms(0)
        everything = self.inner.get_expanded_terms(max(k, self.inner.get_number_of_unique_terms()))
        kept = [t for t in everything if t.term in self._original or self.accepts(t.term)]
        return top_k(kept, k)


class NoDigitsExpansionTerms(ExpansionTermsWrapper):
    def accepts(self, term: str) -> bool:
        return not any(ch.isdigit() for ch in term)


class MinLengthExpansionTerms(ExpansionTermsWrapper):
    def __init__(self, inner: ExpansionTerms, min_length: int = 3) -> None:
        super().__init__(inner)
        self.min_length = min_length

    def accepts(self, term: str) -> bool:
        return len(term) >= self.min_length


def build_expansion_terms_registry() -> ChainRegistry[ExpansionTerms, ExpansionTermsDependencies]:
    registry: ChainRegistry[ExpansionTerms, ExpansionTermsDependencies] = ChainRegistry(
        "expansion terms"
    )
    registry.register_base("BagExpansionTerms", BagExpansionTerms.from_dependencies)
    registry.register_wrapper("NoDigitsExpansionTerms", NoDigitsExpansionTerms)
    registry.register_wrapper("MinLengthExpansionTerms", MinLengthExpansionTerms)
    return registry
