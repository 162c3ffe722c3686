"""Feedback document selectors and their registry.

Base selectors:
- PseudoRelevanceFeedbackSelector: top-ranked documents of the first pass
- RelevanceFeedbackSelector: documents judged relevant in the qrels

Wrapping selectors:
- RelevantOnlyFeedbackSelector: keep inner documents that are judged relevant
- PositiveScoreFeedbackSelector: keep inner documents with a score > 0
"""

from __future__ import annotations

import structlog

from prf_engine.application.dto.expansion_dto import ExpansionConfig
from prf_engine.application.feedback.chain import ChainRegistry
from prf_engine.application.ports.feedback_selector_port import FeedbackSelector
from prf_engine.application.ports.index_port import IndexPort
from prf_engine.application.ports.relevance_judgements_port import RelevanceJudgementsPort
from prf_engine.application.ports.request_port import RequestPort
from prf_engine.domain.errors import ConfigurationError, StructuralPreconditionError
from prf_engine.domain.models import FeedbackDocument
from prf_engine.domain.types import Result

logger = structlog.get_logger(__name__)

DOCNO_KEY = "docno"


class PseudoRelevanceFeedbackSelector(FeedbackSelector):
    """Assume the top expansion_documents results of the first pass are relevant."""

    def select(self, request: RequestPort, config: ExpansionConfig) -> list[FeedbackDocument]:
        rs = request.result_set
        n = min(config.expansion_documents, rs.size)
        docs = [
            FeedbackDocument(docid=rs.docids[i], rank=i, score=rs.scores[i]) for i in range(n)
        ]
        logger.debug("feedback_documents_selected", query_id=request.query_id, count=len(docs))
        return docs


class RelevanceFeedbackSelector(FeedbackSelector):
    """True relevance feedback: every document judged relevant for the query.

    Documents are returned in first-pass rank order when they were retrieved,
    followed by unretrieved relevant documents in docno order.
    """

    def __init__(self, judgements: RelevanceJudgementsPort) -> None:
        self.judgements = judgements

    def select(self, request: RequestPort, config: ExpansionConfig) -> list[FeedbackDocument]:
        index = _require_index(self.index)
        relevant = self.judgements.relevant_docnos(request.query_id)
        if not relevant:
            return []

        rs = request.result_set
        docs: list[FeedbackDocument] = []
        seen: set[int] = set()
        for rank, (docid, score) in enumerate(zip(rs.docids, rs.scores, strict=True)):
            if index.meta_index.get_item(DOCNO_KEY, docid) in relevant:
                docs.append(FeedbackDocument(docid=docid, rank=rank, score=score))
                seen.add(docid)

        for docno in sorted(relevant):
            docid = index.meta_index.get_docid(DOCNO_KEY, docno)
            if docid is None:
                logger.debug("relevant_docno_not_indexed", docno=docno)
                continue
            if docid not in seen:
                docs.append(FeedbackDocument(docid=docid, rank=len(docs), score=0.0))
                seen.add(docid)
        return docs


class FeedbackSelectorWrapper(FeedbackSelector):
    """Base for selectors that refine an inner selector's output."""

    def __init__(self, inner: FeedbackSelector) -> None:
        self.inner = inner

    def bind(self, index: IndexPort) -> None:
        super().bind(index)
        self.inner.bind(index)


class RelevantOnlyFeedbackSelector(FeedbackSelectorWrapper):
    def __init__(self, inner: FeedbackSelector, judgements: RelevanceJudgementsPort) -> None:
        super().__init__(inner)
        self.judgements = judgements

    def select(self, request: RequestPort, config: ExpansionConfig) -> list[FeedbackDocument]:
        docs = self.inner.select(request, config)
        if not docs:
            return []
        index = _require_index(self.index)
        relevant = self.judgements.relevant_docnos(request.query_id)
        return [d for d in docs if index.meta_index.get_item(DOCNO_KEY, d.docid) in relevant]


class PositiveScoreFeedbackSelector(FeedbackSelectorWrapper):
    def select(self, request: RequestPort, config: ExpansionConfig) -> list[FeedbackDocument]:
        return [d for d in self.inner.select(request, config) if d.score > 0]


def _require_index(index: IndexPort | None) -> IndexPort:
    if index is None:
        raise StructuralPreconditionError("feedback selector used before an index was bound")
    return index


def build_selector_registry(
    judgements: RelevanceJudgementsPort | None = None,
) -> ChainRegistry[FeedbackSelector, IndexPort]:
    """Registry of the built-in selectors.

    Selectors that need relevance judgements fail to construct, with a
    ConfigurationError, when none are configured.
    """
    registry: ChainRegistry[FeedbackSelector, IndexPort] = ChainRegistry("feedback selector")

    def needs_judgements(name: str) -> RelevanceJudgementsPort:
        if judgements is None:
            raise ConfigurationError(name, "no relevance judgements configured (QE_QRELS_PATH)")
        return judgements

    registry.register_base(
        "PseudoRelevanceFeedbackSelector", lambda _index: PseudoRelevanceFeedbackSelector()
    )
    registry.register_base(
        "RelevanceFeedbackSelector",
        lambda _index: RelevanceFeedbackSelector(needs_judgements("RelevanceFeedbackSelector")),
    )
    registry.register_wrapper(
        "RelevantOnlyFeedbackSelector",
        lambda inner: RelevantOnlyFeedbackSelector(
            inner, needs_judgements("RelevantOnlyFeedbackSelector")
        ),
    )
    registry.register_wrapper("PositiveScoreFeedbackSelector", PositiveScoreFeedbackSelector)
    return registry


def build_feedback_selector(
    registry: ChainRegistry[FeedbackSelector, IndexPort],
    names: tuple[str, ...],
    index: IndexPort,
) -> Result[FeedbackSelector, ConfigurationError]:
    """Build and bind a selector chain over index."""
    return registry.build(names, index, on_node=lambda node: node.bind(index))
