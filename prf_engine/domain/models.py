# prf_engine/domain/models.py
# Domain models must be pure (no I/O, no external libs)
from __future__ import annotations

import hashlib
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field


@dataclass
class MatchingQueryTerms:
    """
    Weighted query terms matched against the index, keyed by term.

    - query_id: identifier of the query this belongs to
    - weights:  ordered term -> weight mapping (insertion order is query order)

    Mutated in place by query expansion. Merging is additive, so combining
    expansion weights in any order yields the same final weights.
    """

    query_id: str
    weights: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_terms(cls, query_id: str, terms: list[str]) -> MatchingQueryTerms:
        """Build a query where each occurrence of a term adds 1.0 to its weight."""
        q = cls(query_id=query_id)
        for t in terms:
            q.add_term_weight(t, 1.0)
        return q

    def add_term_weight(self, term: str, weight: float) -> None:
        self.weights[term] = self.weights.get(term, 0.0) + weight

    def set_term_weight(self, term: str, weight: float) -> None:
        self.weights[term] = weight

    def get_term_weight(self, term: str) -> float:
        return self.weights.get(term, 0.0)

    def terms(self) -> list[str]:
        return list(self.weights)

    def items(self) -> list[tuple[str, float]]:
        return list(self.weights.items())

    def copy(self) -> MatchingQueryTerms:
        return MatchingQueryTerms(query_id=self.query_id, weights=dict(self.weights))

    def __len__(self) -> int:
        return len(self.weights)

    def __contains__(self, term: object) -> bool:
        return term in self.weights

    def __iter__(self) -> Iterator[str]:
        return iter(self.weights)


@dataclass(frozen=True)
class FeedbackDocument:
    """A document chosen from the first-pass ranking to drive expansion.

    term_frequencies is set when the selector materialised the postings;
    otherwise collectors read them from the direct index.
    """

    docid: int
    rank: int
    score: float
    term_frequencies: Mapping[str, int] | None = None
    length: int | None = None


@dataclass
class ExpansionTerm:
    """Statistics of one candidate term accumulated over the feedback set."""

    term: str
    within_feedback_frequency: float = 0.0
    feedback_document_frequency: int = 0

    def accumulate(self, tf: float) -> None:
        self.within_feedback_frequency += tf
        self.feedback_document_frequency += 1


@dataclass(frozen=True)
class ExpandedTerm:
    """A ranked term ready to be merged into the query."""

    term: str
    weight: float
    score: float


@dataclass(frozen=True)
class LexiconEntry:
    term: str
    document_frequency: int
    frequency: int


@dataclass(frozen=True)
class CollectionStatistics:
    number_of_documents: int
    number_of_tokens: int
    number_of_unique_terms: int

    @property
    def average_document_length(self) -> float:
        if self.number_of_documents == 0:
            return 0.0
        return self.number_of_tokens / self.number_of_documents


@dataclass(frozen=True)
class ResultSet:
    """Ranked first-pass result: docids with their scores, best first."""

    docids: tuple[int, ...] = ()
    scores: tuple[float, ...] = ()

    @property
    def size(self) -> int:
        return len(self.docids)

    def fingerprint(self) -> str:
        payload = ",".join(str(d) for d in self.docids).encode("utf-8")
        return hashlib.sha1(payload).hexdigest()
