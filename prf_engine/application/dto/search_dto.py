# prf_engine/application/dto/search_dto.py
from __future__ import annotations

import threading
from dataclasses import dataclass, field

from prf_engine.domain.models import MatchingQueryTerms, ResultSet

CONTROL_PREVIOUS_PROCESS = "previousprocess"
CONTROL_EXPANDED_QUERY = "QE.ExpandedQuery"
CONTROL_FEEDBACK_FINGERPRINT = "QE.FeedbackFingerprint"
CONTROL_EXPANSION_MODEL = "QE.Model"


@dataclass
class SearchRequest:
    """
    Mutable per-request state passed through the pipeline.

    - query_id: identifier used in logs and relevance judgements
    - matching_query_terms: weighted query, rewritten in place by expansion
    - result_set: latest ranking (replaced by every matching pass)
    - controls: string-valued request options (qe_fb_docs, qemodel, ...)
    - cancel_event: set by the caller to abort before expansion is committed
    """

    query_id: str
    matching_query_terms: MatchingQueryTerms | None = None
    result_set: ResultSet = field(default_factory=ResultSet)
    controls: dict[str, str] = field(default_factory=dict)
    cancel_event: threading.Event = field(default_factory=threading.Event)

    def get_control(self, key: str, default: str | None = None) -> str | None:
        return self.controls.get(key, default)

    def set_control(self, key: str, value: str) -> None:
        self.controls[key] = value

    def is_cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()


@dataclass(frozen=True)
class SearchQuery:
    """
    DTO for one search through the two-phase pipeline.

    - text: raw query text (non-empty)
    - query_id: identifier for logs and qrels lookups
    - expand: run the query expansion post-process
    - top_k: hits to return (> 0)
    - controls: per-request expansion controls (qe_fb_docs, qemodel, ...)
    """

    text: str
    query_id: str = "1"
    expand: bool = True
    top_k: int = 10
    controls: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SearchHit:
    docno: str
    score: float
    rank: int


@dataclass(frozen=True)
class SearchOutcome:
    """Final ranking plus what expansion did to the query."""

    query_id: str
    hits: list[SearchHit]
    expanded_query: str | None = None
    expansion_error: str | None = None
