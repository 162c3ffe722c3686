"""BM25 first-pass matching stage.

Scores documents for the weighted query terms through the inverted index and
stores the ranking on the request. Query weights scale each term's BM25
contribution, so expanded queries are matched with their derived weights.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import structlog

from prf_engine.application.dto.search_dto import CONTROL_PREVIOUS_PROCESS, SearchRequest
from prf_engine.application.ports.index_port import IndexPort
from prf_engine.application.ports.request_port import ManagerPort
from prf_engine.domain.errors import ValidationError
from prf_engine.domain.models import MatchingQueryTerms, ResultSet

logger = structlog.get_logger(__name__)


@dataclass
class BM25Matching:
    """
    PipelineStage running BM25 over an IndexPort.

    - k1: term frequency saturation parameter (typically 1.2-2.0)
    - b:  length normalization parameter (typically 0.75)
    - max_results: ranking depth kept on the request (0 = unlimited)
    """

    name: str = "BM25Matching"
    k1: float = 1.2
    b: float = 0.75
    max_results: int = 1000

    def score(self, index: IndexPort, query: MatchingQueryTerms) -> ResultSet:
        stats = index.collection_statistics
        n_docs = stats.number_of_documents
        avg_len = stats.average_document_length or 1.0

        acc: dict[int, float] = {}
        for term, qw in query.items():
            entry = index.lexicon.get(term)
            if entry is None or qw <= 0:
                continue
            df = entry.document_frequency
            # +1 keeps idf positive for terms present in most documents
            idf = math.log((n_docs - df + 0.5) / (df + 0.5) + 1.0)
            for docid, tf in index.inverted_index.get_postings(term).items():
                dl = index.document_index.get_document_length(docid)
                denominator = tf + self.k1 * (1 - self.b + self.b * (dl / avg_len))
                acc[docid] = acc.get(docid, 0.0) + qw * idf * (tf * (self.k1 + 1)) / denominator

        ranked = sorted(acc.items(), key=lambda p: (-p[1], p[0]))
        if self.max_results > 0:
            ranked = ranked[: self.max_results]
        return ResultSet(
            docids=tuple(d for d, _ in ranked),
            scores=tuple(s for _, s in ranked),
        )

    def process(self, manager: ManagerPort, request: SearchRequest) -> ResultSet:
        query = request.matching_query_terms
        if query is None:
            raise ValidationError("request has no matching query terms")
        request.result_set = self.score(manager.index, query)
        request.set_control(CONTROL_PREVIOUS_PROCESS, self.name)
        logger.debug(
            "matching_completed",
            query_id=request.query_id,
            terms=len(query),
            results=request.result_set.size,
        )
        return request.result_set
