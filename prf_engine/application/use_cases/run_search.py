# prf_engine/application/use_cases/run_search.py
from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from prf_engine.application.dto.search_dto import (
    CONTROL_EXPANDED_QUERY,
    SearchHit,
    SearchOutcome,
    SearchQuery,
    SearchRequest,
)
from prf_engine.application.ports.request_port import SearchPipelinePort
from prf_engine.application.ports.telemetry_port import TelemetryPort
from prf_engine.application.use_cases.query_expansion_process import QueryExpansionPostProcess
from prf_engine.domain.errors import DomainError, RetrievalError, ValidationError
from prf_engine.domain.models import MatchingQueryTerms
from prf_engine.domain.types import Result

logger = structlog.get_logger(__name__)

DOCNO_KEY = "docno"


class RunSearch:
    """
    Application use case: tokenize, match, optionally expand and re-match.

    Expansion trouble never fails the search: the outcome then carries the
    first-pass ranking and the expansion error message.
    """

    def __init__(
        self,
        pipeline: SearchPipelinePort,
        tokenizer: Callable[[str], list[str]],
        telemetry: TelemetryPort | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.tokenizer = tokenizer
        self.telemetry = telemetry

    def execute(self, req: SearchQuery) -> Result[SearchOutcome, DomainError]:
        if not req.text or not req.text.strip():
            return Result.failure(ValidationError("query text must not be empty"))
        if req.top_k <= 0:
            return Result.failure(ValidationError("top_k must be > 0"))

        terms = self.tokenizer(req.text)
        if not terms:
            return Result.failure(ValidationError("query has no indexable terms"))

        request = SearchRequest(
            query_id=req.query_id,
            matching_query_terms=MatchingQueryTerms.from_terms(req.query_id, terms),
            controls=dict(req.controls),
        )
        started = time.perf_counter()
        try:
            outcomes = self.pipeline.run(request, post_process=req.expand)
        except DomainError as ex:
            return Result.failure(ex)
        except Exception as ex:
            logger.error("search_failed", query_id=req.query_id, exc_info=True)
            return Result.failure(RetrievalError(f"search failed: {ex}"))
        if self.telemetry is not None:
            self.telemetry.observe(
                "prf.search.latency_ms",
                (time.perf_counter() - started) * 1000.0,
                {"qe": "on" if req.expand else "off"},
            )

        expansion_error: str | None = None
        qe = outcomes.get(QueryExpansionPostProcess.name)
        if isinstance(qe, Result) and not qe.ok:
            expansion_error = str(qe.error)

        meta = self.pipeline.index.meta_index
        rs = request.result_set
        hits = []
        for rank, (docid, score) in enumerate(zip(rs.docids, rs.scores), start=1):
            if rank > req.top_k:
                break
            docno = meta.get_item(DOCNO_KEY, docid)
            if docno is None:
                docno = str(docid)
            hits.append(SearchHit(docno=docno, score=score, rank=rank))

        return Result.success(
            SearchOutcome(
                query_id=req.query_id,
                hits=hits,
                expanded_query=request.get_control(CONTROL_EXPANDED_QUERY),
                expansion_error=expansion_error,
            )
        )
