# prf_engine/application/use_cases/query_expansion_process.py
from __future__ import annotations

import structlog

from prf_engine.application.dto.expansion_dto import ExpansionConfig, ExpansionDefaults
from prf_engine.application.dto.search_dto import (
    CONTROL_EXPANDED_QUERY,
    CONTROL_FEEDBACK_FINGERPRINT,
    CONTROL_PREVIOUS_PROCESS,
)
from prf_engine.application.ports.request_port import ManagerPort, RequestPort
from prf_engine.application.use_cases.query_expansion import QueryExpansion
from prf_engine.domain.errors import (
    ConfigurationError,
    DomainError,
    ExpansionAborted,
    FeedbackIOError,
    StructuralPreconditionError,
    ValidationError,
)
from prf_engine.domain.models import MatchingQueryTerms
from prf_engine.domain.services.query_format import format_weighted_query
from prf_engine.domain.types import Result

logger = structlog.get_logger(__name__)


class QueryExpansionPostProcess:
    """
    Post-process stage closing the loop: first pass -> expand -> second pass.

    Never raises for expansion trouble; every failure is logged and returned
    as Result.failure so the caller keeps the first-pass ranking. On success
    the value is the rewritten query as "term^weight" pairs.
    """

    name = "QueryExpansion"

    def __init__(self, engine: QueryExpansion, defaults: ExpansionDefaults) -> None:
        self.engine = engine
        self.defaults = defaults
        self.last_expanded_query: str | None = None

    def process(self, manager: ManagerPort, request: RequestPort) -> Result[str, DomainError]:
        index = manager.index
        self.engine.configure_index(index)
        if index.direct_index is None:
            logger.error("direct_index_missing", detail="query expansion disabled")
            return Result.failure(
                StructuralPreconditionError("index has no direct index; query expansion disabled")
            )

        query = request.matching_query_terms
        if query is None or len(query) == 0:
            logger.warning("no_query_terms", query_id=request.query_id, detail="skipping QE")
            return Result.failure(ValidationError("no query terms to expand"))

        if request.get_control(CONTROL_FEEDBACK_FINGERPRINT) == _fingerprint(request, query):
            logger.debug("feedback_cycle_already_applied", query_id=request.query_id)
            return Result.success(format_weighted_query(query))

        # the ranking this cycle draws its feedback from
        first_pass = request.result_set.fingerprint()
        try:
            expanded = self.engine.expand_query(query, request)
        except (FeedbackIOError, OSError) as ex:
            logger.error("query_expansion_io_failure", query_id=request.query_id, exc_info=True)
            if isinstance(ex, FeedbackIOError):
                return Result.failure(ex)
            return Result.failure(FeedbackIOError(str(ex)))
        except ExpansionAborted as ex:
            logger.warning("query_expansion_aborted", query_id=ex.query_id)
            return Result.failure(ex)
        except StructuralPreconditionError as ex:
            logger.error("query_expansion_unavailable", detail=str(ex))
            return Result.failure(ex)

        new_query = format_weighted_query(query)
        if not expanded:
            logger.debug("query_not_expanded", query_id=request.query_id)
            return Result.success(new_query)

        logger.debug("query_length_after_expansion", length=len(query))
        logger.info("NEWQUERY", query_id=request.query_id, query=new_query)
        self.last_expanded_query = new_query
        request.set_control(CONTROL_EXPANDED_QUERY, new_query)

        if ExpansionConfig.from_request(request, self.defaults).no_second_pass:
            _mark_applied(request, first_pass, query)
            return Result.success(new_query)

        stage_name = request.get_control(CONTROL_PREVIOUS_PROCESS)
        stage = manager.get_stage(stage_name) if stage_name else None
        if stage is None:
            err = ConfigurationError(
                stage_name or CONTROL_PREVIOUS_PROCESS, "previous pipeline stage not found"
            )
            logger.error("second_pass_unavailable", name=err.name, detail=err.detail)
            return Result.failure(err)

        logger.info("second_pass_matching", query_id=request.query_id, stage=stage_name)
        stage.process(manager, request)
        _mark_applied(request, first_pass, query)
        return Result.success(new_query)


def _fingerprint(request: RequestPort, query: MatchingQueryTerms) -> str:
    return f"{request.result_set.fingerprint()}:{format_weighted_query(query)}"


def _mark_applied(request: RequestPort, first_pass: str, query: MatchingQueryTerms) -> None:
    # a re-match that changes the ranking starts a new feedback cycle
    request.set_control(
        CONTROL_FEEDBACK_FINGERPRINT, f"{first_pass}:{format_weighted_query(query)}"
    )
