# prf_engine/application/use_cases/query_expansion.py
from __future__ import annotations

import threading

import structlog

from prf_engine.application.dto.expansion_dto import ExpansionConfig, ExpansionDefaults
from prf_engine.application.dto.search_dto import CONTROL_EXPANSION_MODEL
from prf_engine.application.feedback.chain import ChainRegistry
from prf_engine.application.feedback.expansion_terms import ExpansionTermsDependencies
from prf_engine.application.feedback.selectors import build_feedback_selector
from prf_engine.application.model_registry import MAX_REPORTED, ModelRegistry
from prf_engine.application.ports.expansion_terms_port import ExpansionTerms
from prf_engine.application.ports.feedback_selector_port import FeedbackSelector
from prf_engine.application.ports.index_port import IndexPort
from prf_engine.application.ports.request_port import RequestPort
from prf_engine.application.ports.telemetry_port import TelemetryPort
from prf_engine.domain.errors import (
    ConfigurationError,
    ExpansionAborted,
    FeedbackIOError,
    StructuralPreconditionError,
)
from prf_engine.domain.models import MatchingQueryTerms

logger = structlog.get_logger(__name__)

DEFAULT_MODEL = "Bo1"


def terms_to_reweight(expansion_terms: int, query_length: int) -> int:
    """Number of terms to ask the collector for.

    Never fewer than the query has: re-weighting only part of the user's own
    terms is not meaningful. 0 keeps conservative expansion (re-weight only).
    """
    if expansion_terms == 0:
        return 0
    return max(expansion_terms, query_length)


class QueryExpansion:
    """
    Application use case: pseudo-relevance feedback over a first-pass ranking.

    Selects feedback documents, ranks candidate terms with the requested model
    and merges the best ones into the query. Uses only ports; infrastructure
    failures surface as domain errors.

    One instance serves one pipeline: the default selector chain is built on
    first use and kept, while collector chains are rebuilt for every call.
    """

    def __init__(
        self,
        defaults: ExpansionDefaults,
        models: ModelRegistry,
        selectors: ChainRegistry[FeedbackSelector, IndexPort],
        expanders: ChainRegistry[ExpansionTerms, ExpansionTermsDependencies],
        min_documents: int = 2,
        telemetry: TelemetryPort | None = None,
    ) -> None:
        self.defaults = defaults
        self.models = models
        self.selectors = selectors
        self.expanders = expanders
        self.min_documents = min_documents
        self.telemetry = telemetry
        self._index: IndexPort | None = None
        self._selector: FeedbackSelector | None = None
        self._lock = threading.Lock()
        self._warned_model = False
        self._reported: set[str] = set()

    @property
    def index(self) -> IndexPort | None:
        return self._index

    def configure_index(self, index: IndexPort) -> None:
        """(Re)bind the index scope; a different index drops the cached selector."""
        with self._lock:
            if index is not self._index:
                self._index = index
                self._selector = None

    def get_info(self) -> str:
        """Identifier of the model requests get when they name none.

        The model a request actually used is recorded on that request under
        CONTROL_EXPANSION_MODEL.
        """
        name = self.defaults.model_name or DEFAULT_MODEL
        resolved = self.models.resolve(name)
        if resolved.ok and resolved.value is not None:
            return resolved.value.get_info()
        return name

    def expand_query(self, query: MatchingQueryTerms, request: RequestPort) -> bool:
        """Expand query in place from the request's feedback documents.

        Returns:
            True when expansion terms were merged, False when expansion was
            skipped (configuration problem or no feedback documents). The query
            is left untouched whenever False is returned.

        Raises:
            FeedbackIOError: Reading feedback documents failed
            ExpansionAborted: The request was cancelled before merging
            StructuralPreconditionError: No index bound or no direct index
        """
        index = self._index
        if index is None:
            raise StructuralPreconditionError("configure_index() must be called before expansion")

        try:
            config = ExpansionConfig.from_request(request, self.defaults)
        except ConfigurationError as ex:
            self._report(ex)
            return False

        model_name = config.model_name
        if not model_name:
            if not self._warned_model:
                logger.warning("qemodel_not_set", default=DEFAULT_MODEL)
            self._warned_model = True
            model_name = DEFAULT_MODEL
        resolved = self.models.resolve(model_name)
        if not resolved.ok or resolved.value is None:
            self._incr("config_error")
            return False
        model = resolved.value
        request.set_control(CONTROL_EXPANSION_MODEL, model.get_info())
        logger.debug("query_expansion_model", model=model.get_info())

        n_terms = terms_to_reweight(config.expansion_terms, len(query))

        selector = self._selector_for(config.feedback_selector, index)
        if selector is None:
            return False
        try:
            feedback = selector.select(request, config)
        except OSError as ex:
            raise FeedbackIOError(f"cannot select feedback documents: {ex}") from ex
        if not feedback:
            logger.debug("no_feedback_documents", query_id=request.query_id)
            self._incr("no_feedback")
            return False

        built = self.expanders.build(
            config.expansion_terms_chain,
            ExpansionTermsDependencies(
                collection_statistics=index.collection_statistics,
                lexicon=index.lexicon,
                direct_index=index.direct_index,
                document_index=index.document_index,
                min_documents=self.min_documents,
            ),
        )
        if not built.ok or built.value is None:
            if built.error is not None:
                self._report(built.error)
            return False
        expansion_terms = built.value
        expansion_terms.set_model(model)
        for doc in feedback:
            expansion_terms.insert_document(doc)
        logger.debug(
            "selecting_expansion_terms",
            selecting=n_terms,
            unique_terms=expansion_terms.get_number_of_unique_terms(),
        )

        expansion_terms.set_original_query_terms(query)
        expanded = expansion_terms.get_expanded_terms(n_terms)

        if request.is_cancelled():
            raise ExpansionAborted(query_id=request.query_id)

        for term in expanded:
            query.add_term_weight(term.term, term.weight)
            logger.debug(
                "expanded_term",
                term=term.term,
                weight=round(query.get_term_weight(term.term), 4),
            )
        self._incr("expanded")
        if self.telemetry is not None:
            self.telemetry.observe("qe.terms.merged", float(len(expanded)), {"model": model_name})
        return True

    def _selector_for(self, names: tuple[str, ...], index: IndexPort) -> FeedbackSelector | None:
        if names != self.defaults.feedback_selector:
            built = build_feedback_selector(self.selectors, names, index)
            if not built.ok:
                if built.error is not None:
                    self._report(built.error)
                return None
            return built.value

        error: ConfigurationError | None = None
        with self._lock:
            if self._selector is None:
                built = build_feedback_selector(self.selectors, names, index)
                if built.ok:
                    self._selector = built.value
                else:
                    error = built.error
            selector = self._selector
        if error is not None:
            self._report(error)
        return selector

    def _report(self, err: ConfigurationError) -> None:
        self._incr("config_error")
        with self._lock:
            first = err.name not in self._reported
            if first:
                if len(self._reported) >= MAX_REPORTED:
                    self._reported.clear()
                self._reported.add(err.name)
        if first:
            logger.error("expansion_configuration_error", name=err.name, detail=err.detail)

    def _incr(self, status: str) -> None:
        if self.telemetry is not None:
            self.telemetry.incr("qe.expansions.total", {"status": status})
