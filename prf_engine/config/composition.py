"""Composition root: builds the expansion engine and the search pipeline.

Why: Single place for wiring; every other layer stays free of settings and
     concrete adapters.
"""

from __future__ import annotations

import threading

from prf_engine.application.dto.expansion_dto import ExpansionDefaults, split_names
from prf_engine.application.feedback.expansion_terms import build_expansion_terms_registry
from prf_engine.application.feedback.selectors import build_selector_registry
from prf_engine.application.model_registry import ModelParameters, ModelRegistry
from prf_engine.application.ports.index_port import IndexPort
from prf_engine.application.ports.relevance_judgements_port import RelevanceJudgementsPort
from prf_engine.application.ports.telemetry_port import TelemetryPort
from prf_engine.application.use_cases.query_expansion import QueryExpansion
from prf_engine.application.use_cases.query_expansion_process import QueryExpansionPostProcess
from prf_engine.application.use_cases.run_search import RunSearch
from prf_engine.config.settings import AppSettings
from prf_engine.domain.errors import ConfigurationError
from prf_engine.infrastructure.index.in_memory_index import InMemoryIndex, tokenize
from prf_engine.infrastructure.matching.bm25_matching import BM25Matching
from prf_engine.infrastructure.pipeline.local_manager import LocalManager
from prf_engine.infrastructure.qrels.trec_qrels import TrecQrelsAdapter
from prf_engine.infrastructure.telemetry.noop_telemetry import NoopTelemetry

_registries: dict[tuple[ModelParameters, tuple[str, ...]], ModelRegistry] = {}
_registries_lock = threading.Lock()


def build_expansion_defaults(settings: AppSettings) -> ExpansionDefaults:
    return ExpansionDefaults(
        expansion_documents=settings.expansion_documents,
        expansion_terms=settings.expansion_terms,
        model_name=settings.qe_model,
        feedback_selector=split_names(settings.qe_feedback_selector),
        expansion_terms_chain=split_names(settings.qe_expansion_terms_class),
        no_second_pass=settings.qe_no_second_pass,
    )


def shared_model_registry(settings: AppSettings) -> ModelRegistry:
    """Process-wide ModelRegistry for the settings' model parameters and modules.

    Every engine built in this process shares it, so each model is
    constructed at most once per name.
    """
    params = ModelParameters(
        rocchio_beta=settings.rocchio_beta,
        parameter_free=settings.parameter_free_expansion,
    )
    key = (params, settings.qe_model_modules)
    with _registries_lock:
        registry = _registries.get(key)
        if registry is None:
            registry = _registries[key] = ModelRegistry(
                params, allowed_modules=settings.qe_model_modules
            )
    return registry


def build_relevance_judgements(settings: AppSettings) -> RelevanceJudgementsPort | None:
    if not settings.qrels_path:
        return None
    return TrecQrelsAdapter.from_file(settings.qrels_path)


def build_telemetry(settings: AppSettings) -> TelemetryPort:
    """Build telemetry adapter for expansion metrics.

    Returns:
        OpenTelemetryAdapter when enabled (no-op if opentelemetry-sdk is
        missing), NoopTelemetry otherwise.
    """
    if not settings.telemetry_enabled:
        return NoopTelemetry()
    from prf_engine.infrastructure.telemetry.otel_adapter import OpenTelemetryAdapter, OtelConfig

    cfg = OtelConfig(
        service_name="prf-engine",
        otlp_endpoint=settings.otlp_endpoint or None,
        environment=settings.telemetry_environment,
    )
    return OpenTelemetryAdapter(cfg)


def build_query_expansion(
    settings: AppSettings,
    judgements: RelevanceJudgementsPort | None = None,
    telemetry: TelemetryPort | None = None,
) -> QueryExpansion:
    return QueryExpansion(
        defaults=build_expansion_defaults(settings),
        models=shared_model_registry(settings),
        selectors=build_selector_registry(judgements),
        expanders=build_expansion_terms_registry(),
        min_documents=settings.expansion_min_documents,
        telemetry=telemetry,
    )


def build_index(settings: AppSettings) -> InMemoryIndex:
    if not settings.corpus_path:
        raise ConfigurationError("PRF_CORPUS_PATH", "no corpus configured")
    return InMemoryIndex.from_json_file(settings.corpus_path)


def build_search_pipeline(
    settings: AppSettings,
    index: IndexPort,
    judgements: RelevanceJudgementsPort | None = None,
    telemetry: TelemetryPort | None = None,
) -> LocalManager:
    """BM25 first pass followed by the query expansion post-process."""
    matching = BM25Matching(k1=settings.bm25_k1, b=settings.bm25_b)
    qe = QueryExpansionPostProcess(
        build_query_expansion(settings, judgements, telemetry),
        build_expansion_defaults(settings),
    )
    return LocalManager(index, matching, post_processes=[qe])


def build_search_use_case(
    settings: AppSettings,
    index: IndexPort,
    judgements: RelevanceJudgementsPort | None = None,
    telemetry: TelemetryPort | None = None,
) -> RunSearch:
    return RunSearch(
        pipeline=build_search_pipeline(settings, index, judgements, telemetry),
        tokenizer=tokenize,
        telemetry=telemetry,
    )


class Container:
    """Lazily builds and caches the corpus index and the search use case.

    The HTTP app keeps one Container for its lifetime; tests pass settings
    or a prebuilt index directly.
    """

    def __init__(self, settings: AppSettings | None = None, index: IndexPort | None = None) -> None:
        self.settings = settings or AppSettings()
        self._index = index
        self._telemetry: TelemetryPort | None = None
        self._judgements: RelevanceJudgementsPort | None = None
        self._judgements_loaded = False
        self._search: RunSearch | None = None
        self._lock = threading.Lock()

    @property
    def model_registry(self) -> ModelRegistry:
        return shared_model_registry(self.settings)

    def index(self) -> IndexPort:
        if self._index is None:
            self._index = build_index(self.settings)
        return self._index

    def telemetry(self) -> TelemetryPort:
        if self._telemetry is None:
            self._telemetry = build_telemetry(self.settings)
        return self._telemetry

    def judgements(self) -> RelevanceJudgementsPort | None:
        if not self._judgements_loaded:
            self._judgements = build_relevance_judgements(self.settings)
            self._judgements_loaded = True
        return self._judgements

    def search_use_case(self) -> RunSearch:
        with self._lock:
            if self._search is None:
                self._search = build_search_use_case(
                    self.settings,
                    self.index(),
                    judgements=self.judgements(),
                    telemetry=self.telemetry(),
                )
            return self._search
