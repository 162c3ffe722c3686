"""Application settings with environment-driven configuration.

Why: Single place that reads the environment; every other layer receives
     settings through the composition root.
"""

import os
from dataclasses import dataclass, field


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes", "on")


@dataclass(frozen=True)
class AppSettings:
    """Application settings loaded from environment variables.

    Expansion defaults apply to every request; a request overrides them with
    its own controls (qe_fb_docs, qe_fb_terms, qemodel, ...).
    """

    # ===== Query Expansion =====
    expansion_documents: int = field(
        default_factory=lambda: int(os.getenv("EXPANSION_DOCUMENTS", "3"))
    )
    expansion_terms: int = field(default_factory=lambda: int(os.getenv("EXPANSION_TERMS", "10")))
    expansion_min_documents: int = field(
        default_factory=lambda: int(os.getenv("EXPANSION_MIN_DOCUMENTS", "2"))
    )
    # Candidate terms must occur in this many feedback documents (query terms exempt)

    qe_model: str | None = field(default_factory=lambda: os.getenv("QE_MODEL") or None)
    # Unset: Bo1 with a one-time warning

    qe_model_modules: tuple[str, ...] = field(
        default_factory=lambda: tuple(
            m.strip() for m in os.getenv("QE_MODEL_MODULES", "").split(",") if m.strip()
        )
    )
    # Modules a dotted model name may be imported from; empty = built-in models only

    qe_feedback_selector: str = field(
        default_factory=lambda: os.getenv("QE_FEEDBACK_SELECTOR", "PseudoRelevanceFeedbackSelector")
    )
    qe_expansion_terms_class: str = field(
        default_factory=lambda: os.getenv("QE_EXPANSION_TERMS_CLASS", "BagExpansionTerms")
    )
    # Both chains: comma-separated, outermost wrapper first

    qe_no_second_pass: bool = field(
        default_factory=lambda: _env_flag("QE_NO_2ND_MATCHING", "false")
    )

    # ===== Expansion Models =====
    rocchio_beta: float = field(default_factory=lambda: float(os.getenv("ROCCHIO_BETA", "0.4")))
    parameter_free_expansion: bool = field(
        default_factory=lambda: _env_flag("PARAMETER_FREE_EXPANSION", "true")
    )

    # ===== Data =====
    qrels_path: str = field(default_factory=lambda: os.getenv("QE_QRELS_PATH", ""))
    # Empty = relevance-feedback selectors unavailable

    corpus_path: str = field(default_factory=lambda: os.getenv("PRF_CORPUS_PATH", ""))
    # JSON list of {"docno", "text"} served by the HTTP API

    # ===== Matching =====
    bm25_k1: float = field(default_factory=lambda: float(os.getenv("BM25_K1", "1.2")))
    bm25_b: float = field(default_factory=lambda: float(os.getenv("BM25_B", "0.75")))

    # ===== Logging =====
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    log_json: bool = field(default_factory=lambda: _env_flag("LOG_JSON", "false"))

    # ===== Telemetry Configuration =====
    telemetry_enabled: bool = field(
        default_factory=lambda: _env_flag("TELEMETRY_ENABLED", "false")
    )
    otlp_endpoint: str = field(default_factory=lambda: os.getenv("OTLP_ENDPOINT", ""))
    # Empty string = no OTLP export

    telemetry_environment: str = field(
        default_factory=lambda: os.getenv("TELEMETRY_ENVIRONMENT", "production")
    )
