"""Application ports package.

Re-exports the ports query expansion depends on.
"""

from prf_engine.application.ports.expansion_terms_port import ExpansionTerms
from prf_engine.application.ports.feedback_selector_port import FeedbackSelector
from prf_engine.application.ports.index_port import (
    DirectIndexPort,
    DocumentIndexPort,
    IndexPort,
    InvertedIndexPort,
    LexiconPort,
    MetaIndexPort,
)
from prf_engine.application.ports.relevance_judgements_port import RelevanceJudgementsPort
from prf_engine.application.ports.request_port import (
    ManagerPort,
    PipelineStage,
    RequestPort,
    SearchPipelinePort,
)
from prf_engine.application.ports.telemetry_port import TelemetryPort

__all__ = [
    "DirectIndexPort",
    "DocumentIndexPort",
    "ExpansionTerms",
    "FeedbackSelector",
    "IndexPort",
    "InvertedIndexPort",
    "LexiconPort",
    "ManagerPort",
    "MetaIndexPort",
    "PipelineStage",
    "RelevanceJudgementsPort",
    "RequestPort",
    "SearchPipelinePort",
    "TelemetryPort",
]
