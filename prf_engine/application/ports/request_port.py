"""Request and pipeline ports.

Why (SAM): The two-phase controller re-invokes whichever stage produced the
first-pass result. It does so through this lookup capability, never through a
concrete pipeline class.
"""

from __future__ import annotations

from typing import Any, Protocol

from prf_engine.application.ports.index_port import IndexPort
from prf_engine.domain.models import MatchingQueryTerms, ResultSet


class RequestPort(Protocol):
    """A search request as seen by expansion."""

    @property
    def query_id(self) -> str: ...

    @property
    def matching_query_terms(self) -> MatchingQueryTerms | None: ...

    @property
    def result_set(self) -> ResultSet: ...

    def get_control(self, key: str, default: str | None = None) -> str | None: ...

    def set_control(self, key: str, value: str) -> None: ...

    def is_cancelled(self) -> bool: ...


class PipelineStage(Protocol):
    """One named step of a search pipeline (matching, post-processing, ...)."""

    name: str

    def process(self, manager: ManagerPort, request: RequestPort) -> object: ...


class ManagerPort(Protocol):
    """Context handed to stages: the index in use and the stage lookup."""

    @property
    def index(self) -> IndexPort: ...

    def get_stage(self, name: str) -> PipelineStage | None: ...


class SearchPipelinePort(ManagerPort, Protocol):
    """A manager that can run the whole pipeline for one request."""

    def run(self, request: Any, post_process: bool = True) -> dict[str, object]: ...
