"""Single-process search pipeline: one matching stage, then post-processes."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from prf_engine.application.dto.search_dto import SearchRequest
from prf_engine.application.ports.index_port import IndexPort
from prf_engine.application.ports.request_port import PipelineStage
from prf_engine.domain.errors import ConfigurationError

logger = structlog.get_logger(__name__)


class LocalManager:
    """ManagerPort over a local index with a name -> stage lookup."""

    def __init__(
        self,
        index: IndexPort,
        matching: PipelineStage,
        post_processes: Sequence[PipelineStage] = (),
    ) -> None:
        self._index = index
        self.matching_name = matching.name
        self.post_process_names = [p.name for p in post_processes]
        self._stages: dict[str, PipelineStage] = {matching.name: matching}
        for stage in post_processes:
            if stage.name in self._stages:
                raise ConfigurationError(stage.name, "duplicate pipeline stage name")
            self._stages[stage.name] = stage

    @property
    def index(self) -> IndexPort:
        return self._index

    def get_stage(self, name: str) -> PipelineStage | None:
        return self._stages.get(name)

    def run(self, request: SearchRequest, post_process: bool = True) -> dict[str, object]:
        """Match, then run each post-process in order.

        Returns:
            Mapping of post-process name to what its process() returned.
        """
        self._stages[self.matching_name].process(self, request)
        outcomes: dict[str, object] = {}
        if not post_process:
            return outcomes
        for name in self.post_process_names:
            logger.debug("post_process_start", stage=name, query_id=request.query_id)
            outcomes[name] = self._stages[name].process(self, request)
        return outcomes
