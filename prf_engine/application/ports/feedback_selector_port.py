"""Feedback selector port.

Why (SAM): Selectors form a chain. A base selector reads the request (and the
bound index); a wrapping selector post-filters what its inner selector
returned. Both shapes share this interface so chains can be assembled from
configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from prf_engine.application.dto.expansion_dto import ExpansionConfig
from prf_engine.application.ports.index_port import IndexPort
from prf_engine.application.ports.request_port import RequestPort
from prf_engine.domain.models import FeedbackDocument


class FeedbackSelector(ABC):
    """Port for choosing the feedback documents of one request."""

    index: IndexPort | None = None

    def bind(self, index: IndexPort) -> None:
        """Bind the index scope; called on every node before first use."""
        self.index = index

    @abstractmethod
    def select(self, request: RequestPort, config: ExpansionConfig) -> list[FeedbackDocument]:
        """Return feedback documents in rank order; empty when none qualify.

        Raises:
            FeedbackIOError: If reading the index fails
        """
        ...
