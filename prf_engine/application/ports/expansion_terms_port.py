"""Expansion term collector port.

Why (SAM): Collectors accumulate candidate-term statistics from feedback
documents and rank them with the bound model. Wrapping collectors refine the
ranking of an inner collector, so the same interface serves both shapes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from prf_engine.domain.models import ExpandedTerm, FeedbackDocument, MatchingQueryTerms
from prf_engine.domain.services.expansion_models import ExpansionModel


class ExpansionTerms(ABC):
    """Port for candidate-term accumulation and ranking."""

    @abstractmethod
    def set_model(self, model: ExpansionModel) -> None: ...

    @abstractmethod
    def insert_document(self, doc: FeedbackDocument) -> None:
        """Accumulate one feedback document; insertion order never affects scores.

        Raises:
            FeedbackIOError: If the document's postings cannot be read
        """
        ...

    @abstractmethod
    def set_original_query_terms(self, query: MatchingQueryTerms) -> None: ...

    @abstractmethod
    def get_number_of_unique_terms(self) -> int: ...

    @abstractmethod
    def get_expanded_terms(self, k: int) -> list[ExpandedTerm]:
        """Return at most k weighted terms, best first.

        k == 0 is conservative expansion: no new terms, only the original
        query terms re-weighted.
        """
        ...
