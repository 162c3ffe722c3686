from __future__ import annotations

from abc import ABC, abstractmethod


class RelevanceJudgementsPort(ABC):
    """Port for relevance assessments (qrels) used by true relevance feedback.

    Why (SAM): Selectors only need "which docnos are relevant for this query";
    infrastructure decides where the judgements come from (TREC qrels file).
    """

    @abstractmethod
    def relevant_docnos(self, query_id: str) -> frozenset[str]:
        """Return docnos judged relevant (label > 0) for the query, possibly empty."""
        ...
