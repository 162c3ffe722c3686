"""Domain errors (typed) for query expansion.

Why: One error family for the application layer. Every expansion failure
degrades to first-pass results, so callers branch on these types instead of
letting infrastructure exceptions escape.
"""


class DomainError(Exception):
    """Base class for domain-specific errors."""


class ValidationError(DomainError):
    """Invalid input/domain state."""


class RetrievalError(DomainError):
    """Generic retrieval failure (after infra errors were mapped)."""


class ConfigurationError(DomainError):
    """Unknown model/selector/collector name or a failed construction."""

    def __init__(self, name: str, detail: str = "") -> None:
        super().__init__(name, detail)
        self.name = name
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.name}: {self.detail}"
        return self.name


class StructuralPreconditionError(DomainError):
    """The bound index cannot support expansion (e.g. no direct index)."""


class FeedbackIOError(DomainError):
    """Reading feedback documents or their postings failed."""


class ExpansionAborted(DomainError):
    """Request was cancelled before the expanded query was committed."""

    def __init__(self, query_id: str) -> None:
        super().__init__(f"expansion aborted for query {query_id}")
        self.query_id = query_id
