from __future__ import annotations

from prf_engine.domain.models import MatchingQueryTerms

WEIGHT_DECIMALS = 9


def format_weight(weight: float, decimals: int = WEIGHT_DECIMALS) -> str:
    return f"{weight:.{decimals}f}"


def format_weighted_query(query: MatchingQueryTerms, decimals: int = WEIGHT_DECIMALS) -> str:
    """Render a query as space-separated term^weight pairs, in query order."""
    return " ".join(f"{term}^{format_weight(w, decimals)}" for term, w in query.items())
