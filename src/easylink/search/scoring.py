"""Query-relative overlap scoring.

``score = |unit ∩ query| / |query|``: the fraction of query tokens that occur in
the unit. This is neither Jaccard nor relative to the unit size, so a short
heading that contains every query token scores 1.0.
"""

from collections.abc import Set


def match_count(unit_tokens: Set[str], query_tokens: Set[str]) -> int:
    """Number of query tokens present in the unit."""
    if len(unit_tokens) < len(query_tokens):
        return sum(1 for token in unit_tokens if token in query_tokens)
    return sum(1 for token in query_tokens if token in unit_tokens)


def score(unit_tokens: Set[str], query_tokens: Set[str]) -> float:
    """Overlap coefficient of ``unit_tokens`` relative to ``query_tokens``.

    Raises:
        ValueError: ``query_tokens`` is empty (query preparation guarantees it is not)
    """
    if not query_tokens:
        raise ValueError("Cannot score against an empty query token set")
    return match_count(unit_tokens, query_tokens) / len(query_tokens)
