"""Ranking: sort by score, deduplicate, apply the score threshold, truncate."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from easylink.domain.model import SearchResult


@dataclass
class RankedResults:
    """Outcome of :func:`rank_candidates` with the counters needed to explain it."""

    results: list[SearchResult] = field(default_factory=list)
    candidate_count: int = 0
    duplicates_removed: int = 0
    below_threshold: int = 0
    best_score: float = 0.0


def sort_candidates(candidates: Sequence[SearchResult]) -> list[SearchResult]:
    """Sort descending by score; equal scores keep their scan order."""
    return sorted(candidates, key=lambda result: result.score, reverse=True)


def deduplicate(results: Sequence[SearchResult]) -> list[SearchResult]:
    """Keep the first occurrence of each ``(document path, unit text)`` pair."""
    seen: set[tuple[str, str]] = set()
    unique: list[SearchResult] = []
    for result in results:
        key = result.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(result)
    return unique


def rank_candidates(candidates: Sequence[SearchResult], min_score: float, max_results: int) -> RankedResults:
    """Reduce scan candidates to the final ranked list.

    Order of operations: sort, deduplicate (highest-scored occurrence wins),
    drop results scoring below ``min_score``, truncate to ``max_results``.
    """
    if max_results < 1:
        raise ValueError("max_results must be at least 1")

    ordered = sort_candidates(candidates)
    unique = deduplicate(ordered)
    passing = [result for result in unique if result.score >= min_score]
    return RankedResults(
        results=passing[:max_results],
        candidate_count=len(candidates),
        duplicates_removed=len(ordered) - len(unique),
        below_threshold=len(unique) - len(passing),
        best_score=ordered[0].score if ordered else 0.0,
    )


def rank(candidates: Sequence[SearchResult], min_score: float, max_results: int) -> list[SearchResult]:
    """Return the ranked, deduplicated, thresholded and truncated results."""
    return rank_candidates(candidates, min_score, max_results).results
