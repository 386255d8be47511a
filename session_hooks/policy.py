"""Compaction suggestion policy.

Pure functions: no I/O, no clock.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence


def suggestion_point(
    current_count: int,
    last_suggested_at: int | None,
    thresholds: Iterable[int],
) -> int | None:
    """
    Return the threshold a suggestion should be based on, if any.

    A threshold qualifies when last_suggested_at < t <= current_count.
    Jumping past several thresholds at once collapses into a single
    suggestion at the highest one crossed.

    Args:
        current_count: Tool calls so far
        last_suggested_at: Threshold of the previous suggestion, or None
        thresholds: Ascending threshold values

    Returns:
        Highest qualifying threshold, or None
    """
    floor = last_suggested_at if last_suggested_at is not None else float("-inf")
    crossed = [t for t in thresholds if floor < t <= current_count]
    return max(crossed) if crossed else None


def should_suggest(
    current_count: int,
    last_suggested_at: int | None,
    thresholds: Iterable[int],
) -> bool:
    """True when current_count has crossed a threshold not yet suggested."""
    return suggestion_point(current_count, last_suggested_at, thresholds) is not None


def compaction_thresholds(limit: int, start: int, interval: int) -> Sequence[int]:
    """
    Ascending thresholds start, start + interval, ... up to limit.

    >>> list(compaction_thresholds(120, 50, 25))
    [50, 75, 100]
    """
    if start < 1 or interval < 1:
        raise ValueError("start and interval must be positive")
    return range(start, limit + 1, interval)


__all__ = [
    "suggestion_point",
    "should_suggest",
    "compaction_thresholds",
]
