"""Utility helpers for the engine."""

from __future__ import annotations

from typing import List

from .display import DisplayCache


BASE_GRAVITY_MS = 600
MIN_GRAVITY_MS = 100
GRAVITY_DECAY = 0.95


def gravity_interval_ms(rows_cleared: int) -> float:
    """Return the automatic drop interval in milliseconds.

    The interval shrinks with every row cleared in the session, speeding up
    the falling pieces, but never drops below ``MIN_GRAVITY_MS``.
    """

    if rows_cleared <= 0:
        return float(BASE_GRAVITY_MS)
    # Exponentially decrease the delay but keep a practical lower bound
    return max(float(MIN_GRAVITY_MS), BASE_GRAVITY_MS * (GRAVITY_DECAY ** rows_cleared))


def render_grid(cache: DisplayCache, start: int = 0, count: int | None = None) -> List[str]:
    """Return text lines for a band of the display cache.

    Empty cells render as ``.`` and occupied cells as their colour code, which
    is enough for terminal demos and test failure messages.
    """

    stop = cache.grid.shape[0] if count is None else start + count
    return [
        "".join("." if value == 0 else str(int(value)) for value in cache.grid[r])
        for r in range(start, stop)
    ]
