"""
Display-synchronized cycle scheduling.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from alerts.throttle import monotonic_ms


class FrameScheduler:
    """
    Hands out cycle timestamps aligned to a fixed refresh interval.

    next_frame() sleeps until the next refresh boundary and returns the
    clock time in milliseconds. When a cycle overruns (slow inference),
    the missed boundaries are skipped rather than replayed back to back.
    """

    def __init__(
        self,
        refresh_hz: float = 60.0,
        clock: Callable[[], float] = monotonic_ms,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if refresh_hz <= 0:
            raise ValueError("refresh_hz must be positive")
        self.interval_ms = 1000.0 / refresh_hz
        self._clock = clock
        self._sleep = sleep
        self._next_at: Optional[float] = None

    async def next_frame(self) -> float:
        now = self._clock()
        if self._next_at is None or self._next_at < now:
            self._next_at = now
        # A zero-length sleep still yields, so other tasks interleave between cycles.
        await self._sleep(max(0.0, self._next_at - now) / 1000.0)
        t = self._clock()
        self._next_at = max(self._next_at, t) + self.interval_ms
        return t

    def reset(self) -> None:
        self._next_at = None
