"""Delayed-effect scheduling for the game engine.

The engine never sleeps. It asks a `Scheduler` to call it back later and
tags every callback with a `TimerToken`; a callback whose token no longer
matches the session is discarded when it fires.

Two implementations:
- `AsyncioScheduler` for the running service (wraps `loop.call_later`).
- `ManualScheduler`, a virtual clock advanced explicitly by tests.
"""

from __future__ import annotations

import asyncio
import heapq
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal, Protocol

TimerFamily = Literal["pair", "phase"]


@dataclass(frozen=True, slots=True)
class TimerToken:
    round_id: int
    family: TimerFamily
    generation: int


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Schedules on the event loop that is running when `call_later` is invoked."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


@dataclass(slots=True)
class ManualTimer:
    due: float
    seq: int
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass(slots=True)
class ManualScheduler:
    """Virtual clock. Nothing fires until `advance()` is called.

    Timers fire in due order; timers due at the same instant fire in the order
    they were scheduled. A callback may schedule further timers, which fire in
    the same `advance()` call if they fall due within it.
    """

    now: float = 0.0
    _heap: list[tuple[float, int, ManualTimer]] = field(default_factory=list)
    _seq: int = 0

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self._seq += 1
        timer = ManualTimer(due=self.now + delay, seq=self._seq, callback=callback)
        heapq.heappush(self._heap, (timer.due, timer.seq, timer))
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for _, _, t in self._heap if not t.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every timer that falls due. Returns how many fired."""

        if seconds < 0:
            raise ValueError("seconds must be >= 0")
        target = self.now + seconds
        fired = 0
        while self._heap and self._heap[0][0] <= target:
            due, _, timer = heapq.heappop(self._heap)
            self.now = due
            if timer.cancelled:
                continue
            timer.callback()
            fired += 1
        self.now = target
        return fired

    def run_all(self, *, max_steps: int = 1000) -> int:
        """Fire timers until none are pending."""

        fired = 0
        for _ in range(max_steps):
            live = [t for _, _, t in self._heap if not t.cancelled]
            if not live:
                return fired
            fired += self.advance(min(t.due for t in live) - self.now)
        raise RuntimeError("Timers kept rescheduling; gave up")
