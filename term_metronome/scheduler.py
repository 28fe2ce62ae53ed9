from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)

ANIMATION_INTERVAL_MS = 30

# Absorbs float rounding when a fake or coarse clock lands exactly on a deadline.
_EPSILON_S = 1e-6


class SchedulerClosedError(RuntimeError):
    pass


def beat_interval_ms(tempo: int) -> int:
    if tempo <= 0:
        raise ValueError("tempo must be positive")
    return int(round(60000.0 / float(tempo)))


class TimerHandle:
    def __init__(self, deadline: float, callback: Callable[[], None]) -> None:
        self.deadline = deadline
        self._callback = callback
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True

    def _fire(self) -> None:
        self.fired = True
        self._callback()


@dataclass(order=True)
class _Entry:
    deadline: float
    seq: int
    handle: TimerHandle = field(compare=False)


class TimerQueue:
    """
    Single-shot timers on one clock, fired from the caller's thread.

    Nothing runs in the background: the event loop asks how long it may
    wait (``time_until_next_ms``) and then calls ``run_pending``.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._heap: list[_Entry] = []
        self._seq = itertools.count()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return sum(1 for e in self._heap if e.handle.pending)

    def now(self) -> float:
        return self._clock()

    def schedule_once(
        self, delay_ms: float, callback: Callable[[], None], *, after: float | None = None
    ) -> TimerHandle:
        if self._closed:
            raise SchedulerClosedError("timer queue is closed")
        now = self._clock()
        base = now if after is None else float(after)
        # A stalled loop must not produce a burst of catch-up timers.
        deadline = max(base + float(delay_ms) / 1000.0, now)
        handle = TimerHandle(deadline, callback)
        heapq.heappush(self._heap, _Entry(deadline, next(self._seq), handle))
        return handle

    def time_until_next_ms(self) -> float | None:
        self._drop_cancelled()
        if not self._heap:
            return None
        return max(0.0, (self._heap[0].deadline - self._clock()) * 1000.0)

    def run_pending(self) -> int:
        """Fire every timer due now, earliest first. Returns the number fired."""
        now = self._clock()
        fired = 0
        while self._heap and not self._closed:
            entry = self._heap[0]
            if entry.handle.cancelled:
                heapq.heappop(self._heap)
                continue
            if entry.deadline > now + _EPSILON_S:
                break
            heapq.heappop(self._heap)
            entry.handle._fire()
            fired += 1
        return fired

    def close(self) -> None:
        self._closed = True
        for entry in self._heap:
            entry.handle.cancel()
        self._heap.clear()

    def _drop_cancelled(self) -> None:
        while self._heap and self._heap[0].handle.cancelled:
            heapq.heappop(self._heap)


@dataclass(frozen=True)
class BeatTick:
    generation: int
    deadline: float
    interval_ms: int


class BeatScheduler:
    """
    Arms exactly one single-shot beat timer at a time.

    Every schedule replaces whatever beat was pending and bumps the
    generation, so a tick carrying an older generation is stale.
    """

    def __init__(self, timers: TimerQueue) -> None:
        self._timers = timers
        self._handle: TimerHandle | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> bool:
        return self._handle is not None and self._handle.pending

    def schedule_next_beat(
        self, tempo: int, on_tick: Callable[[BeatTick], None], *, after: float | None = None
    ) -> TimerHandle:
        self.cancel()
        self._generation += 1
        generation = self._generation
        interval = beat_interval_ms(tempo)

        def fire() -> None:
            on_tick(BeatTick(generation=generation, deadline=handle.deadline, interval_ms=interval))

        handle = self._timers.schedule_once(interval, fire, after=after)
        self._handle = handle
        logger.debug("Beat %d armed in %d ms", generation, interval)
        return handle

    def is_current(self, tick: BeatTick) -> bool:
        return tick.generation == self._generation

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AnimationScheduler:
    def __init__(self, timers: TimerQueue, interval_ms: int = ANIMATION_INTERVAL_MS) -> None:
        self._timers = timers
        self._interval_ms = int(interval_ms)
        self._handle: TimerHandle | None = None

    @property
    def running(self) -> bool:
        return self._handle is not None and self._handle.pending

    def start(self, on_tick: Callable[[], None]) -> None:
        self.cancel()
        self.schedule_next(on_tick)

    def schedule_next(self, on_tick: Callable[[], None]) -> None:
        self._handle = self._timers.schedule_once(self._interval_ms, on_tick)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
