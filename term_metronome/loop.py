from __future__ import annotations

import logging
import math
from typing import Callable, Protocol

from term_metronome.scheduler import TimerQueue

logger = logging.getLogger(__name__)


class KeySource(Protocol):
    def read_key(self, timeout_ms: int) -> str | None: ...


class EventLoop:
    """
    One thread, one event at a time: key presses and due timers.

    Waiting for input doubles as the sleep until the next timer, so the
    loop never blocks on anything else.
    """

    def __init__(
        self,
        timers: TimerQueue,
        keys: KeySource,
        on_key: Callable[[str], None],
        render: Callable[[], None],
        *,
        idle_ms: int = 250,
    ) -> None:
        self._timers = timers
        self._keys = keys
        self._on_key = on_key
        self._render = render
        self._idle_ms = int(idle_ms)
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._running = False

    def run(self) -> None:
        self._running = True
        try:
            self._render()
            while self._running:
                key = self._keys.read_key(self._wait_ms())
                if key is not None:
                    self._on_key(key)
                if not self._running:
                    break
                self._timers.run_pending()
                self._render()
        finally:
            self._running = False
            self._timers.close()
            logger.debug("Event loop finished")

    def _wait_ms(self) -> int:
        until = self._timers.time_until_next_ms()
        if until is None:
            return self._idle_ms
        return int(min(self._idle_ms, math.ceil(round(until, 3))))
