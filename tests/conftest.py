from __future__ import annotations

import numpy as np
import pytest

from term_metronome.scheduler import TimerQueue


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


class RecordingSink:
    def __init__(self, clock: FakeClock | None = None) -> None:
        self._clock = clock
        self.played: list[np.ndarray] = []
        self.played_at: list[float] = []
        self.closed = False

    def play(self, waveform: np.ndarray) -> None:
        assert not self.closed, "play after close"
        self.played.append(waveform)
        if self._clock is not None:
            self.played_at.append(self._clock())

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> RecordingSink:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers(clock: FakeClock) -> TimerQueue:
    return TimerQueue(clock=clock)


@pytest.fixture
def sink(clock: FakeClock) -> RecordingSink:
    return RecordingSink(clock)
