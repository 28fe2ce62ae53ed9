from __future__ import annotations

from term_metronome.app import MetronomeSession
from term_metronome.loop import EventLoop
from term_metronome.scheduler import TimerQueue
from term_metronome.state import PlaybackState


class ScriptedKeys:
    """Feeds keys at fixed times, advancing the fake clock while "waiting"."""

    def __init__(self, clock, script: list[tuple[float, str]]) -> None:
        self._clock = clock
        self._script = list(script)
        self.timeouts: list[int] = []

    def read_key(self, timeout_ms: int) -> str | None:
        self.timeouts.append(timeout_ms)
        if self._script and self._script[0][0] <= self._clock.now * 1000.0 + timeout_ms:
            at_ms, key = self._script.pop(0)
            self._clock.now = max(self._clock.now, at_ms / 1000.0)
            return key
        self._clock.advance_ms(timeout_ms)
        return None


def test_session_plays_and_quits(clock, sink, timers: TimerQueue) -> None:
    frames = []
    keys = ScriptedKeys(clock, [(1250.0, "q")])
    session = MetronomeSession(sink, 120, keys, frames.append, timers=timers)
    session.run()

    assert session.metronome.beat_index == 2
    assert len(sink.played) == 2
    assert sink.closed
    assert timers.closed
    assert frames


def test_session_handles_tempo_and_pause_keys(clock, sink, timers: TimerQueue) -> None:
    keys = ScriptedKeys(clock, [(100.0, "up"), (200.0, "+"), (600.0, "space"), (3000.0, "q")])
    session = MetronomeSession(sink, 120, keys, lambda lines: None, timers=timers)
    session.run()

    metronome = session.metronome
    assert metronome.bpm == 130
    assert metronome.state == PlaybackState.PAUSED
    assert metronome.beat_index == 1
    assert len(sink.played) == 1


def test_loop_waits_until_next_timer(clock, timers: TimerQueue) -> None:
    fired: list[float] = []
    timers.schedule_once(120, lambda: fired.append(clock()))
    keys = ScriptedKeys(clock, [(500.0, "q")])

    loop = EventLoop(timers, keys, lambda key: loop.stop(), lambda: None, idle_ms=250)
    loop.run()

    assert keys.timeouts[0] == 120
    assert fired == [0.12]
    assert not loop.running


def test_no_timer_fires_after_teardown(clock, timers: TimerQueue) -> None:
    fired: list[int] = []
    timers.schedule_once(50, lambda: fired.append(1))
    keys = ScriptedKeys(clock, [(10.0, "q")])

    loop = EventLoop(timers, keys, lambda key: loop.stop(), lambda: None)
    loop.run()
    clock.advance_ms(1000)
    timers.run_pending()

    assert fired == []
    assert timers.pending == 0
