from __future__ import annotations

import logging
from dataclasses import dataclass

from term_metronome.audio import AudioSink
from term_metronome.click import ClickConfig, render_click
from term_metronome.scheduler import (
    ANIMATION_INTERVAL_MS,
    AnimationScheduler,
    BeatScheduler,
    BeatTick,
    TimerQueue,
)
from term_metronome.state import Command, MetronomeSnapshot, PlaybackState

logger = logging.getLogger(__name__)

MIN_BPM = 20
MAX_BPM = 300
DEFAULT_BPM = 120


@dataclass(frozen=True)
class MetronomeConfig:
    min_bpm: int = MIN_BPM
    max_bpm: int = MAX_BPM
    default_bpm: int = DEFAULT_BPM
    bpm_step: int = 5
    beats_per_bar: int = 4
    # Animation phase counts 0..ceiling, one step per animation tick.
    animation_ceiling: int = 10
    animation_interval_ms: int = ANIMATION_INTERVAL_MS

    def clamp(self, bpm: int) -> int:
        return int(max(self.min_bpm, min(self.max_bpm, bpm)))


class Metronome:
    """
    Tempo, play/pause and beat position, driven by single-shot timers.

    Every accepted beat re-arms the next one at the tempo current at that
    moment, so tempo changes land on the following beat without restarting
    anything. All mutation happens on the event loop thread.
    """

    def __init__(
        self,
        sink: AudioSink,
        timers: TimerQueue,
        bpm: int | None = None,
        *,
        config: MetronomeConfig | None = None,
        click: ClickConfig | None = None,
    ) -> None:
        self._cfg = config or MetronomeConfig()
        self._click = click or ClickConfig()
        self._sink = sink
        self._beats = BeatScheduler(timers)
        self._animation = AnimationScheduler(timers, self._cfg.animation_interval_ms)
        self._bpm = self._cfg.clamp(self._cfg.default_bpm if bpm is None else bpm)
        self._state = PlaybackState.PLAYING
        self._beat_index = 0
        self._animation_phase = 0
        self._finished = False

    @property
    def bpm(self) -> int:
        return self._bpm

    @property
    def beat_index(self) -> int:
        return self._beat_index

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def playing(self) -> bool:
        return self._state == PlaybackState.PLAYING

    @property
    def animation_phase(self) -> int:
        return self._animation_phase

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def beat_pending(self) -> bool:
        return self._beats.pending

    def start(self) -> None:
        if self._finished:
            return
        logger.info("Metronome started at %d BPM", self._bpm)
        if self.playing:
            self._schedule_beat()

    def snapshot(self) -> MetronomeSnapshot:
        return MetronomeSnapshot(
            tempo=self._bpm,
            beat_index=self._beat_index,
            state=self._state,
            animation_phase=self._animation_phase,
            beats_per_bar=self._cfg.beats_per_bar,
            animation_ceiling=self._cfg.animation_ceiling,
            finished=self._finished,
        )

    def apply(self, command: Command) -> None:
        if command == Command.TOGGLE_PLAY:
            self.toggle_play()
        elif command == Command.INCREASE_TEMPO:
            self.increase_tempo()
        elif command == Command.DECREASE_TEMPO:
            self.decrease_tempo()
        elif command == Command.QUIT:
            self.quit()

    def toggle_play(self) -> None:
        if self._finished:
            return
        if self.playing:
            self._state = PlaybackState.PAUSED
            self._beats.cancel()
        else:
            self._state = PlaybackState.PLAYING
            # Fresh full interval; the paused remainder is not resumed.
            self._schedule_beat()
        logger.info("Playback %s", self._state.value.lower())

    def increase_tempo(self) -> None:
        self._set_bpm(self._bpm + self._cfg.bpm_step)

    def decrease_tempo(self) -> None:
        self._set_bpm(self._bpm - self._cfg.bpm_step)

    def quit(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._beats.cancel()
        self._animation.cancel()
        self._sink.close()
        logger.info("Metronome stopped")

    def on_beat_tick(self, tick: BeatTick) -> None:
        if self._finished or not self.playing or not self._beats.is_current(tick):
            logger.debug("Dropping stale beat tick %d", tick.generation)
            return
        self._beat_index = (self._beat_index + 1) % self._cfg.beats_per_bar
        self._animation_phase = 0
        self._sink.play(render_click(self._click))
        logger.debug("Beat %d at %d BPM", self._beat_index + 1, self._bpm)
        self._schedule_beat(after=tick.deadline)
        self._animation.start(self.on_animation_tick)

    def on_animation_tick(self) -> None:
        if self._finished:
            return
        ceiling = self._cfg.animation_ceiling
        if self._animation_phase < ceiling:
            self._animation_phase += 1
        if self._animation_phase < ceiling:
            self._animation.schedule_next(self.on_animation_tick)

    def _set_bpm(self, bpm: int) -> None:
        if self._finished:
            return
        clamped = self._cfg.clamp(bpm)
        if clamped != self._bpm:
            self._bpm = clamped
            logger.info("Tempo set to %d BPM", self._bpm)

    def _schedule_beat(self, after: float | None = None) -> None:
        self._beats.schedule_next_beat(self._bpm, self.on_beat_tick, after=after)
