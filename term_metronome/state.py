from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from term_metronome.scheduler import beat_interval_ms


class PlaybackState(str, Enum):
    PLAYING = "Playing"
    PAUSED = "Paused"


class Command(str, Enum):
    TOGGLE_PLAY = "toggle_play"
    INCREASE_TEMPO = "increase_tempo"
    DECREASE_TEMPO = "decrease_tempo"
    QUIT = "quit"


class _Model(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class MetronomeSnapshot(_Model):
    tempo: int = Field(gt=0)
    beat_index: int = Field(ge=0)
    state: PlaybackState
    animation_phase: int = Field(ge=0)
    beats_per_bar: int = Field(default=4, gt=0)
    animation_ceiling: int = Field(default=10, gt=0)
    finished: bool = False

    @property
    def playing(self) -> bool:
        return self.state == PlaybackState.PLAYING

    @property
    def interval_ms(self) -> int:
        return beat_interval_ms(self.tempo)

    @property
    def animating(self) -> bool:
        return self.playing and self.animation_phase < self.animation_ceiling
