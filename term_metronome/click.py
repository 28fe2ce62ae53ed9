from __future__ import annotations

from dataclasses import dataclass

import numpy as np

DEFAULT_DECAY_RATE = 200.0


@dataclass(frozen=True)
class ClickConfig:
    frequency_hz: float = 1200.0
    duration_s: float = 0.01
    sample_rate: int = 44100
    amplitude: float = 0.3
    decay_rate: float = DEFAULT_DECAY_RATE


def click_envelope(n: int, sample_rate_hz: int, decay_rate: float = DEFAULT_DECAY_RATE) -> np.ndarray:
    t = np.arange(int(n), dtype=np.float64) / float(sample_rate_hz)
    return np.exp(-t * float(decay_rate))


def synthesize(
    frequency_hz: float,
    duration_s: float,
    sample_rate_hz: int,
    amplitude: float,
    decay_rate: float = DEFAULT_DECAY_RATE,
) -> np.ndarray:
    """
    Build one metronome click as a stereo float32 block of shape (n, 2).

    A sine at ``frequency_hz`` shaped by ``exp(-t * decay_rate)`` so the
    click dies away well inside ``duration_s``. Both channels carry the same
    signal. The result is read-only; callers hand it to the sink and drop it.
    """
    if sample_rate_hz <= 0:
        raise ValueError("sample_rate_hz must be positive")
    if duration_s < 0:
        raise ValueError("duration_s must not be negative")

    n = int(round(float(sample_rate_hz) * float(duration_s)))
    t = np.arange(n, dtype=np.float64) / float(sample_rate_hz)
    wave = np.sin(2.0 * np.pi * float(frequency_hz) * t)
    env = click_envelope(n, sample_rate_hz, decay_rate)
    mono = (wave * env * float(amplitude)).astype(np.float32)

    stereo = np.repeat(mono[:, np.newaxis], 2, axis=1)
    stereo.setflags(write=False)
    return stereo


def render_click(config: ClickConfig | None = None) -> np.ndarray:
    cfg = config or ClickConfig()
    return synthesize(
        cfg.frequency_hz,
        cfg.duration_s,
        cfg.sample_rate,
        cfg.amplitude,
        decay_rate=cfg.decay_rate,
    )
