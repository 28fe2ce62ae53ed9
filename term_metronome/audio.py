from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np

logger = logging.getLogger(__name__)


class DeviceError(RuntimeError):
    pass


class SinkStateError(RuntimeError):
    pass


@dataclass(frozen=True)
class AudioOutputConfig:
    sample_rate: int = 44100
    channels: int = 2
    # 100 ms of audio per device buffer.
    buffer_size: int = 4410


@dataclass(eq=False)
class _Voice:
    samples: np.ndarray
    position: int = 0

    @property
    def remaining(self) -> int:
        return int(self.samples.shape[0]) - self.position


class ClickMixer:
    """Sums every click still sounding into one output block."""

    def __init__(self, channels: int = 2) -> None:
        self._channels = int(channels)
        self._voices: list[_Voice] = []
        self._lock = threading.Lock()

    @property
    def active(self) -> int:
        with self._lock:
            return len(self._voices)

    def add(self, waveform: np.ndarray) -> None:
        samples = np.asarray(waveform, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples.reshape(-1, 1)
        if samples.shape[1] != self._channels:
            samples = np.repeat(samples[:, :1], self._channels, axis=1)
        if samples.shape[0] == 0:
            return
        with self._lock:
            self._voices.append(_Voice(samples))

    def render(self, frames: int) -> np.ndarray:
        out = np.zeros((int(frames), self._channels), dtype=np.float32)
        with self._lock:
            voices = list(self._voices)

        finished: list[_Voice] = []
        for voice in voices:
            n = min(int(frames), voice.remaining)
            out[:n] += voice.samples[voice.position : voice.position + n]
            voice.position += n
            if voice.remaining <= 0:
                finished.append(voice)

        if finished:
            with self._lock:
                self._voices = [v for v in self._voices if v not in finished]
        np.clip(out, -1.0, 1.0, out=out)
        return out


def _output_stream(**kwargs: Any) -> Any:
    # Imported lazily: importing sounddevice fails outright when PortAudio is missing.
    import sounddevice as sd

    return sd.OutputStream(**kwargs)


class AudioSink:
    """
    Owned handle on the audio output device.

    ``init`` opens one long-lived output stream; ``play`` only hands a
    waveform to the mixer and returns immediately, so clicks that overlap
    are mixed by the device callback instead of cutting each other off.
    """

    def __init__(
        self,
        config: AudioOutputConfig | None = None,
        *,
        stream_factory: Callable[..., Any] | None = None,
    ) -> None:
        self._cfg = config or AudioOutputConfig()
        self._stream_factory = stream_factory or _output_stream
        self._mixer = ClickMixer(channels=self._cfg.channels)
        self._stream: Any | None = None
        self._closed = False

    @property
    def sample_rate(self) -> int:
        return self._cfg.sample_rate

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    @property
    def mixer(self) -> ClickMixer:
        return self._mixer

    def init(self) -> AudioSink:
        if self._closed:
            raise SinkStateError("audio sink already shut down")
        if self._stream is not None:
            raise SinkStateError("audio sink already initialized")

        stream = None
        try:
            stream = self._stream_factory(
                samplerate=self._cfg.sample_rate,
                channels=self._cfg.channels,
                blocksize=self._cfg.buffer_size,
                dtype="float32",
                callback=self._callback,
            )
            stream.start()
        except Exception as exc:  # noqa: BLE001 - any backend failure means no device
            if stream is not None:
                stream.close()
            raise DeviceError(str(exc) or type(exc).__name__) from exc

        self._stream = stream
        logger.info(
            "Audio output open: %d Hz, %d channels, %d-frame buffer",
            self._cfg.sample_rate,
            self._cfg.channels,
            self._cfg.buffer_size,
        )
        return self

    def play(self, waveform: np.ndarray) -> None:
        if self._stream is None:
            state = "shut down" if self._closed else "not initialized"
            raise SinkStateError(f"cannot play: audio sink {state}")
        self._mixer.add(waveform)

    def close(self) -> None:
        self._closed = True
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        finally:
            self._stream = None
            logger.info("Audio output closed")

    def __enter__(self) -> AudioSink:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _callback(self, outdata, frames, time_info, status) -> None:  # noqa: ARG002
        if status:
            logger.debug("Audio output status: %s", status)
        outdata[:] = self._mixer.render(frames)


def open_sink(
    config: AudioOutputConfig | None = None,
    *,
    stream_factory: Callable[..., Any] | None = None,
) -> AudioSink:
    return AudioSink(config, stream_factory=stream_factory).init()
