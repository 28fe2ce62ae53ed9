from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Sequence

from term_metronome import __version__
from term_metronome.audio import AudioOutputConfig, AudioSink, DeviceError, open_sink
from term_metronome.keys import resolve_key
from term_metronome.loop import EventLoop, KeySource
from term_metronome.metronome import DEFAULT_BPM, MAX_BPM, MIN_BPM, Metronome
from term_metronome.scheduler import TimerQueue
from term_metronome.state import Command
from term_metronome.view import Line, render_frame

logger = logging.getLogger(__name__)

Screen = Callable[[list[Line]], None]
Session = Callable[[AudioSink, int], None]


class UsageError(ValueError):
    pass


def parse_bpm(raw: str | None) -> int:
    if raw is None:
        return DEFAULT_BPM
    message = f"BPM must be between {MIN_BPM} and {MAX_BPM}. Defaulting to {DEFAULT_BPM}."
    try:
        bpm = int(raw)
    except ValueError as exc:
        raise UsageError(message) from exc
    if not (MIN_BPM <= bpm <= MAX_BPM):
        raise UsageError(message)
    return bpm


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="term-metronome", description="Terminal metronome")
    parser.add_argument("bpm", nargs="?", default=None, metavar="BPM", help="tempo in beats per minute")
    parser.add_argument("--log-level", default="WARNING", help="logging level (default: WARNING)")
    parser.add_argument("--log-file", default=None, help="write log records to this file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(level: str, log_file: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        filename=log_file,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class MetronomeSession:
    """Wires a metronome, its timers and one key source/screen into an event loop."""

    def __init__(
        self,
        sink: AudioSink,
        bpm: int,
        keys: KeySource,
        screen: Screen,
        *,
        timers: TimerQueue | None = None,
    ) -> None:
        self.timers = timers or TimerQueue()
        self.metronome = Metronome(sink, self.timers, bpm)
        self._screen = screen
        self.loop = EventLoop(self.timers, keys, self._on_key, self._render)

    def run(self) -> None:
        self.metronome.start()
        try:
            self.loop.run()
        finally:
            self.metronome.quit()

    def _on_key(self, key: str) -> None:
        command = resolve_key(key)
        if command is None:
            return
        self.metronome.apply(command)
        if command == Command.QUIT:
            self.loop.stop()

    def _render(self) -> None:
        self._screen(render_frame(self.metronome.snapshot()))


def run_terminal_session(sink: AudioSink, bpm: int) -> None:
    from term_metronome.tui import run_tui

    run_tui(lambda keys, screen: MetronomeSession(sink, bpm, keys, screen.draw).run())


def run(
    argv: Sequence[str] | None = None,
    *,
    open_audio: Callable[[AudioOutputConfig], AudioSink] = open_sink,
    session: Session = run_terminal_session,
) -> int:
    parser = build_parser()
    # Unknown dash-prefixed tokens ("-x", "--120") are a bad BPM, not a fatal argparse error.
    args, extras = parser.parse_known_args(argv)
    configure_logging(args.log_level, args.log_file)
    raw_bpm = args.bpm if args.bpm is not None or not extras else extras[0]

    try:
        bpm = parse_bpm(raw_bpm)
    except UsageError as exc:
        logger.info("Rejected BPM argument %r", raw_bpm)
        print(parser.format_usage().rstrip())
        print(exc)
        bpm = DEFAULT_BPM

    try:
        sink = open_audio(AudioOutputConfig())
    except DeviceError as exc:
        print(f"Error initializing audio: {exc}", file=sys.stderr)
        return 1

    with sink:
        try:
            session(sink, bpm)
        except KeyboardInterrupt:
            logger.info("Interrupted")
        except Exception as exc:  # noqa: BLE001 - user-facing
            logger.exception("Event loop failed")
            print(f"Error running program: {exc}", file=sys.stderr)
            return 1
    return 0


def main() -> None:
    sys.exit(run(sys.argv[1:]))
