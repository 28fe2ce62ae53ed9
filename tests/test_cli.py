from __future__ import annotations

import logging

import pytest

from term_metronome.app import UsageError, parse_bpm, run
from term_metronome.audio import DeviceError


@pytest.mark.parametrize(("raw", "expected"), [(None, 120), ("20", 20), ("96", 96), ("300", 300)])
def test_parse_bpm_accepts_valid_values(raw: str | None, expected: int) -> None:
    assert parse_bpm(raw) == expected


@pytest.mark.parametrize("raw", ["400", "19", "0", "-5", "fast", "12.5", ""])
def test_parse_bpm_rejects_invalid_values(raw: str) -> None:
    with pytest.raises(UsageError, match="between 20 and 300"):
        parse_bpm(raw)


def test_out_of_range_bpm_warns_and_falls_back(capsys, sink) -> None:
    started: list[int] = []
    code = run(["400"], open_audio=lambda cfg: sink, session=lambda sink, bpm: started.append(bpm))
    out = capsys.readouterr().out
    assert code == 0
    assert started == [120]
    assert "usage: term-metronome" in out
    assert "BPM must be between 20 and 300. Defaulting to 120." in out


def test_valid_bpm_is_passed_to_session(sink) -> None:
    started: list[int] = []
    run(["180"], open_audio=lambda cfg: sink, session=lambda sink, bpm: started.append(bpm))
    assert started == [180]


def test_device_error_aborts_startup(capsys) -> None:
    def no_device(cfg):
        raise DeviceError("no output device")

    started: list[int] = []
    code = run([], open_audio=no_device, session=lambda sink, bpm: started.append(bpm))
    assert code == 1
    assert started == []
    assert "Error initializing audio: no output device" in capsys.readouterr().err


def test_sink_released_when_session_fails(capsys, sink) -> None:
    def crash(sink, bpm):
        raise RuntimeError("terminal too small")

    code = run([], open_audio=lambda cfg: sink, session=crash)
    assert code == 1
    assert sink.closed
    assert "Error running program: terminal too small" in capsys.readouterr().err


def test_keyboard_interrupt_exits_cleanly(sink) -> None:
    def interrupted(sink, bpm):
        raise KeyboardInterrupt

    assert run([], open_audio=lambda cfg: sink, session=interrupted) == 0
    assert sink.closed


@pytest.mark.parametrize("raw", ["-x", "-fast", "--120"])
def test_dash_prefixed_bpm_warns_and_still_starts(capsys, sink, raw: str) -> None:
    started: list[int] = []
    code = run([raw], open_audio=lambda cfg: sink, session=lambda sink, bpm: started.append(bpm))
    captured = capsys.readouterr()
    assert code == 0
    assert started == [120]
    assert "BPM must be between 20 and 300. Defaulting to 120." in captured.out
    assert "unrecognized arguments" not in captured.err


def test_rejected_bpm_is_reported_once(capsys, caplog, sink) -> None:
    caplog.set_level(logging.DEBUG, logger="term_metronome.app")
    run(["400"], open_audio=lambda cfg: sink, session=lambda sink, bpm: None)
    captured = capsys.readouterr()

    rejected = [r for r in caplog.records if "Rejected BPM" in r.getMessage()]
    assert [r.levelno for r in rejected] == [logging.INFO]
    assert captured.out.count("Defaulting to 120") == 1
