from __future__ import annotations

from dataclasses import dataclass

from term_metronome.keys import short_help
from term_metronome.state import MetronomeSnapshot

TITLE = "title"
BOX = "box"
ACTIVE = "active"
DOWNBEAT = "downbeat"
STATUS = "status"
HELP = "help"
PLAIN = "plain"

BOX_INNER_WIDTH = 12
BOX_INNER_HEIGHT = 5

_ROUNDED = ("╭", "─", "╮", "│", "╰", "╯")
_DOUBLE = ("╔", "═", "╗", "║", "╚", "╝")


@dataclass(frozen=True)
class Span:
    text: str
    style: str = PLAIN


Line = list[Span]


def _wave_frames(symbol: str, label: str) -> list[list[str]]:
    # The note symbol bobs up and down while the beat number stays put.
    return [
        ["", symbol, "", label],
        [symbol, "", "", label],
        ["", symbol, "", label],
        ["", "", symbol, label],
        ["", symbol, "", label],
    ]


def _box(content: list[str], style: str) -> list[str]:
    tl, h, tr, v, bl, br = _DOUBLE if style == DOWNBEAT else _ROUNDED
    body = list(content[:BOX_INNER_HEIGHT])
    # Centred vertically; an odd leftover row goes below the content.
    top = (BOX_INNER_HEIGHT - len(body)) // 2
    body = [""] * top + body
    body += [""] * (BOX_INNER_HEIGHT - len(body))
    rows = [tl + h * BOX_INNER_WIDTH + tr]
    rows += [v + text.center(BOX_INNER_WIDTH) + v for text in body]
    rows.append(bl + h * BOX_INNER_WIDTH + br)
    return rows


def render_beat(index: int, snapshot: MetronomeSnapshot) -> tuple[list[str], str]:
    symbol = "♩" if index == 0 else "♪"
    label = str(index + 1)
    frames = _wave_frames(symbol, label)
    active = snapshot.playing and index == snapshot.beat_index

    if not active:
        return _box(frames[0], BOX), BOX

    style = DOWNBEAT if index == 0 else ACTIVE
    if snapshot.animating:
        wave = min(snapshot.animation_phase // 2, len(frames) - 1)
        return _box(frames[wave], style), style
    return _box(frames[0], style), style


def render_frame(snapshot: MetronomeSnapshot) -> list[Line]:
    lines: list[Line] = [[Span("♫ Terminal Metronome", TITLE)], []]

    boxes = [render_beat(i, snapshot) for i in range(snapshot.beats_per_bar)]
    for row in range(BOX_INNER_HEIGHT + 2):
        lines.append([Span(rows[row], style) for rows, style in boxes])

    lines.append([])
    lines.append([Span(f"BPM: {snapshot.tempo}  •  Status: {snapshot.state.value}", STATUS)])
    lines.append([])
    lines.append([Span(short_help(), HELP)])
    return lines


def frame_text(lines: list[Line]) -> str:
    return "\n".join("".join(span.text for span in line) for line in lines)
