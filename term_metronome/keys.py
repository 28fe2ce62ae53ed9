from __future__ import annotations

from dataclasses import dataclass

from term_metronome.state import Command


@dataclass(frozen=True)
class KeyBinding:
    keys: tuple[str, ...]
    help_key: str
    help_desc: str
    command: Command


KEY_BINDINGS: tuple[KeyBinding, ...] = (
    KeyBinding(("up", "+", "="), "↑/+", "increase BPM", Command.INCREASE_TEMPO),
    KeyBinding(("down", "-"), "↓/-", "decrease BPM", Command.DECREASE_TEMPO),
    KeyBinding(("space",), "space", "play/pause", Command.TOGGLE_PLAY),
    KeyBinding(("q", "ctrl+c"), "q", "quit", Command.QUIT),
)

_KEY_TO_COMMAND = {key: b.command for b in KEY_BINDINGS for key in b.keys}


def resolve_key(key: str | None) -> Command | None:
    if key is None:
        return None
    return _KEY_TO_COMMAND.get(key)


def short_help(separator: str = " • ") -> str:
    return separator.join(f"{b.help_key} {b.help_desc}" for b in KEY_BINDINGS)
