from __future__ import annotations

import locale
from typing import Any, Callable

from term_metronome import view

# (256-colour foreground, 8-colour fallback, 256-colour background or None for default).
_PALETTE: dict[str, tuple[int, int, int | None]] = {
    view.TITLE: (205, 5, None),
    view.BOX: (240, 7, None),
    view.ACTIVE: (205, 5, 235),
    view.DOWNBEAT: (205, 5, 235),
    view.STATUS: (86, 6, None),
    view.HELP: (241, 7, None),
}
_BOLD_STYLES = {view.TITLE, view.ACTIVE, view.DOWNBEAT}


def _translate_key(curses: Any, ch: Any) -> str | None:
    if isinstance(ch, int):
        return {
            curses.KEY_UP: "up",
            curses.KEY_DOWN: "down",
            curses.KEY_RESIZE: "resize",
        }.get(ch)
    if ch == " ":
        return "space"
    if ch == "\x03":
        return "ctrl+c"
    return ch


class CursesKeySource:
    def __init__(self, stdscr: Any) -> None:
        import curses

        self._curses = curses
        self._stdscr = stdscr

    def read_key(self, timeout_ms: int) -> str | None:
        self._stdscr.timeout(max(0, int(timeout_ms)))
        try:
            ch = self._stdscr.get_wch()
        except self._curses.error:
            # get_wch signals "no key before the timeout" with curses.error.
            return None
        return _translate_key(self._curses, ch)


class CursesScreen:
    def __init__(self, stdscr: Any, *, curses: Any = None) -> None:
        if curses is None:
            import curses

        self._curses = curses
        self._stdscr = stdscr
        self._attrs = self._build_attrs()

    def _build_attrs(self) -> dict[str, int]:
        curses = self._curses
        attrs = {style: curses.A_NORMAL for style in _PALETTE}
        attrs[view.PLAIN] = curses.A_NORMAL
        if not curses.has_colors():
            for style in _BOLD_STYLES:
                attrs[style] = curses.A_BOLD
            return attrs

        curses.start_color()
        try:
            curses.use_default_colors()
            background = -1
        except curses.error:
            background = curses.COLOR_BLACK
        rich = curses.COLORS >= 256
        for pair, (style, (color256, color8, back256)) in enumerate(_PALETTE.items(), start=1):
            if rich:
                curses.init_pair(pair, color256, background if back256 is None else back256)
            else:
                curses.init_pair(pair, color8, background)
            attr = curses.color_pair(pair)
            if style in _BOLD_STYLES:
                attr |= curses.A_BOLD
            attrs[style] = attr
        return attrs

    def draw(self, lines: list[view.Line]) -> None:
        stdscr = self._stdscr
        stdscr.erase()
        height, width = stdscr.getmaxyx()
        for y, line in enumerate(lines[: max(0, height - 1)]):
            x = 0
            for span in line:
                # Leave the last column free; writing into it raises curses.error.
                room = width - 1 - x
                if room <= 0:
                    break
                text = span.text[:room]
                stdscr.addstr(y, x, text, self._attrs.get(span.style, 0))
                x += len(text)
        stdscr.refresh()


def run_tui(session: Callable[[CursesKeySource, CursesScreen], None]) -> None:
    """Run ``session`` inside curses, restoring the terminal on every exit path."""
    import curses

    locale.setlocale(locale.LC_ALL, "")

    def _main(stdscr: Any) -> None:
        curses.curs_set(0)
        # Raw mode delivers ctrl+c as a key instead of SIGINT.
        curses.raw()
        stdscr.keypad(True)
        session(CursesKeySource(stdscr), CursesScreen(stdscr))

    curses.wrapper(_main)
