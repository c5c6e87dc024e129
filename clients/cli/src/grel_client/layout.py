"""Pane geometry and the curses screen that paints the session."""

from __future__ import annotations

import curses
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from grel_client.session import Session

logger = logging.getLogger(__name__)

# Columns taken by the roster border on top of roster_width.
ROSTER_BORDER = 2

Key = Tuple[str, Optional[str]]


@dataclass(frozen=True)
class Rect:
    y: int
    x: int
    height: int
    width: int


@dataclass(frozen=True)
class PaneLayout:
    main: Rect
    roster: Optional[Rect]
    status: Rect
    input: Rect


def compute_layout(rows: int, cols: int, roster_width: int) -> PaneLayout:
    """Split a ``rows`` x ``cols`` terminal into the four panes.

    The main pane takes everything except the bottom two rows and the roster
    column on the right. The roster panel is dropped when it is disabled or
    the terminal is too narrow to show it next to the main pane.
    """

    rows = max(rows, 3)
    cols = max(cols, 1)
    panel = roster_width + ROSTER_BORDER if roster_width > 0 else 0
    if cols - panel < 1:
        panel = 0
    main_h = rows - 2
    main_w = cols - panel
    roster = Rect(0, main_w, main_h + 1, panel) if panel else None
    return PaneLayout(
        main=Rect(0, 0, main_h, main_w),
        roster=roster,
        status=Rect(main_h, 0, 1, main_w),
        input=Rect(main_h + 1, 0, 1, cols),
    )


# Control characters get_wch() hands back as one-character strings.
_CONTROL_KEYS = {
    "\n": "ENTER",
    "\r": "ENTER",
    "\x7f": "BACKSPACE",
    "\x08": "BACKSPACE",
    "\x04": "DELETE",
    "\x01": "HOME",  # ctrl-a
    "\x05": "END",  # ctrl-e
}


def normalize_key(key: int | str) -> Key:
    """Map a ``get_wch()`` result (or a ``getch()`` code) to ``(name, char)``."""

    if isinstance(key, str):
        if key in _CONTROL_KEYS:
            return _CONTROL_KEYS[key], None
        if key.isprintable():
            return "CHAR", key
        return "UNKNOWN", None
    if key == getattr(curses, "KEY_RESIZE", -2):
        return "RESIZE", None
    if key in (curses.KEY_ENTER, 10, 13):
        return "ENTER", None
    if key in (curses.KEY_BACKSPACE, 127, 8):
        return "BACKSPACE", None
    # Forward-delete varies across platforms/terminfo.
    if key in (getattr(curses, "KEY_DC", 330), 330, 4):
        return "DELETE", None
    if key == curses.KEY_LEFT:
        return "LEFT", None
    if key == curses.KEY_RIGHT:
        return "RIGHT", None
    if key in (curses.KEY_HOME, 1):  # ctrl-a
        return "HOME", None
    if key in (curses.KEY_END, 5):  # ctrl-e
        return "END", None
    if 32 <= key <= 126:
        return "CHAR", chr(key)
    return "UNKNOWN", None


def _put(window: "curses.window", y: int, x: int, text: str, attr: int = 0) -> None:
    max_y, max_x = window.getmaxyx()
    if not (0 <= y < max_y and 0 <= x < max_x):
        return
    try:
        window.addnstr(y, x, text, max_x - x, attr)
    except curses.error:
        # Writing the bottom-right cell moves the cursor off the window.
        pass


def _init_default_colors(stdscr: "curses.window") -> None:
    """Respect the terminal's configured theme rather than forcing black."""

    if not curses.has_colors():
        return
    try:
        curses.start_color()
        curses.use_default_colors()
    except curses.error:
        return


class Screen:
    """The four curses windows of the client, kept in step with the terminal size."""

    def __init__(self, stdscr: "curses.window", roster_width: int, tick_ms: int) -> None:
        self.stdscr = stdscr
        self.roster_width = roster_width
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        _init_default_colors(stdscr)
        stdscr.keypad(True)
        stdscr.timeout(tick_ms)
        self.tick_ms = tick_ms
        self.size = stdscr.getmaxyx()
        self.layout = compute_layout(self.size[0], self.size[1], roster_width)
        self._build_windows()

    def _build_windows(self) -> None:
        def _new(rect: Rect) -> "curses.window":
            return curses.newwin(rect.height, rect.width, rect.y, rect.x)

        self.main = _new(self.layout.main)
        self.roster = _new(self.layout.roster) if self.layout.roster else None
        self.status = _new(self.layout.status)
        self.input = _new(self.layout.input)

    def check_resize(self) -> bool:
        """Recompute the layout if the terminal size changed since the last check."""

        curses.update_lines_cols()
        size = self.stdscr.getmaxyx()
        if size == self.size:
            return False
        logger.debug("terminal resized from %s to %s", self.size, size)
        self.size = size
        self.layout = compute_layout(size[0], size[1], self.roster_width)
        self.stdscr.erase()
        self.stdscr.noutrefresh()
        self._build_windows()
        return True

    def _next_key(self) -> int | str | None:
        try:
            return self.stdscr.get_wch()
        except curses.error:
            # No input before the timeout.
            return None

    def read_keys(self, limit: int = 8192) -> List[Key]:
        """Wait up to one tick for a key, then drain whatever else is already pending."""

        first = self._next_key()
        if first is None:
            return []
        keys = [first]
        self.stdscr.nodelay(True)
        try:
            while len(keys) < limit:
                nxt = self._next_key()
                if nxt is None:
                    break
                keys.append(nxt)
        finally:
            self.stdscr.timeout(self.tick_ms)
        return [normalize_key(key) for key in keys]

    def paint_lines(self, session: "Session") -> None:
        win = self.main
        win.erase()
        height, width = win.getmaxyx()
        rows = session.scrollback.rows(height, width)
        top = height - len(rows)
        for offset, row in enumerate(rows):
            _put(win, top + offset, 0, row)
        win.noutrefresh()

    def paint_roster(self, session: "Session") -> None:
        win = self.roster
        if win is None:
            return
        win.erase()
        height, width = win.getmaxyx()
        for offset, name in enumerate(session.roster[: max(0, height - 2)]):
            _put(win, offset + 1, 1, name[: max(0, width - 2)])
        try:
            win.border()
        except curses.error:
            pass
        win.noutrefresh()

    def paint_status(self, session: "Session") -> None:
        win = self.status
        win.erase()
        _, width = win.getmaxyx()
        try:
            win.hline(0, 0, curses.ACS_HLINE, width)
        except curses.error:
            pass
        _put(win, 0, 1, f" {session.status_text()} ")
        win.noutrefresh()

    def paint_input(self, session: "Session", update: bool = True) -> None:
        win = self.input
        win.erase()
        _, width = win.getmaxyx()
        # The last column of the bottom row cannot be written without an error.
        for x, (ch, highlighted) in enumerate(session.editor.render(width - 1)):
            _put(win, 0, x, ch, curses.A_REVERSE if highlighted else curses.A_NORMAL)
        win.noutrefresh()
        if update:
            curses.doupdate()

    def repaint(self, session: "Session") -> None:
        self.paint_lines(session)
        self.paint_roster(session)
        self.paint_status(session)
        self.paint_input(session, update=False)
        curses.doupdate()
