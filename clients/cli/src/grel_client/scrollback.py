"""Scrollback storage and width-cached word wrapping for the main pane."""

from __future__ import annotations

import re
from collections import deque
from typing import Deque, List, Optional, Tuple

DEFAULT_MAX_LINES = 1000

_RE_WORD = re.compile(r"\s*\S+")


class ScrollbackLine:
    """One logical line of text plus its wrapped rendering for a single width.

    ``rows`` is stored newest-fragment-first, i.e. the last visual row of the
    line comes first, which is the order the pane is painted in.
    """

    __slots__ = ("text", "words", "width", "rows")

    def __init__(self, text: str) -> None:
        text = text.expandtabs(4).replace("\r", " ").replace("\n", " ")
        self.text = text
        self.words: Tuple[str, ...] = tuple(_RE_WORD.findall(text))
        self.width: Optional[int] = None
        self.rows: List[str] = []

    def wrap(self, width: int) -> List[str]:
        width = max(1, width)
        if width == self.width:
            return self.rows

        rows: List[str] = []
        chunks: List[str] = []
        used = 0
        for word in self.words:
            if chunks and used + len(word) > width:
                rows.append("".join(chunks))
                chunks = []
                used = 0
            if chunks:
                chunks.append(word)
                used += len(word)
                continue
            if rows:
                word = word.lstrip()
            while len(word) > width:
                rows.append(word[:width])
                word = word[width:]
            if word:
                chunks = [word]
                used = len(word)
        if chunks:
            rows.append("".join(chunks))
        if not rows:
            rows.append("")

        rows.reverse()
        self.rows = rows
        self.width = width
        return rows


class Scrollback:
    """Newest-first store of logical lines, capped at ``max_lines``."""

    def __init__(self, max_lines: int = DEFAULT_MAX_LINES) -> None:
        self.lines: Deque[ScrollbackLine] = deque(maxlen=max_lines)

    def __len__(self) -> int:
        return len(self.lines)

    def add_line(self, text: str) -> ScrollbackLine:
        line = ScrollbackLine(text)
        # appendleft on a bounded deque drops the oldest line from the right.
        self.lines.appendleft(line)
        return line

    def rows(self, height: int, width: int) -> List[str]:
        """Return up to ``height`` visual rows, top to bottom, ending with the newest."""

        visible: List[str] = []
        for line in self.lines:
            for row in line.wrap(width):
                if len(visible) >= height:
                    break
                visible.append(row)
            if len(visible) >= height:
                break
        visible.reverse()
        return visible
