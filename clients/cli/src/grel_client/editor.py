"""Single-line input editor with an insertion cursor."""

from __future__ import annotations

from typing import List, Optional, Tuple

Cell = Tuple[str, bool]


class InputLine:
    """Characters plus an insertion cursor kept in ``[0, len(chars)]``."""

    def __init__(self) -> None:
        self.chars: List[str] = []
        self.cursor = 0

    def __len__(self) -> int:
        return len(self.chars)

    @property
    def text(self) -> str:
        return "".join(self.chars)

    def insert(self, ch: str) -> None:
        self.chars.insert(self.cursor, ch)
        self.cursor += 1

    def backspace(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1
            del self.chars[self.cursor]

    def delete(self) -> None:
        if self.cursor < len(self.chars):
            del self.chars[self.cursor]

    def move_left(self) -> None:
        self.cursor = max(0, self.cursor - 1)

    def move_right(self) -> None:
        self.cursor = min(len(self.chars), self.cursor + 1)

    def home(self) -> None:
        self.cursor = 0

    def end(self) -> None:
        self.cursor = len(self.chars)

    def commit(self) -> str:
        line = self.text
        self.chars = []
        self.cursor = 0
        return line

    def handle_key(self, key: str, char: Optional[str] = None) -> Optional[str]:
        """Apply a normalized key; returns the committed line on ENTER."""

        if key == "ENTER":
            return self.commit()
        if key == "CHAR" and char is not None:
            self.insert(char)
        elif key == "BACKSPACE":
            self.backspace()
        elif key == "DELETE":
            self.delete()
        elif key == "LEFT":
            self.move_left()
        elif key == "RIGHT":
            self.move_right()
        elif key == "HOME":
            self.home()
        elif key == "END":
            self.end()
        return None

    def render(self, width: int) -> List[Cell]:
        """Return the visible cells for a row ``width`` columns wide.

        Once the line no longer fits, the window scrolls so the cursor stays
        inside the middle third of the row. The cursor cell is highlighted; at
        the end of the line it is a highlighted blank.
        """

        width = max(1, width)
        cells: List[Cell] = [(ch, i == self.cursor) for i, ch in enumerate(self.chars)]
        if self.cursor == len(self.chars):
            cells.append((" ", True))
        if len(cells) <= width:
            return cells

        third = width // 3
        max_pos = width - max(1, third)
        if self.cursor < third:
            start = 0
        elif self.cursor > max_pos:
            start = self.cursor - max_pos
        else:
            start = self.cursor - third
        start = min(start, len(cells) - width)
        return cells[start : start + width]
