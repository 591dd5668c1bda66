"""An 80x25 text-mode screen with a hardware-style cursor, written to one
character at a time the way the kernel's console output routine does."""

from __future__ import annotations

NUM_COLS = 80
NUM_ROWS = 25
ATTRIB = 0x0A
BLANK = ord(" ")
NO_PRINT = ord("\t")


def _byte(c: str | bytes | int) -> int:
    if isinstance(c, int):
        if not 0 <= c <= 0xFF:
            raise ValueError(f"character code {c} out of range 0-255")
        return c
    raw = c.encode("latin-1") if isinstance(c, str) else bytes(c)
    if len(raw) != 1:
        raise ValueError("exactly one character is required")
    return raw[0]


class TextScreen:
    """Video memory of character/attribute pairs plus a write position and cursor.

    The write position is where the next character lands; the cursor is the
    blinking marker, kept as a linear position ``y * 80 + x``.
    """

    def __init__(self) -> None:
        self._memory = bytearray(NUM_ROWS * NUM_COLS * 2)
        self.x = 0
        self.y = 0
        self.cursor = 0
        self.scroll_count = 0
        self.clear()

    @property
    def memory(self) -> bytes:
        """A copy of video memory: character byte then attribute byte per cell."""
        return bytes(self._memory)

    @property
    def position(self) -> tuple[int, int]:
        """The current write position as ``(x, y)``."""
        return self.x, self.y

    def clear(self) -> None:
        """Blank every cell; the write position and cursor are left alone."""
        self._memory[0::2] = bytes([BLANK]) * (NUM_ROWS * NUM_COLS)
        self._memory[1::2] = bytes([ATTRIB]) * (NUM_ROWS * NUM_COLS)

    @staticmethod
    def _check(x: int, y: int) -> None:
        if not 0 <= x < NUM_COLS:
            raise ValueError(f"column {x} out of range 0-{NUM_COLS - 1}")
        if not 0 <= y < NUM_ROWS:
            raise ValueError(f"row {y} out of range 0-{NUM_ROWS - 1}")

    def _offset(self, x: int, y: int) -> int:
        return (NUM_COLS * y + x) * 2

    def _store(self, code: int) -> None:
        offset = self._offset(self.x, self.y)
        self._memory[offset] = code
        self._memory[offset + 1] = ATTRIB

    def _scroll(self) -> None:
        row_bytes = NUM_COLS * 2
        self._memory[: -row_bytes] = self._memory[row_bytes:]
        last = bytearray([BLANK, ATTRIB]) * NUM_COLS
        self._memory[-row_bytes:] = last
        self.scroll_count += 1

    def put(self, c: str | bytes | int) -> None:
        """Write one character at the write position and advance it.

        A tab prints nothing.  Newline and carriage return move to the start
        of the next row; at the bottom row a newline, or a character written
        into the last cell, scrolls the screen up by one row.
        """
        code = _byte(c)
        if code == NO_PRINT:
            return
        newline = code == ord("\n")
        last_row = NUM_ROWS - 1
        if (newline or code == ord("\r")) and self.y < last_row:
            self.y += 1
            self.x = 0
        elif (self.x == NUM_COLS - 1 and self.y == last_row) or (
            newline and self.y == last_row
        ):
            if not newline:
                self._store(code)
            self._scroll()
            self.x = 0
            self.y = last_row
        elif self.x == NUM_COLS - 1:
            self._store(code)
            self.x = 0
            self.y += 1
        else:
            self._store(code)
            self.x += 1
        self.cursor = (self.y * NUM_COLS + self.x) & 0xFFFF

    def write(self, text: str | bytes) -> int:
        """Write characters up to the first NUL; return how many were written."""
        raw = text.encode("latin-1") if isinstance(text, str) else bytes(text)
        end = raw.find(0)
        if end != -1:
            raw = raw[:end]
        for code in raw:
            self.put(code)
        return len(raw)

    def move_to(self, x: int, y: int) -> None:
        """Set the write position and move the cursor there."""
        self._check(x, y)
        self.x = x
        self.y = y
        self.cursor = y * NUM_COLS + x

    def char_at(self, x: int, y: int) -> str:
        """The character shown in cell ``(x, y)``."""
        self._check(x, y)
        return chr(self._memory[self._offset(x, y)])

    def attribute_at(self, x: int, y: int) -> int:
        """The colour attribute of cell ``(x, y)``."""
        self._check(x, y)
        return self._memory[self._offset(x, y) + 1]

    def row_text(self, y: int) -> str:
        """All 80 characters of row ``y``."""
        self._check(0, y)
        start = self._offset(0, y)
        return self._memory[start : start + NUM_COLS * 2 : 2].decode("latin-1")

    def cursor_position(self) -> int:
        """The cursor as a linear position ``y * 80 + x``."""
        return self.cursor