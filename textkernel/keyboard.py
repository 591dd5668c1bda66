"""Scancode translation and the line-editing keyboard driver of the text console."""

from __future__ import annotations

from textkernel.console import NUM_COLS, NUM_ROWS, TextScreen

BUFFER_SIZE = 128
HISTORY_SIZE = 5
TAB_WIDTH = 4
PROMPT_WIDTH = 7
SPEC_CHAR_OFFSET = 54
NO_PRINT = "\t"

KEY_BACKSPACE = 0x0E
KEY_TAB = 0x0F
KEY_ENTER = 0x1C
KEY_CTRL = 0x1D
KEY_CTRL_RELEASE = 0x9D
KEY_LEFT_SHIFT = 0x2A
KEY_RIGHT_SHIFT = 0x36
KEY_LEFT_SHIFT_RELEASE = 0xAA
KEY_RIGHT_SHIFT_RELEASE = 0xB6
KEY_ALT = 0x38
KEY_ALT_RELEASE = 0xB8
KEY_SPACE = 0x39
KEY_CAPS_LOCK = 0x3A
KEY_F1 = 0x3B
KEY_F2 = 0x3C
KEY_F3 = 0x3D
KEY_UP = 0x48
KEY_UP_RELEASE = 0xC8
KEY_B = 0x30
KEY_C = 0x2E
KEY_L = 0x26
LAST_CHARACTER_KEY = 0x37

_LOWER = (
    "\0\0" "1234567890-=" "\0\0" "qwertyuiop[]" "\0\0"
    "asdfghjkl;'`" "\0" "\\zxcvbnm,./" "\0\0"
)
_UPPER = (
    "!@#$%^&*()_+" "\0\0" "QWERTYUIOP{}" "\0\0"
    'ASDFGHJKL:"~' "\0" "|ZXCVBNM<>?"
)
# Unshifted characters for scancodes 0-0x37, then shifted ones starting at
# SPEC_CHAR_OFFSET past each key's unshifted slot.
SCANCODE_TABLE = _LOWER + _UPPER

_SYMBOLS = frozenset("1234567890-=[]\\;',./")
_SWITCH_KEYS = {KEY_F1: 0, KEY_F2: 1, KEY_F3: 2}


def _shifted(code: int) -> str:
    index = code + SPEC_CHAR_OFFSET
    return SCANCODE_TABLE[index] if index < len(SCANCODE_TABLE) else "\0"


def translate_scancode(code: int, shift: bool, caps: bool) -> str | None:
    """The character a make code produces, or ``None`` if it prints nothing.

    Caps lock shifts letters only (and the backquote key); with shift held
    as well, symbols are shifted and letters are not.
    """
    if not 0 <= code <= LAST_CHARACTER_KEY:
        return None
    base = SCANCODE_TABLE[code]
    if shift and caps:
        char = _shifted(code) if base in _SYMBOLS else base
    elif caps:
        char = base if base in _SYMBOLS else _shifted(code)
    elif shift:
        char = _shifted(code)
    else:
        char = base
    if base == "\0" or char == "\0":
        return None
    return char


class KeyboardDriver:
    """Turns scancodes into an edited input line shown on a ``TextScreen``.

    Characters are only taken while ``reading`` is true.  Key chords that the
    rest of the system acts on raise flags: ``switch_request`` (terminal
    0-2 for Alt+F1..F3), ``quote_requested`` (Ctrl+B),
    ``interrupt_requested`` (Ctrl+C) and ``clear_requested`` (Ctrl+L).
    Lines finished with Enter are appended to ``submitted`` and, when not
    empty, to the recall history.
    """

    def __init__(self, screen: TextScreen) -> None:
        self.screen = screen
        self.shift = False
        self.caps = False
        self.ctrl = False
        self.alt = False
        self.reading = True
        self.switch_request: int | None = None
        self.quote_requested = False
        self.interrupt_requested = False
        self.clear_requested = False
        self.submitted: list[str] = []
        self._buffer = [NO_PRINT] * BUFFER_SIZE
        self._index = 0
        self._saved = [[NO_PRINT] * BUFFER_SIZE for _ in range(HISTORY_SIZE)]
        self._recall = 0
        self._setup = True
        self._origin_x = 0
        self._origin_y = 0
        self._next_row = False
        self._row = 0
        screen.clear()
        screen.move_to(0, 0)

    def line(self) -> str:
        """The text typed on the current line so far."""
        return "".join(self._buffer[: self._index])

    def history(self) -> list[str]:
        """Saved lines, most recent first; unused slots are empty strings."""
        return ["".join(row).split(NO_PRINT, 1)[0] for row in self._saved]

    def _put(self, char: str) -> None:
        before = self.screen.scroll_count
        self.screen.put(char)
        if self.screen.scroll_count != before:
            self._origin_x = PROMPT_WIDTH
            self._next_row = True

    def _append(self, char: str) -> None:
        if self._index != BUFFER_SIZE - 1:
            self._buffer[self._index] = char
            self._index += 1
            self._put(char)

    def _reset_buffer(self) -> None:
        self._buffer = [NO_PRINT] * BUFFER_SIZE
        self._index = 0

    def handle(self, code: int) -> None:
        """Process one scancode byte."""
        if not 0 <= code <= 0xFF:
            raise ValueError(f"scancode {code} out of range 0-255")

        if self.alt and code in _SWITCH_KEYS:
            self.switch_request = _SWITCH_KEYS[code]
            return
        if self.ctrl and code == KEY_B:
            self.quote_requested = True
            return
        if self.ctrl and code == KEY_C:
            self.interrupt_requested = True
            return
        if code in (KEY_CTRL, KEY_CTRL_RELEASE):
            self.ctrl = code == KEY_CTRL
            return
        if code in (KEY_ALT, KEY_ALT_RELEASE):
            self.alt = code == KEY_ALT
            return
        if not self.reading:
            return

        if self._setup:
            pos = self.screen.cursor_position()
            self._origin_x, self._origin_y = pos % NUM_COLS, pos // NUM_COLS
            self._setup = False
            self._next_row = False
        last_row = NUM_ROWS - 1
        if self._row == last_row and self._origin_y == last_row and self._next_row:
            self._origin_y = last_row - 1

        if code == KEY_TAB:
            for _ in range(TAB_WIDTH):
                self._append(" ")
            return
        if code == KEY_SPACE:
            self._append(" ")
        if code == KEY_UP:
            self._recall_line()
            return
        if code != KEY_UP_RELEASE:
            self._recall = 0
        if code == KEY_BACKSPACE:
            self._backspace()
            return
        if code == KEY_ENTER:
            self._enter()
            return
        if code in (KEY_LEFT_SHIFT, KEY_RIGHT_SHIFT):
            self.shift = True
            return
        if code in (KEY_LEFT_SHIFT_RELEASE, KEY_RIGHT_SHIFT_RELEASE):
            self.shift = False
            return
        if code == KEY_CAPS_LOCK:
            self.caps = not self.caps
            return
        if self.ctrl and code == KEY_L:
            self._clear_screen()
            return

        char = translate_scancode(code, self.shift, self.caps)
        if char is not None:
            self._append(char)

    def _recall_line(self) -> None:
        if self._recall >= HISTORY_SIZE:
            return
        screen = self.screen
        self._index = 0
        saved_row = screen.y
        screen.move_to(self._origin_x, self._origin_y)
        for _ in range(BUFFER_SIZE):
            if screen.x == NUM_COLS - 1 and screen.y == saved_row:
                break
            self._put(" ")
        screen.move_to(self._origin_x, self._origin_y)
        end = BUFFER_SIZE
        end_pos = screen.position
        for i, char in enumerate(self._saved[self._recall]):
            self._buffer[i] = char
            if char == NO_PRINT:
                if i < end:
                    end = i
                    end_pos = screen.position
                if screen.x == NUM_COLS - 1:
                    break
            else:
                self._put(char)
        self._index = min(end, BUFFER_SIZE - 1)
        screen.move_to(*end_pos)
        self._recall += 1

    def _backspace(self) -> None:
        screen = self.screen
        pos = screen.cursor_position()
        x, y = pos % NUM_COLS, pos // NUM_COLS
        self._row = y
        if pos == 0 or self._index <= 0:
            return
        if x == 0 and y != 0:
            screen.x, screen.y = NUM_COLS - 1, y - 1
            self._put(" ")
            if y >= self._origin_y:
                screen.move_to(NUM_COLS - 1, y - 1)
        else:
            screen.x, screen.y = x - 1, y
            self._put(" ")
            screen.move_to(x - 1, y)
        self._index -= 1
        self._buffer[self._index] = NO_PRINT

    def _enter(self) -> None:
        pos = self.screen.cursor_position()
        x, y = pos % NUM_COLS, pos // NUM_COLS
        self._row = y
        if y != 0 or x != 0:
            self._put("\n")
        self._buffer[self._index] = "\n"
        self._setup = True
        if self._index != 0:
            row = [NO_PRINT if char == "\n" else char for char in self._buffer]
            self._saved = [row, *self._saved[: HISTORY_SIZE - 1]]
        self.submitted.append(self.line())
        self._reset_buffer()

    def _clear_screen(self) -> None:
        self._buffer[: BUFFER_SIZE - 1] = [NO_PRINT] * (BUFFER_SIZE - 1)
        self._index = 0
        self.screen.clear()
        self.screen.move_to(0, 0)
        self._setup = True
        self.clear_requested = True