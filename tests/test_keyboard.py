import pytest

from textkernel.console import NUM_COLS, TextScreen
from textkernel.keyboard import (
    BUFFER_SIZE,
    HISTORY_SIZE,
    KEY_ALT,
    KEY_ALT_RELEASE,
    KEY_B,
    KEY_BACKSPACE,
    KEY_C,
    KEY_CAPS_LOCK,
    KEY_CTRL,
    KEY_CTRL_RELEASE,
    KEY_ENTER,
    KEY_F2,
    KEY_L,
    KEY_LEFT_SHIFT,
    KEY_LEFT_SHIFT_RELEASE,
    KEY_SPACE,
    KEY_TAB,
    KEY_UP,
    KEY_UP_RELEASE,
    SCANCODE_TABLE,
    KeyboardDriver,
    translate_scancode,
)

CODES = {ch: SCANCODE_TABLE.index(ch) for ch in "abcdefghijklmnopqrstuvwxyz"}


def make():
    return KeyboardDriver(TextScreen())


def type_text(driver, text):
    for ch in text:
        driver.handle(CODES[ch])


def submit(driver, text):
    type_text(driver, text)
    driver.handle(KEY_ENTER)


@pytest.mark.parametrize(
    "code, shift, caps, expected",
    [
        (0x1E, False, False, "a"),
        (0x1E, True, False, "A"),
        (0x1E, False, True, "A"),
        (0x1E, True, True, "a"),
        (0x02, True, False, "!"),
        (0x02, False, True, "1"),
        (0x02, True, True, "!"),
        (0x29, False, True, "~"),
        (0x35, True, False, "?"),
    ],
)
def test_translate_scancode(code, shift, caps, expected):
    assert translate_scancode(code, shift, caps) == expected


@pytest.mark.parametrize(
    "code, shift",
    [(KEY_BACKSPACE, False), (0x9E, False), (0x37, True), (KEY_SPACE, False), (0x00, True)],
)
def test_translate_scancode_non_printing(code, shift):
    assert translate_scancode(code, shift, False) is None


def test_typing_shows_on_screen_and_line():
    driver = make()
    type_text(driver, "hi")
    assert driver.line() == "hi"
    assert driver.screen.row_text(0).startswith("hi")
    assert driver.screen.cursor_position() == len(driver.line())


def test_shift_held_and_released():
    driver = make()
    driver.handle(KEY_LEFT_SHIFT)
    type_text(driver, "h")
    driver.handle(KEY_LEFT_SHIFT_RELEASE)
    type_text(driver, "h")
    assert driver.line() == "Hh"


def test_caps_lock_toggles():
    driver = make()
    driver.handle(KEY_CAPS_LOCK)
    type_text(driver, "a")
    driver.handle(KEY_CAPS_LOCK)
    type_text(driver, "a")
    assert driver.line() == "Aa"


def test_tab_inserts_spaces():
    driver = make()
    driver.handle(KEY_TAB)
    assert driver.line() == "    "


def test_space():
    driver = make()
    type_text(driver, "a")
    driver.handle(KEY_SPACE)
    type_text(driver, "b")
    assert driver.line() == "a b"


def test_buffer_limit():
    driver = make()
    type_text(driver, "a" * (BUFFER_SIZE + 5))
    assert len(driver.line()) == BUFFER_SIZE - 1


def test_backspace_removes_last_character():
    driver = make()
    type_text(driver, "ab")
    driver.handle(KEY_BACKSPACE)
    assert driver.line() == "a"
    assert driver.screen.char_at(1, 0) == " "
    assert driver.screen.cursor_position() == len(driver.line())


def test_backspace_on_empty_line_does_nothing():
    driver = make()
    driver.handle(KEY_BACKSPACE)
    assert driver.line() == ""
    assert driver.screen.cursor_position() == 0


def test_backspace_wraps_to_previous_row():
    driver = make()
    type_text(driver, "a" * NUM_COLS)
    driver.handle(KEY_BACKSPACE)
    assert len(driver.line()) == NUM_COLS - 1
    assert driver.screen.cursor_position() == NUM_COLS - 1
    assert driver.screen.char_at(NUM_COLS - 1, 0) == " "


def test_enter_submits_line_and_saves_history():
    driver = make()
    submit(driver, "ls")
    assert driver.submitted == ["ls"]
    assert driver.line() == ""
    assert driver.history()[0] == "ls"
    assert driver.screen.position[1] == 1


def test_empty_enter_is_not_saved():
    driver = make()
    driver.handle(KEY_ENTER)
    assert driver.submitted == [""]
    assert driver.history() == [""] * HISTORY_SIZE


def test_history_is_most_recent_first():
    driver = make()
    submit(driver, "a")
    submit(driver, "b")
    history = driver.history()
    assert history[:2] == ["b", "a"]
    assert len(history) == HISTORY_SIZE


def test_history_drops_oldest():
    driver = make()
    for word in ["a", "b", "c", "d", "e", "f"]:
        submit(driver, word)
    assert driver.history() == ["f", "e", "d", "c", "b"]


def test_up_arrow_recalls_last_line():
    driver = make()
    submit(driver, "ls")
    driver.handle(KEY_UP)
    assert driver.line() == "ls"
    row = driver.screen.position[1]
    assert driver.screen.row_text(row).startswith("ls")
    assert driver.screen.position[0] == len("ls")


def test_up_arrow_walks_back():
    driver = make()
    submit(driver, "a")
    submit(driver, "b")
    driver.handle(KEY_UP)
    driver.handle(KEY_UP_RELEASE)
    driver.handle(KEY_UP)
    assert driver.line() == "a"


def test_other_key_resets_recall():
    driver = make()
    submit(driver, "a")
    submit(driver, "b")
    driver.handle(KEY_UP)
    driver.handle(0x9E)
    driver.handle(KEY_UP)
    assert driver.line() == "b"


def test_up_arrow_stops_after_history_size():
    driver = make()
    for word in ["e", "d", "c", "b", "a"]:
        submit(driver, word)
    for _ in range(HISTORY_SIZE):
        driver.handle(KEY_UP)
    assert driver.line() == "e"
    driver.handle(KEY_UP)
    assert driver.line() == "e"


def test_keys_ignored_when_not_reading():
    driver = make()
    driver.reading = False
    type_text(driver, "abc")
    assert driver.line() == ""
    assert driver.screen.cursor_position() == 0


def test_alt_function_key_requests_switch():
    driver = make()
    driver.handle(KEY_ALT)
    driver.handle(KEY_F2)
    assert driver.switch_request == 1


def test_function_key_without_alt_does_nothing():
    driver = make()
    driver.handle(KEY_ALT)
    driver.handle(KEY_ALT_RELEASE)
    driver.handle(KEY_F2)
    assert driver.switch_request is None
    assert driver.line() == ""


def test_ctrl_c_requests_interrupt():
    driver = make()
    type_text(driver, "x")
    driver.handle(KEY_CTRL)
    driver.handle(KEY_C)
    assert driver.interrupt_requested is True
    assert driver.line() == "x"


def test_ctrl_b_requests_quote():
    driver = make()
    driver.handle(KEY_CTRL)
    driver.handle(KEY_B)
    assert driver.quote_requested is True
    assert driver.line() == ""


def test_ctrl_l_clears_screen_and_line():
    driver = make()
    type_text(driver, "x")
    driver.handle(KEY_CTRL)
    driver.handle(KEY_L)
    assert driver.clear_requested is True
    assert driver.line() == ""
    assert driver.screen.char_at(0, 0) == " "
    assert driver.screen.cursor_position() == 0
    driver.handle(KEY_CTRL_RELEASE)
    driver.handle(KEY_L)
    assert driver.line() == "l"


def test_invalid_scancode():
    with pytest.raises(ValueError):
        make().handle(256)