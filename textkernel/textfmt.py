"""NUL-terminated string comparison, integer-to-text conversion and the
kernel's small printf dialect."""

from __future__ import annotations

import operator
from collections.abc import Iterator

_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_U32 = 0xFFFFFFFF

StrLike = str | bytes | bytearray | memoryview


def _cstr(value: StrLike) -> bytes:
    """Return the bytes of ``value`` up to its first NUL, plus a terminator."""
    data = value.encode("latin-1") if isinstance(value, str) else bytes(value)
    end = data.find(0)
    if end != -1:
        data = data[:end]
    return data + b"\0"


def c_strcmp(s1: StrLike, s2: StrLike) -> int:
    """Compare two strings the way C does, byte by byte, as unsigned values.

    Returns zero when equal, otherwise the difference of the first pair of
    bytes that differ.
    """
    for x, y in zip(_cstr(s1), _cstr(s2)):
        if x != y:
            return x - y
        if x == 0:
            return 0
    return 0


def c_strncmp(s1: StrLike, s2: StrLike, n: int) -> int:
    """Compare at most ``n`` bytes of two strings the way C does."""
    if n < 0:
        raise ValueError("n must not be negative")
    for x, y, _ in zip(_cstr(s1), _cstr(s2), range(n)):
        if x != y:
            return x - y
        if x == 0:
            return 0
    return 0


def itoa(value: int, radix: int) -> str:
    """Render ``value`` as an unsigned 32-bit number in base ``radix``.

    Digits above nine are upper-case letters.
    """
    if not 2 <= radix <= len(_DIGITS):
        raise ValueError(f"radix must be between 2 and {len(_DIGITS)}")
    number = operator.index(value) & _U32
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, radix)
        digits.append(_DIGITS[rem])
    return "".join(reversed(digits))


def _next_arg(args: Iterator[object]) -> object:
    try:
        return next(args)
    except StopIteration:
        raise TypeError("not enough arguments for format string") from None


def _to_int32(value: object) -> int:
    number = operator.index(value) & _U32  # type: ignore[arg-type]
    return number - (1 << 32) if number & 0x80000000 else number


def format_kernel(fmt: str, *args: object) -> str:
    """Format text with the kernel's printf conversions.

    Supported: ``%%``, ``%x``, ``%#x`` (eight zero-padded hex digits),
    ``%u``, ``%d``, ``%c`` and ``%s``.  An unknown conversion is dropped
    without consuming an argument.
    """
    out: list[str] = []
    chars = iter(fmt)
    params = iter(args)
    for ch in chars:
        if ch != "%":
            out.append(ch)
            continue
        alternate = False
        spec = next(chars, None)
        while spec == "#":
            alternate = True
            spec = next(chars, None)
        if spec is None:
            break
        if spec == "%":
            out.append("%")
        elif spec == "x":
            text = itoa(operator.index(_next_arg(params)), 16)  # type: ignore[arg-type]
            out.append(text.rjust(8, "0") if alternate else text)
        elif spec == "u":
            out.append(itoa(operator.index(_next_arg(params)), 10))  # type: ignore[arg-type]
        elif spec == "d":
            number = _to_int32(_next_arg(params))
            out.append("-" + itoa(-number, 10) if number < 0 else itoa(number, 10))
        elif spec == "c":
            arg = _next_arg(params)
            if isinstance(arg, str):
                if len(arg) != 1:
                    raise TypeError("%c requires a single character")
                out.append(arg)
            else:
                out.append(chr(operator.index(arg) & 0xFF))  # type: ignore[arg-type]
        elif spec == "s":
            arg = _next_arg(params)
            if isinstance(arg, (bytes, bytearray)):
                arg = bytes(arg).split(b"\0", 1)[0].decode("latin-1")
            out.append(str(arg))
    return "".join(out)