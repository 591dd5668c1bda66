"""Running user programs on the host: system call numbers, command-line
splitting, program execution, argument joining and directory reads."""

from __future__ import annotations

import os
import signal
import subprocess
from collections.abc import Iterable
from enum import IntEnum
from pathlib import Path

MAX_COMMAND = 1023
NAME_LENGTH = 32
KILLED_STATUS = -1
ABNORMAL_STATUS = 256


class Syscall(IntEnum):
    """System call numbers."""

    HALT = 1
    EXECUTE = 2
    READ = 3
    WRITE = 4
    OPEN = 5
    CLOSE = 6
    GETARGS = 7
    VIDMAP = 8
    SET_HANDLER = 9
    SIGRETURN = 10


def _text(value: str | bytes | bytearray) -> str:
    text = value if isinstance(value, str) else bytes(value).decode("latin-1")
    return text.split("\0", 1)[0]


def _token(text: str) -> str:
    end = len(text)
    for stop in (" ", "\n"):
        found = text.find(stop)
        if found != -1:
            end = min(end, found)
    return text[:end]


def split_command(command: str | bytes | bytearray) -> list[str]:
    """Split a command line into an argument vector whose first item is the
    program as ``./name``.

    Arguments are separated by spaces; parsing stops where a newline starts
    an argument.  Commands longer than 1023 characters are rejected.
    """
    text = _text(command)
    if len(text) > MAX_COMMAND:
        raise ValueError(f"command longer than {MAX_COMMAND} characters")
    program = _token(text)
    argv = ["./" + program]
    rest = text[len(program) + 1 :]
    while True:
        rest = rest.lstrip(" ")
        if not rest or rest.startswith("\n"):
            break
        arg = _token(rest)
        argv.append(arg)
        rest = rest[len(arg) + 1 :]
    return argv


def execute(
    command: str | bytes | bytearray, directory: str | os.PathLike[str] | None = None
) -> int:
    """Run a program from ``directory`` and wait for it.

    Returns its exit status, -1 if it was killed with SIGKILL, or 256 if
    another signal ended it.  Raises ``OSError`` when it cannot be started.
    """
    argv = split_command(command)
    completed = subprocess.run(argv, cwd=directory, check=False)
    code = completed.returncode
    if code >= 0:
        return code
    if -code == signal.SIGKILL:
        return KILLED_STATUS
    return ABNORMAL_STATUS


def join_args(args: Iterable[str | bytes], nbytes: int) -> str:
    """Join arguments with single spaces into a buffer of ``nbytes`` bytes.

    The buffer must also hold a terminating NUL; otherwise ``ValueError``.
    """
    joined = " ".join(_text(arg) for arg in args)
    if len(joined) + 1 > nbytes:
        raise ValueError(f"arguments do not fit in {nbytes} bytes")
    return joined


class DirectoryReader:
    """Reads a host directory one entry name per call, in fixed-size records."""

    def __init__(self, path: str | os.PathLike[str] = ".") -> None:
        directory = Path(path)
        names = sorted(os.listdir(directory))
        self._names = iter([".", "..", *names])
        self.closed = False

    def read(self, nbytes: int) -> bytes:
        """Return the next name cut to ``min(nbytes, 32)`` bytes and padded
        with NULs to that length; ``b""`` once every entry has been read."""
        if self.closed:
            raise ValueError("directory is closed")
        if nbytes < 1:
            raise ValueError("number of bytes must be positive")
        name = next(self._names, None)
        if name is None:
            return b""
        size = min(nbytes, NAME_LENGTH)
        raw = os.fsencode(name)[:size]
        return raw.ljust(size, b"\0")

    def write(self, data: bytes) -> int:
        """Directories cannot be written."""
        raise OSError("cannot write to a directory")

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> DirectoryReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()