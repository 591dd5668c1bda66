"""A read-only, block-structured file system image: boot block, inodes and
data blocks of 4 KiB each."""

from __future__ import annotations

import struct
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import IntEnum

BLOCK_SIZE = 4096
NAME_LENGTH = 32
MAX_DENTRIES = 63
BLOCKS_PER_INODE = 1023

_BOOT_HEADER = struct.Struct("<III52x")
_DENTRY = struct.Struct("<32sII24x")
_INODE_LENGTH = struct.Struct("<I")
_INODE_BLOCKS = struct.Struct(f"<{BLOCKS_PER_INODE}I")


class FileType(IntEnum):
    """Kinds of directory entry."""

    RTC = 0
    DIRECTORY = 1
    REGULAR = 2

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    FileType.RTC: "RTC File",
    FileType.DIRECTORY: "Directory",
    FileType.REGULAR: "Regular File",
}


class FileSystemError(OSError):
    """Raised when a lookup, read or open on the file system fails."""


@dataclass(frozen=True)
class Dentry:
    """One directory entry: a name, its file type and its inode number."""

    name: str
    file_type: FileType | int
    inode: int


def _name_bytes(name: str | bytes | bytearray) -> bytes:
    raw = name.encode("latin-1") if isinstance(name, str) else bytes(name)
    end = raw.find(0)
    return raw if end == -1 else raw[:end]


def _as_type(value: int) -> FileType | int:
    try:
        return FileType(value)
    except ValueError:
        return value


class FileSystem:
    """A parsed file system image."""

    def __init__(self, image: bytes | bytearray | memoryview) -> None:
        self._image = bytes(image)
        if len(self._image) < BLOCK_SIZE:
            raise FileSystemError("image is smaller than one boot block")
        (
            self.dir_entry_count,
            self.inode_count,
            self.data_block_count,
        ) = _BOOT_HEADER.unpack_from(self._image, 0)
        needed = (1 + self.inode_count + self.data_block_count) * BLOCK_SIZE
        if len(self._image) < needed:
            raise FileSystemError(
                f"image holds {len(self._image)} bytes but its boot block needs {needed}"
            )
        self._dentries: list[tuple[bytes, Dentry]] = []
        for raw_name, file_type, inode in _DENTRY.iter_unpack(
            self._image[_BOOT_HEADER.size : _BOOT_HEADER.size + MAX_DENTRIES * _DENTRY.size]
        ):
            name = _name_bytes(raw_name)
            self._dentries.append(
                (name, Dentry(name.decode("latin-1"), _as_type(file_type), inode))
            )

    def read_dentry_by_name(self, name: str | bytes) -> Dentry:
        """Find the entry called ``name``."""
        key = _name_bytes(name)
        if len(key) > NAME_LENGTH:
            raise FileSystemError(f"name longer than {NAME_LENGTH} characters")
        if not key:
            raise FileSystemError("name is empty")
        for raw, dentry in self._dentries:
            if raw == key:
                return dentry
        raise FileSystemError(f"no such file: {key.decode('latin-1')}")

    def read_dentry_by_index(self, index: int) -> Dentry:
        """Return the entry in slot ``index`` of the boot block (0 to 62)."""
        if not 0 <= index < MAX_DENTRIES:
            raise FileSystemError(f"entry index {index} out of range 0-{MAX_DENTRIES - 1}")
        return self._dentries[index][1]

    def _inode_base(self, inode: int) -> int:
        if not 0 <= inode < self.inode_count:
            raise FileSystemError(f"inode {inode} out of range 0-{self.inode_count - 1}")
        return (1 + inode) * BLOCK_SIZE

    def file_length(self, inode: int) -> int:
        """Length in bytes of the file held by ``inode``."""
        return _INODE_LENGTH.unpack_from(self._image, self._inode_base(inode))[0]

    def read_data(self, inode: int, offset: int, length: int) -> bytes:
        """Read up to ``length`` bytes of ``inode`` starting at ``offset``.

        The read stops at the end of the file.
        """
        if offset < 0 or length <= 0:
            raise FileSystemError("offset must be non-negative and length positive")
        base = self._inode_base(inode)
        file_length = _INODE_LENGTH.unpack_from(self._image, base)[0]
        end = min(offset + length, file_length)
        chunks = []
        pos = offset
        while pos < end:
            local = pos // BLOCK_SIZE
            if local >= BLOCKS_PER_INODE:
                raise FileSystemError("file extends past the inode's block list")
            (block,) = struct.unpack_from("<I", self._image, base + 4 + 4 * local)
            if block >= self.data_block_count:
                raise FileSystemError(f"inode {inode} names missing data block {block}")
            start = pos % BLOCK_SIZE
            stop = min(BLOCK_SIZE, start + end - pos)
            block_base = (1 + self.inode_count + block) * BLOCK_SIZE
            chunks.append(self._image[block_base + start : block_base + stop])
            pos += stop - start
        return b"".join(chunks)

    def entries(self) -> Iterator[Dentry]:
        """Yield the entries the boot block says are in use."""
        for _, dentry in self._dentries[: min(self.dir_entry_count, MAX_DENTRIES)]:
            yield dentry

    def listing(self) -> list[str]:
        """Describe each entry in use as ``name - File Type: kind``."""
        lines = []
        for dentry in self.entries():
            kind = dentry.file_type
            label = kind.label if isinstance(kind, FileType) else ""
            lines.append(f"{dentry.name} - File Type: {label}")
        return lines

    def open_file(self, name: str | bytes) -> FileHandle:
        """Open the regular file called ``name``."""
        dentry = self.read_dentry_by_name(name)
        if dentry.file_type != FileType.REGULAR:
            raise FileSystemError(f"{dentry.name} is not a regular file")
        return FileHandle(self, dentry)

    def open_directory(self, name: str | bytes) -> DirectoryHandle:
        """Open the directory called ``name``."""
        dentry = self.read_dentry_by_name(name)
        if dentry.file_type != FileType.DIRECTORY:
            raise FileSystemError(f"{dentry.name} is not a directory")
        return DirectoryHandle(self, dentry)


@dataclass
class _Handle:
    fs: FileSystem
    dentry: Dentry
    position: int = 0
    closed: bool = field(default=False, init=False)

    def _check_open(self) -> None:
        if self.closed:
            raise FileSystemError("handle is closed")

    def write(self, data: bytes) -> int:
        """The file system is read-only; writing always fails."""
        raise FileSystemError("file system is read-only")

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class FileHandle(_Handle):
    """An open regular file with a read position."""

    def read(self, nbytes: int) -> bytes:
        """Read up to ``nbytes`` bytes and advance the position."""
        self._check_open()
        if nbytes <= 0:
            raise FileSystemError("number of bytes must be positive")
        data = self.fs.read_data(self.dentry.inode, self.position, nbytes)
        self.position += len(data)
        return data


class DirectoryHandle(_Handle):
    """An open directory; each read returns the next entry's name."""

    def read(self, nbytes: int) -> bytes:
        """Return the next entry name, cut to ``nbytes`` bytes.

        Unused slots give an empty name; reading past the last slot fails.
        """
        self._check_open()
        if nbytes < 0:
            raise FileSystemError("number of bytes must not be negative")
        dentry = self.fs.read_dentry_by_index(self.position)
        self.position += 1
        return dentry.name.encode("latin-1")[:nbytes]


def build_image(files: Mapping[str | bytes, bytes | bytearray | FileType]) -> bytes:
    """Build an image from names mapped to file contents or to a file type.

    Contents make a regular file with its own inode; a ``FileType`` value makes
    an entry of that type with inode 0 (an empty file for ``REGULAR``).
    """
    if len(files) > MAX_DENTRIES:
        raise ValueError(f"at most {MAX_DENTRIES} entries fit in the boot block")
    dentries: list[bytes] = []
    contents: list[bytes] = []
    for name, value in files.items():
        raw = _name_bytes(name)
        if not 1 <= len(raw) <= NAME_LENGTH:
            raise ValueError(f"name must be 1 to {NAME_LENGTH} bytes long")
        if isinstance(value, FileType) and value != FileType.REGULAR:
            dentries.append(_DENTRY.pack(raw, value, 0))
            continue
        data = b"" if isinstance(value, FileType) else bytes(value)
        if -(-len(data) // BLOCK_SIZE) > BLOCKS_PER_INODE:
            raise ValueError(f"{raw.decode('latin-1')} is too large for one inode")
        dentries.append(_DENTRY.pack(raw, FileType.REGULAR, len(contents)))
        contents.append(data)

    inodes = []
    data_blocks = []
    for data in contents:
        numbers = []
        for start in range(0, len(data), BLOCK_SIZE):
            numbers.append(len(data_blocks))
            data_blocks.append(data[start : start + BLOCK_SIZE].ljust(BLOCK_SIZE, b"\0"))
        numbers.extend([0] * (BLOCKS_PER_INODE - len(numbers)))
        inodes.append(_INODE_LENGTH.pack(len(data)) + _INODE_BLOCKS.pack(*numbers))

    boot = _BOOT_HEADER.pack(len(dentries), len(contents), len(data_blocks)) + b"".join(dentries)
    return boot.ljust(BLOCK_SIZE, b"\0") + b"".join(inodes) + b"".join(data_blocks)