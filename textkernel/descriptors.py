"""Interrupt and segment descriptors in their x86 wire layout, and the
kernel's interrupt descriptor table."""

from __future__ import annotations

import struct
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import IntEnum

KERNEL_CS = 0x0010
KERNEL_DS = 0x0018
USER_CS = 0x0023
USER_DS = 0x002B
KERNEL_TSS = 0x0030
KERNEL_LDT = 0x0038

TSS_SIZE = 104
NUM_VEC = 256

SYSCALL_VECTOR = 0x80
PIT_VECTOR = 0x20
KEYBOARD_VECTOR = 0x21
RTC_VECTOR = 0x28

_WORDS = struct.Struct("<II")
_U32 = 0xFFFFFFFF

# Handler names for the architecture-defined exceptions, by vector.
EXCEPTION_HANDLERS = (
    "de", "db", "nmi", "bp", "of", "br", "ud", "nm", "df", "cso",
    "ts", "np", "ss", "gp", "pf", "mf", "mf", "ac", "mc", "xf",
)
# Vectors inside the exception range that stay not-present.
_ABSENT_VECTORS = frozenset({15, 20})
_EXCEPTION_LIMIT = 20


class GateKind(IntEnum):
    """32-bit gate types, as stored in bits 8-11 of an entry's high word."""

    INTERRUPT = 0xE
    TRAP = 0xF


def _check_bits(name: str, value: int, bits: int) -> int:
    if not 0 <= value < (1 << bits):
        raise ValueError(f"{name} {value} does not fit in {bits} bits")
    return value


@dataclass(frozen=True)
class IdtEntry:
    """One interrupt descriptor.

    ``gate`` holds the four type bits (``GateKind`` for the usual 32-bit
    gates); ``reserved4`` and ``reserved0`` are the fields the layout leaves
    reserved.
    """

    offset: int = 0
    selector: int = 0
    gate: int = 0
    dpl: int = 0
    present: bool = False
    reserved4: int = 0
    reserved0: int = 0

    def __post_init__(self) -> None:
        _check_bits("offset", self.offset, 32)
        _check_bits("selector", self.selector, 16)
        _check_bits("gate", self.gate, 4)
        _check_bits("dpl", self.dpl, 2)
        _check_bits("reserved4", self.reserved4, 8)
        _check_bits("reserved0", self.reserved0, 1)

    @property
    def kind(self) -> GateKind | None:
        """The gate kind, or ``None`` when the type bits name no 32-bit gate."""
        try:
            return GateKind(self.gate)
        except ValueError:
            return None

    @property
    def words(self) -> tuple[int, int]:
        """The entry as its low and high 32-bit words."""
        low = (self.offset & 0xFFFF) | (self.selector << 16)
        high = (
            self.reserved4
            | (self.gate << 8)
            | (self.reserved0 << 12)
            | (self.dpl << 13)
            | (int(bool(self.present)) << 15)
            | ((self.offset >> 16) << 16)
        )
        return low, high

    def pack(self) -> bytes:
        """The eight bytes of the entry, little-endian."""
        return _WORDS.pack(*self.words)

    @classmethod
    def from_words(cls, words: Sequence[int]) -> IdtEntry:
        """Decode an entry from its low and high 32-bit words."""
        if len(words) != 2:
            raise ValueError("an IDT entry is exactly two words")
        low, high = (_check_bits("word", w, 32) for w in words)
        return cls(
            offset=(low & 0xFFFF) | (high & 0xFFFF0000),
            selector=low >> 16,
            gate=(high >> 8) & 0xF,
            dpl=(high >> 13) & 0x3,
            present=bool((high >> 15) & 1),
            reserved4=high & 0xFF,
            reserved0=(high >> 12) & 1,
        )


@dataclass(frozen=True)
class SegmentDescriptor:
    """A GDT/LDT segment descriptor with its base and 20-bit limit whole."""

    base: int = 0
    limit: int = 0
    type: int = 0
    sys: int = 0
    dpl: int = 0
    present: bool = False
    avail: int = 0
    reserved: int = 0
    opsize: int = 0
    granularity: int = 0

    def __post_init__(self) -> None:
        _check_bits("base", self.base, 32)
        _check_bits("limit", self.limit, 20)
        _check_bits("type", self.type, 4)
        _check_bits("sys", self.sys, 1)
        _check_bits("dpl", self.dpl, 2)
        _check_bits("avail", self.avail, 1)
        _check_bits("reserved", self.reserved, 1)
        _check_bits("opsize", self.opsize, 1)
        _check_bits("granularity", self.granularity, 1)

    def pack(self) -> bytes:
        """The eight bytes of the descriptor, little-endian."""
        access = (
            self.type
            | (self.sys << 4)
            | (self.dpl << 5)
            | (int(bool(self.present)) << 7)
        )
        flags = (
            (self.limit >> 16)
            | (self.avail << 4)
            | (self.reserved << 5)
            | (self.opsize << 6)
            | (self.granularity << 7)
        )
        return struct.pack(
            "<HHBBBB",
            self.limit & 0xFFFF,
            self.base & 0xFFFF,
            (self.base >> 16) & 0xFF,
            access,
            flags,
            self.base >> 24,
        )


def _address(handlers: Mapping[str, int], name: str) -> int:
    try:
        address = handlers[name]
    except KeyError:
        raise ValueError(f"no address given for handler {name!r}") from None
    if not 0 <= address <= _U32:
        raise ValueError(f"handler {name!r} address {address:#x} is not 32-bit")
    return address


def _gate(address: int, kind: GateKind, dpl: int) -> IdtEntry:
    return IdtEntry(offset=address, selector=KERNEL_CS, gate=kind, dpl=dpl, present=True)


def build_idt(handlers: Mapping[str, int]) -> list[IdtEntry]:
    """Build the kernel's 256-entry interrupt descriptor table.

    ``handlers`` maps handler names to addresses: the exception handlers
    ``de`` to ``xf`` (see ``EXCEPTION_HANDLERS``) and ``sys_call``,
    ``keyboard_call``, ``rtc_call`` and ``pit_call``.  Exceptions become
    kernel trap gates, the system call a user-callable trap gate, and the
    devices interrupt gates; every other vector is left empty.
    """
    table = [IdtEntry() for _ in range(NUM_VEC)]
    for vector in range(_EXCEPTION_LIMIT + 1):
        if vector in _ABSENT_VECTORS:
            continue
        address = _address(handlers, EXCEPTION_HANDLERS[vector])
        table[vector] = _gate(address, GateKind.TRAP, 0)
    table[SYSCALL_VECTOR] = _gate(_address(handlers, "sys_call"), GateKind.TRAP, 3)
    table[KEYBOARD_VECTOR] = _gate(
        _address(handlers, "keyboard_call"), GateKind.INTERRUPT, 3
    )
    table[RTC_VECTOR] = _gate(_address(handlers, "rtc_call"), GateKind.INTERRUPT, 0)
    table[PIT_VECTOR] = _gate(_address(handlers, "pit_call"), GateKind.INTERRUPT, 0)
    return table