import struct

import pytest

from textkernel.descriptors import (
    EXCEPTION_HANDLERS,
    GateKind,
    IdtEntry,
    SegmentDescriptor,
    build_idt,
)

NAMES = sorted(set(EXCEPTION_HANDLERS)) + ["sys_call", "keyboard_call", "rtc_call", "pit_call"]


@pytest.fixture
def handlers():
    return {name: 0x00400000 + 0x100 * i for i, name in enumerate(NAMES)}


def test_trap_gate_words_worked_example():
    entry = IdtEntry(offset=0x12345678, selector=0x10, gate=GateKind.TRAP, dpl=0, present=True)
    assert entry.words == (0x00105678, 0x12348F00)


def test_pack_is_little_endian_words():
    entry = IdtEntry(offset=0xCAFEBABE, selector=0x23, gate=GateKind.INTERRUPT, dpl=3, present=True)
    assert struct.unpack("<II", entry.pack()) == entry.words
    assert len(entry.pack()) == 8


@pytest.mark.parametrize(
    "entry",
    [
        IdtEntry(),
        IdtEntry(offset=0xFFFFFFFF, selector=0xFFFF, gate=0xF, dpl=3, present=True),
        IdtEntry(offset=0x1000, selector=0x10, gate=GateKind.INTERRUPT, reserved4=0x5, reserved0=1),
    ],
)
def test_words_round_trip(entry):
    assert IdtEntry.from_words(entry.words) == entry


def test_from_words_requires_two_words():
    with pytest.raises(ValueError):
        IdtEntry.from_words([0])


def test_entry_rejects_wide_fields():
    with pytest.raises(ValueError):
        IdtEntry(dpl=4)
    with pytest.raises(ValueError):
        IdtEntry(offset=1 << 32)


def test_kind_of_unknown_gate_is_none():
    assert IdtEntry(gate=0x5).kind is None
    assert IdtEntry(gate=0xE).kind is GateKind.INTERRUPT


def test_segment_descriptor_base_and_limit_placement():
    desc = SegmentDescriptor(base=0x12345678, limit=0xABCDE, type=0x9, present=True)
    raw = desc.pack()
    assert raw[2:5] + raw[7:8] == (0x12345678).to_bytes(4, "little")
    assert raw[0:2] == (0xBCDE).to_bytes(2, "little")
    assert raw[6] & 0x0F == 0xA
    assert raw[5] == 0x89


def test_segment_descriptor_flags_byte():
    raw = SegmentDescriptor(opsize=1, granularity=1).pack()
    assert raw[6] == 0xC0


def test_segment_descriptor_rejects_large_limit():
    with pytest.raises(ValueError):
        SegmentDescriptor(limit=1 << 20)


def test_idt_has_256_entries(handlers):
    assert len(build_idt(handlers)) == 256


def test_exceptions_are_kernel_trap_gates(handlers):
    table = build_idt(handlers)
    for vector in range(20):
        if vector == 15:
            continue
        entry = table[vector]
        assert entry.kind is GateKind.TRAP
        assert entry.dpl == 0
        assert entry.present
        assert entry.selector == 0x0010
        assert entry.offset == handlers[EXCEPTION_HANDLERS[vector]]


def test_reserved_vectors_absent(handlers):
    table = build_idt(handlers)
    assert table[15] == IdtEntry()
    assert table[20] == IdtEntry()
    assert not table[0x30].present


def test_vector_16_uses_mf_handler(handlers):
    assert build_idt(handlers)[16].offset == handlers["mf"]


def test_syscall_is_user_trap_gate(handlers):
    entry = build_idt(handlers)[0x80]
    assert entry.kind is GateKind.TRAP
    assert entry.dpl == 3
    assert entry.offset == handlers["sys_call"]


@pytest.mark.parametrize(
    "vector,name,dpl",
    [(0x21, "keyboard_call", 3), (0x28, "rtc_call", 0), (0x20, "pit_call", 0)],
)
def test_device_interrupt_gates(handlers, vector, name, dpl):
    entry = build_idt(handlers)[vector]
    assert entry.kind is GateKind.INTERRUPT
    assert entry.dpl == dpl
    assert entry.present
    assert entry.offset == handlers[name]


def test_missing_handler_raises(handlers):
    del handlers["pit_call"]
    with pytest.raises(ValueError):
        build_idt(handlers)


def test_handler_address_must_be_32_bit(handlers):
    handlers["de"] = 1 << 32
    with pytest.raises(ValueError):
        build_idt(handlers)