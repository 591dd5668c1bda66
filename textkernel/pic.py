"""A pair of cascaded 8259 interrupt controllers driven over an I/O port bus."""

from __future__ import annotations

ICW1 = 0x11
ICW2_MASTER = 0x20
ICW2_SLAVE = 0x28
ICW3_MASTER = 0x04
ICW3_SLAVE = 0x02
ICW4 = 0x01
EOI = 0x60

MASTER_8259_PORT = 0x20
SLAVE_8259_PORT = 0xA0
PIC1_COMMAND = MASTER_8259_PORT
PIC1_DATA = MASTER_8259_PORT + 1
PIC2_COMMAND = SLAVE_8259_PORT
PIC2_DATA = SLAVE_8259_PORT + 1

CASCADE_IRQ = 2
IRQ_COUNT = 16


class PortBus:
    """Byte-wide I/O ports that remember the last value written to each."""

    def __init__(self) -> None:
        self._ports: dict[int, int] = {}
        self.writes: list[tuple[int, int]] = []

    def outb(self, data: int, port: int) -> None:
        """Write one byte to ``port``."""
        byte = data & 0xFF
        self._ports[port] = byte
        self.writes.append((port, byte))

    def inb(self, port: int) -> int:
        """Read one byte from ``port``; unwritten ports read as zero."""
        return self._ports.get(port, 0)


class Pic8259:
    """Master and slave 8259 controllers wired in cascade on IRQ 2."""

    def __init__(self, bus: PortBus) -> None:
        self.bus = bus

    def init(self) -> None:
        """Send the initialisation words, mask every line, then unmask the cascade."""
        out = self.bus.outb
        out(ICW1, PIC1_COMMAND)
        out(ICW1, PIC2_COMMAND)
        out(ICW2_MASTER, PIC1_DATA)
        out(ICW2_SLAVE, PIC2_DATA)
        out(ICW3_MASTER, PIC1_DATA)
        out(ICW3_SLAVE, PIC2_DATA)
        out(ICW4, PIC1_DATA)
        out(ICW4, PIC2_DATA)
        out(0xFF, PIC1_DATA)
        out(0xFF, PIC2_DATA)
        self.enable_irq(CASCADE_IRQ)

    @staticmethod
    def _line(irq: int) -> tuple[int, int]:
        if not 0 <= irq < IRQ_COUNT:
            raise ValueError(f"IRQ {irq} out of range 0-{IRQ_COUNT - 1}")
        return (PIC1_DATA, irq) if irq < 8 else (PIC2_DATA, irq - 8)

    def enable_irq(self, irq: int) -> None:
        """Unmask ``irq``."""
        port, bit = self._line(irq)
        self.bus.outb(self.bus.inb(port) & ~(1 << bit) & 0xFF, port)

    def disable_irq(self, irq: int) -> None:
        """Mask ``irq``."""
        port, bit = self._line(irq)
        self.bus.outb(self.bus.inb(port) | (1 << bit), port)

    def send_eoi(self, irq: int) -> None:
        """Signal end of interrupt; slave lines also acknowledge the cascade."""
        self._line(irq)
        if irq >= 8:
            self.bus.outb(EOI | CASCADE_IRQ, PIC1_COMMAND)
            self.bus.outb(EOI | (irq - 8), PIC2_COMMAND)
        else:
            self.bus.outb(EOI | irq, PIC1_COMMAND)

    @property
    def master_mask(self) -> int:
        return self.bus.inb(PIC1_DATA)

    @property
    def slave_mask(self) -> int:
        return self.bus.inb(PIC2_DATA)