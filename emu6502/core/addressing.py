"""
Addressing-mode resolution for the 6502.

Each resolver consumes the instruction's operand bytes at PC (advancing PC
past them) and returns an :class:`Operand` describing where the operation's
data lives.  Page crossings are reported, not charged: the execution engine
decides whether the opcode pays the extra cycle.

NMOS quirks reproduced here:

* Zero-page indexed and (zp,X) pointer reads wrap within page zero.
* (zp),Y reads the pointer's high byte from ``(zp + 1) & 0xFF``.
* JMP ($xxFF) fetches the pointer's high byte from $xx00.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, NamedTuple, Optional, Tuple

from emu6502.core.types import AddressingMode

if TYPE_CHECKING:
    from emu6502.core.m6502 import M6502


class Operand(NamedTuple):
    """Resolved operand of one instruction.

    ``address`` is None for implied and accumulator modes.  ``value`` is
    only set for immediate mode, where the operand is the instruction byte
    itself.  For relative mode ``address`` is the branch target.
    """

    mode: AddressingMode
    address: Optional[int] = None
    value: Optional[int] = None
    page_crossed: bool = False
    size: int = 0


def _page_crossed(a: int, b: int) -> bool:
    return (a & 0xFF00) != (b & 0xFF00)


def a_imp(cpu: M6502) -> Operand:
    return Operand(AddressingMode.IMPLIED)


def a_acc(cpu: M6502) -> Operand:
    return Operand(AddressingMode.ACCUMULATOR)


def a_imm(cpu: M6502) -> Operand:
    ea = cpu.registers.pc
    return Operand(AddressingMode.IMMEDIATE, ea, cpu.fetch_byte(), False, 1)


def a_zpg(cpu: M6502) -> Operand:
    return Operand(AddressingMode.ZERO_PAGE, cpu.fetch_byte(), None, False, 1)


def a_zpx(cpu: M6502) -> Operand:
    ea = (cpu.fetch_byte() + cpu.registers.x) & 0xFF
    return Operand(AddressingMode.ZERO_PAGE_X, ea, None, False, 1)


def a_zpy(cpu: M6502) -> Operand:
    ea = (cpu.fetch_byte() + cpu.registers.y) & 0xFF
    return Operand(AddressingMode.ZERO_PAGE_Y, ea, None, False, 1)


def a_abs(cpu: M6502) -> Operand:
    return Operand(AddressingMode.ABSOLUTE, cpu.fetch_word(), None, False, 2)


def a_abx(cpu: M6502) -> Operand:
    base = cpu.fetch_word()
    ea = (base + cpu.registers.x) & 0xFFFF
    return Operand(AddressingMode.ABSOLUTE_X, ea, None, _page_crossed(base, ea), 2)


def a_aby(cpu: M6502) -> Operand:
    base = cpu.fetch_word()
    ea = (base + cpu.registers.y) & 0xFFFF
    return Operand(AddressingMode.ABSOLUTE_Y, ea, None, _page_crossed(base, ea), 2)


def a_ind(cpu: M6502) -> Operand:
    """Indirect, used only by JMP.  Reproduces the page-wrap bug."""
    ptr = cpu.fetch_word()
    lsb = cpu.bus.read(ptr)
    msb = cpu.bus.read((ptr & 0xFF00) | ((ptr + 1) & 0xFF))
    return Operand(AddressingMode.INDIRECT, lsb | (msb << 8), None, False, 2)


def a_idx(cpu: M6502) -> Operand:
    """Indexed indirect (pre-indexed) -- (zp,X)."""
    zpa = (cpu.fetch_byte() + cpu.registers.x) & 0xFF
    lsb = cpu.bus.read(zpa)
    msb = cpu.bus.read((zpa + 1) & 0xFF)
    return Operand(AddressingMode.INDIRECT_X, lsb | (msb << 8), None, False, 1)


def a_idy(cpu: M6502) -> Operand:
    """Indirect indexed (post-indexed) -- (zp),Y."""
    zpa = cpu.fetch_byte()
    lsb = cpu.bus.read(zpa)
    msb = cpu.bus.read((zpa + 1) & 0xFF)
    base = lsb | (msb << 8)
    ea = (base + cpu.registers.y) & 0xFFFF
    return Operand(AddressingMode.INDIRECT_Y, ea, None, _page_crossed(base, ea), 1)


def a_rel(cpu: M6502) -> Operand:
    """Relative -- returns the branch target.

    ``page_crossed`` compares the target with the address of the next
    instruction, which is what a taken branch pays for.
    """
    bo = cpu.fetch_byte()
    if bo & 0x80:
        bo -= 256  # sign-extend
    origin = cpu.registers.pc
    ea = (origin + bo) & 0xFFFF
    return Operand(AddressingMode.RELATIVE, ea, None, _page_crossed(origin, ea), 1)


# Indexed by AddressingMode value.
RESOLVERS: Tuple[Callable[["M6502"], Operand], ...] = (
    a_imp,
    a_acc,
    a_imm,
    a_zpg,
    a_zpx,
    a_zpy,
    a_abs,
    a_abx,
    a_aby,
    a_ind,
    a_idx,
    a_idy,
    a_rel,
)


def resolve_operand(cpu: M6502, mode: AddressingMode) -> Operand:
    """Resolve *mode* against the CPU's current PC."""
    return RESOLVERS[mode](cpu)
