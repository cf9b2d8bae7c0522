"""
Opcode dispatch table for the NMOS 6502.

Maps each of the 256 opcode bytes to an :class:`OpcodeEntry` describing the
operation, its addressing mode and its base cycle count.  Only the 151
documented opcodes are assigned; every other slot is ``None`` and looking it
up raises :class:`~emu6502.core.errors.UnassignedOpcodeError`.

The table is built once at import time and never modified.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Iterable, List, Optional, Sequence, Tuple

from emu6502.core.errors import UnassignedOpcodeError
from emu6502.core.types import AddressingMode, Operation


@dataclass(frozen=True)
class OpcodeEntry:
    """Metadata describing a single opcode.

    ``page_penalty`` is True when the instruction costs one more cycle if
    its indexed effective address lands on a different page than the base
    address.
    """

    opcode: int
    operation: Operation
    mode: AddressingMode
    cycles: int
    page_penalty: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.opcode <= 0xFF:
            raise ValueError(f"opcode out of range: {self.opcode}")
        if self.cycles <= 0:
            raise ValueError("cycles must be positive")
        if self.page_penalty and not AddressingMode.is_indexed(self.mode):
            raise ValueError(f"opcode {self.opcode:#04x}: page penalty on non-indexed mode")

    @property
    def mnemonic(self) -> str:
        return self.operation.name

    @property
    def size(self) -> int:
        """Instruction length in bytes, opcode included."""
        return 1 + AddressingMode.operand_size(self.mode)


class OpcodeTable:
    """Builder for the 256-entry opcode table."""

    _TABLE_SIZE: Final[int] = 0x100

    def __init__(self) -> None:
        self._table: List[Optional[OpcodeEntry]] = [None] * self._TABLE_SIZE

    def register(self, entry: OpcodeEntry) -> None:
        existing = self._table[entry.opcode]
        if existing is not None:
            raise ValueError(
                f"opcode {entry.opcode:#04x} already registered as {existing.mnemonic}")
        self._table[entry.opcode] = entry

    def register_all(self, entries: Iterable[OpcodeEntry]) -> None:
        for entry in entries:
            self.register(entry)

    def freeze(self) -> Tuple[Optional[OpcodeEntry], ...]:
        return tuple(self._table)


M = AddressingMode
O = Operation

# (opcode, mode, cycles, page_penalty) per operation.  Cycle counts are the
# NMOS figures before any page-crossing or branch penalty.
_GROUPS = {
    O.LDA: ((0xA9, M.IMMEDIATE, 2, False), (0xA5, M.ZERO_PAGE, 3, False),
            (0xB5, M.ZERO_PAGE_X, 4, False), (0xAD, M.ABSOLUTE, 4, False),
            (0xBD, M.ABSOLUTE_X, 4, True), (0xB9, M.ABSOLUTE_Y, 4, True),
            (0xA1, M.INDIRECT_X, 6, False), (0xB1, M.INDIRECT_Y, 5, True)),
    O.LDX: ((0xA2, M.IMMEDIATE, 2, False), (0xA6, M.ZERO_PAGE, 3, False),
            (0xB6, M.ZERO_PAGE_Y, 4, False), (0xAE, M.ABSOLUTE, 4, False),
            (0xBE, M.ABSOLUTE_Y, 4, True)),
    O.LDY: ((0xA0, M.IMMEDIATE, 2, False), (0xA4, M.ZERO_PAGE, 3, False),
            (0xB4, M.ZERO_PAGE_X, 4, False), (0xAC, M.ABSOLUTE, 4, False),
            (0xBC, M.ABSOLUTE_X, 4, True)),
    O.STA: ((0x85, M.ZERO_PAGE, 3, False), (0x95, M.ZERO_PAGE_X, 4, False),
            (0x8D, M.ABSOLUTE, 4, False), (0x9D, M.ABSOLUTE_X, 5, False),
            (0x99, M.ABSOLUTE_Y, 5, False), (0x81, M.INDIRECT_X, 6, False),
            (0x91, M.INDIRECT_Y, 6, False)),
    O.STX: ((0x86, M.ZERO_PAGE, 3, False), (0x96, M.ZERO_PAGE_Y, 4, False),
            (0x8E, M.ABSOLUTE, 4, False)),
    O.STY: ((0x84, M.ZERO_PAGE, 3, False), (0x94, M.ZERO_PAGE_X, 4, False),
            (0x8C, M.ABSOLUTE, 4, False)),

    O.TAX: ((0xAA, M.IMPLIED, 2, False),),
    O.TAY: ((0xA8, M.IMPLIED, 2, False),),
    O.TXA: ((0x8A, M.IMPLIED, 2, False),),
    O.TYA: ((0x98, M.IMPLIED, 2, False),),
    O.TSX: ((0xBA, M.IMPLIED, 2, False),),
    O.TXS: ((0x9A, M.IMPLIED, 2, False),),

    O.PHA: ((0x48, M.IMPLIED, 3, False),),
    O.PHP: ((0x08, M.IMPLIED, 3, False),),
    O.PLA: ((0x68, M.IMPLIED, 4, False),),
    O.PLP: ((0x28, M.IMPLIED, 4, False),),

    O.ADC: ((0x69, M.IMMEDIATE, 2, False), (0x65, M.ZERO_PAGE, 3, False),
            (0x75, M.ZERO_PAGE_X, 4, False), (0x6D, M.ABSOLUTE, 4, False),
            (0x7D, M.ABSOLUTE_X, 4, True), (0x79, M.ABSOLUTE_Y, 4, True),
            (0x61, M.INDIRECT_X, 6, False), (0x71, M.INDIRECT_Y, 5, True)),
    O.SBC: ((0xE9, M.IMMEDIATE, 2, False), (0xE5, M.ZERO_PAGE, 3, False),
            (0xF5, M.ZERO_PAGE_X, 4, False), (0xED, M.ABSOLUTE, 4, False),
            (0xFD, M.ABSOLUTE_X, 4, True), (0xF9, M.ABSOLUTE_Y, 4, True),
            (0xE1, M.INDIRECT_X, 6, False), (0xF1, M.INDIRECT_Y, 5, True)),

    O.AND: ((0x29, M.IMMEDIATE, 2, False), (0x25, M.ZERO_PAGE, 3, False),
            (0x35, M.ZERO_PAGE_X, 4, False), (0x2D, M.ABSOLUTE, 4, False),
            (0x3D, M.ABSOLUTE_X, 4, True), (0x39, M.ABSOLUTE_Y, 4, True),
            (0x21, M.INDIRECT_X, 6, False), (0x31, M.INDIRECT_Y, 5, True)),
    O.ORA: ((0x09, M.IMMEDIATE, 2, False), (0x05, M.ZERO_PAGE, 3, False),
            (0x15, M.ZERO_PAGE_X, 4, False), (0x0D, M.ABSOLUTE, 4, False),
            (0x1D, M.ABSOLUTE_X, 4, True), (0x19, M.ABSOLUTE_Y, 4, True),
            (0x01, M.INDIRECT_X, 6, False), (0x11, M.INDIRECT_Y, 5, True)),
    O.EOR: ((0x49, M.IMMEDIATE, 2, False), (0x45, M.ZERO_PAGE, 3, False),
            (0x55, M.ZERO_PAGE_X, 4, False), (0x4D, M.ABSOLUTE, 4, False),
            (0x5D, M.ABSOLUTE_X, 4, True), (0x59, M.ABSOLUTE_Y, 4, True),
            (0x41, M.INDIRECT_X, 6, False), (0x51, M.INDIRECT_Y, 5, True)),
    O.BIT: ((0x24, M.ZERO_PAGE, 3, False), (0x2C, M.ABSOLUTE, 4, False)),

    O.ASL: ((0x0A, M.ACCUMULATOR, 2, False), (0x06, M.ZERO_PAGE, 5, False),
            (0x16, M.ZERO_PAGE_X, 6, False), (0x0E, M.ABSOLUTE, 6, False),
            (0x1E, M.ABSOLUTE_X, 7, False)),
    O.LSR: ((0x4A, M.ACCUMULATOR, 2, False), (0x46, M.ZERO_PAGE, 5, False),
            (0x56, M.ZERO_PAGE_X, 6, False), (0x4E, M.ABSOLUTE, 6, False),
            (0x5E, M.ABSOLUTE_X, 7, False)),
    O.ROL: ((0x2A, M.ACCUMULATOR, 2, False), (0x26, M.ZERO_PAGE, 5, False),
            (0x36, M.ZERO_PAGE_X, 6, False), (0x2E, M.ABSOLUTE, 6, False),
            (0x3E, M.ABSOLUTE_X, 7, False)),
    O.ROR: ((0x6A, M.ACCUMULATOR, 2, False), (0x66, M.ZERO_PAGE, 5, False),
            (0x76, M.ZERO_PAGE_X, 6, False), (0x6E, M.ABSOLUTE, 6, False),
            (0x7E, M.ABSOLUTE_X, 7, False)),

    O.INC: ((0xE6, M.ZERO_PAGE, 5, False), (0xF6, M.ZERO_PAGE_X, 6, False),
            (0xEE, M.ABSOLUTE, 6, False), (0xFE, M.ABSOLUTE_X, 7, False)),
    O.DEC: ((0xC6, M.ZERO_PAGE, 5, False), (0xD6, M.ZERO_PAGE_X, 6, False),
            (0xCE, M.ABSOLUTE, 6, False), (0xDE, M.ABSOLUTE_X, 7, False)),
    O.INX: ((0xE8, M.IMPLIED, 2, False),),
    O.INY: ((0xC8, M.IMPLIED, 2, False),),
    O.DEX: ((0xCA, M.IMPLIED, 2, False),),
    O.DEY: ((0x88, M.IMPLIED, 2, False),),

    O.CMP: ((0xC9, M.IMMEDIATE, 2, False), (0xC5, M.ZERO_PAGE, 3, False),
            (0xD5, M.ZERO_PAGE_X, 4, False), (0xCD, M.ABSOLUTE, 4, False),
            (0xDD, M.ABSOLUTE_X, 4, True), (0xD9, M.ABSOLUTE_Y, 4, True),
            (0xC1, M.INDIRECT_X, 6, False), (0xD1, M.INDIRECT_Y, 5, True)),
    O.CPX: ((0xE0, M.IMMEDIATE, 2, False), (0xE4, M.ZERO_PAGE, 3, False),
            (0xEC, M.ABSOLUTE, 4, False)),
    O.CPY: ((0xC0, M.IMMEDIATE, 2, False), (0xC4, M.ZERO_PAGE, 3, False),
            (0xCC, M.ABSOLUTE, 4, False)),

    O.BCC: ((0x90, M.RELATIVE, 2, False),),
    O.BCS: ((0xB0, M.RELATIVE, 2, False),),
    O.BEQ: ((0xF0, M.RELATIVE, 2, False),),
    O.BNE: ((0xD0, M.RELATIVE, 2, False),),
    O.BMI: ((0x30, M.RELATIVE, 2, False),),
    O.BPL: ((0x10, M.RELATIVE, 2, False),),
    O.BVC: ((0x50, M.RELATIVE, 2, False),),
    O.BVS: ((0x70, M.RELATIVE, 2, False),),

    O.JMP: ((0x4C, M.ABSOLUTE, 3, False), (0x6C, M.INDIRECT, 5, False)),
    O.JSR: ((0x20, M.ABSOLUTE, 6, False),),
    O.RTS: ((0x60, M.IMPLIED, 6, False),),
    O.BRK: ((0x00, M.IMPLIED, 7, False),),
    O.RTI: ((0x40, M.IMPLIED, 6, False),),

    O.CLC: ((0x18, M.IMPLIED, 2, False),),
    O.SEC: ((0x38, M.IMPLIED, 2, False),),
    O.CLI: ((0x58, M.IMPLIED, 2, False),),
    O.SEI: ((0x78, M.IMPLIED, 2, False),),
    O.CLD: ((0xD8, M.IMPLIED, 2, False),),
    O.SED: ((0xF8, M.IMPLIED, 2, False),),
    O.CLV: ((0xB8, M.IMPLIED, 2, False),),
    O.NOP: ((0xEA, M.IMPLIED, 2, False),),
}

DEFAULT_OPCODES: Sequence[OpcodeEntry] = tuple(
    OpcodeEntry(opcode, operation, mode, cycles, penalty)
    for operation, variants in _GROUPS.items()
    for opcode, mode, cycles, penalty in variants
)

del M, O


def build_opcode_table(entries: Iterable[OpcodeEntry]) -> Tuple[Optional[OpcodeEntry], ...]:
    """Build a 256-entry opcode lookup table."""
    table = OpcodeTable()
    table.register_all(entries)
    return table.freeze()


OPCODE_TABLE: Tuple[Optional[OpcodeEntry], ...] = build_opcode_table(DEFAULT_OPCODES)


def lookup(opcode: int, address: int = 0) -> OpcodeEntry:
    """Return the entry for *opcode*.

    Raises:
        UnassignedOpcodeError: If the slot is empty.  *address* is only used
            to make the error message useful.
    """
    entry = OPCODE_TABLE[opcode & 0xFF]
    if entry is None:
        raise UnassignedOpcodeError(opcode, address)
    return entry


def assigned_opcodes() -> List[int]:
    """Sorted list of opcode bytes with a table entry."""
    return [op for op, entry in enumerate(OPCODE_TABLE) if entry is not None]
