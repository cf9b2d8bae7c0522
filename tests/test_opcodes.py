import pytest

from emu6502.core.errors import UnassignedOpcodeError
from emu6502.core.opcodes import (
    DEFAULT_OPCODES,
    OPCODE_TABLE,
    OpcodeEntry,
    assigned_opcodes,
    build_opcode_table,
    lookup,
)
from emu6502.core.types import AddressingMode, Operation


def test_table_has_256_slots_and_151_documented_opcodes() -> None:
    assert len(OPCODE_TABLE) == 256
    assert len(assigned_opcodes()) == 151


def test_every_mnemonic_is_covered() -> None:
    covered = {entry.operation for entry in OPCODE_TABLE if entry is not None}

    assert covered == set(Operation)
    assert len(covered) == 56


def test_slots_match_their_opcode() -> None:
    for opcode, entry in enumerate(OPCODE_TABLE):
        if entry is not None:
            assert entry.opcode == opcode


@pytest.mark.parametrize(
    "opcode, mnemonic, mode, cycles, penalty",
    [
        (0x00, "BRK", AddressingMode.IMPLIED, 7, False),
        (0x20, "JSR", AddressingMode.ABSOLUTE, 6, False),
        (0x6C, "JMP", AddressingMode.INDIRECT, 5, False),
        (0xB1, "LDA", AddressingMode.INDIRECT_Y, 5, True),
        (0x91, "STA", AddressingMode.INDIRECT_Y, 6, False),
        (0x9D, "STA", AddressingMode.ABSOLUTE_X, 5, False),
        (0x1E, "ASL", AddressingMode.ABSOLUTE_X, 7, False),
        (0xBE, "LDX", AddressingMode.ABSOLUTE_Y, 4, True),
        (0x96, "STX", AddressingMode.ZERO_PAGE_Y, 4, False),
        (0xEA, "NOP", AddressingMode.IMPLIED, 2, False),
    ],
)
def test_known_entries(opcode, mnemonic, mode, cycles, penalty) -> None:
    entry = lookup(opcode)

    assert entry.mnemonic == mnemonic
    assert entry.mode == mode
    assert entry.cycles == cycles
    assert entry.page_penalty is penalty


@pytest.mark.parametrize("opcode", [0x02, 0x03, 0x1A, 0x80, 0xA3, 0xEB, 0xFF])
def test_undocumented_slots_are_unassigned(opcode: int) -> None:
    assert OPCODE_TABLE[opcode] is None
    with pytest.raises(UnassignedOpcodeError) as excinfo:
        lookup(opcode, 0x1234)
    assert excinfo.value.opcode == opcode
    assert excinfo.value.address == 0x1234


def test_instruction_sizes() -> None:
    assert lookup(0xEA).size == 1
    assert lookup(0xA9).size == 2
    assert lookup(0x4C).size == 3


def test_stores_and_read_modify_write_never_pay_page_penalty() -> None:
    for entry in DEFAULT_OPCODES:
        if Operation.is_store(entry.operation) or entry.operation in (
            Operation.ASL, Operation.LSR, Operation.ROL, Operation.ROR,
            Operation.INC, Operation.DEC,
        ):
            assert entry.page_penalty is False


def test_branches_are_relative_two_cycle_instructions() -> None:
    branches = [e for e in DEFAULT_OPCODES if Operation.is_branch(e.operation)]

    assert len(branches) == 8
    for entry in branches:
        assert entry.mode == AddressingMode.RELATIVE
        assert entry.cycles == 2
    assert not any(
        Operation.is_branch(e.operation)
        for e in DEFAULT_OPCODES
        if e.mode != AddressingMode.RELATIVE
    )


def test_duplicate_registration_is_rejected() -> None:
    dup = OpcodeEntry(0xEA, Operation.NOP, AddressingMode.IMPLIED, 2)

    with pytest.raises(ValueError):
        build_opcode_table([dup, dup])


def test_entry_validation() -> None:
    with pytest.raises(ValueError):
        OpcodeEntry(0x100, Operation.NOP, AddressingMode.IMPLIED, 2)
    with pytest.raises(ValueError):
        OpcodeEntry(0xEA, Operation.NOP, AddressingMode.IMPLIED, 0)
    with pytest.raises(ValueError):
        OpcodeEntry(0xA5, Operation.LDA, AddressingMode.ZERO_PAGE, 3, page_penalty=True)
