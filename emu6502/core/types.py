"""
Core enumerations for the 6502 emulator.

AddressingMode and Operation are the tagged identifiers stored in the opcode
table; StatusFlag gives the bit position of each flag in the packed
processor status byte.
"""

from enum import IntEnum, IntFlag


class AddressingMode(IntEnum):
    IMPLIED = 0
    ACCUMULATOR = 1
    IMMEDIATE = 2
    ZERO_PAGE = 3
    ZERO_PAGE_X = 4
    ZERO_PAGE_Y = 5
    ABSOLUTE = 6
    ABSOLUTE_X = 7
    ABSOLUTE_Y = 8
    INDIRECT = 9
    INDIRECT_X = 10
    INDIRECT_Y = 11
    RELATIVE = 12

    @staticmethod
    def operand_size(mode):
        """Number of operand bytes following the opcode."""
        if mode in (AddressingMode.IMPLIED, AddressingMode.ACCUMULATOR):
            return 0
        if mode in (AddressingMode.ABSOLUTE, AddressingMode.ABSOLUTE_X,
                    AddressingMode.ABSOLUTE_Y, AddressingMode.INDIRECT):
            return 2
        return 1

    @staticmethod
    def is_indexed(mode):
        return mode in (
            AddressingMode.ABSOLUTE_X, AddressingMode.ABSOLUTE_Y, AddressingMode.INDIRECT_Y,
        )


class Operation(IntEnum):
    # Load / store
    LDA = 0
    LDX = 1
    LDY = 2
    STA = 3
    STX = 4
    STY = 5
    # Transfers
    TAX = 6
    TAY = 7
    TXA = 8
    TYA = 9
    TSX = 10
    TXS = 11
    # Stack
    PHA = 12
    PHP = 13
    PLA = 14
    PLP = 15
    # Arithmetic
    ADC = 16
    SBC = 17
    # Logic
    AND = 18
    ORA = 19
    EOR = 20
    BIT = 21
    # Shifts / rotates
    ASL = 22
    LSR = 23
    ROL = 24
    ROR = 25
    # Increment / decrement
    INC = 26
    DEC = 27
    INX = 28
    INY = 29
    DEX = 30
    DEY = 31
    # Compare
    CMP = 32
    CPX = 33
    CPY = 34
    # Branches
    BCC = 35
    BCS = 36
    BEQ = 37
    BNE = 38
    BMI = 39
    BPL = 40
    BVC = 41
    BVS = 42
    # Jumps / calls
    JMP = 43
    JSR = 44
    RTS = 45
    BRK = 46
    RTI = 47
    # Flag set / clear
    CLC = 48
    SEC = 49
    CLI = 50
    SEI = 51
    CLD = 52
    SED = 53
    CLV = 54
    NOP = 55

    @staticmethod
    def is_branch(op):
        return Operation.BCC <= op <= Operation.BVS

    @staticmethod
    def is_store(op):
        return op in (Operation.STA, Operation.STX, Operation.STY)


class StatusFlag(IntFlag):
    C = 1 << 0  # Carry
    Z = 1 << 1  # Zero
    I = 1 << 2  # Interrupt disable  # noqa: E741
    D = 1 << 3  # Decimal
    B = 1 << 4  # Break (pushed copies only)
    U = 1 << 5  # Reserved, always set when packed
    V = 1 << 6  # Overflow
    N = 1 << 7  # Negative
