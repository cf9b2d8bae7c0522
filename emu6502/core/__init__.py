"""Core components of the 6502 emulator: bus contract, registers, opcode
table, addressing modes, interrupt controller and the M6502 engine."""
