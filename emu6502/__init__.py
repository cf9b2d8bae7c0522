"""
emu6502 -- an instruction-level NMOS 6502 emulator core.

Typical use::

    from emu6502 import M6502, Ram64K

    ram = Ram64K()
    ram.load(program, 0x8000)
    ram.set_vector(M6502.RST_VEC, 0x8000)

    cpu = M6502(ram)
    cpu.reset()
    cycles = cpu.step()
"""

from emu6502.core.addressing import Operand, resolve_operand
from emu6502.core.devices import IBus, NullBus, Ram64K
from emu6502.core.errors import CpuError, UnassignedOpcodeError
from emu6502.core.interrupts import InterruptController, InterruptState
from emu6502.core.logger import ConsoleLogger, ILogger, NullLogger, StdlibLogger
from emu6502.core.m6502 import M6502
from emu6502.core.opcodes import OPCODE_TABLE, OpcodeEntry, lookup
from emu6502.core.registers import CpuSnapshot, Registers, StatusFlags
from emu6502.core.types import AddressingMode, Operation, StatusFlag

__version__ = "0.1.0"

__all__ = [
    "AddressingMode",
    "ConsoleLogger",
    "CpuError",
    "CpuSnapshot",
    "IBus",
    "ILogger",
    "InterruptController",
    "InterruptState",
    "M6502",
    "NullBus",
    "NullLogger",
    "OPCODE_TABLE",
    "OpcodeEntry",
    "Operand",
    "Operation",
    "Ram64K",
    "Registers",
    "StatusFlag",
    "StatusFlags",
    "StdlibLogger",
    "UnassignedOpcodeError",
    "lookup",
    "resolve_operand",
]
