"""
Exceptions raised by the 6502 core.

Bus implementations are owned by the embedder; whatever they raise is
propagated unchanged and is not wrapped in these types.
"""


class CpuError(Exception):
    """Base class for failures detected by the CPU core."""
    pass


class UnassignedOpcodeError(CpuError):
    """The fetched byte has no entry in the opcode table.

    Attributes:
        opcode: The offending byte (0..255).
        address: Address the byte was fetched from.
    """

    def __init__(self, opcode: int, address: int) -> None:
        self.opcode = opcode & 0xFF
        self.address = address & 0xFFFF
        super().__init__(f"Unassigned opcode ${self.opcode:02X} at ${self.address:04X}")
