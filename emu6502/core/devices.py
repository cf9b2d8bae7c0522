"""
Memory bus abstractions for the 6502 core.

IBus is the read/write contract the CPU consumes.  Embedders implement it to
map RAM, ROM and I/O however their machine requires; the core never looks
behind it.
NullBus is a no-op bus that reads as zero.
Ram64K is a flat 64 KB RAM covering the whole address space, handy as the
bus for test harnesses and for embedders with no memory-mapped devices.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Union

import numpy as np


ADDRESS_SPACE_SIZE: int = 0x10000


class IBus(ABC):
    """Abstract interface for the memory bus seen by the CPU.

    Implementations must be total: every address 0..0xFFFF has to be
    readable and writable, even if the write is ignored.  Exceptions raised
    here propagate out of :meth:`M6502.step` unchanged.
    """

    @abstractmethod
    def read(self, address: int) -> int:
        """Read a byte.

        Args:
            address: A 16-bit bus address.

        Returns:
            An integer in the range 0..255.
        """
        ...

    @abstractmethod
    def write(self, address: int, value: int) -> None:
        """Write a byte.

        Args:
            address: A 16-bit bus address.
            value: The byte value to write (0..255).
        """
        ...


class NullBus(IBus):
    """A bus that ignores all writes and always reads as zero."""

    _instance: Optional[NullBus] = None

    def __new__(cls) -> NullBus:
        """NullBus is a singleton -- every call returns the same instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def read(self, address: int) -> int:
        return 0

    def write(self, address: int, value: int) -> None:
        pass

    def __repr__(self) -> str:
        return "NullBus()"


class Ram64K(IBus):
    """64 KB of RAM spanning the entire 6502 address space.

    Addresses are masked with 0xFFFF and values with 0xFF, so the bus is
    total for any integer the CPU hands it.
    """

    RAM_SIZE: int = ADDRESS_SPACE_SIZE

    def __init__(self, fill: int = 0x00) -> None:
        self._data: np.ndarray = np.full(self.RAM_SIZE, fill & 0xFF, dtype=np.uint8)

    def reset(self) -> None:
        """Clear the RAM contents to all zeros."""
        self._data.fill(0)

    def read(self, address: int) -> int:
        return int(self._data[address & 0xFFFF])

    def write(self, address: int, value: int) -> None:
        self._data[address & 0xFFFF] = value & 0xFF

    # Index-style access, mirroring the device interface used elsewhere.
    def __getitem__(self, address: int) -> int:
        return self.read(address)

    def __setitem__(self, address: int, value: int) -> None:
        self.write(address, value)

    # ------------------------------------------------------------------
    # Program loading
    # ------------------------------------------------------------------

    def load(self, data: Union[bytes, bytearray, list, tuple], start: int = 0) -> None:
        """Copy a program image into RAM starting at *start*.

        Raises:
            ValueError: If the image would run past $FFFF.
        """
        image = np.frombuffer(bytes(bytearray(data)), dtype=np.uint8)
        start &= 0xFFFF
        end = start + len(image)
        if end > self.RAM_SIZE:
            raise ValueError(
                f"Image of {len(image)} bytes at ${start:04X} overruns the address space"
            )
        self._data[start:end] = image

    def set_vector(self, vector: int, address: int) -> None:
        """Store *address* little-endian at *vector* (e.g. 0xFFFC)."""
        self.write(vector, address & 0xFF)
        self.write(vector + 1, (address >> 8) & 0xFF)

    def dump(self, start: int, length: int) -> bytes:
        """Return *length* bytes starting at *start* (no wraparound)."""
        start &= 0xFFFF
        return self._data[start:start + length].tobytes()

    # ------------------------------------------------------------------
    # Serialisation helpers (for save-state support)
    # ------------------------------------------------------------------

    def get_snapshot(self) -> bytes:
        """Return an immutable copy of the RAM contents."""
        return self._data.tobytes()

    def restore_snapshot(self, data: bytes) -> None:
        """Restore RAM contents from a previous snapshot.

        Args:
            data: Exactly RAM_SIZE bytes captured by :meth:`get_snapshot`.

        Raises:
            ValueError: If *data* is not the expected length.
        """
        if len(data) != self.RAM_SIZE:
            raise ValueError(
                f"Snapshot size mismatch: expected {self.RAM_SIZE}, got {len(data)}"
            )
        self._data[:] = np.frombuffer(data, dtype=np.uint8)

    def __repr__(self) -> str:
        return f"Ram64K(size={self.RAM_SIZE})"
