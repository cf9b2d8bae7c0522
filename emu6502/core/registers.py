"""
Register file and status flags for the 6502.

Flags are kept as individual booleans.  The packed status byte only exists
at the push/pull/interrupt boundary: bit 5 is always set there, and the B
bit is chosen by whoever packs the byte (BRK/PHP set it, hardware
interrupts clear it).  The live register never stores B.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from emu6502.core.types import StatusFlag


class StatusFlags:
    """The six storable processor flags."""

    __slots__ = ("c", "z", "i", "d", "v", "n")

    def __init__(self) -> None:
        self.c: bool = False
        self.z: bool = False
        self.i: bool = True
        self.d: bool = False
        self.v: bool = False
        self.n: bool = False

    def to_byte(self, brk: bool = False) -> int:
        """Pack the flags; the reserved bit is always set."""
        p = StatusFlag.U
        if self.c:
            p |= StatusFlag.C
        if self.z:
            p |= StatusFlag.Z
        if self.i:
            p |= StatusFlag.I
        if self.d:
            p |= StatusFlag.D
        if brk:
            p |= StatusFlag.B
        if self.v:
            p |= StatusFlag.V
        if self.n:
            p |= StatusFlag.N
        return int(p)

    def from_byte(self, value: int) -> None:
        """Unpack a status byte.  Bits 4 (B) and 5 are ignored."""
        self.c = bool(value & StatusFlag.C)
        self.z = bool(value & StatusFlag.Z)
        self.i = bool(value & StatusFlag.I)
        self.d = bool(value & StatusFlag.D)
        self.v = bool(value & StatusFlag.V)
        self.n = bool(value & StatusFlag.N)

    def set_nz(self, value: int) -> None:
        """Set N and Z from an 8-bit result."""
        self.n = bool(value & 0x80)
        self.z = (value & 0xFF) == 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatusFlags):
            return NotImplemented
        return self.to_byte() == other.to_byte()

    def __repr__(self) -> str:
        names = "NV-BDIZC"
        p = self.to_byte()
        return "StatusFlags(" + "".join(
            names[7 - bit] if p & (1 << bit) else "." for bit in range(7, -1, -1)
        ) + ")"


@dataclass(frozen=True)
class CpuSnapshot:
    """Immutable, comparable copy of the register file and packed flags."""

    a: int
    x: int
    y: int
    s: int
    pc: int
    p: int

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, snap: dict) -> CpuSnapshot:
        return cls(
            a=snap["a"] & 0xFF,
            x=snap["x"] & 0xFF,
            y=snap["y"] & 0xFF,
            s=snap["s"] & 0xFF,
            pc=snap["pc"] & 0xFFFF,
            p=(int(snap["p"]) | 0x20) & 0xEF,
        )


class Registers:
    """A, X, Y, S (8-bit), PC (16-bit) and the status flags.

    Every setter masks to the register's width.
    """

    __slots__ = ("_a", "_x", "_y", "_s", "_pc", "flags")

    POWER_UP_SP: int = 0xFD

    def __init__(self) -> None:
        self._a: int = 0x00
        self._x: int = 0x00
        self._y: int = 0x00
        self._s: int = self.POWER_UP_SP
        self._pc: int = 0x0000
        self.flags: StatusFlags = StatusFlags()

    @property
    def a(self) -> int:
        return self._a

    @a.setter
    def a(self, value: int) -> None:
        self._a = value & 0xFF

    @property
    def x(self) -> int:
        return self._x

    @x.setter
    def x(self, value: int) -> None:
        self._x = value & 0xFF

    @property
    def y(self) -> int:
        return self._y

    @y.setter
    def y(self, value: int) -> None:
        self._y = value & 0xFF

    @property
    def s(self) -> int:
        return self._s

    @s.setter
    def s(self, value: int) -> None:
        self._s = value & 0xFF

    @property
    def pc(self) -> int:
        return self._pc

    @pc.setter
    def pc(self, value: int) -> None:
        self._pc = value & 0xFFFF

    @property
    def p(self) -> int:
        """Live packed status: reserved bit set, B clear."""
        return self.flags.to_byte()

    @p.setter
    def p(self, value: int) -> None:
        self.flags.from_byte(value)

    def snapshot(self) -> CpuSnapshot:
        return CpuSnapshot(self._a, self._x, self._y, self._s, self._pc, self.p)

    def restore(self, snap: CpuSnapshot) -> None:
        self.a = snap.a
        self.x = snap.x
        self.y = snap.y
        self.s = snap.s
        self.pc = snap.pc
        self.p = snap.p

    def __repr__(self) -> str:
        return (
            f"Registers(A=${self._a:02X}, X=${self._x:02X}, Y=${self._y:02X}, "
            f"S=${self._s:02X}, PC=${self._pc:04X}, P=${self.p:02X})"
        )
