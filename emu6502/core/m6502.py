"""
MOS 6502 CPU core.

Implements the documented NMOS 6502 instruction set at instruction-level
granularity: each :meth:`M6502.step` fetches, decodes and executes one
instruction (after servicing at most one pending reset/NMI/IRQ) and returns
the cycles it took.  Memory is reached only through an
:class:`~emu6502.core.devices.IBus`.

Key NMOS-specific behaviours:

* Decimal-mode ADC sets N/V from the intermediate BCD result and Z from the
  binary result.  Decimal-mode SBC derives all flags from the binary result.
* JMP ($xxFF) wraps within the page (the famous indirect-jump bug).
* BRK pushes PC+2 and P with the B flag set, then vectors through $FFFE.
* JSR pushes the address of its *last* operand byte (PC-1), and RTS
  compensates by pulling and adding one.
* Undocumented opcodes are not emulated; fetching one raises
  :class:`~emu6502.core.errors.UnassignedOpcodeError`.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from emu6502.core.addressing import RESOLVERS, Operand
from emu6502.core.devices import IBus
from emu6502.core.errors import UnassignedOpcodeError
from emu6502.core.interrupts import InterruptController, InterruptState
from emu6502.core.logger import DEFAULT_LOGGER, ILogger
from emu6502.core.opcodes import OPCODE_TABLE
from emu6502.core.registers import CpuSnapshot, Registers, StatusFlags
from emu6502.core.types import AddressingMode, Operation


class M6502:
    """NMOS 6502 CPU emulator.

    Parameters
    ----------
    bus:
        The memory bus.  Every read and write the instruction set performs
        goes through ``bus.read`` / ``bus.write``.
    logger:
        Destination for diagnostic messages.  Defaults to the silent
        process-wide :data:`~emu6502.core.logger.DEFAULT_LOGGER`.
    decimal_mode:
        When False, ADC and SBC ignore the D flag (as on the Ricoh 2A03).
        D can still be set, cleared and pushed.
    run_clocks_multiple:
        Multiplier applied to cycle counts when decrementing
        :attr:`run_clocks`.  Allows the caller to express *run_clocks* in
        a unit other than CPU cycles.
    """

    # ------------------------------------------------------------------
    # Interrupt vectors
    # ------------------------------------------------------------------
    NMI_VEC: int = 0xFFFA
    RST_VEC: int = 0xFFFC
    IRQ_VEC: int = 0xFFFE

    STACK_BASE: int = 0x0100

    RESET_CYCLES: int = 7
    INTERRUPT_CYCLES: int = 7

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def __init__(
        self,
        bus: IBus,
        *,
        logger: Optional[ILogger] = None,
        decimal_mode: bool = True,
        run_clocks_multiple: int = 1,
    ) -> None:
        if run_clocks_multiple < 1:
            raise ValueError(f"run_clocks_multiple must be >= 1, got {run_clocks_multiple}")
        self.bus: IBus = bus
        self.logger: ILogger = logger if logger is not None else DEFAULT_LOGGER
        self.decimal_mode: bool = decimal_mode
        self.run_clocks_multiple: int = run_clocks_multiple

        self.registers: Registers = Registers()
        self.interrupts: InterruptController = InterruptController()

        # Timing
        self.clock: int = 0
        self.run_clocks: int = 0

        # Control flags
        self.emulator_preempt_request: bool = False

        self._handlers: Tuple[Callable[[Operand], int], ...] = self._build_handler_table()

    # ------------------------------------------------------------------
    # Read-only register and flag accessors
    # ------------------------------------------------------------------

    @property
    def a(self) -> int:
        return self.registers.a

    @property
    def x(self) -> int:
        return self.registers.x

    @property
    def y(self) -> int:
        return self.registers.y

    @property
    def s(self) -> int:
        return self.registers.s

    @property
    def pc(self) -> int:
        return self.registers.pc

    @property
    def p(self) -> int:
        return self.registers.p

    @property
    def fC(self) -> bool:
        return self.registers.flags.c

    @property
    def fZ(self) -> bool:
        return self.registers.flags.z

    @property
    def fI(self) -> bool:
        return self.registers.flags.i

    @property
    def fD(self) -> bool:
        return self.registers.flags.d

    @property
    def fV(self) -> bool:
        return self.registers.flags.v

    @property
    def fN(self) -> bool:
        return self.registers.flags.n

    @property
    def interrupt_state(self) -> InterruptState:
        return self.interrupts.state

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def clk(self, ticks: int) -> None:
        """Advance the clock and consume run clocks."""
        self.clock += ticks
        self.run_clocks -= ticks * self.run_clocks_multiple

    def fetch_byte(self) -> int:
        """Read the byte at PC and advance PC."""
        r = self.registers
        val = self.bus.read(r.pc)
        r.pc = r.pc + 1
        return val

    def fetch_word(self) -> int:
        lsb = self.fetch_byte()
        msb = self.fetch_byte()
        return lsb | (msb << 8)

    def read_word(self, addr: int) -> int:
        """Little-endian 16-bit read; the high byte address wraps at $FFFF."""
        return self.bus.read(addr & 0xFFFF) | (self.bus.read((addr + 1) & 0xFFFF) << 8)

    def _load(self, operand: Operand) -> int:
        if operand.value is not None:
            return operand.value
        if operand.mode == AddressingMode.ACCUMULATOR:
            return self.registers.a
        return self.bus.read(operand.address)

    def _store(self, operand: Operand, value: int) -> None:
        if operand.mode == AddressingMode.ACCUMULATOR:
            self.registers.a = value
        else:
            self.bus.write(operand.address, value & 0xFF)

    # ------------------------------------------------------------------
    # Stack operations
    # ------------------------------------------------------------------

    def push(self, data: int) -> None:
        """Push a byte onto the stack."""
        r = self.registers
        self.bus.write(self.STACK_BASE + r.s, data & 0xFF)
        r.s = r.s - 1

    def pull(self) -> int:
        """Pull a byte from the stack."""
        r = self.registers
        r.s = r.s + 1
        return self.bus.read(self.STACK_BASE + r.s)

    def push_word(self, word: int) -> None:
        self.push((word >> 8) & 0xFF)
        self.push(word & 0xFF)

    def pull_word(self) -> int:
        lo = self.pull()
        hi = self.pull()
        return lo | (hi << 8)

    # ------------------------------------------------------------------
    # Instruction implementations -- Load / Store
    # ------------------------------------------------------------------

    def i_lda(self, op: Operand) -> int:
        r = self.registers
        r.a = self._load(op)
        r.flags.set_nz(r.a)
        return 0

    def i_ldx(self, op: Operand) -> int:
        r = self.registers
        r.x = self._load(op)
        r.flags.set_nz(r.x)
        return 0

    def i_ldy(self, op: Operand) -> int:
        r = self.registers
        r.y = self._load(op)
        r.flags.set_nz(r.y)
        return 0

    def i_sta(self, op: Operand) -> int:
        self._store(op, self.registers.a)
        return 0

    def i_stx(self, op: Operand) -> int:
        self._store(op, self.registers.x)
        return 0

    def i_sty(self, op: Operand) -> int:
        self._store(op, self.registers.y)
        return 0

    # ------------------------------------------------------------------
    # Instruction implementations -- Transfer
    # ------------------------------------------------------------------

    def i_tax(self, op: Operand) -> int:
        r = self.registers
        r.x = r.a
        r.flags.set_nz(r.x)
        return 0

    def i_tay(self, op: Operand) -> int:
        r = self.registers
        r.y = r.a
        r.flags.set_nz(r.y)
        return 0

    def i_txa(self, op: Operand) -> int:
        r = self.registers
        r.a = r.x
        r.flags.set_nz(r.a)
        return 0

    def i_tya(self, op: Operand) -> int:
        r = self.registers
        r.a = r.y
        r.flags.set_nz(r.a)
        return 0

    def i_tsx(self, op: Operand) -> int:
        r = self.registers
        r.x = r.s
        r.flags.set_nz(r.x)
        return 0

    def i_txs(self, op: Operand) -> int:
        self.registers.s = self.registers.x  # No flags affected
        return 0

    # ------------------------------------------------------------------
    # Instruction implementations -- Stack
    # ------------------------------------------------------------------

    def i_pha(self, op: Operand) -> int:
        self.push(self.registers.a)
        return 0

    def i_php(self, op: Operand) -> int:
        self.push(self.registers.flags.to_byte(brk=True))
        return 0

    def i_pla(self, op: Operand) -> int:
        r = self.registers
        r.a = self.pull()
        r.flags.set_nz(r.a)
        return 0

    def i_plp(self, op: Operand) -> int:
        self.registers.flags.from_byte(self.pull())
        return 0

    # ------------------------------------------------------------------
    # Instruction implementations -- Arithmetic
    # ------------------------------------------------------------------

    def i_adc(self, op: Operand) -> int:
        """Add with carry.  Handles NMOS decimal-mode quirks."""
        r = self.registers
        f = r.flags
        a = r.a
        val = self._load(op)
        c = 1 if f.c else 0
        if f.d and self.decimal_mode:
            # BCD addition (NMOS 6502 behaviour)
            al = (a & 0x0F) + (val & 0x0F) + c
            if al >= 0x0A:
                al = ((al + 0x06) & 0x0F) + 0x10
            s = (a & 0xF0) + (val & 0xF0) + al
            # N and V from intermediate BCD result
            f.n = bool(s & 0x80)
            f.v = bool(~(a ^ val) & (a ^ s) & 0x80)
            if s >= 0xA0:
                s += 0x60
            f.c = s >= 0x100
            # Z from binary result (NMOS quirk)
            f.z = ((a + val + c) & 0xFF) == 0
            r.a = s
        else:
            s = a + val + c
            f.v = bool(~(a ^ val) & (a ^ s) & 0x80)
            f.c = s > 0xFF
            r.a = s
            f.set_nz(r.a)
        return 0

    def i_sbc(self, op: Operand) -> int:
        """Subtract with borrow.  Handles NMOS decimal-mode quirks."""
        r = self.registers
        f = r.flags
        a = r.a
        val = self._load(op)
        borrow = 0 if f.c else 1
        diff = a - val - borrow
        # All flags come from the binary result, in both modes.
        f.v = bool((a ^ val) & (a ^ diff) & 0x80)
        f.c = diff >= 0
        f.set_nz(diff & 0xFF)
        if f.d and self.decimal_mode:
            al = (a & 0x0F) - (val & 0x0F) - borrow
            if al < 0:
                al = ((al - 0x06) & 0x0F) - 0x10
            s = (a & 0xF0) - (val & 0xF0) + al
            if s < 0:
                s -= 0x60
            r.a = s
        else:
            r.a = diff
        return 0

    # ------------------------------------------------------------------
    # Instruction implementations -- Logic
    # ------------------------------------------------------------------

    def i_and(self, op: Operand) -> int:
        r = self.registers
        r.a = r.a & self._load(op)
        r.flags.set_nz(r.a)
        return 0

    def i_ora(self, op: Operand) -> int:
        r = self.registers
        r.a = r.a | self._load(op)
        r.flags.set_nz(r.a)
        return 0

    def i_eor(self, op: Operand) -> int:
        r = self.registers
        r.a = r.a ^ self._load(op)
        r.flags.set_nz(r.a)
        return 0

    def i_bit(self, op: Operand) -> int:
        f = self.registers.flags
        val = self._load(op)
        f.n = bool(val & 0x80)
        f.v = bool(val & 0x40)
        f.z = (self.registers.a & val) == 0
        return 0

    # ------------------------------------------------------------------
    # Instruction implementations -- Shifts / Rotates
    # (accumulator or memory, read-modify-write)
    # ------------------------------------------------------------------

    def i_asl(self, op: Operand) -> int:
        f = self.registers.flags
        val = self._load(op)
        f.c = bool(val & 0x80)
        result = (val << 1) & 0xFF
        f.set_nz(result)
        self._store(op, result)
        return 0

    def i_lsr(self, op: Operand) -> int:
        f = self.registers.flags
        val = self._load(op)
        f.c = bool(val & 0x01)
        result = val >> 1
        f.set_nz(result)
        self._store(op, result)
        return 0

    def i_rol(self, op: Operand) -> int:
        f = self.registers.flags
        val = self._load(op)
        c = 1 if f.c else 0
        f.c = bool(val & 0x80)
        result = ((val << 1) | c) & 0xFF
        f.set_nz(result)
        self._store(op, result)
        return 0

    def i_ror(self, op: Operand) -> int:
        f = self.registers.flags
        val = self._load(op)
        c = 0x80 if f.c else 0
        f.c = bool(val & 0x01)
        result = (val >> 1) | c
        f.set_nz(result)
        self._store(op, result)
        return 0

    # ------------------------------------------------------------------
    # Instruction implementations -- Increment / Decrement
    # ------------------------------------------------------------------

    def i_inc(self, op: Operand) -> int:
        result = (self._load(op) + 1) & 0xFF
        self.registers.flags.set_nz(result)
        self._store(op, result)
        return 0

    def i_dec(self, op: Operand) -> int:
        result = (self._load(op) - 1) & 0xFF
        self.registers.flags.set_nz(result)
        self._store(op, result)
        return 0

    def i_inx(self, op: Operand) -> int:
        r = self.registers
        r.x = r.x + 1
        r.flags.set_nz(r.x)
        return 0

    def i_iny(self, op: Operand) -> int:
        r = self.registers
        r.y = r.y + 1
        r.flags.set_nz(r.y)
        return 0

    def i_dex(self, op: Operand) -> int:
        r = self.registers
        r.x = r.x - 1
        r.flags.set_nz(r.x)
        return 0

    def i_dey(self, op: Operand) -> int:
        r = self.registers
        r.y = r.y - 1
        r.flags.set_nz(r.y)
        return 0

    # ------------------------------------------------------------------
    # Instruction implementations -- Compare
    # ------------------------------------------------------------------

    def _compare(self, reg: int, op: Operand) -> int:
        result = reg - self._load(op)
        f = self.registers.flags
        f.c = result >= 0
        f.set_nz(result & 0xFF)
        return 0

    def i_cmp(self, op: Operand) -> int:
        return self._compare(self.registers.a, op)

    def i_cpx(self, op: Operand) -> int:
        return self._compare(self.registers.x, op)

    def i_cpy(self, op: Operand) -> int:
        return self._compare(self.registers.y, op)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def br(self, cond: bool, op: Operand) -> int:
        """Conditional branch.  Costs 1 extra cycle if taken (same page) or
        2 if taken across a page boundary."""
        if not cond:
            return 0
        self.registers.pc = op.address
        return 2 if op.page_crossed else 1

    def i_bcc(self, op: Operand) -> int:
        return self.br(not self.registers.flags.c, op)

    def i_bcs(self, op: Operand) -> int:
        return self.br(self.registers.flags.c, op)

    def i_beq(self, op: Operand) -> int:
        return self.br(self.registers.flags.z, op)

    def i_bne(self, op: Operand) -> int:
        return self.br(not self.registers.flags.z, op)

    def i_bmi(self, op: Operand) -> int:
        return self.br(self.registers.flags.n, op)

    def i_bpl(self, op: Operand) -> int:
        return self.br(not self.registers.flags.n, op)

    def i_bvc(self, op: Operand) -> int:
        return self.br(not self.registers.flags.v, op)

    def i_bvs(self, op: Operand) -> int:
        return self.br(self.registers.flags.v, op)

    # ------------------------------------------------------------------
    # Instruction implementations -- Jump / Subroutine / Return
    # ------------------------------------------------------------------

    def i_jmp(self, op: Operand) -> int:
        self.registers.pc = op.address
        return 0

    def i_jsr(self, op: Operand) -> int:
        self.push_word(self.registers.pc - 1)
        self.registers.pc = op.address
        return 0

    def i_rts(self, op: Operand) -> int:
        self.registers.pc = self.pull_word() + 1
        return 0

    def i_brk(self, op: Operand) -> int:
        """BRK -- software interrupt."""
        r = self.registers
        r.pc = r.pc + 1  # skip padding byte
        self.push_word(r.pc)
        self.push(r.flags.to_byte(brk=True))
        r.flags.i = True
        r.pc = self.read_word(self.IRQ_VEC)
        return 0

    def i_rti(self, op: Operand) -> int:
        r = self.registers
        r.flags.from_byte(self.pull())
        r.pc = self.pull_word()
        return 0

    # ------------------------------------------------------------------
    # Instruction implementations -- Flag set / clear
    # ------------------------------------------------------------------

    def i_clc(self, op: Operand) -> int:
        self.registers.flags.c = False
        return 0

    def i_sec(self, op: Operand) -> int:
        self.registers.flags.c = True
        return 0

    def i_cli(self, op: Operand) -> int:
        self.registers.flags.i = False
        return 0

    def i_sei(self, op: Operand) -> int:
        self.registers.flags.i = True
        return 0

    def i_cld(self, op: Operand) -> int:
        self.registers.flags.d = False
        return 0

    def i_sed(self, op: Operand) -> int:
        self.registers.flags.d = True
        return 0

    def i_clv(self, op: Operand) -> int:
        self.registers.flags.v = False
        return 0

    def i_nop(self, op: Operand) -> int:
        return 0

    # ------------------------------------------------------------------
    # Reset and interrupts
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Assert RESET.  The reset sequence runs at the start of the next
        :meth:`step`."""
        self.interrupts.request_reset()

    def request_nmi(self) -> None:
        self.interrupts.request_nmi()

    def request_irq(self) -> None:
        self.interrupts.request_irq()

    def clear_irq(self) -> None:
        self.interrupts.clear_irq()

    def _service_reset(self) -> int:
        r = self.registers
        r.a = 0
        r.x = 0
        r.y = 0
        r.s = Registers.POWER_UP_SP
        r.flags = StatusFlags()
        r.pc = self.read_word(self.RST_VEC)
        self.logger.log(2, f"RESET -> ${r.pc:04X}")
        return self.RESET_CYCLES

    def _service_interrupt(self, vector: int, name: str) -> int:
        r = self.registers
        self.push_word(r.pc)
        self.push(r.flags.to_byte(brk=False))
        r.flags.i = True
        r.pc = self.read_word(vector)
        self.logger.log(2, f"{name} -> ${r.pc:04X}")
        return self.INTERRUPT_CYCLES

    def _service_pending(self) -> int:
        """Run the highest-priority pending event; return its cycle cost."""
        state = self.interrupts.pending(self.registers.flags.i)
        if state == InterruptState.RUNNING:
            return 0
        self.interrupts.acknowledge(state)
        if state == InterruptState.RESET_PENDING:
            ticks = self._service_reset()
        elif state == InterruptState.NMI_PENDING:
            ticks = self._service_interrupt(self.NMI_VEC, "NMI")
        else:
            ticks = self._service_interrupt(self.IRQ_VEC, "IRQ")
        self.clk(ticks)
        return ticks

    # ------------------------------------------------------------------
    # Execute
    # ------------------------------------------------------------------

    def step(self) -> int:
        """Execute one instruction and return the cycles consumed.

        A pending reset, NMI or (unmasked) IRQ is serviced first and its
        cycles are included in the result.

        Raises:
            UnassignedOpcodeError: The byte at PC is not a documented
                opcode.  PC is left pointing at it.
        """
        ticks = self._service_pending()

        r = self.registers
        addr = r.pc
        opcode = self.bus.read(addr)
        entry = OPCODE_TABLE[opcode]
        if entry is None:
            self.logger.log(
                1,
                f"Unassigned opcode ${opcode:02X} at ${addr:04X}  "
                f"A={r.a:02X} X={r.x:02X} Y={r.y:02X} S={r.s:02X} P={r.p:02X}",
            )
            raise UnassignedOpcodeError(opcode, addr)
        r.pc = addr + 1

        operand = RESOLVERS[entry.mode](self)
        cycles = entry.cycles
        if entry.page_penalty and operand.page_crossed:
            cycles += 1
        cycles += self._handlers[entry.operation](operand)

        if self.logger.level >= 3:
            self.logger.log(
                3,
                f"${addr:04X} {entry.mnemonic:<3} {cycles}  "
                f"A={r.a:02X} X={r.x:02X} Y={r.y:02X} S={r.s:02X} P={r.p:02X}",
            )

        self.clk(cycles)
        return ticks + cycles

    def execute(self) -> None:
        """Run instructions until *run_clocks* is exhausted or the embedder
        requests a preempt."""
        while self.run_clocks > 0 and not self.emulator_preempt_request:
            self.step()

    def run(self, clocks: int) -> int:
        """Add *clocks* (in ``run_clocks_multiple`` units) to the budget and
        execute.  Returns the CPU cycles actually executed; any overshoot is
        carried as debt into the next call."""
        self.emulator_preempt_request = False
        start = self.clock
        self.run_clocks += clocks
        self.execute()
        return self.clock - start

    def preempt(self) -> None:
        """Stop :meth:`execute` after the current instruction."""
        self.emulator_preempt_request = True

    # ------------------------------------------------------------------
    # Snapshot helpers
    # ------------------------------------------------------------------

    def snapshot(self) -> CpuSnapshot:
        """Return the register file and flags as a comparable value."""
        return self.registers.snapshot()

    def restore(self, snap: CpuSnapshot) -> None:
        self.registers.restore(snap)

    def get_snapshot(self) -> dict:
        """Return a serialisable snapshot of CPU state."""
        snap = self.registers.snapshot().to_dict()
        snap.update(self.interrupts.get_snapshot())
        snap.update({
            "clock": self.clock,
            "run_clocks": self.run_clocks,
            "emulator_preempt_request": self.emulator_preempt_request,
        })
        return snap

    def restore_snapshot(self, snap: dict) -> None:
        """Restore CPU state from a previous :meth:`get_snapshot`."""
        self.registers.restore(CpuSnapshot.from_dict(snap))
        self.interrupts.restore_snapshot(snap)
        self.clock = snap["clock"]
        self.run_clocks = snap["run_clocks"]
        self.emulator_preempt_request = snap["emulator_preempt_request"]

    # ==================================================================
    # Operation dispatch -- indexed by Operation value
    # ==================================================================

    def _build_handler_table(self) -> Tuple[Callable[[Operand], int], ...]:
        return tuple(getattr(self, "i_" + op.name.lower()) for op in Operation)

    # ------------------------------------------------------------------
    # Debug / repr
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"M6502(PC=${self.pc:04X} A=${self.a:02X} "
            f"X=${self.x:02X} Y=${self.y:02X} "
            f"S=${self.s:02X} P=${self.p:02X} "
            f"clk={self.clock})"
        )
