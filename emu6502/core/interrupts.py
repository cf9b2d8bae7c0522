"""
Reset / NMI / IRQ request tracking.

The embedder raises requests between steps; the CPU samples them at the top
of its next step.  NMI is edge triggered and latched until serviced.  IRQ is
level triggered: the line stays asserted until :meth:`clear_irq`, and is
only honoured while the I flag is clear.  Reset outranks NMI, which outranks
IRQ.
"""

from __future__ import annotations

from enum import IntEnum


class InterruptState(IntEnum):
    RUNNING = 0
    RESET_PENDING = 1
    NMI_PENDING = 2
    IRQ_PENDING = 3


class InterruptController:
    """Holds pending reset/NMI requests and the IRQ line level."""

    __slots__ = ("reset_request", "nmi_request", "irq_line")

    def __init__(self) -> None:
        self.reset_request: bool = False
        self.nmi_request: bool = False
        self.irq_line: bool = False

    def request_reset(self) -> None:
        self.reset_request = True

    def request_nmi(self) -> None:
        self.nmi_request = True

    def request_irq(self) -> None:
        self.irq_line = True

    def clear_irq(self) -> None:
        self.irq_line = False

    def pending(self, interrupt_disable: bool) -> InterruptState:
        """The event to service before the next fetch, if any."""
        if self.reset_request:
            return InterruptState.RESET_PENDING
        if self.nmi_request:
            return InterruptState.NMI_PENDING
        if self.irq_line and not interrupt_disable:
            return InterruptState.IRQ_PENDING
        return InterruptState.RUNNING

    def acknowledge(self, state: InterruptState) -> None:
        """Clear the latch for a serviced event.

        A serviced reset also drops any NMI raised before it.  The IRQ line
        is left alone; only the embedder lowers it.
        """
        if state == InterruptState.RESET_PENDING:
            self.reset_request = False
            self.nmi_request = False
        elif state == InterruptState.NMI_PENDING:
            self.nmi_request = False

    @property
    def state(self) -> InterruptState:
        """Highest-priority request, ignoring the I flag."""
        return self.pending(False)

    def get_snapshot(self) -> dict:
        return {
            "reset_request": self.reset_request,
            "nmi_request": self.nmi_request,
            "irq_line": self.irq_line,
        }

    def restore_snapshot(self, snap: dict) -> None:
        self.reset_request = snap.get("reset_request", False)
        self.nmi_request = snap.get("nmi_request", False)
        self.irq_line = snap.get("irq_line", False)

    def __repr__(self) -> str:
        return (
            f"InterruptController(reset={self.reset_request}, "
            f"nmi={self.nmi_request}, irq={self.irq_line})"
        )
