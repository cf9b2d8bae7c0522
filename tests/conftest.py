import sys
from pathlib import Path
from typing import Callable, Sequence

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from emu6502.core.devices import Ram64K  # noqa: E402
from emu6502.core.m6502 import M6502  # noqa: E402

PROGRAM_START = 0x8000


@pytest.fixture()
def ram() -> Ram64K:
    ram = Ram64K()
    ram.set_vector(M6502.RST_VEC, PROGRAM_START)
    return ram


@pytest.fixture()
def cpu(ram: Ram64K) -> M6502:
    """A CPU with power-up registers and PC at $8000; no reset pending."""
    cpu = M6502(ram)
    cpu.registers.pc = PROGRAM_START
    return cpu


@pytest.fixture()
def load(cpu: M6502, ram: Ram64K) -> Callable[..., M6502]:
    """Load bytes at *start* (default $8000) and point PC at them."""

    def _load(program: Sequence[int], start: int = PROGRAM_START) -> M6502:
        ram.load(program, start)
        cpu.registers.pc = start
        return cpu

    return _load
