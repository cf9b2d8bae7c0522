import pytest

from emu6502.core.devices import Ram64K
from emu6502.core.m6502 import M6502


# ----------------------------------------------------------------------
# Load / store
# ----------------------------------------------------------------------

def test_lda_immediate_zero_sets_zero_flag(load) -> None:
    cpu = load([0xA9, 0x00])

    cycles = cpu.step()

    assert cpu.a == 0x00
    assert cpu.fZ is True
    assert cpu.fN is False
    assert cpu.pc == 0x8002
    assert cycles == 2


def test_lda_immediate_negative(load) -> None:
    cpu = load([0xA9, 0x80])

    cpu.step()

    assert cpu.a == 0x80
    assert cpu.fZ is False
    assert cpu.fN is True


def test_lda_absolute_x_page_cross_costs_extra_cycle(load, ram: Ram64K) -> None:
    cpu = load([0xBD, 0xF0, 0x20])
    cpu.registers.x = 0x20
    ram[0x2110] = 0x7F

    cycles = cpu.step()

    assert cpu.a == 0x7F
    assert cycles == 5


def test_lda_indirect_y_same_page(load, ram: Ram64K) -> None:
    cpu = load([0xB1, 0x10])
    ram[0x0010] = 0x00
    ram[0x0011] = 0x30
    ram[0x3005] = 0x44
    cpu.registers.y = 0x05

    cycles = cpu.step()

    assert cpu.a == 0x44
    assert cycles == 5


def test_lda_indirect_y_page_cross_costs_extra_cycle(load, ram: Ram64K) -> None:
    cpu = load([0xB1, 0x10])
    ram[0x0010] = 0xF0
    ram[0x0011] = 0x30
    ram[0x3110] = 0x5A
    cpu.registers.y = 0x20

    cycles = cpu.step()

    assert cpu.a == 0x5A
    assert cycles == 6


def test_ldx_zero_page_y_and_ldy_absolute(load, ram: Ram64K) -> None:
    cpu = load([0xB6, 0x10, 0xAC, 0x00, 0x40])
    cpu.registers.y = 0x01
    ram[0x0011] = 0x99
    ram[0x4000] = 0x01

    cpu.step()
    cpu.step()

    assert cpu.x == 0x99
    assert cpu.y == 0x01
    assert cpu.fN is False


def test_stores_do_not_touch_flags(load, ram: Ram64K) -> None:
    cpu = load([0x85, 0x10, 0x8E, 0x00, 0x02, 0x94, 0x20])
    cpu.registers.a = 0x00
    cpu.registers.x = 0x80
    cpu.registers.y = 0x55
    before = cpu.p

    cycles = [cpu.step(), cpu.step(), cpu.step()]

    assert ram[0x0010] == 0x00
    assert ram[0x0200] == 0x80
    assert ram[0x00A0] == 0x55
    assert cpu.p == before
    assert cycles == [3, 4, 4]


def test_sta_absolute_x_always_five_cycles(load, ram: Ram64K) -> None:
    cpu = load([0x9D, 0xFF, 0x20])
    cpu.registers.a = 0x11
    cpu.registers.x = 0x01

    assert cpu.step() == 5
    assert ram[0x2100] == 0x11


# ----------------------------------------------------------------------
# Arithmetic
# ----------------------------------------------------------------------

def test_adc_signed_overflow(load) -> None:
    cpu = load([0x69, 0x50])
    cpu.registers.a = 0x50
    cpu.registers.flags.c = False

    cpu.step()

    assert cpu.a == 0xA0
    assert cpu.fC is False
    assert cpu.fV is True
    assert cpu.fN is True
    assert cpu.fZ is False


def test_adc_carry_out_to_zero(load) -> None:
    cpu = load([0x69, 0x01])
    cpu.registers.a = 0xFF

    cpu.step()

    assert cpu.a == 0x00
    assert cpu.fC is True
    assert cpu.fZ is True
    assert cpu.fV is False


def test_adc_uses_carry_in(load) -> None:
    cpu = load([0x69, 0x05])
    cpu.registers.a = 0x10
    cpu.registers.flags.c = True

    cpu.step()

    assert cpu.a == 0x16


@pytest.mark.parametrize(
    "a, m, carry, expected, carry_out",
    [
        (0x15, 0x27, False, 0x42, False),
        (0x99, 0x01, False, 0x00, True),
        (0x58, 0x46, True, 0x05, True),
        (0x12, 0x34, False, 0x46, False),
    ],
)
def test_adc_decimal(load, a, m, carry, expected, carry_out) -> None:
    cpu = load([0x69, m])
    cpu.registers.a = a
    cpu.registers.flags.d = True
    cpu.registers.flags.c = carry

    cycles = cpu.step()

    assert cpu.a == expected
    assert cpu.fC is carry_out
    assert cycles == 2


def test_adc_decimal_zero_flag_from_binary_sum(load) -> None:
    # 99 + 01 = 00 in BCD, but the binary sum is $9A so Z stays clear.
    cpu = load([0x69, 0x01])
    cpu.registers.a = 0x99
    cpu.registers.flags.d = True

    cpu.step()

    assert cpu.a == 0x00
    assert cpu.fZ is False


def test_adc_decimal_n_and_v_from_intermediate_sum(load) -> None:
    # 79 + 00 + 1 = 80 in BCD; bit 7 of the unadjusted sum drives N and V.
    cpu = load([0x69, 0x00])
    cpu.registers.a = 0x79
    cpu.registers.flags.d = True
    cpu.registers.flags.c = True

    cpu.step()

    assert cpu.a == 0x80
    assert cpu.fN is True
    assert cpu.fV is True
    assert cpu.fC is False
    assert cpu.fZ is False


def test_adc_ignores_decimal_flag_when_bcd_disabled(ram: Ram64K) -> None:
    cpu = M6502(ram, decimal_mode=False)
    ram.load([0x69, 0x27], 0x8000)
    cpu.registers.pc = 0x8000
    cpu.registers.a = 0x15
    cpu.registers.flags.d = True

    cpu.step()

    assert cpu.a == 0x3C
    assert cpu.fD is True


def test_sbc_binary_borrow(load) -> None:
    cpu = load([0xE9, 0x01])
    cpu.registers.a = 0x00
    cpu.registers.flags.c = True

    cpu.step()

    assert cpu.a == 0xFF
    assert cpu.fC is False
    assert cpu.fN is True
    assert cpu.fV is False


def test_sbc_signed_overflow(load) -> None:
    cpu = load([0xE9, 0x01])
    cpu.registers.a = 0x80
    cpu.registers.flags.c = True

    cpu.step()

    assert cpu.a == 0x7F
    assert cpu.fV is True
    assert cpu.fC is True


def test_sbc_without_carry_subtracts_one_more(load) -> None:
    cpu = load([0xE9, 0x05])
    cpu.registers.a = 0x10
    cpu.registers.flags.c = False

    cpu.step()

    assert cpu.a == 0x0A
    assert cpu.fC is True


@pytest.mark.parametrize(
    "a, m, expected, carry_out",
    [
        (0x42, 0x15, 0x27, True),
        (0x00, 0x01, 0x99, False),
        (0x50, 0x50, 0x00, True),
    ],
)
def test_sbc_decimal(load, a, m, expected, carry_out) -> None:
    cpu = load([0xE9, m])
    cpu.registers.a = a
    cpu.registers.flags.d = True
    cpu.registers.flags.c = True

    cpu.step()

    assert cpu.a == expected
    assert cpu.fC is carry_out


@pytest.mark.parametrize(
    "a, m, expected, n, z, v, carry_out",
    [
        (0x80, 0x01, 0x79, False, False, True, True),
        (0x01, 0x02, 0x99, True, False, False, False),
        (0x45, 0x45, 0x00, False, True, False, True),
    ],
)
def test_sbc_decimal_flags_follow_binary_difference(
    load, a, m, expected, n, z, v, carry_out
) -> None:
    cpu = load([0xE9, m])
    cpu.registers.a = a
    cpu.registers.flags.d = True
    cpu.registers.flags.c = True

    cpu.step()

    assert cpu.a == expected
    assert (cpu.fN, cpu.fZ, cpu.fV, cpu.fC) == (n, z, v, carry_out)


# ----------------------------------------------------------------------
# Logic
# ----------------------------------------------------------------------

def test_and_ora_eor(load) -> None:
    cpu = load([0x29, 0x0F, 0x09, 0x80, 0x49, 0xFF])
    cpu.registers.a = 0x3C

    cpu.step()
    assert cpu.a == 0x0C

    cpu.step()
    assert cpu.a == 0x8C
    assert cpu.fN is True

    cpu.step()
    assert cpu.a == 0x73
    assert cpu.fN is False


def test_and_to_zero(load) -> None:
    cpu = load([0x29, 0x00])
    cpu.registers.a = 0xFF

    cpu.step()

    assert cpu.a == 0x00
    assert cpu.fZ is True


def test_bit_copies_bits_7_and_6(load, ram: Ram64K) -> None:
    cpu = load([0x24, 0x10])
    ram[0x0010] = 0xC0
    cpu.registers.a = 0x01

    cpu.step()

    assert cpu.fN is True
    assert cpu.fV is True
    assert cpu.fZ is True
    assert cpu.a == 0x01


# ----------------------------------------------------------------------
# Shifts / rotates
# ----------------------------------------------------------------------

def test_asl_accumulator(load) -> None:
    cpu = load([0x0A])
    cpu.registers.a = 0x81

    assert cpu.step() == 2
    assert cpu.a == 0x02
    assert cpu.fC is True
    assert cpu.fN is False


def test_lsr_memory(load, ram: Ram64K) -> None:
    cpu = load([0x46, 0x20])
    ram[0x0020] = 0x01

    assert cpu.step() == 5
    assert ram[0x0020] == 0x00
    assert cpu.fC is True
    assert cpu.fZ is True


def test_rol_through_carry(load) -> None:
    cpu = load([0x2A])
    cpu.registers.a = 0x40
    cpu.registers.flags.c = True

    cpu.step()

    assert cpu.a == 0x81
    assert cpu.fC is False
    assert cpu.fN is True


def test_ror_absolute_x(load, ram: Ram64K) -> None:
    cpu = load([0x7E, 0x00, 0x30])
    cpu.registers.x = 0x02
    cpu.registers.flags.c = True
    ram[0x3002] = 0x03

    assert cpu.step() == 7
    assert ram[0x3002] == 0x81
    assert cpu.fC is True


# ----------------------------------------------------------------------
# Increment / decrement
# ----------------------------------------------------------------------

def test_inc_and_dec_memory_wrap(load, ram: Ram64K) -> None:
    cpu = load([0xE6, 0x10, 0xCE, 0x00, 0x02])
    ram[0x0010] = 0xFF
    ram[0x0200] = 0x00

    cpu.step()
    assert ram[0x0010] == 0x00
    assert cpu.fZ is True

    cpu.step()
    assert ram[0x0200] == 0xFF
    assert cpu.fN is True


def test_index_increments_wrap(load) -> None:
    cpu = load([0xE8, 0xC8, 0xCA, 0x88])
    cpu.registers.x = 0xFF
    cpu.registers.y = 0x7F

    cpu.step()
    assert cpu.x == 0x00 and cpu.fZ

    cpu.step()
    assert cpu.y == 0x80 and cpu.fN

    cpu.step()
    assert cpu.x == 0xFF and cpu.fN

    cpu.step()
    assert cpu.y == 0x7F and not cpu.fN


# ----------------------------------------------------------------------
# Compare
# ----------------------------------------------------------------------

@pytest.mark.parametrize(
    "reg, m, c, z, n",
    [
        (0x40, 0x40, True, True, False),
        (0x40, 0x30, True, False, False),
        (0x30, 0x40, False, False, True),
        (0x00, 0xFF, False, False, False),
    ],
)
def test_compare_flags(load, reg, m, c, z, n) -> None:
    cpu = load([0xC9, m, 0xE0, m, 0xC0, m])
    cpu.registers.a = reg
    cpu.registers.x = reg
    cpu.registers.y = reg

    for _ in range(3):
        cpu.step()
        assert (cpu.fC, cpu.fZ, cpu.fN) == (c, z, n)


def test_compare_leaves_overflow_alone(load) -> None:
    cpu = load([0xC9, 0x01])
    cpu.registers.flags.v = True

    cpu.step()

    assert cpu.fV is True


# ----------------------------------------------------------------------
# Transfers and stack
# ----------------------------------------------------------------------

def test_transfers_set_nz_except_txs(load) -> None:
    cpu = load([0xAA, 0xA8, 0x9A, 0xBA])
    cpu.registers.a = 0x00

    cpu.step()  # TAX
    assert cpu.x == 0x00 and cpu.fZ

    cpu.registers.a = 0x90
    cpu.step()  # TAY
    assert cpu.y == 0x90 and cpu.fN

    cpu.registers.x = 0x00
    cpu.registers.flags.z = False
    cpu.step()  # TXS
    assert cpu.s == 0x00
    assert cpu.fZ is False

    cpu.step()  # TSX
    assert cpu.x == 0x00 and cpu.fZ


def test_txa_tya(load) -> None:
    cpu = load([0x8A, 0x98])
    cpu.registers.x = 0x12
    cpu.registers.y = 0x00

    cpu.step()
    assert cpu.a == 0x12

    cpu.step()
    assert cpu.a == 0x00 and cpu.fZ


def test_pha_pla_round_trip(load, ram: Ram64K) -> None:
    cpu = load([0x48, 0xA9, 0x00, 0x68])
    cpu.registers.a = 0x9C

    assert cpu.step() == 3
    assert ram[0x01FD] == 0x9C
    assert cpu.s == 0xFC

    cpu.step()
    assert cpu.step() == 4

    assert cpu.a == 0x9C
    assert cpu.fN is True
    assert cpu.s == 0xFD


def test_php_plp_round_trip_restores_exact_status(load, ram: Ram64K) -> None:
    cpu = load([0x08, 0x18, 0xB8, 0x28])
    cpu.registers.p = 0xC3
    original = cpu.p

    cpu.step()  # PHP
    assert ram[0x01FD] == original | 0x10  # B set in the pushed copy

    cpu.step()  # CLC
    cpu.step()  # CLV
    cpu.step()  # PLP

    assert cpu.p == original
    assert cpu.p & 0x20


def test_stack_pointer_wraps_within_page_one(load, ram: Ram64K) -> None:
    cpu = load([0x48, 0x68])
    cpu.registers.s = 0x00
    cpu.registers.a = 0x5A

    cpu.step()
    assert ram[0x0100] == 0x5A
    assert cpu.s == 0xFF

    cpu.step()
    assert cpu.s == 0x00
    assert cpu.a == 0x5A


# ----------------------------------------------------------------------
# Flag instructions and NOP
# ----------------------------------------------------------------------

def test_flag_instructions(load) -> None:
    cpu = load([0x38, 0xF8, 0x78, 0x18, 0xD8, 0x58, 0xB8])
    cpu.registers.flags.v = True

    cpu.step()
    assert cpu.fC
    cpu.step()
    assert cpu.fD
    cpu.step()
    assert cpu.fI
    cpu.step()
    assert not cpu.fC
    cpu.step()
    assert not cpu.fD
    cpu.step()
    assert not cpu.fI
    cpu.step()
    assert not cpu.fV


def test_nop_changes_only_pc(load) -> None:
    cpu = load([0xEA])
    before = cpu.snapshot()

    assert cpu.step() == 2

    after = cpu.snapshot()
    assert after.pc == 0x8001
    assert (after.a, after.x, after.y, after.s, after.p) == (
        before.a, before.x, before.y, before.s, before.p)
