from __future__ import annotations

from stakepool.ledger.accrual import (
    YIELD_DIVISOR,
    finalize_window,
    open_window,
    pending_yield,
    window_yield,
)
from stakepool.ledger.constants import COIN, MAX_ASSET_UNITS, RATE_DENOMINATOR, SECONDS_PER_YEAR
from stakepool.ledger.types import StakeRecord


def test_one_year_at_rate_yields_exact_fraction() -> None:
    # 100 units at 9.99% for a full year
    assert window_yield(100 * COIN, 999, SECONDS_PER_YEAR) == 9_990_000_000_000_000_000


def test_zero_elapsed_or_zero_inputs_accrue_nothing() -> None:
    assert window_yield(100 * COIN, 999, 0) == 0
    assert window_yield(0, 999, SECONDS_PER_YEAR) == 0
    assert window_yield(100 * COIN, 0, SECONDS_PER_YEAR) == 0
    # clock behind window start
    assert window_yield(100 * COIN, 999, -30) == 0


def test_tiny_principal_may_truncate_to_zero() -> None:
    # True value is ~3e-9 base units: integer math legitimately gives 0.
    assert window_yield(1, 1_000, 1) == 0


def test_small_principal_accrues_once_true_value_exceeds_one_unit() -> None:
    # 1 whole unit at 10% for one minute is ~1.9e11 base units.
    assert window_yield(COIN, 1_000, 60) > 0


def test_max_principal_over_multiple_years_does_not_overflow() -> None:
    assert window_yield(MAX_ASSET_UNITS, RATE_DENOMINATOR, SECONDS_PER_YEAR) == MAX_ASSET_UNITS
    assert window_yield(MAX_ASSET_UNITS, RATE_DENOMINATOR, 3 * SECONDS_PER_YEAR) == 3 * MAX_ASSET_UNITS
    assert window_yield(MAX_ASSET_UNITS, 10, 5 * SECONDS_PER_YEAR) == (MAX_ASSET_UNITS * 10 * 5 * SECONDS_PER_YEAR) // YIELD_DIVISOR


def test_pending_yield_strictly_increases_with_time() -> None:
    rec = StakeRecord(principal=100 * COIN, window_start=1_000, rate_snapshot=999)
    assert pending_yield(rec, 1_000) == 0
    prev = 0
    for t in range(1_001, 1_200):
        cur = pending_yield(rec, t)
        assert cur > prev
        prev = cur


def test_finalize_then_open_moves_yield_into_carry() -> None:
    rec = StakeRecord(principal=100 * COIN, window_start=0, rate_snapshot=999, accrued_carry=7)
    gained = finalize_window(rec, SECONDS_PER_YEAR)
    assert gained == 9_990_000_000_000_000_000
    assert rec.accrued_carry == 7 + gained

    open_window(rec, SECONDS_PER_YEAR, 500)
    assert rec.window_start == SECONDS_PER_YEAR
    assert rec.rate_snapshot == 500
    # New window starts empty; carry is preserved.
    assert pending_yield(rec, SECONDS_PER_YEAR) == 7 + gained
