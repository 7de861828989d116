# src/stakepool/ledger/accrual.py
from __future__ import annotations

from stakepool.ledger.constants import MAX_ASSET_UNITS, RATE_DENOMINATOR, SECONDS_PER_YEAR
from stakepool.ledger.types import StakeRecord

# Divisor shared by every window: bps -> fraction, seconds -> years
YIELD_DIVISOR: int = RATE_DENOMINATOR * SECONDS_PER_YEAR


def window_yield(principal: int, rate_bps: int, elapsed_s: int) -> int:
    """
    Deterministic accrual for one window:

      floor(principal * rate_bps * elapsed_s / (RATE_DENOMINATOR * SECONDS_PER_YEAR))

    - Python ints are unbounded, so the product is exact before the single
      truncating division; no intermediate rounding.
    - Non-positive inputs accrue nothing (a clock behind the window start
      included).
    """
    p = int(principal)
    r = int(rate_bps)
    dt = int(elapsed_s)
    if p <= 0 or r <= 0 or dt <= 0:
        return 0
    if p > MAX_ASSET_UNITS:
        raise OverflowError(f"principal exceeds asset range: {p}")
    return (p * r * dt) // YIELD_DIVISOR


def elapsed(record: StakeRecord, now: int) -> int:
    return max(int(now) - int(record.window_start), 0)


def open_window_yield(record: StakeRecord, now: int) -> int:
    """Yield accrued in the record's current (not yet finalized) window."""
    return window_yield(record.principal, record.rate_snapshot, elapsed(record, now))


def pending_yield(record: StakeRecord, now: int) -> int:
    """Carry from closed windows plus the open window's accrual."""
    return int(record.accrued_carry) + open_window_yield(record, now)


def finalize_window(record: StakeRecord, now: int) -> int:
    """Fold the open window into accrued_carry. Returns the amount folded.

    The window start is left untouched; callers open a new window afterwards
    (see open_window) once principal and totals have been updated.
    """
    gained = open_window_yield(record, now)
    record.accrued_carry = int(record.accrued_carry) + gained
    return gained


def open_window(record: StakeRecord, now: int, rate_bps: int) -> None:
    record.window_start = int(now)
    record.rate_snapshot = int(rate_bps)


__all__ = [
    "YIELD_DIVISOR",
    "window_yield",
    "elapsed",
    "open_window_yield",
    "pending_yield",
    "finalize_window",
    "open_window",
]
