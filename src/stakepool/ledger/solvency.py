from __future__ import annotations

from stakepool.ledger.errors import SolvencyViolation


def solvency_margin(held_balance: int, total_locked: int) -> int:
    """Signed difference between custody and outstanding principal. Never raises."""
    return int(held_balance) - int(total_locked)


def is_solvent(held_balance: int, total_locked: int) -> bool:
    return solvency_margin(held_balance, total_locked) >= 0


def surplus_yield(held_balance: int, total_locked: int) -> int:
    """Held balance in excess of locked principal, available to fund yield.

    A negative margin means custodied funds left the pool outside the ledger;
    it is reported as SolvencyViolation rather than clamped or wrapped.
    """
    margin = solvency_margin(held_balance, total_locked)
    if margin < 0:
        raise SolvencyViolation(
            "held_balance_below_total_locked",
            {"held_balance": int(held_balance), "total_locked": int(total_locked), "shortfall": -margin},
        )
    return margin


__all__ = ["solvency_margin", "is_solvent", "surplus_yield"]
