# src/stakepool/ledger/lock_guard.py

from __future__ import annotations

"""Minimum-lock helpers for ordinary withdrawal.

The lock is anchored to the record's most recent principal-increasing deposit
(`lock_start`). A top-up restarts the timer for the whole balance:

  unlock_time = lock_start + minimum_lock_duration

Emergency exit never consults this module.
"""

from stakepool.ledger.errors import LockActive
from stakepool.ledger.types import StakeRecord


def unlock_time(record: StakeRecord, minimum_lock_duration: int) -> int:
    return int(record.lock_start) + int(minimum_lock_duration)


def can_withdraw(record: StakeRecord, now: int, minimum_lock_duration: int) -> bool:
    """True if `now` is on/after the record's unlock time."""
    return int(now) >= unlock_time(record, minimum_lock_duration)


def time_until_unlock(record: StakeRecord, now: int, minimum_lock_duration: int) -> int:
    return max(0, unlock_time(record, minimum_lock_duration) - int(now))


def deny_if_locked(record: StakeRecord, now: int, minimum_lock_duration: int) -> None:
    """Raise LockActive if the minimum lock duration has not elapsed."""
    if not can_withdraw(record, now, minimum_lock_duration):
        raise LockActive(
            "minimum_lock_not_elapsed",
            {
                "unlock_time": unlock_time(record, minimum_lock_duration),
                "remaining_s": time_until_unlock(record, now, minimum_lock_duration),
            },
        )


__all__ = ["unlock_time", "can_withdraw", "time_until_unlock", "deny_if_locked"]
