# src/stakepool/ledger/stake_ledger.py
from __future__ import annotations

"""Per-principal stake records and the pool total.

Every mutation follows the same two-step checkpoint:

  1) finalize: fold the open window's yield into accrued_carry using the
     record's *old* rate snapshot and elapsed time
  2) reopen: after principal / total_locked change, snapshot
     rate(total_locked) and restart the window at `now`

All mutations are serialized by one re-entrant lock. Preconditions are checked
before the first write, so a rejected call leaves no trace.
"""

import threading
from typing import Any, Dict, List, Optional, Tuple

from stakepool.ledger.accrual import finalize_window, open_window, pending_yield
from stakepool.ledger.constants import MAX_ASSET_UNITS
from stakepool.ledger.errors import InsufficientPrincipal, InvalidAmount, NothingStaked
from stakepool.ledger.lock_guard import can_withdraw, deny_if_locked, time_until_unlock
from stakepool.ledger.rate_model import RateModel
from stakepool.ledger.types import StakeDetail, StakeReceipt, StakeRecord

Json = Dict[str, Any]


def _as_principal_id(x: Any) -> str:
    s = x.strip() if isinstance(x, str) else ""
    if not s:
        raise ValueError("principal id must be a non-empty string")
    return s


def _as_amount(x: Any) -> int:
    if isinstance(x, bool) or not isinstance(x, int):
        raise InvalidAmount("amount_not_int", {"amount": repr(x)})
    return int(x)


def emergency_split(principal: int, penalty_percent: int) -> Tuple[int, int]:
    """Return (return_amount, penalty) for an emergency exit.

    return_amount = floor(principal * (100 - p) / 100); the truncation remainder
    lands in the penalty, i.e. stays with the pool.
    """
    p = int(principal)
    returned = (p * (100 - int(penalty_percent))) // 100
    return returned, p - returned


class StakeLedger:
    def __init__(
        self,
        *,
        rate_model: RateModel,
        minimum_lock_duration: int,
        emergency_penalty_percent: int,
    ) -> None:
        if int(minimum_lock_duration) < 0:
            raise ValueError(f"minimum_lock_duration must be >= 0; got: {minimum_lock_duration}")
        if not 0 <= int(emergency_penalty_percent) <= 100:
            raise ValueError(f"emergency_penalty_percent must be 0..100; got: {emergency_penalty_percent}")

        self.rate_model = rate_model
        self.minimum_lock_duration = int(minimum_lock_duration)
        self.emergency_penalty_percent = int(emergency_penalty_percent)

        self._records: Dict[str, StakeRecord] = {}
        self._total_locked = 0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def total_locked(self) -> int:
        with self._lock:
            return int(self._total_locked)

    def current_rate(self) -> int:
        with self._lock:
            return self.rate_model.rate(self._total_locked)

    def get_record(self, principal_id: str) -> Optional[StakeRecord]:
        with self._lock:
            rec = self._records.get(_as_principal_id(principal_id))
            return rec.copy() if rec is not None else None

    def principals(self) -> List[str]:
        with self._lock:
            return sorted(self._records.keys())

    def staker_count(self) -> int:
        with self._lock:
            return sum(1 for r in self._records.values() if r.principal > 0)

    def pending_yield(self, principal_id: str, now: int) -> int:
        with self._lock:
            rec = self._records.get(_as_principal_id(principal_id))
            return pending_yield(rec, now) if rec is not None else 0

    def time_until_unlock(self, principal_id: str, now: int) -> int:
        with self._lock:
            rec = self._records.get(_as_principal_id(principal_id))
            if rec is None or rec.principal <= 0:
                return 0
            return time_until_unlock(rec, now, self.minimum_lock_duration)

    def can_withdraw(self, principal_id: str, now: int) -> bool:
        with self._lock:
            rec = self._records.get(_as_principal_id(principal_id))
            if rec is None or rec.principal <= 0:
                return False
            return can_withdraw(rec, now, self.minimum_lock_duration)

    def detail(self, principal_id: str, now: int) -> StakeDetail:
        pid = _as_principal_id(principal_id)
        with self._lock:
            rec = self._records.get(pid) or StakeRecord()
            staked = rec.principal > 0
            return StakeDetail(
                principal_id=pid,
                principal=int(rec.principal),
                pending_yield=pending_yield(rec, now),
                accrued_carry=int(rec.accrued_carry),
                rate_snapshot=int(rec.rate_snapshot),
                time_until_unlock=time_until_unlock(rec, now, self.minimum_lock_duration) if staked else 0,
                can_withdraw=can_withdraw(rec, now, self.minimum_lock_duration) if staked else False,
                window_start=int(rec.window_start),
                lock_start=int(rec.lock_start),
            )

    def quote_emergency_exit(self, principal_id: str, now: int) -> Json:
        pid = _as_principal_id(principal_id)
        with self._lock:
            rec = self._records.get(pid) or StakeRecord()
            returned, penalty = emergency_split(rec.principal, self.emergency_penalty_percent)
            return {
                "principal_id": pid,
                "principal": int(rec.principal),
                "return_amount": returned,
                "penalty": penalty,
                "penalty_percent": self.emergency_penalty_percent,
                "forfeited_yield": pending_yield(rec, now),
            }

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    def _checkpoint(self, rec: StakeRecord, now: int) -> None:
        finalize_window(rec, now)

    def _reopen(self, rec: StakeRecord, now: int) -> None:
        open_window(rec, now, self.rate_model.rate(self._total_locked))

    def deposit(self, principal_id: str, amount: int, now: int) -> StakeReceipt:
        """Record `amount` already transferred into the pool for `principal_id`."""
        pid = _as_principal_id(principal_id)
        amt = _as_amount(amount)
        if amt <= 0:
            raise InvalidAmount("amount_must_be_positive", {"amount": amt})

        with self._lock:
            if self._total_locked + amt > MAX_ASSET_UNITS:
                raise InvalidAmount("exceeds_asset_range", {"amount": amt, "total_locked": self._total_locked})

            rec = self._records.get(pid)
            if rec is None:
                rec = StakeRecord()
                self._records[pid] = rec
            else:
                self._checkpoint(rec, now)

            rec.principal += amt
            self._total_locked += amt
            self._reopen(rec, now)
            rec.lock_start = int(now)

            return StakeReceipt(
                applied="DEPOSIT",
                principal_id=pid,
                amount=amt,
                payout=0,
                yield_paid=0,
                penalty=0,
                forfeited_yield=0,
                principal_after=int(rec.principal),
                total_locked_after=int(self._total_locked),
                rate_snapshot=int(rec.rate_snapshot),
                at=int(now),
            )

    def withdraw(self, principal_id: str, amount: int, now: int) -> StakeReceipt:
        """Debit `amount` of principal and realize all accrued yield.

        Payout is amount + accrued_carry (after finalizing the open window).
        """
        pid = _as_principal_id(principal_id)
        amt = _as_amount(amount)
        if amt <= 0:
            raise InvalidAmount("amount_must_be_positive", {"amount": amt})

        with self._lock:
            rec = self._records.get(pid)
            if rec is None or rec.principal <= 0:
                raise InsufficientPrincipal("no_principal", {"amount": amt, "principal": 0})
            deny_if_locked(rec, now, self.minimum_lock_duration)
            if amt > rec.principal:
                raise InsufficientPrincipal("amount_exceeds_principal", {"amount": amt, "principal": rec.principal})

            self._checkpoint(rec, now)
            paid_yield = int(rec.accrued_carry)

            rec.principal -= amt
            rec.accrued_carry = 0
            self._total_locked -= amt
            self._reopen(rec, now)

            return StakeReceipt(
                applied="WITHDRAW",
                principal_id=pid,
                amount=amt,
                payout=amt + paid_yield,
                yield_paid=paid_yield,
                penalty=0,
                forfeited_yield=0,
                principal_after=int(rec.principal),
                total_locked_after=int(self._total_locked),
                rate_snapshot=int(rec.rate_snapshot),
                at=int(now),
            )

    def emergency_withdraw(self, principal_id: str, now: int) -> StakeReceipt:
        """Exit the whole position immediately, ignoring the lock.

        The penalty stays in the pool and all pending yield is forfeited.
        """
        pid = _as_principal_id(principal_id)

        with self._lock:
            rec = self._records.get(pid)
            if rec is None or rec.principal <= 0:
                raise NothingStaked("no_principal", {"principal_id": pid})

            staked = int(rec.principal)
            forfeited = pending_yield(rec, now)
            returned, penalty = emergency_split(staked, self.emergency_penalty_percent)

            rec.principal = 0
            rec.accrued_carry = 0
            self._total_locked -= staked
            self._reopen(rec, now)

            return StakeReceipt(
                applied="EMERGENCY_WITHDRAW",
                principal_id=pid,
                amount=staked,
                payout=returned,
                yield_paid=0,
                penalty=penalty,
                forfeited_yield=forfeited,
                principal_after=0,
                total_locked_after=int(self._total_locked),
                rate_snapshot=int(rec.rate_snapshot),
                at=int(now),
            )

    # ------------------------------------------------------------------
    # State capture (rollback support for the pool service)
    # ------------------------------------------------------------------

    def save_point(self, principal_id: str) -> Tuple[str, Optional[StakeRecord], int]:
        """Capture one record and the pool total so a mutation can be undone.

        Only meaningful while the caller holds `lock` across the mutation.
        """
        pid = _as_principal_id(principal_id)
        with self._lock:
            rec = self._records.get(pid)
            return pid, (rec.copy() if rec is not None else None), int(self._total_locked)

    def roll_back(self, point: Tuple[str, Optional[StakeRecord], int]) -> None:
        pid, rec, total = point
        with self._lock:
            if rec is None:
                self._records.pop(pid, None)
            else:
                self._records[pid] = rec.copy()
            self._total_locked = int(total)

    def snapshot(self) -> Json:
        with self._lock:
            return {
                "total_locked": int(self._total_locked),
                "records": {pid: rec.to_json() for pid, rec in sorted(self._records.items())},
            }

    def restore(self, state: Json) -> None:
        if not isinstance(state, dict):
            raise TypeError(f"state must be dict, got {type(state)}")
        raw = state.get("records")
        if not isinstance(raw, dict):
            raise TypeError(f"state['records'] must be dict, got {type(raw)}")

        records = {_as_principal_id(pid): StakeRecord.from_json(r) for pid, r in raw.items()}
        total = int(state.get("total_locked", 0) or 0)
        summed = sum(r.principal for r in records.values())
        if summed != total:
            raise ValueError(f"total_locked {total} does not match sum of principals {summed}")

        with self._lock:
            self._records = records
            self._total_locked = total

    def verify_totals(self) -> None:
        """Raise RuntimeError if total_locked drifted from the sum of records."""
        with self._lock:
            summed = sum(r.principal for r in self._records.values())
            if summed != self._total_locked:
                raise RuntimeError(f"total_locked {self._total_locked} != sum(principal) {summed}")


__all__ = ["StakeLedger", "emergency_split"]
