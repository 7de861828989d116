# src/stakepool/runtime/pool.py
from __future__ import annotations

"""Pool service: the ledger core wired to its external collaborators.

Ordering per operation (all under the ledger lock, so each call is one
serializable unit):

  deposit:   pause gate -> amount check -> transfer_in -> ledger.deposit
  withdraw:  ledger.withdraw -> transfer_out(payout)
  emergency: ledger.emergency_withdraw -> transfer_out(return_amount)

A collaborator that reports failure or raises aborts the call with
TransferFailed and the ledger is rolled back to its save point, so callers see
all-or-nothing.
"""

import logging
from typing import Any, Dict, Optional

from stakepool.ledger.constants import MAX_ASSET_UNITS
from stakepool.ledger.errors import InvalidAmount, LedgerError, Paused, SolvencyViolation, TransferFailed
from stakepool.ledger.solvency import is_solvent, surplus_yield
from stakepool.ledger.stake_ledger import StakeLedger
from stakepool.ledger.types import PoolSnapshot, StakeDetail, StakeReceipt
from stakepool.runtime.collaborators import POOL_ACCOUNT_ID, AssetTransfer, Clock, PauseSwitch
from stakepool.runtime.event_log import log_event
from stakepool.runtime.metrics import inc_counter, set_gauge
from stakepool.runtime.pool_config import PoolConfig, build_ledger

Json = Dict[str, Any]

log = logging.getLogger("stakepool.pool")


class StakePool:
    def __init__(
        self,
        *,
        cfg: PoolConfig,
        asset: AssetTransfer,
        pause: PauseSwitch,
        clock: Clock,
        ledger: Optional[StakeLedger] = None,
    ) -> None:
        self.cfg = cfg
        self.asset = asset
        self.pause = pause
        self.clock = clock
        self.ledger = ledger if ledger is not None else build_ledger(cfg)
        self.pool_account = str(getattr(asset, "pool_account", POOL_ACCOUNT_ID))

    def _now(self, now: Optional[int]) -> int:
        return int(self.clock.now()) if now is None else int(now)

    def _rejected(self, op: str, principal_id: str, err: LedgerError) -> None:
        inc_counter("rejected_total")
        log_event(log, "stake_rejected", op=op, principal=principal_id, code=err.code, reason=err.reason)

    def _accepted(self, receipt: StakeReceipt) -> None:
        set_gauge("total_locked", receipt.total_locked_after)
        log_event(log, "stake_applied", **receipt.to_json())

    def _pull(self, principal_id: str, amount: int) -> None:
        try:
            moved = self.asset.transfer_in(principal_id, amount)
        except Exception as e:
            raise TransferFailed(
                "transfer_in_raised", {"principal_id": principal_id, "amount": amount, "error": repr(e)}
            ) from e
        if not moved:
            raise TransferFailed("transfer_in_failed", {"principal_id": principal_id, "amount": amount})

    def _pay(self, principal_id: str, amount: int) -> None:
        try:
            moved = self.asset.transfer_out(principal_id, amount)
        except Exception as e:
            raise TransferFailed(
                "transfer_out_raised", {"principal_id": principal_id, "payout": amount, "error": repr(e)}
            ) from e
        if not moved:
            raise TransferFailed("transfer_out_failed", {"principal_id": principal_id, "payout": amount})

    def _refund(self, principal_id: str, amount: int) -> None:
        try:
            self._pay(principal_id, amount)
        except TransferFailed as e:
            log_event(
                log, "deposit_refund_failed", level=logging.ERROR, principal=principal_id, amount=amount, reason=e.reason
            )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def deposit(self, principal_id: str, amount: int, *, now: Optional[int] = None) -> StakeReceipt:
        try:
            if self.pause.is_paused():
                raise Paused("deposits_paused", {"principal_id": principal_id})
            if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0 or amount > MAX_ASSET_UNITS:
                raise InvalidAmount("amount_must_be_positive", {"amount": repr(amount)})

            with self.ledger.lock:
                ts = self._now(now)
                self._pull(principal_id, amount)
                try:
                    receipt = self.ledger.deposit(principal_id, amount, ts)
                except Exception:
                    # Funds arrived but could not be recorded: hand them back.
                    self._refund(principal_id, amount)
                    raise
        except LedgerError as e:
            self._rejected("deposit", principal_id, e)
            raise

        inc_counter("deposits_total")
        self._accepted(receipt)
        return receipt

    def withdraw(self, principal_id: str, amount: int, *, now: Optional[int] = None) -> StakeReceipt:
        try:
            with self.ledger.lock:
                ts = self._now(now)
                point = self.ledger.save_point(principal_id)
                receipt = self.ledger.withdraw(principal_id, amount, ts)
                if receipt.payout > 0:
                    try:
                        self._pay(principal_id, receipt.payout)
                    except TransferFailed:
                        self.ledger.roll_back(point)
                        raise
        except LedgerError as e:
            self._rejected("withdraw", principal_id, e)
            raise

        inc_counter("withdrawals_total")
        self._accepted(receipt)
        return receipt

    def emergency_withdraw(self, principal_id: str, *, now: Optional[int] = None) -> StakeReceipt:
        try:
            with self.ledger.lock:
                ts = self._now(now)
                point = self.ledger.save_point(principal_id)
                receipt = self.ledger.emergency_withdraw(principal_id, ts)
                if receipt.payout > 0:
                    try:
                        self._pay(principal_id, receipt.payout)
                    except TransferFailed:
                        self.ledger.roll_back(point)
                        raise
        except LedgerError as e:
            self._rejected("emergency_withdraw", principal_id, e)
            raise

        inc_counter("emergency_exits_total")
        self._accepted(receipt)
        return receipt

    # ------------------------------------------------------------------
    # Queries (never mutate)
    # ------------------------------------------------------------------

    def pending_yield(self, principal_id: str, *, now: Optional[int] = None) -> int:
        return self.ledger.pending_yield(principal_id, self._now(now))

    def time_until_unlock(self, principal_id: str, *, now: Optional[int] = None) -> int:
        return self.ledger.time_until_unlock(principal_id, self._now(now))

    def can_withdraw(self, principal_id: str, *, now: Optional[int] = None) -> bool:
        return self.ledger.can_withdraw(principal_id, self._now(now))

    def current_rate(self) -> int:
        return self.ledger.current_rate()

    def total_locked(self) -> int:
        return self.ledger.total_locked()

    def held_balance(self) -> int:
        return int(self.asset.balance_of(self.pool_account))

    def surplus_yield(self) -> int:
        with self.ledger.lock:
            held = self.held_balance()
            total = self.ledger.total_locked()
        try:
            return surplus_yield(held, total)
        except SolvencyViolation as e:
            log_event(log, "solvency_violation", **(e.details or {}))
            raise

    def stake_detail(self, principal_id: str, *, now: Optional[int] = None) -> StakeDetail:
        return self.ledger.detail(principal_id, self._now(now))

    def quote_emergency_exit(self, principal_id: str, *, now: Optional[int] = None) -> Json:
        return self.ledger.quote_emergency_exit(principal_id, self._now(now))

    def pool_snapshot(self, *, now: Optional[int] = None) -> PoolSnapshot:
        with self.ledger.lock:
            ts = self._now(now)
            held = self.held_balance()
            total = self.ledger.total_locked()
            solvent = is_solvent(held, total)
            return PoolSnapshot(
                pool_id=self.cfg.pool_id,
                total_locked=total,
                current_rate=self.ledger.current_rate(),
                held_balance=held,
                surplus_yield=(held - total) if solvent else None,
                solvent=solvent,
                paused=bool(self.pause.is_paused()),
                stakers=self.ledger.staker_count(),
                at=ts,
            )


__all__ = ["StakePool"]
