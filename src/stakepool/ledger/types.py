# src/stakepool/ledger/types.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

Json = Dict[str, Any]


@dataclass(slots=True)
class StakeRecord:
    """Per-principal stake state.

    Records are owned by a single StakeLedger and never shared. A record that
    reaches zero principal is retained (its history costs nothing) and is
    reused on the next deposit.
    """

    principal: int = 0
    window_start: int = 0
    accrued_carry: int = 0
    rate_snapshot: int = 0
    lock_start: int = 0

    def copy(self) -> "StakeRecord":
        return StakeRecord(
            principal=int(self.principal),
            window_start=int(self.window_start),
            accrued_carry=int(self.accrued_carry),
            rate_snapshot=int(self.rate_snapshot),
            lock_start=int(self.lock_start),
        )

    def to_json(self) -> Json:
        return asdict(self)

    @classmethod
    def from_json(cls, obj: Json) -> "StakeRecord":
        return cls(
            principal=int(obj.get("principal", 0) or 0),
            window_start=int(obj.get("window_start", 0) or 0),
            accrued_carry=int(obj.get("accrued_carry", 0) or 0),
            rate_snapshot=int(obj.get("rate_snapshot", 0) or 0),
            lock_start=int(obj.get("lock_start", 0) or 0),
        )


@dataclass(frozen=True, slots=True)
class StakeReceipt:
    """Outcome of one ledger mutation."""

    applied: str  # "DEPOSIT" | "WITHDRAW" | "EMERGENCY_WITHDRAW"
    principal_id: str
    amount: int
    payout: int
    yield_paid: int
    penalty: int
    forfeited_yield: int
    principal_after: int
    total_locked_after: int
    rate_snapshot: int
    at: int

    def to_json(self) -> Json:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class StakeDetail:
    """Combined read-only view of one principal's position."""

    principal_id: str
    principal: int
    pending_yield: int
    accrued_carry: int
    rate_snapshot: int
    time_until_unlock: int
    can_withdraw: bool
    window_start: int
    lock_start: int

    def to_json(self) -> Json:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class PoolSnapshot:
    pool_id: str
    total_locked: int
    current_rate: int
    held_balance: int
    surplus_yield: Optional[int]
    solvent: bool
    paused: bool
    stakers: int
    at: int

    def to_json(self) -> Json:
        return asdict(self)
