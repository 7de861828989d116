from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar


@dataclass
class LedgerError(Exception):
    """Canonical error type for stake ledger failures.

    Every subclass carries a stable machine-readable `code`. Errors are raised
    before any state is touched, so a caller never observes a partial mutation.
    """

    reason: str
    details: Any | None = None

    code: ClassVar[str] = "ledger_error"

    def __str__(self) -> str:
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


class InvalidAmount(LedgerError):
    code = "invalid_amount"


class InsufficientPrincipal(LedgerError):
    code = "insufficient_principal"


class LockActive(LedgerError):
    code = "lock_active"


class NothingStaked(LedgerError):
    code = "nothing_staked"


class Paused(LedgerError):
    code = "paused"


class SolvencyViolation(LedgerError):
    code = "solvency_violation"


class TransferFailed(LedgerError):
    code = "transfer_failed"


__all__ = [
    "LedgerError",
    "InvalidAmount",
    "InsufficientPrincipal",
    "LockActive",
    "NothingStaked",
    "Paused",
    "SolvencyViolation",
    "TransferFailed",
]
