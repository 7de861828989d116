# src/stakepool/runtime/collaborators.py
from __future__ import annotations

"""Boundary contracts the pool service depends on.

The ledger core never moves funds, authenticates callers or reads a clock on
its own. These protocols describe what the host must supply, and the
in-memory implementations back the API in dev mode and the test-suite.
"""

import threading
import time
from typing import Dict, Protocol, runtime_checkable

from stakepool.ledger.constants import MAX_ASSET_UNITS

# Custody account the in-memory asset uses for the pool itself.
POOL_ACCOUNT_ID: str = "POOL"


@runtime_checkable
class AssetTransfer(Protocol):
    def transfer_in(self, source: str, amount: int) -> bool: ...

    def transfer_out(self, dest: str, amount: int) -> bool: ...

    def balance_of(self, account: str) -> int: ...


@runtime_checkable
class PauseSwitch(Protocol):
    def is_paused(self) -> bool: ...


@runtime_checkable
class Clock(Protocol):
    def now(self) -> int: ...


class InMemoryAsset:
    """Fungible asset balances held in a dict.

    transfer_in / transfer_out move units between an external account and the
    pool account; they return False (and move nothing) on insufficient funds.
    """

    def __init__(self, *, pool_account: str = POOL_ACCOUNT_ID) -> None:
        self.pool_account = str(pool_account)
        self._balances: Dict[str, int] = {}
        self._lock = threading.Lock()

    def balance_of(self, account: str) -> int:
        with self._lock:
            return int(self._balances.get(str(account), 0))

    def mint(self, account: str, amount: int) -> None:
        amt = int(amount)
        if amt < 0:
            raise ValueError("mint amount must be >= 0")
        with self._lock:
            cur = int(self._balances.get(str(account), 0))
            if cur + amt > MAX_ASSET_UNITS:
                raise OverflowError("balance exceeds asset range")
            self._balances[str(account)] = cur + amt

    def _move(self, src: str, dst: str, amount: int) -> bool:
        amt = int(amount)
        if amt < 0:
            return False
        with self._lock:
            have = int(self._balances.get(src, 0))
            if have < amt:
                return False
            self._balances[src] = have - amt
            self._balances[dst] = int(self._balances.get(dst, 0)) + amt
            return True

    def transfer_in(self, source: str, amount: int) -> bool:
        return self._move(str(source), self.pool_account, amount)

    def transfer_out(self, dest: str, amount: int) -> bool:
        return self._move(self.pool_account, str(dest), amount)

    def drain(self, dest: str, amount: int) -> bool:
        """Move funds out of the pool without going through the ledger.

        Models an unauthorized transfer; used to exercise solvency detection.
        """
        return self._move(self.pool_account, str(dest), amount)


class PauseFlag:
    def __init__(self, paused: bool = False) -> None:
        self._paused = bool(paused)

    def is_paused(self) -> bool:
        return self._paused

    def set_paused(self, paused: bool) -> None:
        self._paused = bool(paused)


class SystemClock:
    """Wall-clock seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Deterministic clock for tests and replays. Never moves backwards."""

    def __init__(self, start: int = 1_700_000_000) -> None:
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        s = int(seconds)
        if s < 0:
            raise ValueError("clock cannot move backwards")
        self._now += s
        return self._now

    def set(self, ts: int) -> None:
        if int(ts) < self._now:
            raise ValueError("clock cannot move backwards")
        self._now = int(ts)


__all__ = [
    "POOL_ACCOUNT_ID",
    "AssetTransfer",
    "PauseSwitch",
    "Clock",
    "InMemoryAsset",
    "PauseFlag",
    "SystemClock",
    "ManualClock",
]
