from __future__ import annotations

from typing import Any, Dict, Iterable

from fastapi import Request

from stakepool.api.errors import ApiError
from stakepool.runtime.pool import StakePool

Json = Dict[str, Any]

# Fields carrying asset amounts; rendered as decimal strings.
AMOUNT_FIELDS = frozenset(
    {
        "principal",
        "pending_yield",
        "accrued_carry",
        "amount",
        "payout",
        "yield_paid",
        "penalty",
        "forfeited_yield",
        "principal_after",
        "total_locked_after",
        "total_locked",
        "held_balance",
        "surplus_yield",
        "return_amount",
    }
)


def _pool(request: Request) -> StakePool:
    pool = getattr(request.app.state, "pool", None)
    if pool is None:
        raise ApiError.internal("not_ready", "pool not attached to app.state", {})
    return pool


def _amounts_as_str(obj: Json, fields: Iterable[str] = AMOUNT_FIELDS) -> Json:
    keys = set(fields)
    out: Json = {}
    for k, v in obj.items():
        if k in keys and isinstance(v, int) and not isinstance(v, bool):
            out[k] = str(v)
        else:
            out[k] = v
    return out


def _principal_param(principal: str) -> str:
    p = str(principal or "").strip()
    if not p:
        raise ApiError.bad_request("bad_request", "principal must be a non-empty string", {})
    return p
