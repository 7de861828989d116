from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from stakepool.api.routes_public_parts.common import _amounts_as_str, _pool, _principal_param
from stakepool.api.schemas import DepositRequest, WithdrawRequest

router = APIRouter()

Json = Dict[str, Any]


@router.get("/stakes/{principal}")
def stake_detail(principal: str, request: Request) -> Json:
    """Combined view: principal, pending yield, time to unlock, withdrawability."""
    pool = _pool(request)
    detail = pool.stake_detail(_principal_param(principal))
    return {"ok": True, "stake": _amounts_as_str(detail.to_json())}


@router.get("/stakes/{principal}/emergency-quote")
def emergency_quote(principal: str, request: Request) -> Json:
    pool = _pool(request)
    quote = pool.quote_emergency_exit(_principal_param(principal))
    return {"ok": True, "quote": _amounts_as_str(quote)}


@router.post("/stakes/{principal}/deposit")
def deposit(principal: str, body: DepositRequest, request: Request) -> Json:
    pool = _pool(request)
    receipt = pool.deposit(_principal_param(principal), body.amount)
    return {"ok": True, "receipt": _amounts_as_str(receipt.to_json())}


@router.post("/stakes/{principal}/withdraw")
def withdraw(principal: str, body: WithdrawRequest, request: Request) -> Json:
    pool = _pool(request)
    receipt = pool.withdraw(_principal_param(principal), body.amount)
    return {"ok": True, "receipt": _amounts_as_str(receipt.to_json())}


@router.post("/stakes/{principal}/emergency-withdraw")
def emergency_withdraw(principal: str, request: Request) -> Json:
    pool = _pool(request)
    receipt = pool.emergency_withdraw(_principal_param(principal))
    return {"ok": True, "receipt": _amounts_as_str(receipt.to_json())}
