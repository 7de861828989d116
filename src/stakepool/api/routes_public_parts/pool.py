from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from stakepool.api.routes_public_parts.common import _amounts_as_str, _pool

router = APIRouter()

Json = Dict[str, Any]


@router.get("/pool")
def pool_status(request: Request) -> Json:
    """Pool totals, current rate, custody balance and configuration.

    An insolvent pool is reported (solvent=false, surplus_yield=null) rather
    than failing the whole status call.
    """
    pool = _pool(request)
    snap = pool.pool_snapshot()
    return {
        "ok": True,
        "pool": _amounts_as_str(snap.to_json()),
        "config": _amounts_as_str(pool.cfg.to_json(), ("decay_step", "decay_half_point")),
    }


@router.get("/pool/surplus")
def pool_surplus(request: Request) -> Json:
    pool = _pool(request)
    return {"ok": True, "surplus_yield": str(pool.surplus_yield())}


@router.get("/pool/rate")
def pool_rate(request: Request) -> Json:
    pool = _pool(request)
    model = pool.ledger.rate_model
    total = pool.total_locked()
    return {
        "ok": True,
        "current_rate": model.rate(total),
        "initial_rate": model.initial_rate,
        "minimum_rate": model.minimum_rate,
        "floor_threshold": str(model.floor_threshold()),
        "at_floor": model.at_floor(total),
        "total_locked": str(total),
    }
