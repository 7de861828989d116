from __future__ import annotations

import time

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health(request: Request) -> dict:
    pool = getattr(request.app.state, "pool", None)
    return {
        "ok": True,
        "ready": pool is not None,
        "pool_id": pool.cfg.pool_id if pool is not None else None,
        "ts_ms": int(time.time() * 1000),
    }
