# src/stakepool/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from stakepool.api.routes_public_parts.admin import router as admin_router
from stakepool.api.routes_public_parts.health import router as health_router
from stakepool.api.routes_public_parts.metrics import router as metrics_router
from stakepool.api.routes_public_parts.pool import router as pool_router
from stakepool.api.routes_public_parts.stakes import router as stakes_router

public_router = APIRouter()

# Versioned API surface
public_router.include_router(health_router, prefix="/v1", tags=["health"])
public_router.include_router(pool_router, prefix="/v1", tags=["pool"])
public_router.include_router(stakes_router, prefix="/v1", tags=["stakes"])

# Ops
public_router.include_router(admin_router, prefix="/v1", tags=["admin"])
public_router.include_router(metrics_router, prefix="/v1", tags=["metrics"])
