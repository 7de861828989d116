from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stakepool.api.config import load_api_config, parse_cors_origins
from stakepool.api.errors import ApiError, api_error_handler, ledger_error_handler
from stakepool.api.routes_public import public_router
from stakepool.api.structured_logging import RequestLogMiddleware
from stakepool.ledger.errors import LedgerError
from stakepool.runtime.collaborators import InMemoryAsset, PauseFlag, SystemClock
from stakepool.runtime.event_log import log_event
from stakepool.runtime.pool import StakePool
from stakepool.runtime.pool_config import load_pool_config

log = logging.getLogger("stakepool.api")


def build_pool() -> StakePool:
    """Build the StakePool served by the API.

    This wrapper exists so tests (and hosts with a real asset bridge) can
    monkeypatch `stakepool.api.app.build_pool` without reaching into runtime
    modules. The default wiring is in-memory custody with a wall clock; it is
    only funded through `dev_balances`, so a prod host must supply its own
    AssetTransfer.
    """
    cfg = load_pool_config()
    asset = InMemoryAsset()
    if cfg.mode != "prod":
        for account, amount in cfg.dev_balances:
            asset.mint(account, amount)
    return StakePool(cfg=cfg, asset=asset, pause=PauseFlag(), clock=SystemClock())


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load pool config + attach app.state.pool
      - False: keep lightweight for unit tests / import-time validation
    """
    pool = build_pool() if boot_runtime else None
    api_cfg = load_api_config(default_mode=pool.cfg.mode if pool is not None else "prod")

    # Disable docs in production.
    if api_cfg.mode == "prod":
        app = FastAPI(title="Stake Pool API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="Stake Pool API")

    app.state.cfg = api_cfg
    app.state.pool = pool
    if pool is not None:
        log_event(log, "pool_attached", pool_id=pool.cfg.pool_id, mode=api_cfg.mode)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(LedgerError, ledger_error_handler)

    # --- Middleware ---
    app.add_middleware(RequestLogMiddleware)

    cors_origins = parse_cors_origins(api_cfg)
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=cors_origins != ["*"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "x-admin-token", "x-request-id"],
        )

    # --- Routers ---
    app.include_router(public_router)

    return app
