#!/usr/bin/env python3

"""Production-ish smoke test for the stake pool API.

This is intentionally simple and dependency-light.

It verifies:
  - pool config loads and the FastAPI app boots with a pool attached
  - /v1/health and /v1/pool respond
  - a deposit is recorded and reflected in /v1/stakes/{principal}
  - an early withdrawal is refused with lock_active

Usage:
  python3 scripts/prod_smoke.py

Optional env overrides:
  STAKEPOOL_CONFIG_PATH=./pool.json
"""

from __future__ import annotations

import sys

from fastapi.testclient import TestClient

from stakepool.api import app as api_app
from stakepool.ledger.constants import COIN
from stakepool.runtime.collaborators import InMemoryAsset, ManualClock, PauseFlag
from stakepool.runtime.pool import StakePool
from stakepool.runtime.pool_config import load_pool_config


def main() -> int:
    asset = InMemoryAsset()
    asset.mint("smoke", 1_000 * COIN)

    def _build_pool() -> StakePool:
        return StakePool(cfg=load_pool_config(), asset=asset, pause=PauseFlag(), clock=ManualClock())

    api_app.build_pool = _build_pool
    app = api_app.create_app(boot_runtime=True)

    with TestClient(app) as client:
        r = client.get("/v1/health")
        print("health:", r.status_code, r.json())
        if r.status_code != 200 or not r.json().get("ready"):
            return 1

        r = client.post("/v1/stakes/smoke/deposit", json={"amount": str(100 * COIN)})
        print("deposit:", r.status_code, r.json())
        if r.status_code != 200:
            return 1

        r = client.get("/v1/stakes/smoke")
        print("stake:", r.status_code, r.json())
        if r.json()["stake"]["principal"] != str(100 * COIN):
            return 1

        r = client.post("/v1/stakes/smoke/withdraw", json={"amount": str(COIN)})
        print("early withdraw:", r.status_code, r.json())
        if r.status_code != 409:
            return 1

        r = client.get("/v1/pool")
        print("pool:", r.status_code, r.json())
        if r.status_code != 200:
            return 1

    print("OK")
    return 0


if __name__ == "__main__":
    sys.exit(main())
