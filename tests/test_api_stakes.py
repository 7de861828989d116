from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from stakepool.api import app as api_app
from stakepool.ledger.constants import COIN
from stakepool.runtime import metrics
from stakepool.runtime.collaborators import POOL_ACCOUNT_ID, InMemoryAsset, ManualClock, PauseFlag
from stakepool.runtime.pool import StakePool
from stakepool.runtime.pool_config import default_pool_config

LOCK = default_pool_config().minimum_lock_duration


@pytest.fixture()
def env(monkeypatch: pytest.MonkeyPatch):
    asset = InMemoryAsset()
    asset.mint("alice", 1_000 * COIN)
    asset.mint(POOL_ACCOUNT_ID, 10 * COIN)
    clock = ManualClock(start=1_700_000_000)
    pool = StakePool(cfg=default_pool_config(), asset=asset, pause=PauseFlag(), clock=clock)

    monkeypatch.setattr(api_app, "build_pool", lambda: pool)
    monkeypatch.setenv("STAKEPOOL_ADMIN_TOKEN", "s3cret")
    monkeypatch.setenv("STAKEPOOL_API_MODE", "dev")

    app = api_app.create_app(boot_runtime=True)
    with TestClient(app) as client:
        yield client, pool, asset, clock


def test_deposit_then_detail(env) -> None:
    client, pool, _, _ = env
    r = client.post("/v1/stakes/alice/deposit", json={"amount": str(100 * COIN)})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["ok"] is True
    assert body["receipt"]["applied"] == "DEPOSIT"
    assert body["receipt"]["principal_after"] == str(100 * COIN)
    assert r.headers.get("x-request-id")

    r = client.get("/v1/stakes/alice")
    stake = r.json()["stake"]
    assert stake["principal"] == str(100 * COIN)
    assert stake["pending_yield"] == "0"
    assert stake["time_until_unlock"] == LOCK
    assert stake["can_withdraw"] is False
    assert stake["rate_snapshot"] == 999


def test_numeric_amount_is_accepted(env) -> None:
    client, pool, _, _ = env
    r = client.post("/v1/stakes/alice/deposit", json={"amount": 5})
    assert r.status_code == 200
    assert pool.total_locked() == 5


def test_zero_amount_is_invalid(env) -> None:
    client, _, _, _ = env
    r = client.post("/v1/stakes/alice/deposit", json={"amount": "0"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_amount"


def test_malformed_body_is_rejected_by_schema(env) -> None:
    client, _, _, _ = env
    r = client.post("/v1/stakes/alice/deposit", json={"amount": "1e18"})
    assert r.status_code == 422
    r = client.post("/v1/stakes/alice/deposit", json={"amount": 1, "extra": True})
    assert r.status_code == 422


def test_early_withdraw_is_conflict_then_succeeds(env) -> None:
    client, _, asset, clock = env
    client.post("/v1/stakes/alice/deposit", json={"amount": str(100 * COIN)})

    r = client.post("/v1/stakes/alice/withdraw", json={"amount": str(100 * COIN)})
    assert r.status_code == 409
    err = r.json()["error"]
    assert err["code"] == "lock_active"
    assert err["details"]["remaining_s"] == str(LOCK)

    clock.advance(LOCK)
    r = client.post("/v1/stakes/alice/withdraw", json={"amount": str(100 * COIN)})
    assert r.status_code == 200
    rcpt = r.json()["receipt"]
    assert int(rcpt["payout"]) == 100 * COIN + int(rcpt["yield_paid"])
    assert int(rcpt["yield_paid"]) > 0


def test_withdraw_more_than_staked(env) -> None:
    client, _, _, clock = env
    client.post("/v1/stakes/alice/deposit", json={"amount": "10"})
    clock.advance(LOCK)
    r = client.post("/v1/stakes/alice/withdraw", json={"amount": "11"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "insufficient_principal"


def test_emergency_quote_and_exit(env) -> None:
    client, _, asset, _ = env
    client.post("/v1/stakes/alice/deposit", json={"amount": "1001"})

    q = client.get("/v1/stakes/alice/emergency-quote").json()["quote"]
    assert q["return_amount"] == "900"
    assert q["penalty"] == "101"

    r = client.post("/v1/stakes/alice/emergency-withdraw")
    assert r.status_code == 200
    assert r.json()["receipt"]["payout"] == "900"

    r = client.post("/v1/stakes/alice/emergency-withdraw")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "nothing_staked"


def test_pool_status_and_surplus(env) -> None:
    client, _, asset, _ = env
    client.post("/v1/stakes/alice/deposit", json={"amount": str(100 * COIN)})

    pool = client.get("/v1/pool").json()
    assert pool["pool"]["total_locked"] == str(100 * COIN)
    assert pool["pool"]["surplus_yield"] == str(10 * COIN)
    assert pool["pool"]["solvent"] is True
    assert pool["config"]["emergency_penalty_percent"] == 10

    assert client.get("/v1/pool/surplus").json()["surplus_yield"] == str(10 * COIN)

    rate = client.get("/v1/pool/rate").json()
    assert rate["current_rate"] == 999
    assert rate["floor_threshold"] == str(99_000 * COIN)
    assert rate["at_floor"] is False

    asset.drain("mallory", 11 * COIN)
    r = client.get("/v1/pool/surplus")
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "solvency_violation"

    pool = client.get("/v1/pool").json()["pool"]
    assert pool["solvent"] is False
    assert pool["surplus_yield"] is None


def test_admin_pause_requires_token_and_blocks_deposits(env) -> None:
    client, pool, _, _ = env
    r = client.post("/v1/admin/pause", json={"paused": True})
    assert r.status_code == 403

    r = client.post("/v1/admin/pause", json={"paused": True}, headers={"x-admin-token": "s3cret"})
    assert r.status_code == 200
    assert r.json()["paused"] is True

    r = client.post("/v1/stakes/alice/deposit", json={"amount": "10"})
    assert r.status_code == 423
    assert r.json()["error"]["code"] == "paused"
    assert pool.total_locked() == 0


def test_admin_surface_absent_without_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("STAKEPOOL_ADMIN_TOKEN", raising=False)
    pool = StakePool(cfg=default_pool_config(), asset=InMemoryAsset(), pause=PauseFlag(), clock=ManualClock())
    monkeypatch.setattr(api_app, "build_pool", lambda: pool)

    with TestClient(api_app.create_app(boot_runtime=True)) as client:
        r = client.post("/v1/admin/pause", json={"paused": True}, headers={"x-admin-token": ""})
        assert r.status_code == 404


def test_metrics_endpoint_toggle(env, monkeypatch: pytest.MonkeyPatch) -> None:
    client, _, _, _ = env
    monkeypatch.delenv("STAKEPOOL_METRICS_ENABLED", raising=False)
    assert client.get("/v1/metrics").status_code == 404

    metrics.reset()
    monkeypatch.setenv("STAKEPOOL_METRICS_ENABLED", "1")
    client.post("/v1/stakes/alice/deposit", json={"amount": "10"})
    r = client.get("/v1/metrics")
    assert r.status_code == 200
    assert "stakepool_deposits_total 1" in r.text
    assert "stakepool_total_locked 10" in r.text


def test_rate_reports_floor_once_threshold_is_locked(env) -> None:
    client, pool, asset, _ = env
    threshold = pool.ledger.rate_model.floor_threshold()
    asset.mint("whale", threshold)

    r = client.post("/v1/stakes/whale/deposit", json={"amount": str(threshold - 1)})
    assert r.status_code == 200, r.text
    rate = client.get("/v1/pool/rate").json()
    assert rate["at_floor"] is False
    assert rate["current_rate"] > rate["minimum_rate"]

    client.post("/v1/stakes/whale/deposit", json={"amount": "1"})
    rate = client.get("/v1/pool/rate").json()
    assert rate["at_floor"] is True
    assert rate["current_rate"] == rate["minimum_rate"] == 10
    assert rate["total_locked"] == str(threshold)
