# src/stakepool/runtime/pool_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from stakepool.ledger.constants import (
    ASSET_DECIMALS,
    DEFAULT_DECAY_BPS_PER_STEP,
    DEFAULT_DECAY_STEP,
    DEFAULT_EMERGENCY_PENALTY_PERCENT,
    DEFAULT_INITIAL_RATE,
    DEFAULT_MINIMUM_LOCK_SECONDS,
    DEFAULT_MINIMUM_RATE,
    MAX_ASSET_UNITS,
    RATE_DENOMINATOR,
)
from stakepool.ledger.rate_model import RateDecay, RateModel
from stakepool.ledger.stake_ledger import StakeLedger

Json = Dict[str, Any]


class ConfigError(ValueError):
    pass


def _as_int(v: Any, default: int) -> int:
    if v is None or isinstance(v, bool):
        return int(default)
    try:
        return int(v)
    except (TypeError, ValueError):
        raise ConfigError(f"expected an integer; got: {v!r}") from None


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


@dataclass(frozen=True)
class PoolConfig:
    pool_id: str
    mode: str  # "dev" | "testnet" | "prod"

    # Rate curve (bps/year)
    initial_rate: int
    minimum_rate: int
    decay_kind: str  # "linear" | "hyperbolic"
    decay_step: int
    decay_bps_per_step: int
    decay_half_point: int

    # Lock + exit policy
    minimum_lock_duration: int
    emergency_penalty_percent: int

    asset_decimals: int

    api_host: str
    api_port: int

    log_level: str

    # Opening balances minted into in-memory custody; refused in prod.
    dev_balances: Tuple[Tuple[str, int], ...] = ()

    @property
    def rate_decay(self) -> RateDecay:
        return RateDecay(
            kind=self.decay_kind,
            step=self.decay_step,
            bps_per_step=self.decay_bps_per_step,
            half_point=self.decay_half_point,
        )

    def rate_model(self) -> RateModel:
        return RateModel(initial_rate=self.initial_rate, minimum_rate=self.minimum_rate, decay=self.rate_decay)

    def to_json(self) -> Json:
        return {
            "pool_id": self.pool_id,
            "mode": self.mode,
            "initial_rate": self.initial_rate,
            "minimum_rate": self.minimum_rate,
            "decay_kind": self.decay_kind,
            "decay_step": self.decay_step,
            "decay_bps_per_step": self.decay_bps_per_step,
            "decay_half_point": self.decay_half_point,
            "minimum_lock_duration": self.minimum_lock_duration,
            "emergency_penalty_percent": self.emergency_penalty_percent,
            "asset_decimals": self.asset_decimals,
        }


_ALLOWED_MODES = {"dev", "testnet", "prod"}


def validate_pool_config(cfg: PoolConfig) -> None:
    """Fail-fast validation for operator config.

    A pool misconfigured at boot cannot be fixed later: the curve and lock
    policy are immutable for the pool's lifetime.
    """

    if not isinstance(cfg.pool_id, str) or not cfg.pool_id.strip():
        raise ConfigError("pool_id must be a non-empty string")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ConfigError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if int(cfg.minimum_rate) < 0:
        raise ConfigError(f"minimum_rate must be >= 0; got: {cfg.minimum_rate}")
    if not int(cfg.minimum_rate) <= int(cfg.initial_rate) <= RATE_DENOMINATOR:
        raise ConfigError(
            f"initial_rate must be within minimum_rate..{RATE_DENOMINATOR}; got: {cfg.initial_rate}"
        )

    if int(cfg.minimum_lock_duration) < 0:
        raise ConfigError(f"minimum_lock_duration must be >= 0; got: {cfg.minimum_lock_duration}")

    if not 0 <= int(cfg.emergency_penalty_percent) <= 100:
        raise ConfigError(f"emergency_penalty_percent must be 0..100; got: {cfg.emergency_penalty_percent}")

    if not 0 <= int(cfg.asset_decimals) <= 36:
        raise ConfigError(f"asset_decimals must be 0..36; got: {cfg.asset_decimals}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ConfigError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if cfg.dev_balances and mode == "prod":
        raise ConfigError("dev_balances are not allowed in prod mode")
    for account, amount in cfg.dev_balances:
        if not str(account).strip():
            raise ConfigError("dev_balances account must be a non-empty string")
        if not 0 <= int(amount) <= MAX_ASSET_UNITS:
            raise ConfigError(f"dev_balances amount out of range for {account!r}: {amount}")

    try:
        cfg.rate_model()
    except ValueError as e:
        raise ConfigError(str(e)) from e


def default_pool_config() -> PoolConfig:
    return PoolConfig(
        pool_id="stakepool-dev",
        mode="prod",
        initial_rate=DEFAULT_INITIAL_RATE,
        minimum_rate=DEFAULT_MINIMUM_RATE,
        decay_kind="linear",
        decay_step=DEFAULT_DECAY_STEP,
        decay_bps_per_step=DEFAULT_DECAY_BPS_PER_STEP,
        decay_half_point=DEFAULT_DECAY_STEP * 1_000,
        minimum_lock_duration=DEFAULT_MINIMUM_LOCK_SECONDS,
        emergency_penalty_percent=DEFAULT_EMERGENCY_PENALTY_PERCENT,
        asset_decimals=ASSET_DECIMALS,
        api_host="127.0.0.1",
        api_port=8080,
        log_level="INFO",
    )


def _as_balances(v: Any) -> Tuple[Tuple[str, int], ...]:
    if v is None:
        return ()
    if not isinstance(v, dict):
        raise ConfigError("dev_balances must be a JSON object of account -> amount")
    return tuple(sorted((str(k), _as_int(a, 0)) for k, a in v.items()))


def read_pool_config_file(path: str) -> PoolConfig:
    p = Path(path)
    raw = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ConfigError("pool config must be a JSON object")

    d = default_pool_config()

    decay = raw.get("rate_decay")
    decay = decay if isinstance(decay, dict) else {}

    cfg = PoolConfig(
        pool_id=_as_str(raw.get("pool_id"), d.pool_id),
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        initial_rate=_as_int(raw.get("initial_rate"), d.initial_rate),
        minimum_rate=_as_int(raw.get("minimum_rate"), d.minimum_rate),
        decay_kind=_as_str(decay.get("kind"), d.decay_kind).strip().lower(),
        decay_step=_as_int(decay.get("step"), d.decay_step),
        decay_bps_per_step=_as_int(decay.get("bps_per_step"), d.decay_bps_per_step),
        decay_half_point=_as_int(decay.get("half_point"), d.decay_half_point),
        minimum_lock_duration=_as_int(raw.get("minimum_lock_duration"), d.minimum_lock_duration),
        emergency_penalty_percent=_as_int(raw.get("emergency_penalty_percent"), d.emergency_penalty_percent),
        asset_decimals=_as_int(raw.get("asset_decimals"), d.asset_decimals),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        log_level=_as_str(raw.get("log_level"), d.log_level),
        dev_balances=_as_balances(raw.get("dev_balances")),
    )

    validate_pool_config(cfg)
    return cfg


def load_pool_config(*, config_path: Optional[str] = None) -> PoolConfig:
    p = config_path or os.environ.get("STAKEPOOL_CONFIG_PATH")
    if p:
        return read_pool_config_file(p)

    cfg = default_pool_config()
    validate_pool_config(cfg)
    return cfg


def build_ledger(cfg: PoolConfig) -> StakeLedger:
    validate_pool_config(cfg)
    return StakeLedger(
        rate_model=cfg.rate_model(),
        minimum_lock_duration=cfg.minimum_lock_duration,
        emergency_penalty_percent=cfg.emergency_penalty_percent,
    )
