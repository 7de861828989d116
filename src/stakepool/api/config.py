import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ApiConfig:
    mode: str  # "dev" | "testnet" | "prod"
    admin_token: str | None
    cors_origins: tuple[str, ...]


def _env_list(name: str) -> tuple[str, ...]:
    raw = os.getenv(name, "")
    return tuple(p.strip() for p in raw.split(",") if p.strip())


def load_api_config(*, default_mode: str = "prod") -> ApiConfig:
    """API settings from env. STAKEPOOL_API_MODE overrides the pool's own mode."""
    mode = (os.getenv("STAKEPOOL_API_MODE") or default_mode).strip().lower()
    token = (os.getenv("STAKEPOOL_ADMIN_TOKEN") or "").strip() or None
    return ApiConfig(mode=mode, admin_token=token, cors_origins=_env_list("STAKEPOOL_CORS_ORIGINS"))


def parse_cors_origins(cfg: ApiConfig) -> list[str]:
    """CORS allowlist with production-safe defaults.

    Policy:
      - empty list -> CORS disabled
      - wildcard "*" is rejected in prod mode
    """
    origins = list(cfg.cors_origins)
    if "*" in origins:
        if cfg.mode == "prod":
            raise RuntimeError(
                "Unsafe CORS configuration: wildcard '*' not allowed in production. "
                "Set explicit origins in STAKEPOOL_CORS_ORIGINS."
            )
        return ["*"]
    return origins
