from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Request

from stakepool.api.errors import ApiError
from stakepool.api.routes_public_parts.common import _pool
from stakepool.api.schemas import PauseRequest
from stakepool.runtime.event_log import log_event

router = APIRouter()

log = logging.getLogger("stakepool.admin")


def _require_admin(request: Request) -> None:
    """Shared-secret gate for operator actions.

    Who may hold the token is decided outside this service; with no token
    configured the admin surface does not exist.
    """
    cfg = getattr(request.app.state, "cfg", None)
    token = getattr(cfg, "admin_token", None) if cfg is not None else None
    if not token:
        raise ApiError.not_found("not_found", "admin surface disabled", {})
    got = request.headers.get("x-admin-token") or ""
    if not hmac.compare_digest(got.encode("utf-8"), token.encode("utf-8")):
        raise ApiError.forbidden("forbidden", "invalid admin token", {})


@router.post("/admin/pause")
def set_pause(body: PauseRequest, request: Request) -> dict:
    _require_admin(request)
    pool = _pool(request)
    setter = getattr(pool.pause, "set_paused", None)
    if not callable(setter):
        raise ApiError.conflict("pause_external", "pause state is controlled externally", {})
    setter(body.paused)
    log_event(log, "pause_set", paused=bool(body.paused))
    return {"ok": True, "paused": bool(pool.pause.is_paused())}
