from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from stakepool.ledger.errors import LedgerError


@dataclass
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def forbidden(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(403, code, message, details or {})

    @staticmethod
    def not_found(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(404, code, message, details or {})

    @staticmethod
    def conflict(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(409, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content={"ok": False, "error": {"code": self.code, "message": self.message, "details": self.details}},
        )


# Ledger error code -> HTTP status
_LEDGER_STATUS: Dict[str, int] = {
    "invalid_amount": 400,
    "insufficient_principal": 400,
    "nothing_staked": 400,
    "lock_active": 409,
    "solvency_violation": 409,
    "paused": 423,
    "transfer_failed": 502,
}


def from_ledger_error(err: LedgerError) -> ApiError:
    details = err.details if isinstance(err.details, dict) else ({} if err.details is None else {"info": err.details})
    # Amounts may exceed JSON-safe integer range for JS clients; render as strings.
    safe = {k: (str(v) if isinstance(v, int) and not isinstance(v, bool) else v) for k, v in details.items()}
    return ApiError(_LEDGER_STATUS.get(err.code, 400), err.code, err.reason, safe)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return exc.to_response()


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    return from_ledger_error(exc).to_response()
