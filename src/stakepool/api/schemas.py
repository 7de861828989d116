from __future__ import annotations

"""Pydantic request schemas for the public API.

Amounts are integer base units. Clients may send them as JSON numbers or as
decimal strings (18-decimal assets overflow JS number precision).
"""

from pydantic import BaseModel, Field, field_validator


class _AmountRequest(BaseModel):
    amount: int = Field(..., description="Amount in asset base units")

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, v):
        if isinstance(v, bool):
            raise ValueError("amount must be an integer")
        if isinstance(v, str):
            s = v.strip()
            if not s or not s.lstrip("-").isdigit():
                raise ValueError("amount must be a decimal integer string")
            return int(s)
        return v


class DepositRequest(_AmountRequest):
    model_config = {"extra": "forbid"}


class WithdrawRequest(_AmountRequest):
    model_config = {"extra": "forbid"}


class PauseRequest(BaseModel):
    paused: bool = Field(..., description="New pause state for deposits")

    model_config = {"extra": "forbid"}
