"""Pydantic schemas for usage/quota responses."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

QUOTA_AVAILABLE_MESSAGE = "You have {remaining} free requests remaining today."
QUOTA_EXHAUSTED_MESSAGE = (
    "Daily limit reached. Add your own API key to continue or wait until tomorrow."
)
NOT_METERED_MESSAGE = "Requests made with your own credential are not metered."


def quota_message(remaining: int) -> str:
    """Human-readable summary chosen by whether any quota is left."""
    if remaining > 0:
        return QUOTA_AVAILABLE_MESSAGE.format(remaining=remaining)
    return QUOTA_EXHAUSTED_MESSAGE


class UsageResponse(BaseModel):
    """Current daily usage for the requesting client."""

    model_config = ConfigDict(populate_by_name=True)

    ip: str = Field(..., description="Partially masked client identity.")
    used: int = Field(..., ge=0, description="Requests recorded today.")
    remaining: int = Field(..., ge=0, description="Requests left today (never negative).")
    limit: int = Field(..., ge=1, description="Configured daily limit.")
    reset_date: date = Field(
        ...,
        alias="resetDate",
        description="Calendar day (reference timezone) the counts apply to.",
    )
    reset_at: datetime = Field(
        ...,
        alias="resetAt",
        description="Timestamp of the next daily reset.",
    )
    message: str = Field(..., description="Human-readable quota status.")


class ConsumeResponse(BaseModel):
    """Usage figures after recording a request."""

    ip: str = Field(..., description="Partially masked client identity.")
    used: int = Field(..., ge=0)
    remaining: int = Field(..., ge=0)
    limit: int = Field(..., ge=1)
    metered: bool = Field(
        True,
        description="False when the request carried the client's own credential.",
    )
    message: str
