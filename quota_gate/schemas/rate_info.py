"""Pydantic schemas for rate limit status responses."""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, Field


class PolicyStatus(BaseModel):
    """Status of one guarded endpoint for the calling client."""

    description: str = Field(..., description="Human-readable policy label.")
    limit: int = Field(..., description="Requests allowed per window.")
    time_window_seconds: int = Field(..., description="Window size in seconds.")
    current: int = Field(
        ...,
        description="Requests counted in the current window (denied requests included).",
    )
    remaining: int = Field(..., description="Requests left before throttling.")
    resets_in_seconds: int = Field(
        ..., description="Whole seconds until the current window ends (0 if none is open)."
    )


class RateInfoResponse(BaseModel):
    """Rate limit status of every registered endpoint for one client."""

    ip: str = Field(..., description="Client identity the report was computed for.")
    message: str | None = Field(
        default=None,
        description="Set when no rate limited endpoint has been registered yet.",
    )
    limits: Dict[str, PolicyStatus] = Field(
        default_factory=dict,
        description="Status keyed by endpoint path.",
    )
