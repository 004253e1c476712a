"""Schemas related to the freee OAuth credential."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class TokenGrant(BaseModel):
    """Token endpoint response fields we rely on."""

    access_token: str
    refresh_token: Optional[str] = Field(
        None, description="Rotated refresh token, when the provider issues one."
    )
    expires_in: int = Field(..., description="Lifetime of the access token in seconds.")


class TokenStatus(BaseModel):
    """Read-only diagnostic projection of the stored credential."""

    storage: Literal["kv_store", "error"] = "kv_store"
    present: bool = False
    has_refresh_token: bool = False
    expires_at: Optional[datetime] = None
    minutes_until_expiry: Optional[int] = None
    last_refreshed_at: Optional[datetime] = None
    error: Optional[str] = None


class TokenSeedRequest(BaseModel):
    """Payload used to seed the first credential pair out-of-band."""

    access_token: str = Field(..., min_length=1)
    refresh_token: str = Field(..., min_length=1)
    expires_in: int = Field(21600, gt=0, description="Access token lifetime in seconds.")


__all__ = ["TokenGrant", "TokenSeedRequest", "TokenStatus"]
