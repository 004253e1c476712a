"""
Domain model for the persisted freee credential.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from pydantic import BaseModel, Field

ACCESS_TOKEN_KEY = "freee_access_token"
REFRESH_TOKEN_KEY = "freee_refresh_token"
EXPIRES_AT_KEY = "freee_token_expires_at"
LAST_REFRESH_KEY = "freee_last_refresh"

CREDENTIAL_KEYS = (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, EXPIRES_AT_KEY, LAST_REFRESH_KEY)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


def to_epoch_millis(moment: datetime) -> int:
    """Integer milliseconds since the Unix epoch for an aware datetime."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // _MILLISECOND


def from_epoch_millis(raw: Optional[str]) -> Optional[datetime]:
    """Parse a string-encoded epoch-millis value; ``None`` when absent or malformed."""
    if not raw:
        return None
    try:
        millis = int(raw)
    except ValueError:
        return None
    return _EPOCH + timedelta(milliseconds=millis)


class CredentialRecord(BaseModel):
    """The single access/refresh token pair stored for the integration."""

    access_token: str
    refresh_token: str
    expires_at: datetime = Field(..., description="Absolute expiry of the access token.")
    last_refreshed_at: datetime

    @classmethod
    def issued(
        cls,
        *,
        access_token: str,
        refresh_token: str,
        expires_in: int,
        issued_at: datetime,
    ) -> "CredentialRecord":
        """Build a record from a token grant received at ``issued_at``."""
        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=issued_at + timedelta(seconds=expires_in),
            last_refreshed_at=issued_at,
        )

    def to_store_items(self) -> Dict[str, str]:
        """Encode the record as the four string values kept in the store."""
        return {
            ACCESS_TOKEN_KEY: self.access_token,
            REFRESH_TOKEN_KEY: self.refresh_token,
            EXPIRES_AT_KEY: str(to_epoch_millis(self.expires_at)),
            LAST_REFRESH_KEY: str(to_epoch_millis(self.last_refreshed_at)),
        }


__all__ = [
    "ACCESS_TOKEN_KEY",
    "CREDENTIAL_KEYS",
    "CredentialRecord",
    "EXPIRES_AT_KEY",
    "LAST_REFRESH_KEY",
    "REFRESH_TOKEN_KEY",
    "from_epoch_millis",
    "to_epoch_millis",
]
