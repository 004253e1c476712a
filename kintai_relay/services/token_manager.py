"""
Lifecycle management for the single freee OAuth credential.

The manager is the source of truth for which bearer token to use. The hot
path (``get_access_token``) refreshes when the token is inside the grace
period; the scheduler calls ``proactive_refresh`` well before expiry; the API
client forces ``refresh_access_token`` after a 401.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Mapping, Optional, Protocol

from kintai_relay.clients.errors import CredentialStoreError, NoRefreshTokenError
from kintai_relay.clients.freee_auth import FreeeOAuthClient
from kintai_relay.core.config import FreeeSettings
from kintai_relay.models.credential import (
    ACCESS_TOKEN_KEY,
    EXPIRES_AT_KEY,
    LAST_REFRESH_KEY,
    REFRESH_TOKEN_KEY,
    CredentialRecord,
    from_epoch_millis,
)
from kintai_relay.schemas.tokens import TokenStatus
from kintai_relay.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def put(self, key: str, value: str) -> None: ...

    def put_many(self, items: Mapping[str, str]) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FreeeTokenManager:
    """Reads, renews and persists the freee credential record."""

    GRACE_PERIOD = timedelta(minutes=5)
    PROACTIVE_REFRESH_MINUTES = 30
    DEFAULT_EXPIRES_IN = 21600

    def __init__(
        self,
        store: CredentialStore,
        oauth_client: FreeeOAuthClient,
        freee_settings: FreeeSettings,
        token_cipher: TokenCipherService | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._settings = freee_settings
        self._cipher = token_cipher
        self._clock = clock

    async def get_access_token(self) -> str:
        """Return a bearer token, refreshing first when it is about to expire."""
        try:
            access_token = await self._read_secret(ACCESS_TOKEN_KEY)
            expires_at = from_epoch_millis(await self._read(EXPIRES_AT_KEY))
        except CredentialStoreError:
            logger.exception("Credential store unavailable; using configured access token")
            return await self._fallback_access_token()

        if not access_token:
            logger.warning("No access token in credential store; using configured access token")
            return await self._fallback_access_token()

        if expires_at is not None and self._clock() >= expires_at - self.GRACE_PERIOD:
            logger.info("Access token expires at %s; refreshing", expires_at.isoformat())
            return await self.refresh_access_token()

        return access_token

    async def refresh_access_token(self) -> str:
        """Exchange the current refresh token and persist the new record.

        Raises ``NoRefreshTokenError`` when no refresh token exists and
        ``TokenRefreshError`` when the provider rejects the exchange. Neither
        is retried here.
        """
        refresh_token = await self._current_refresh_token()
        if not refresh_token:
            raise NoRefreshTokenError(
                "No refresh token available in the credential store or configuration."
            )

        grant = await self._oauth.refresh_token(refresh_token)
        record = CredentialRecord.issued(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token or refresh_token,
            expires_in=grant.expires_in,
            issued_at=self._clock(),
        )
        await self._save(record)
        logger.info("freee access token refreshed; expires at %s", record.expires_at.isoformat())
        return record.access_token

    async def seed_tokens(
        self,
        access_token: str,
        refresh_token: str,
        expires_in: int = DEFAULT_EXPIRES_IN,
    ) -> CredentialRecord:
        """Store an initial token pair obtained outside the service."""
        record = CredentialRecord.issued(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=expires_in,
            issued_at=self._clock(),
        )
        await self._save(record)
        logger.info("Seeded freee credential; expires at %s", record.expires_at.isoformat())
        return record

    async def get_token_status(self) -> TokenStatus:
        """Describe the stored credential without refreshing or writing."""
        try:
            access_token = await self._read(ACCESS_TOKEN_KEY)
            refresh_token = await self._read(REFRESH_TOKEN_KEY)
            expires_at = from_epoch_millis(await self._read(EXPIRES_AT_KEY))
            last_refreshed_at = from_epoch_millis(await self._read(LAST_REFRESH_KEY))
        except CredentialStoreError as exc:
            logger.warning("Unable to read token status: %s", exc)
            return TokenStatus(storage="error", error=str(exc))

        minutes_until_expiry = None
        if expires_at is not None:
            remaining = expires_at - self._clock()
            minutes_until_expiry = max(0, remaining // timedelta(minutes=1))

        return TokenStatus(
            present=bool(access_token),
            has_refresh_token=bool(refresh_token),
            expires_at=expires_at,
            minutes_until_expiry=minutes_until_expiry,
            last_refreshed_at=last_refreshed_at,
        )

    def is_due_for_proactive_refresh(self, status: TokenStatus) -> bool:
        return (
            status.minutes_until_expiry is not None
            and status.minutes_until_expiry <= self.PROACTIVE_REFRESH_MINUTES
        )

    async def proactive_refresh(self) -> bool:
        """Refresh ahead of expiry; safe to call unconditionally from a scheduler.

        Failures are logged and reported as ``False``; the next tick or the
        reactive 401 path recovers.
        """
        status = await self.get_token_status()
        if not self.is_due_for_proactive_refresh(status):
            logger.info(
                "Token still valid (%s minutes left); no refresh needed",
                status.minutes_until_expiry,
            )
            return False

        try:
            await self.refresh_access_token()
        except Exception:  # pylint: disable=broad-except
            logger.exception("Proactive token refresh failed")
            return False
        return True

    async def _fallback_access_token(self) -> str:
        if self._settings.access_token:
            return self._settings.access_token
        logger.warning("No configured access token; attempting refresh")
        return await self.refresh_access_token()

    async def _current_refresh_token(self) -> Optional[str]:
        try:
            stored = await self._read_secret(REFRESH_TOKEN_KEY)
        except CredentialStoreError:
            logger.exception("Credential store unavailable; using configured refresh token")
            stored = None
        return stored or self._settings.refresh_token

    async def _read(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._store.get, key)

    async def _read_secret(self, key: str) -> Optional[str]:
        value = await self._read(key)
        if not value or self._cipher is None:
            return value
        try:
            return self._cipher.decrypt(value)
        except ValueError as exc:
            raise CredentialStoreError(str(exc)) from exc

    async def _save(self, record: CredentialRecord) -> None:
        items = record.to_store_items()
        if self._cipher is not None:
            items[ACCESS_TOKEN_KEY] = self._cipher.encrypt(record.access_token)
            items[REFRESH_TOKEN_KEY] = self._cipher.encrypt(record.refresh_token)
        await asyncio.to_thread(self._store.put_many, items)


__all__ = ["CredentialStore", "FreeeTokenManager"]
