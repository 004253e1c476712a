"""
freee OAuth utilities.

These helpers exchange refresh tokens and authorization codes at the freee
identity provider's token endpoint.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

import httpx

from kintai_relay.clients.errors import FreeeTransportError, TokenRefreshError
from kintai_relay.core.config import FreeeSettings
from kintai_relay.schemas.tokens import TokenGrant

logger = logging.getLogger(__name__)


class FreeeOAuthClient:
    """Build authorization URLs and call the freee token endpoint."""

    REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"

    def __init__(self, settings: FreeeSettings) -> None:
        self._settings = settings

    def build_authorization_url(self, state: str | None = None) -> str:
        """Construct the consent URL for the out-of-band code flow."""
        params = {
            "client_id": self._settings.client_id,
            "redirect_uri": self.REDIRECT_URI,
            "response_type": "code",
            "prompt": "select_company",
        }
        if state:
            params["state"] = state
        return f"{self._settings.authorize_url}?{urlencode(params)}"

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        """Exchange a refresh token for a new token pair."""
        payload = {
            "grant_type": "refresh_token",
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "refresh_token": refresh_token,
            "redirect_uri": self.REDIRECT_URI,
        }
        return await self._request_token(payload)

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code obtained from the consent screen."""
        payload = {
            "grant_type": "authorization_code",
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "code": code,
            "redirect_uri": self.REDIRECT_URI,
        }
        grant = await self._request_token(payload)
        if not grant.refresh_token:
            raise TokenRefreshError(200, "Authorization code grant returned no refresh token.")
        return grant

    async def _request_token(self, payload: dict[str, str]) -> TokenGrant:
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout_seconds) as client:
                response = await client.post(self._settings.token_url, data=payload)
        except httpx.RequestError as exc:
            raise FreeeTransportError(exc) from exc

        if not response.is_success:
            logger.error(
                "Token endpoint rejected %s grant with status %s",
                payload["grant_type"],
                response.status_code,
            )
            raise TokenRefreshError(response.status_code, response.text)

        try:
            token_payload = response.json()
        except ValueError as exc:
            logger.error("Token endpoint returned a non-JSON body (status %s)", response.status_code)
            raise TokenRefreshError(response.status_code, response.text) from exc
        if not isinstance(token_payload, dict):
            raise TokenRefreshError(response.status_code, response.text)

        access_token = token_payload.get("access_token")
        expires_in = token_payload.get("expires_in")
        if not access_token or not expires_in:
            raise TokenRefreshError(
                response.status_code, "Incomplete token payload returned from freee."
            )

        return TokenGrant(
            access_token=access_token,
            refresh_token=token_payload.get("refresh_token"),
            expires_in=int(expires_in),
        )


__all__ = ["FreeeOAuthClient"]
