"""
Slack Web API client and Events API request verification on top of ``slack_sdk``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Mapping, Optional

from aiohttp import ClientError
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.signature import Clock, SignatureVerifier
from slack_sdk.web.async_client import AsyncWebClient

from kintai_relay.clients.errors import SlackAPIError

logger = logging.getLogger(__name__)


class _CallableClock(Clock):
    def __init__(self, now: Callable[[], float]) -> None:
        self._now = now

    def now(self) -> float:
        return self._now()


class SlackSignatureVerifier:
    """Check Events API deliveries against the app signing secret."""

    def __init__(
        self,
        signing_secret: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._verifier = SignatureVerifier(signing_secret, clock=_CallableClock(clock))

    def sign(self, timestamp: str, body: bytes) -> str:
        return self._verifier.generate_signature(timestamp=timestamp, body=body)

    def verify(self, body: bytes, headers: Mapping[str, str]) -> bool:
        """True when the ``X-Slack-*`` headers sign ``body`` within the replay window."""
        try:
            return self._verifier.is_valid_request(body, dict(headers.items()))
        except ValueError:
            logger.warning("Rejecting Slack request with malformed timestamp header")
            return False


class SlackClient:
    """Posts thread replies and reads user profiles through ``AsyncWebClient``."""

    def __init__(self, bot_token: str, web_client: Optional[AsyncWebClient] = None) -> None:
        self._web = web_client or AsyncWebClient(token=bot_token, timeout=10)

    async def post_message(
        self, channel: str, text: str, thread_ts: Optional[str] = None
    ) -> Dict[str, Any]:
        """Post ``text`` to ``channel``, threaded under ``thread_ts`` when given."""
        try:
            response = await self._web.chat_postMessage(
                channel=channel, text=text, thread_ts=thread_ts
            )
        except SlackApiError as exc:
            raise SlackAPIError(exc.response.get("error") or "unknown_error") from exc
        except (SlackClientError, ClientError, asyncio.TimeoutError) as exc:
            raise SlackAPIError(f"chat.postMessage failed: {exc}") from exc
        return dict(response.data)

    async def get_user_info(self, user_id: str) -> Dict[str, Any]:
        try:
            response = await self._web.users_info(user=user_id)
        except SlackApiError as exc:
            raise SlackAPIError(exc.response.get("error") or "unknown_error") from exc
        except (SlackClientError, ClientError, asyncio.TimeoutError) as exc:
            raise SlackAPIError(f"users.info failed: {exc}") from exc
        return response.get("user") or {}


__all__ = ["SlackClient", "SlackSignatureVerifier"]
