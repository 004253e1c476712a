"""
Scheduler entry points: proactive token refresh and API health check.

Both jobs are safe to invoke unconditionally from cron-like triggers; failures
are logged and reported to the notification channel instead of raised.
"""

from __future__ import annotations

import logging
from typing import Optional

from kintai_relay.clients.errors import CredentialError, FreeeAPIError, SlackAPIError
from kintai_relay.clients.freee_hr import FreeeHRClient
from kintai_relay.clients.slack import SlackClient
from kintai_relay.services import messages
from kintai_relay.services.token_manager import FreeeTokenManager

logger = logging.getLogger(__name__)


class ChannelNotifier:
    """Post operational notices to the configured Slack channel."""

    def __init__(self, slack_client: SlackClient, channel_id: Optional[str]) -> None:
        self._slack = slack_client
        self._channel_id = channel_id

    async def notify(self, text: str) -> bool:
        if not self._channel_id:
            logger.info("No notification channel configured; skipping: %s", text)
            return False
        try:
            await self._slack.post_message(self._channel_id, text)
        except SlackAPIError as exc:
            logger.error("Failed to send Slack notification: %s", exc)
            return False
        return True


class ScheduledJobs:
    """Jobs run by the Lambda handler and the local scheduler worker."""

    def __init__(
        self,
        token_manager: FreeeTokenManager,
        freee_client: FreeeHRClient,
        notifier: ChannelNotifier,
        notify_on_refresh_success: bool = False,
    ) -> None:
        self._tokens = token_manager
        self._freee = freee_client
        self._notifier = notifier
        self._notify_on_success = notify_on_refresh_success

    async def refresh_tokens(self) -> bool:
        """Run one proactive refresh tick; returns whether a refresh happened."""
        logger.info("Starting scheduled token refresh")
        refreshed = await self._tokens.proactive_refresh()
        if refreshed:
            if self._notify_on_success:
                await self._notifier.notify(messages.format_refresh_success())
            return True

        # A refresh that was due but did not happen means the attempt failed.
        status = await self._tokens.get_token_status()
        if status.storage == "error":
            await self._notifier.notify(
                messages.format_refresh_failure(f"トークンストアエラー: {status.error}")
            )
        elif self._tokens.is_due_for_proactive_refresh(status):
            await self._notifier.notify(
                messages.format_refresh_failure(
                    f"有効期限まで残り{status.minutes_until_expiry}分"
                )
            )
        return False

    async def health_check(self) -> bool:
        """Check the freee API; the Slack status notice is best effort."""
        logger.info("Starting API health check")
        try:
            await self._freee.get_user_info()
        except (CredentialError, FreeeAPIError) as exc:
            logger.error("freee API health check failed: %s", exc)
            await self._notifier.notify(messages.format_health_failure(exc))
            return False

        logger.info("freee API healthy")
        if not await self._notifier.notify(messages.format_health_ok()):
            logger.warning("Health check passed but the status notice was not delivered")
        return True


__all__ = ["ChannelNotifier", "ScheduledJobs"]
