"""
Turn one Slack message into a freee time-clock event and a thread reply.
"""

from __future__ import annotations

import logging
from typing import Optional

from kintai_relay.clients.errors import CredentialError, FreeeAPIError, SlackAPIError
from kintai_relay.clients.freee_hr import FreeeHRClient
from kintai_relay.clients.slack import SlackClient
from kintai_relay.schemas.slack import AttendanceOutcome, SlackMessageEvent
from kintai_relay.services import messages
from kintai_relay.services.employee_matching import EmployeeResolver
from kintai_relay.services.keywords import detect_action

logger = logging.getLogger(__name__)


class AttendanceService:
    """Detect the action, resolve the employee, register the clock event, reply."""

    def __init__(
        self,
        freee_client: FreeeHRClient,
        slack_client: SlackClient,
        resolver: EmployeeResolver,
        target_channel_id: Optional[str] = None,
    ) -> None:
        self._freee = freee_client
        self._slack = slack_client
        self._resolver = resolver
        self._target_channel_id = target_channel_id

    async def handle_message(self, event: SlackMessageEvent) -> AttendanceOutcome:
        if event.subtype or event.bot_id:
            return AttendanceOutcome(status="ignored", reason="bot_or_edited_message")
        if not event.channel or not event.user:
            return AttendanceOutcome(status="ignored", reason="missing_sender")
        if self._target_channel_id and event.channel != self._target_channel_id:
            logger.debug("Ignoring message from channel %s", event.channel)
            return AttendanceOutcome(status="ignored", reason="other_channel")

        action = detect_action(event.text)
        if not action:
            return AttendanceOutcome(status="ignored", reason="no_action")

        try:
            employee_id = await self._resolver.resolve(event.user)
        except (CredentialError, FreeeAPIError) as exc:
            logger.error("Employee resolution failed for %s: %s", event.user, exc)
            reply = messages.format_failure(action, exc)
            await self._reply(event, reply)
            return AttendanceOutcome(status="failed", action=action, reply=reply, reason=str(exc))

        if employee_id is None:
            reply = messages.format_unmatched()
            await self._reply(event, reply)
            return AttendanceOutcome(status="unmatched", action=action, reply=reply)

        try:
            await self._freee.register_time_clock(employee_id, action)
        except (CredentialError, FreeeAPIError) as exc:
            logger.error("Time clock %s failed for employee %s: %s", action, employee_id, exc)
            reply = messages.format_failure(action, exc)
            await self._reply(event, reply)
            return AttendanceOutcome(
                status="failed",
                action=action,
                employee_id=employee_id,
                reply=reply,
                reason=str(exc),
            )

        logger.info("Registered %s for employee %s", action, employee_id)
        reply = messages.format_recorded(action)
        await self._reply(event, reply)
        return AttendanceOutcome(
            status="recorded", action=action, employee_id=employee_id, reply=reply
        )

    async def _reply(self, event: SlackMessageEvent, text: str) -> None:
        try:
            await self._slack.post_message(event.channel, text, thread_ts=event.ts)
        except SlackAPIError as exc:
            logger.warning("Failed to post reply to Slack channel %s: %s", event.channel, exc)


__all__ = ["AttendanceService"]
