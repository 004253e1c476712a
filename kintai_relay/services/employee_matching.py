"""
Resolve Slack users to freee employee ids.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from kintai_relay.clients.errors import FreeeAPIError, SlackAPIError
from kintai_relay.clients.freee_hr import FreeeHRClient
from kintai_relay.clients.slack import SlackClient

logger = logging.getLogger(__name__)


class EmployeeResolver:
    """Hybrid lookup: manual mapping, then email match, then the API user's own id."""

    def __init__(
        self,
        freee_client: FreeeHRClient,
        slack_client: SlackClient,
        manual_mapping: Mapping[str, int] | None = None,
        fallback_to_self: bool = False,
    ) -> None:
        self._freee = freee_client
        self._slack = slack_client
        self._manual = dict(manual_mapping or {})
        self._fallback_to_self = fallback_to_self
        self._cache: Dict[str, int] = {}

    async def resolve(self, slack_user_id: str) -> Optional[int]:
        """Return the freee employee id for ``slack_user_id`` or ``None``."""
        if slack_user_id in self._cache:
            return self._cache[slack_user_id]

        employee_id = self._manual.get(slack_user_id)
        if employee_id is not None:
            logger.info("Manual mapping found for Slack user %s", slack_user_id)
        else:
            employee_id = await self._match_by_email(slack_user_id)

        if employee_id is None and self._fallback_to_self:
            employee_id = await self._freee.get_own_employee_id()
            if employee_id is not None:
                logger.info(
                    "Falling back to the API user's employee id for Slack user %s",
                    slack_user_id,
                )

        if employee_id is None:
            logger.info("No freee employee matched Slack user %s", slack_user_id)
            return None

        self._cache[slack_user_id] = employee_id
        return employee_id

    async def _match_by_email(self, slack_user_id: str) -> Optional[int]:
        try:
            slack_user = await self._slack.get_user_info(slack_user_id)
        except SlackAPIError as exc:
            logger.warning("Slack profile lookup failed for %s: %s", slack_user_id, exc)
            return None

        email = ((slack_user.get("profile") or {}).get("email") or "").strip().lower()
        if not email:
            logger.info("Slack user %s has no email in their profile", slack_user_id)
            return None

        try:
            employees = await self._freee.get_employees()
        except FreeeAPIError as exc:
            logger.warning("freee employee lookup failed: %s", exc)
            return None

        for employee in employees:
            candidate = (employee.get("email") or "").strip().lower()
            if candidate and candidate == email:
                logger.info("Email matched Slack user %s to employee %s", slack_user_id, employee.get("id"))
                return int(employee["id"])
        return None


__all__ = ["EmployeeResolver"]
