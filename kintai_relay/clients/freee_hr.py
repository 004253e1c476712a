"""
freee HR API client with transparent token renewal.

Every call obtains a bearer token from ``FreeeTokenManager``. A 401 triggers
one forced refresh and one retry; anything else that is not 2xx surfaces as a
typed ``FreeeAPIError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, FrozenSet, List, Optional, Tuple, Type

import httpx

from kintai_relay.clients.errors import (
    FreeeHTTPStatusError,
    FreeeTransportError,
    NoCompanyError,
    TimeClockStateError,
)
from kintai_relay.core.config import FreeeSettings

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from kintai_relay.services.token_manager import FreeeTokenManager

logger = logging.getLogger(__name__)

TIME_CLOCK_TYPES = ("clock_in", "clock_out", "break_begin", "break_end")

# freee's business day is defined in Japan Standard Time.
JST = timezone(timedelta(hours=9), name="JST")


def business_date(moment: datetime) -> str:
    """The +09:00 civil date of ``moment`` as ``YYYY-MM-DD``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(JST).date().isoformat()


@dataclass(frozen=True)
class ErrorRule:
    """Map an error response to a more specific ``FreeeHTTPStatusError``."""

    error_cls: Type[FreeeHTTPStatusError]
    substrings: Tuple[str, ...]
    statuses: Optional[FrozenSet[int]] = None

    def matches(self, status: int, body: str) -> bool:
        if self.statuses is not None and status not in self.statuses:
            return False
        return any(fragment in body for fragment in self.substrings)


ERROR_RULES: Tuple[ErrorRule, ...] = (
    ErrorRule(
        error_cls=TimeClockStateError,
        substrings=("打刻の種類が正しくありません",),
        statuses=frozenset({400, 422}),
    ),
)


def classify_api_error(status: int, body: str) -> FreeeHTTPStatusError:
    """Return the typed error for a non-2xx response using ``ERROR_RULES``."""
    for rule in ERROR_RULES:
        if rule.matches(status, body):
            return rule.error_cls(status, body)
    return FreeeHTTPStatusError(status, body)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FreeeHRClient:
    """Authenticated access to the freee HR endpoints used for attendance."""

    def __init__(
        self,
        token_manager: "FreeeTokenManager",
        settings: FreeeSettings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._tokens = token_manager
        self._settings = settings
        self._base_url = settings.api_base_url.rstrip("/")
        self._clock = clock
        self._company_id: Optional[int] = settings.company_id
        self._user_info: Optional[Dict[str, Any]] = None

    async def request(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Call ``endpoint`` and return the decoded JSON body."""
        url = f"{self._base_url}{endpoint}"
        access_token = await self._tokens.get_access_token()
        response = await self._send(method, url, access_token, params=params, json=json)

        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.info("freee API returned 401 for %s %s; refreshing and retrying", method, endpoint)
            access_token = await self._tokens.refresh_access_token()
            response = await self._send(method, url, access_token, params=params, json=json)

        if not response.is_success:
            logger.error(
                "freee API error for %s %s: %s %s",
                method,
                endpoint,
                response.status_code,
                response.text,
            )
            raise classify_api_error(response.status_code, response.text)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            logger.error("freee API returned a non-JSON body for %s %s", method, endpoint)
            raise FreeeHTTPStatusError(response.status_code, response.text) from exc

    async def _send(
        self,
        method: str,
        url: str,
        access_token: str,
        *,
        params: Optional[Dict[str, Any]],
        json: Optional[Dict[str, Any]],
    ) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout_seconds) as client:
                return await client.request(method, url, headers=headers, params=params, json=json)
        except httpx.RequestError as exc:
            logger.error("freee API transport failure for %s %s: %s", method, url, exc)
            raise FreeeTransportError(exc) from exc

    async def get_user_info(self) -> Dict[str, Any]:
        """Return the authenticated user's profile including company memberships."""
        user_info = await self.request("/users/me")
        self._user_info = user_info
        return user_info

    async def get_company_id(self) -> int:
        """Resolve the company id once per client; it never changes for a credential."""
        if self._company_id is None:
            user_info = self._user_info or await self.get_user_info()
            self._company_id = int(_primary_company(user_info)["id"])
        return self._company_id

    async def get_own_employee_id(self) -> Optional[int]:
        """Employee id of the API user in the resolved company, when they have one."""
        company_id = await self.get_company_id()
        user_info = self._user_info or await self.get_user_info()
        for company in user_info.get("companies") or []:
            if int(company.get("id", -1)) == company_id:
                employee_id = company.get("employee_id")
                return int(employee_id) if employee_id is not None else None
        return None

    async def get_employees(self, company_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """List employees; freee returns either a bare array or ``{"employees": [...]}``."""
        company_id = company_id or await self.get_company_id()
        payload = await self.request(f"/companies/{company_id}/employees")
        if isinstance(payload, dict):
            return list(payload.get("employees") or [])
        return list(payload or [])

    async def register_time_clock(self, employee_id: int, clock_type: str) -> Dict[str, Any]:
        """Register a time-clock event for today's business date."""
        if clock_type not in TIME_CLOCK_TYPES:
            raise ValueError(f"Unsupported time clock type: {clock_type}")

        company_id = await self.get_company_id()
        body = {
            "company_id": company_id,
            "type": clock_type,
            "base_date": business_date(self._clock()),
        }
        logger.info(
            "Registering %s for employee %s on %s", clock_type, employee_id, body["base_date"]
        )
        return await self.request(
            f"/employees/{employee_id}/time_clocks",
            method="POST",
            json=body,
        )

    async def get_available_time_clock_types(self, employee_id: int) -> Dict[str, Any]:
        company_id = await self.get_company_id()
        return await self.request(
            f"/employees/{employee_id}/time_clocks/available_types",
            params={"company_id": company_id},
        )

    async def get_time_clocks(
        self, employee_id: int, from_date: str, to_date: str
    ) -> List[Dict[str, Any]]:
        company_id = await self.get_company_id()
        return await self.request(
            f"/employees/{employee_id}/time_clocks",
            params={"company_id": company_id, "from_date": from_date, "to_date": to_date},
        )


def _primary_company(user_info: Dict[str, Any]) -> Dict[str, Any]:
    companies = user_info.get("companies") or []
    if not companies:
        raise NoCompanyError("freee user is not a member of any company.")
    return companies[0]


__all__ = [
    "ERROR_RULES",
    "ErrorRule",
    "FreeeHRClient",
    "JST",
    "TIME_CLOCK_TYPES",
    "business_date",
    "classify_api_error",
]
