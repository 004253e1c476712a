"""Typed failures raised by the freee credential and API clients."""

from __future__ import annotations


class CredentialError(Exception):
    """Base class for failures obtaining a usable freee credential."""


class NoRefreshTokenError(CredentialError):
    """Raised when neither the store nor the configuration holds a refresh token."""


class TokenRefreshError(CredentialError):
    """Raised when the identity provider rejects a token exchange."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Token refresh failed: {status} {body}")
        self.status = status
        self.body = body


class FreeeAPIError(Exception):
    """Base class for failures calling the freee HR API."""


class FreeeHTTPStatusError(FreeeAPIError):
    """The HR API answered with a non-2xx status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"freee API Error: {status} {body}")
        self.status = status
        self.body = body


class TimeClockStateError(FreeeHTTPStatusError):
    """The requested clock type is not allowed in the employee's current state."""


class NoCompanyError(FreeeAPIError):
    """The authenticated freee user belongs to no company."""


class FreeeTransportError(FreeeAPIError):
    """The request never produced a response."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"freee API transport failure: {cause}")
        self.cause = cause


class CredentialStoreError(Exception):
    """Raised by credential store adapters when the backing service fails."""


class SlackAPIError(Exception):
    """Raised when the Slack Web API answers with ``ok: false``."""

    def __init__(self, error: str) -> None:
        super().__init__(f"Slack API Error: {error}")
        self.error = error


__all__ = [
    "CredentialError",
    "CredentialStoreError",
    "FreeeAPIError",
    "FreeeHTTPStatusError",
    "FreeeTransportError",
    "NoCompanyError",
    "NoRefreshTokenError",
    "SlackAPIError",
    "TimeClockStateError",
    "TokenRefreshError",
]
