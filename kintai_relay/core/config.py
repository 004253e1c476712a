"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the scheduled jobs and the
admin CLI share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import json
import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class _EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore", populate_by_name=True, env_ignore_empty=True
    )


class FreeeSettings(_EnvSettings):
    """Configuration required for interacting with the freee HR API."""

    client_id: str = Field(..., alias="FREEE_CLIENT_ID")
    client_secret: str = Field(..., alias="FREEE_CLIENT_SECRET")
    access_token: Optional[str] = Field(
        None,
        alias="FREEE_ACCESS_TOKEN",
        description="Fallback access token used while the credential store is empty.",
    )
    refresh_token: Optional[str] = Field(
        None,
        alias="FREEE_REFRESH_TOKEN",
        description="Fallback refresh token used while the credential store is empty.",
    )
    api_base_url: str = Field(
        "https://api.freee.co.jp/hr/api/v1", alias="FREEE_API_BASE_URL"
    )
    authorize_url: str = Field(
        "https://accounts.secure.freee.co.jp/public_api/authorize",
        alias="FREEE_AUTHORIZE_URL",
    )
    token_url: str = Field(
        "https://accounts.secure.freee.co.jp/public_api/token",
        alias="FREEE_TOKEN_URL",
    )
    company_id: Optional[int] = Field(
        None,
        alias="FREEE_COMPANY_ID",
        description="Skip the /users/me lookup when the company is known up front.",
    )
    http_timeout_seconds: Optional[float] = Field(
        None,
        alias="FREEE_HTTP_TIMEOUT",
        description="Outbound timeout; unset relies on the hosting environment deadline.",
    )


class SlackSettings(_EnvSettings):
    """Slack app credentials and routing."""

    bot_token: str = Field(..., alias="SLACK_BOT_TOKEN")
    signing_secret: Optional[str] = Field(
        None,
        alias="SLACK_SIGNING_SECRET",
        description="Signing secret; when missing webhook signatures are not verified.",
    )
    target_channel_id: Optional[str] = Field(
        None,
        alias="SLACK_TARGET_CHANNEL_ID",
        description="Channel watched for attendance messages and used for notifications.",
    )


class StorageSettings(_EnvSettings):
    """Credential store selection."""

    backend: Literal["sqlite", "dynamodb"] = Field(
        "sqlite", alias="CREDENTIAL_STORE_BACKEND"
    )
    sqlite_path: str = Field("data/credentials.db", alias="CREDENTIAL_STORE_PATH")


class AWSSettings(_EnvSettings):
    """Settings for AWS services used by the platform."""

    region_name: str = Field("ap-northeast-1", alias="AWS_REGION")
    dynamodb_table_name: Optional[str] = Field(None, alias="DYNAMODB_TABLE_NAME")
    credential_partition_key: str = Field(
        "integration#freee", alias="DYNAMODB_CREDENTIAL_PARTITION"
    )


class SecuritySettings(_EnvSettings):
    """Security-related configuration."""

    token_encryption_secret: Optional[str] = Field(
        None,
        alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )
    admin_api_token: Optional[str] = Field(
        None,
        alias="ADMIN_API_TOKEN",
        description="Shared secret for the admin endpoints; unset disables them.",
    )


class SchedulerSettings(_EnvSettings):
    """Intervals for the local scheduler worker."""

    token_refresh_interval_minutes: int = Field(
        30, alias="TOKEN_REFRESH_INTERVAL_MINUTES"
    )
    health_check_interval_minutes: int = Field(
        360, alias="HEALTH_CHECK_INTERVAL_MINUTES"
    )
    notify_on_refresh_success: bool = Field(False, alias="NOTIFY_ON_REFRESH_SUCCESS")


class AppSettings(_EnvSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        env_ignore_empty=True,
    )

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    user_mapping: dict[str, int] = Field(
        default_factory=dict,
        alias="USER_MAPPING",
        description="JSON object mapping Slack user ids to freee employee ids.",
    )
    employee_fallback_to_self: bool = Field(False, alias="EMPLOYEE_FALLBACK_TO_SELF")
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    aws: AWSSettings = Field(default_factory=AWSSettings)
    freee: FreeeSettings = Field(default_factory=FreeeSettings)
    slack: SlackSettings = Field(default_factory=SlackSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)

    @field_validator("user_mapping", mode="before")
    @classmethod
    def _parse_user_mapping(cls, value: object) -> object:
        """Support providing the mapping as a JSON string."""
        if value is None or value == "":
            return {}
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError("USER_MAPPING must be a JSON object.") from exc
        return value


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "AWSSettings",
    "FreeeSettings",
    "SchedulerSettings",
    "SecuritySettings",
    "SlackSettings",
    "StorageSettings",
    "get_settings",
]
