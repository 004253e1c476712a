"""
Factory functions to provide shared clients and services as FastAPI dependencies.

The same factories bootstrap the scheduler handler and the admin CLI.
"""

from functools import lru_cache

from kintai_relay.clients import (
    DynamoDBCredentialStore,
    FreeeHRClient,
    FreeeOAuthClient,
    SlackClient,
    SlackSignatureVerifier,
    SQLiteCredentialStore,
)
from kintai_relay.core.config import get_settings
from kintai_relay.services import (
    AttendanceService,
    ChannelNotifier,
    EmployeeResolver,
    FreeeTokenManager,
    ScheduledJobs,
    TokenCipherService,
)
from kintai_relay.services.token_manager import CredentialStore


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_credential_store() -> CredentialStore:
    """Provide the configured credential store backend."""
    settings = _settings()
    if settings.storage.backend == "dynamodb":
        return DynamoDBCredentialStore(settings.aws)
    return SQLiteCredentialStore(settings.storage.sqlite_path)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService | None:
    """Provide symmetric encryption for stored tokens when a secret is configured."""
    secret = _settings().security.token_encryption_secret
    if not secret:
        return None
    return TokenCipherService(secret=secret)


@lru_cache()
def get_freee_oauth_client() -> FreeeOAuthClient:
    """Create a singleton freee OAuth client."""
    return FreeeOAuthClient(_settings().freee)


@lru_cache()
def get_token_manager() -> FreeeTokenManager:
    """Provide the freee credential lifecycle manager."""
    return FreeeTokenManager(
        store=get_credential_store(),
        oauth_client=get_freee_oauth_client(),
        freee_settings=_settings().freee,
        token_cipher=get_token_cipher_service(),
    )


@lru_cache()
def get_freee_client() -> FreeeHRClient:
    """Provide the auto-refreshing freee HR client; caches the company id per process."""
    return FreeeHRClient(get_token_manager(), _settings().freee)


@lru_cache()
def get_slack_client() -> SlackClient:
    """Provide Slack Web API client instance."""
    return SlackClient(_settings().slack.bot_token)


@lru_cache()
def get_slack_signature_verifier() -> SlackSignatureVerifier | None:
    """Provide the webhook signature verifier, or ``None`` when no secret is set."""
    secret = _settings().slack.signing_secret
    if not secret:
        return None
    return SlackSignatureVerifier(secret)


@lru_cache()
def get_employee_resolver() -> EmployeeResolver:
    """Provide a process-wide employee resolver with its lookup cache."""
    settings = _settings()
    return EmployeeResolver(
        freee_client=get_freee_client(),
        slack_client=get_slack_client(),
        manual_mapping=settings.user_mapping,
        fallback_to_self=settings.employee_fallback_to_self,
    )


def get_attendance_service() -> AttendanceService:
    """Build the attendance flow from shared clients."""
    return AttendanceService(
        freee_client=get_freee_client(),
        slack_client=get_slack_client(),
        resolver=get_employee_resolver(),
        target_channel_id=_settings().slack.target_channel_id,
    )


def get_scheduled_jobs() -> ScheduledJobs:
    """Build the scheduled refresh and health-check jobs."""
    settings = _settings()
    return ScheduledJobs(
        token_manager=get_token_manager(),
        freee_client=get_freee_client(),
        notifier=ChannelNotifier(get_slack_client(), settings.slack.target_channel_id),
        notify_on_refresh_success=settings.scheduler.notify_on_refresh_success,
    )


__all__ = [
    "get_attendance_service",
    "get_credential_store",
    "get_employee_resolver",
    "get_freee_client",
    "get_freee_oauth_client",
    "get_scheduled_jobs",
    "get_slack_client",
    "get_slack_signature_verifier",
    "get_token_cipher_service",
    "get_token_manager",
]
