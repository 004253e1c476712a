"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_attendance_service,
    get_credential_store,
    get_employee_resolver,
    get_freee_client,
    get_freee_oauth_client,
    get_scheduled_jobs,
    get_slack_client,
    get_slack_signature_verifier,
    get_token_cipher_service,
    get_token_manager,
)
from .config import get_app_settings

__all__ = [
    "get_app_settings",
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
