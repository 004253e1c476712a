"""
Settings dependency shared by the webhook and admin routes.
"""

from kintai_relay.core.config import AppSettings, get_settings


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning the process-wide settings.

    Route tests override this to flip admin and signing options per test.
    """
    return get_settings()


__all__ = ["get_app_settings"]
