"""
ASGI entrypoint exposing the relay as ``kintai_relay.main:app``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from kintai_relay.api.routes import router as api_router
from kintai_relay.core.config import get_settings
from kintai_relay.core.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the relay app with logging configured from settings."""
    settings = get_settings()
    configure_logging(settings.log_level)

    relay = FastAPI(
        title="kintai-relay",
        version="0.1.0",
        description="Records freee HR time-clock events from Slack messages.",
    )
    relay.include_router(api_router, prefix="/api")
    logger.info(
        "kintai-relay starting (env=%s, credential store=%s)",
        settings.environment,
        settings.storage.backend,
    )
    return relay


app = create_app()

__all__ = ["app", "create_app"]
