"""
AWS Lambda entrypoint for scheduled token refresh and health checks.

Wire one EventBridge schedule per job with a constant input such as
``{"job": "token_refresh"}`` (every 30 minutes) or ``{"job": "health_check"}``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

from kintai_relay.core.config import get_settings
from kintai_relay.core.logging import configure_logging
from kintai_relay.dependencies.clients import get_scheduled_jobs
from kintai_relay.services.scheduled import ScheduledJobs

logger = logging.getLogger(__name__)

TOKEN_REFRESH_JOB = "token_refresh"
HEALTH_CHECK_JOB = "health_check"


def _bootstrap() -> ScheduledJobs:
    """Initialize shared singletons for the Lambda runtime."""
    settings = get_settings()
    configure_logging(settings.log_level)
    return get_scheduled_jobs()


def _job_runners(jobs: ScheduledJobs) -> Dict[str, Callable[[], Awaitable[bool]]]:
    return {
        TOKEN_REFRESH_JOB: jobs.refresh_tokens,
        HEALTH_CHECK_JOB: jobs.health_check,
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    AWS Lambda handler invoked by EventBridge schedules.

    Unknown job names are rejected with a 400 so a misconfigured rule is
    visible in the invocation metrics.
    """
    job_name = (event or {}).get("job", TOKEN_REFRESH_JOB)
    runners = _job_runners(_bootstrap())
    runner = runners.get(job_name)
    if runner is None:
        logger.error("Unknown scheduled job requested: %s", job_name)
        return {"statusCode": 400, "job": job_name, "ok": False}

    ok = asyncio.run(runner())
    logger.info("Scheduled job %s finished (ok=%s)", job_name, ok)
    return {"statusCode": 200, "job": job_name, "ok": ok}


__all__ = ["HEALTH_CHECK_JOB", "TOKEN_REFRESH_JOB", "lambda_handler"]
