"""Local worker that runs the scheduled jobs on fixed intervals."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional

from kintai_relay.core.config import get_settings
from kintai_relay.core.logging import configure_logging
from kintai_relay.dependencies.clients import get_scheduled_jobs

logger = logging.getLogger(__name__)


class IntervalJob:
    """A coroutine function run every ``interval_seconds``."""

    def __init__(
        self,
        name: str,
        func: Callable[[], Awaitable[bool]],
        interval_seconds: float,
    ) -> None:
        self.name = name
        self.func = func
        self.interval_seconds = interval_seconds
        self.next_run: float = 0.0


class SchedulerWorker:
    """Poll a set of interval jobs and run whichever are due."""

    def __init__(
        self,
        jobs: List[IntervalJob],
        poll_interval_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._jobs = jobs
        self._poll_interval = poll_interval_seconds
        self._clock = clock

    async def run_once(self) -> List[str]:
        """Run every due job once and return their names."""
        ran: List[str] = []
        now = self._clock()
        for job in self._jobs:
            if now < job.next_run:
                continue
            job.next_run = now + job.interval_seconds
            try:
                await job.func()
            except Exception:  # pylint: disable=broad-except
                logger.exception("Scheduled job %s crashed", job.name)
            ran.append(job.name)
        return ran

    async def run_forever(self, max_ticks: Optional[int] = None) -> None:
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            await self.run_once()
            ticks += 1
            await asyncio.sleep(self._poll_interval)


async def main(poll_interval_seconds: float = 30.0) -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    jobs = get_scheduled_jobs()
    worker = SchedulerWorker(
        jobs=[
            IntervalJob(
                "token_refresh",
                jobs.refresh_tokens,
                settings.scheduler.token_refresh_interval_minutes * 60,
            ),
            IntervalJob(
                "health_check",
                jobs.health_check,
                settings.scheduler.health_check_interval_minutes * 60,
            ),
        ],
        poll_interval_seconds=poll_interval_seconds,
    )
    await worker.run_forever()


if __name__ == "__main__":  # pragma: no cover - manual execution path
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Scheduler worker stopped")
