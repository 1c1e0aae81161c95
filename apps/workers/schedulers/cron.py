from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from core.config import settings


def configure_scheduler() -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=settings.cron_timezone)
    return scheduler


def add_sync_job(scheduler: AsyncIOScheduler, func: Callable[[], Awaitable[Any]], minutes: int) -> None:
    scheduler.add_job(
        func,
        "interval",
        minutes=minutes,
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(timezone.utc),
        id="hubspot_sync",
        replace_existing=True,
    )
