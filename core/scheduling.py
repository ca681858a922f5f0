"""
Timer plumbing for the monitor.
Wraps APScheduler's AsyncIOScheduler so the controller can own a few keyed
jobs (poll, countdown tick, deferred resync) with independent lifecycles.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[None]]


class TaskScheduler:
    """
    Keyed interval and one-shot jobs on the running event loop.
    Job functions must be coroutine functions so they run on the loop thread.
    """

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)

    def start(self):
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("[SCHEDULER] Started")

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("[SCHEDULER] Shutdown complete")

    def add_interval(self, key: str, func: JobFunc, seconds: float):
        """Add or replace a repeating job. First run is one interval from now."""
        self.scheduler.add_job(
            func,
            trigger=IntervalTrigger(seconds=seconds),
            id=key,
            name=key,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        logger.debug(f"[SCHEDULER] Registered interval job '{key}' ({seconds}s)")

    def add_once(self, key: str, func: JobFunc, delay: float):
        """Add or replace a job that runs once after `delay` seconds."""
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay)
        self.scheduler.add_job(
            func,
            trigger=DateTrigger(run_date=run_date),
            id=key,
            name=key,
            replace_existing=True,
            misfire_grace_time=30,
        )
        logger.debug(f"[SCHEDULER] Registered one-shot job '{key}' (+{delay}s)")

    def remove(self, key: str):
        if self.scheduler.get_job(key):
            self.scheduler.remove_job(key)
            logger.debug(f"[SCHEDULER] Removed job '{key}'")

    def has_job(self, key: str) -> bool:
        return self.scheduler.get_job(key) is not None
