"""
Live "time until next run" text for the schedule.

The engine owns one keyed timer job. The job exists only while a target is
set: it is replaced when the target changes and removed when the target is
cleared or the engine is closed.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from services.formatting import Timestamp, parse_timestamp

logger = logging.getLogger(__name__)

NOT_SCHEDULED = "Not scheduled"
RUNNING_SOON = "Running soon..."
INVALID_TIME = "Invalid time"
CALCULATING = "Calculating..."

COUNTDOWN_JOB = "countdown_tick"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def describe_remaining(target: Timestamp, now: datetime) -> str:
    """Format the time left until `target`. Never raises."""
    if target is None or target == "":
        return NOT_SCHEDULED
    try:
        target_dt = parse_timestamp(target)
        # Naive server values are read as local time, aware ones compared as-is
        if target_dt.tzinfo is None:
            target_dt = target_dt.astimezone()
        if now.tzinfo is None:
            now = now.astimezone()
        diff_ms = int((target_dt - now).total_seconds() * 1000)
    except (TypeError, ValueError, OverflowError):
        return INVALID_TIME

    if diff_ms <= 0:
        return RUNNING_SOON

    minutes = diff_ms // 60000
    seconds = (diff_ms % 60000) // 1000

    if minutes > 60:
        hours, remaining_minutes = divmod(minutes, 60)
        return f"{hours}h {remaining_minutes}m"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


class CountdownEngine:
    def __init__(self, scheduler, clock: Callable[[], datetime] = utc_now,
                 tick_seconds: float = 1.0, job_key: str = COUNTDOWN_JOB):
        self.scheduler = scheduler
        self.clock = clock
        self.tick_seconds = tick_seconds
        self.job_key = job_key
        self.text = CALCULATING
        self._target: Timestamp = None
        self._has_target = False
        self._closed = False

    @property
    def target(self) -> Timestamp:
        return self._target

    @property
    def running(self) -> bool:
        return self.scheduler.has_job(self.job_key)

    def set_target(self, target: Timestamp):
        """Point the countdown at a new timestamp (or None to stop it)."""
        if self._closed:
            return
        if self._has_target and target == self._target:
            return

        self.scheduler.remove(self.job_key)
        self._target = target
        self._has_target = True

        if not target:
            self.text = NOT_SCHEDULED
            return

        self.update()
        self.scheduler.add_interval(self.job_key, self._tick, self.tick_seconds)
        logger.debug(f"[COUNTDOWN] Tracking next run at {target}")

    def update(self) -> str:
        self.text = describe_remaining(self._target, self.clock())
        return self.text

    async def _tick(self):
        if self._closed:
            return
        self.update()

    def close(self):
        """Stop ticking for good. Safe to call more than once."""
        self._closed = True
        self.scheduler.remove(self.job_key)
