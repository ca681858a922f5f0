"""
State synchronization for the single scheduled alert job.

The controller owns the ViewModel. It polls the schedule and its execution
logs, publishes a new snapshot per successful read, and runs the operator's
mutating actions (pause/resume, trigger now) as mutate-then-reconcile: after
the remote call succeeds it re-fetches instead of editing cached state.

Everything runs on one event loop. Reads may overlap; each read is tagged
with a per-source sequence number so a slow, older response cannot replace
a newer one. After teardown, late responses are dropped.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from core.config import MonitorConfig
from core.models import ViewModel
from core.scheduling import TaskScheduler
from services.countdown import CountdownEngine, utc_now
from services.payload_parser import find_latest_result, to_history_item
from services.preference_service import INVALID_EMAIL_ERROR, PreferenceStore, RecipientEmailPreference
from services.scheduler_client import SchedulerClient
from storage.database import create_session_factory

logger = logging.getLogger(__name__)

POLL_JOB = "monitor_poll"
RESYNC_JOB = "monitor_resync"

SCHEDULE = "schedule"
HISTORY = "history"


class MonitorController:
    def __init__(self, client, config: MonitorConfig, scheduler,
                 preferences: Optional[RecipientEmailPreference] = None,
                 clock=utc_now):
        self.client = client
        self.config = config
        self.scheduler = scheduler
        self.preferences = preferences

        self.countdown = CountdownEngine(
            scheduler, clock=clock, tick_seconds=config.countdown_tick_seconds
        )

        self._view = ViewModel()
        self.loading_schedule = True
        self.loading_history = True
        self.busy = False
        self.recipient_email: Optional[str] = None

        self.active = False
        self.closed = False
        self._issued = {SCHEDULE: 0, HISTORY: 0}

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    @property
    def view(self) -> ViewModel:
        return self._view

    def _publish(self, **changes):
        self._view = self._view.model_copy(update=changes)

    def _set_error(self, message: Optional[str]):
        self._publish(error=message)

    def state(self) -> Dict[str, Any]:
        """JSON-ready snapshot of the view model plus transient flags."""
        return {
            **self._view.model_dump(mode="json"),
            "countdown": self.countdown.text,
            "loading_schedule": self.loading_schedule,
            "loading_history": self.loading_history,
            "busy": self.busy,
            "recipient_email": self.recipient_email,
        }

    # ------------------------------------------------------------------
    # Remote reads
    # ------------------------------------------------------------------

    def _issue(self, source: str) -> int:
        self._issued[source] += 1
        return self._issued[source]

    def _accepts(self, source: str, seq: int) -> bool:
        if self.closed:
            return False
        if self.config.discard_stale_responses and seq != self._issued[source]:
            logger.debug(f"[SYNC] Dropping stale {source} response (seq={seq}, latest={self._issued[source]})")
            return False
        return True

    async def _invoke(self, method: Callable[..., Awaitable[Dict[str, Any]]], *args,
                      fallback: str, **kwargs) -> Dict[str, Any]:
        """Call a client method; anything it raises becomes a failed result."""
        try:
            result = await method(*args, **kwargs)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[SYNC] Remote call failed: {e}")
            return {"success": False, "error": str(e) or fallback}
        if not isinstance(result, dict):
            return {"success": False, "error": fallback}
        return result

    async def refresh_schedule(self):
        seq = self._issue(SCHEDULE)
        result = await self._invoke(
            self.client.get_schedule, self.config.schedule_id, fallback="Failed to load schedule"
        )
        if self.closed:
            return

        if self._accepts(SCHEDULE, seq):
            schedule = result.get("schedule")
            if result.get("success") and schedule is not None:
                self._publish(schedule=schedule)
                self.countdown.set_target(schedule.next_run_time if schedule.is_active else None)
            else:
                message = result.get("error") or "Failed to load schedule"
                logger.warning(f"[SYNC] Schedule refresh failed: {message}")
                if self.config.surface_schedule_errors:
                    self._set_error(message)
        self.loading_schedule = False

    async def refresh_history(self):
        seq = self._issue(HISTORY)
        result = await self._invoke(
            self.client.get_schedule_logs, self.config.schedule_id,
            limit=self.config.history_limit, fallback="Failed to load execution logs",
        )
        if self.closed:
            return

        if self._accepts(HISTORY, seq):
            if result.get("success"):
                history = [to_history_item(log) for log in (result.get("executions") or [])]
                # history and latest are published together
                self._publish(history=history, latest=find_latest_result(history))
            else:
                message = result.get("error") or "Failed to load execution logs"
                logger.warning(f"[SYNC] History refresh failed: {message}")
                if self.config.surface_history_errors:
                    self._set_error(message)
        self.loading_history = False

    async def refresh(self):
        """Read both sources now. The poll interval keeps its phase."""
        await asyncio.gather(self.refresh_schedule(), self.refresh_history())

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    async def toggle(self) -> bool:
        """Pause an active schedule or resume a paused one, then re-read it."""
        schedule = self._view.schedule
        if schedule is None or self.busy or self.closed:
            return False

        self.busy = True
        self._set_error(None)
        try:
            if schedule.is_active:
                method = self.client.pause_schedule
            else:
                method = self.client.resume_schedule
            result = await self._invoke(method, self.config.schedule_id, fallback="Failed to toggle schedule")
            if self.closed:
                return False

            if result.get("success"):
                logger.info(f"[SYNC] Schedule {'paused' if schedule.is_active else 'resumed'}")
                await self.refresh_schedule()
                return True

            self._set_error(result.get("error") or "Failed to toggle schedule")
            return False
        finally:
            self.busy = False

    async def trigger_now(self) -> bool:
        """Run the job immediately; re-read both sources after a short delay."""
        if self.busy or self.closed:
            return False

        self.busy = True
        self._set_error(None)
        try:
            result = await self._invoke(
                self.client.trigger_schedule_now, self.config.schedule_id, fallback="Failed to trigger alert"
            )
            if self.closed:
                return False

            if result.get("success"):
                logger.info(f"[SYNC] Manual run triggered, resync in {self.config.resync_delay_seconds}s")
                # The run may not be queryable yet when trigger returns
                self.scheduler.add_once(RESYNC_JOB, self._deferred_resync, self.config.resync_delay_seconds)
                return True

            self._set_error(result.get("error") or "Failed to trigger alert")
            return False
        finally:
            self.busy = False

    async def _deferred_resync(self):
        if self.closed:
            return
        await asyncio.gather(self.refresh_history(), self.refresh_schedule())

    def save_recipient_email(self, email: Optional[str]) -> bool:
        """Validate and persist the recipient address. Does not touch the scheduler."""
        if self.preferences is not None:
            result = self.preferences.save(email)
        elif RecipientEmailPreference.is_valid(email):
            result = {"success": True}
        else:
            result = {"success": False, "error": INVALID_EMAIL_ERROR}

        if not result.get("success"):
            self._set_error(result.get("error"))
            return False
        self.recipient_email = email
        self._set_error(None)
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def activate(self):
        """Initial read of both sources, then poll on a fixed interval."""
        if self.active or self.closed:
            return
        self.active = True

        if self.preferences is not None:
            self.recipient_email = self.preferences.load()

        self.scheduler.start()
        self.scheduler.add_interval(POLL_JOB, self.refresh, self.config.poll_interval_seconds)
        logger.info(
            f"[SYNC] Monitoring schedule {self.config.schedule_id} "
            f"(poll={self.config.poll_interval_seconds}s)"
        )
        await self.refresh()

    def teardown(self):
        """Stop every timer. In-flight reads may still finish but are ignored."""
        if self.closed:
            return
        self.closed = True
        self.active = False
        self.scheduler.remove(POLL_JOB)
        self.scheduler.remove(RESYNC_JOB)
        self.countdown.close()
        logger.info("[SYNC] Controller torn down")


def create_monitor(config: Optional[MonitorConfig] = None, scheduler=None) -> MonitorController:
    """Wire a controller to the real HTTP client, APScheduler and SQL preference store."""
    config = config or MonitorConfig.from_env()
    store = PreferenceStore(create_session_factory(config.database_url), scope=config.preference_scope)
    return MonitorController(
        client=SchedulerClient.from_config(config),
        config=config,
        scheduler=scheduler or TaskScheduler(),
        preferences=RecipientEmailPreference(store),
    )
