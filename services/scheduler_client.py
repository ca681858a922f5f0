"""
Client for the remote scheduler service that runs the alert job.

Every method returns a result dict in the {"success": bool, "error": str}
shape; transport and decoding failures are converted by `remote_call`.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import requests
from apscheduler.triggers.cron import CronTrigger
from pydantic import ValidationError

from core.decorators import remote_call
from core.models import ExecutionLogRecord, Schedule
from core.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = {
    "0": "Sunday", "1": "Monday", "2": "Tuesday", "3": "Wednesday",
    "4": "Thursday", "5": "Friday", "6": "Saturday", "7": "Sunday",
    "sun": "Sunday", "mon": "Monday", "tue": "Tuesday", "wed": "Wednesday",
    "thu": "Thursday", "fri": "Friday", "sat": "Saturday",
}


class SchedulerClient:
    def __init__(self, base_url: str, api_key: Optional[str] = None, timeout: float = 10.0,
                 rate_limiter: Optional[RateLimiter] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.rate_limiter = rate_limiter or RateLimiter(calls_per_second=5)
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> "SchedulerClient":
        return cls(
            base_url=config.scheduler_base_url,
            api_key=config.scheduler_api_key,
            timeout=config.request_timeout_seconds,
            rate_limiter=RateLimiter(calls_per_second=config.calls_per_second),
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def _request(self, method: str, path: str, params: Optional[dict] = None) -> Dict[str, Any]:
        """Perform one HTTP call off the event loop. Returns {"ok", "status", "body"}."""
        await self.rate_limiter.wait()
        url = f"{self.base_url}{path}"
        logger.debug(f"[SCHEDULER_CLIENT] {method} {url}")

        resp = await asyncio.to_thread(
            self.session.request, method, url,
            params=params, headers=self._headers(), timeout=self.timeout,
        )
        body = resp.json() if resp.content else None
        return {"ok": resp.status_code < 400, "status": resp.status_code, "body": body}

    @staticmethod
    def _error_from(response: Dict[str, Any], fallback: str) -> str:
        body = response.get("body")
        if isinstance(body, dict):
            for key in ("error", "detail", "message"):
                if body.get(key):
                    return str(body[key])
        return f"HTTP {response.get('status')}" if response.get("status") else fallback

    @remote_call("Failed to load schedule")
    async def get_schedule(self, schedule_id: str) -> Dict[str, Any]:
        response = await self._request("GET", f"/schedules/{schedule_id}")
        if not response["ok"]:
            return {"success": False, "error": self._error_from(response, "Failed to load schedule")}

        body = response["body"]
        if isinstance(body, dict) and isinstance(body.get("schedule"), dict):
            body = body["schedule"]
        if not isinstance(body, dict):
            return {"success": False, "error": "Failed to load schedule"}
        return {"success": True, "schedule": Schedule.model_validate(body)}

    @remote_call("Failed to load execution logs")
    async def get_schedule_logs(self, schedule_id: str, limit: int = 50) -> Dict[str, Any]:
        response = await self._request("GET", f"/schedules/{schedule_id}/logs", params={"limit": limit})
        if not response["ok"]:
            return {"success": False, "error": self._error_from(response, "Failed to load execution logs")}

        body = response["body"]
        raw_logs = body.get("executions") if isinstance(body, dict) else body
        if raw_logs is None:
            raw_logs = []
        if not isinstance(raw_logs, list):
            return {"success": False, "error": "Failed to load execution logs"}

        executions = []
        for item in raw_logs[:limit]:
            try:
                executions.append(ExecutionLogRecord.model_validate(item))
            except ValidationError as e:
                logger.warning(f"[SCHEDULER_CLIENT] Skipping malformed execution log: {e.error_count()} invalid field(s)")
        return {"success": True, "executions": executions}

    async def _action(self, schedule_id: str, action: str, fallback: str) -> Dict[str, Any]:
        response = await self._request("POST", f"/schedules/{schedule_id}/{action}")
        if not response["ok"]:
            return {"success": False, "error": self._error_from(response, fallback)}
        body = response["body"]
        if isinstance(body, dict) and body.get("success") is False:
            return {"success": False, "error": self._error_from(response, fallback)}
        logger.info(f"[SCHEDULER_CLIENT] Schedule {schedule_id}: {action} accepted")
        return {"success": True}

    @remote_call("Failed to pause schedule")
    async def pause_schedule(self, schedule_id: str) -> Dict[str, Any]:
        return await self._action(schedule_id, "pause", "Failed to pause schedule")

    @remote_call("Failed to resume schedule")
    async def resume_schedule(self, schedule_id: str) -> Dict[str, Any]:
        return await self._action(schedule_id, "resume", "Failed to resume schedule")

    @remote_call("Failed to trigger schedule")
    async def trigger_schedule_now(self, schedule_id: str) -> Dict[str, Any]:
        return await self._action(schedule_id, "trigger", "Failed to trigger schedule")

    def close(self):
        self.session.close()


def _clock(hour: str, minute: str) -> str:
    return f"{int(hour):02d}:{int(minute):02d}"


def cron_to_human(cron_expression: Optional[str]) -> str:
    """Readable description of a 5-field crontab. Unknown shapes come back unchanged."""
    if not cron_expression or not cron_expression.strip():
        return "Not set"
    expr = " ".join(cron_expression.split())
    try:
        CronTrigger.from_crontab(expr)
    except ValueError:
        return cron_expression

    minute, hour, day, month, weekday = expr.split(" ")
    simple_time = minute.isdigit() and hour.isdigit()

    if hour == "*" and day == "*" and month == "*" and weekday == "*":
        if minute == "*":
            return "Every minute"
        if minute.startswith("*/") and minute[2:].isdigit():
            step = int(minute[2:])
            return "Every minute" if step == 1 else f"Every {step} minutes"
        if minute.isdigit():
            return "Every hour" if minute == "0" else f"Every hour at minute {int(minute)}"

    if minute.isdigit() and hour.startswith("*/") and hour[2:].isdigit() \
            and day == "*" and month == "*" and weekday == "*":
        step = int(hour[2:])
        return "Every hour" if step == 1 else f"Every {step} hours"

    if simple_time and month == "*":
        at = _clock(hour, minute)
        if day == "*" and weekday == "*":
            return f"Daily at {at}"
        if day == "*" and weekday.lower() in {"1-5", "mon-fri"}:
            return f"Weekdays at {at}"
        if day == "*" and weekday.lower() in WEEKDAY_NAMES:
            return f"Every {WEEKDAY_NAMES[weekday.lower()]} at {at}"
        if day.isdigit() and weekday == "*":
            return f"Monthly on day {int(day)} at {at}"

    return cron_expression
