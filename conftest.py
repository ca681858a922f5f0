"""
Shared fixtures: a manually-advanced scheduler with a virtual clock and a
scripted scheduler client, so polling and countdown behaviour is deterministic.
"""
import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

from core.config import MonitorConfig
from core.models import ExecutionLogRecord, Schedule
from services.preference_service import PreferenceStore, RecipientEmailPreference
from services.sync_controller import MonitorController
from storage.database import create_session_factory

EPOCH = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class ManualScheduler:
    """TaskScheduler stand-in. Jobs fire only when the test calls advance()."""

    def __init__(self):
        self.now = 0.0
        self.jobs = {}
        self.running = False

    def clock(self) -> datetime:
        return EPOCH + timedelta(seconds=self.now)

    def start(self):
        self.running = True

    def shutdown(self):
        self.running = False
        self.jobs.clear()

    def add_interval(self, key, func, seconds):
        self.jobs[key] = [self.now + seconds, seconds, func]

    def add_once(self, key, func, delay):
        self.jobs[key] = [self.now + delay, None, func]

    def remove(self, key):
        self.jobs.pop(key, None)

    def has_job(self, key):
        return key in self.jobs

    async def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = sorted((entry[0], key) for key, entry in self.jobs.items() if entry[0] <= target)
            if not due:
                break
            when, key = due[0]
            entry = self.jobs[key]
            self.now = when
            if entry[1] is None:
                del self.jobs[key]
            else:
                entry[0] += entry[1]
            await entry[2]()
        self.now = target


def make_schedule(**overrides):
    fields = {
        "id": "sched-1",
        "is_active": True,
        "cron_expression": "*/30 * * * *",
        "next_run_time": "2026-10-19T14:05:00+00:00",
        "last_run_at": "2026-10-19T11:30:00+00:00",
    }
    fields.update(overrides)
    return Schedule(**fields)


def make_log(log_id, success=True, result=None, raw=None, error_message=None):
    if raw is None and result is not None:
        raw = json.dumps({"result": result})
    return ExecutionLogRecord(
        id=str(log_id),
        executed_at="2026-10-19T11:30:00+00:00",
        success=success,
        response_output=raw,
        error_message=error_message,
    )


class FakeSchedulerClient:
    """Scripted scheduler service. Records every call by name."""

    def __init__(self):
        self.calls = []
        self.schedule_result = {"success": True, "schedule": make_schedule()}
        self.logs_result = {"success": True, "executions": []}
        self.action_results = {}
        self.gates = {}

    def count(self, name):
        return sum(1 for call in self.calls if call == name)

    async def _respond(self, name, result):
        self.calls.append(name)
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        if isinstance(result, Exception):
            raise result
        return result

    async def get_schedule(self, schedule_id):
        return await self._respond("get_schedule", self.schedule_result)

    async def get_schedule_logs(self, schedule_id, limit=50):
        return await self._respond("get_schedule_logs", self.logs_result)

    async def pause_schedule(self, schedule_id):
        return await self._respond("pause_schedule", self.action_results.get("pause", {"success": True}))

    async def resume_schedule(self, schedule_id):
        return await self._respond("resume_schedule", self.action_results.get("resume", {"success": True}))

    async def trigger_schedule_now(self, schedule_id):
        return await self._respond("trigger_schedule_now", self.action_results.get("trigger", {"success": True}))


@pytest.fixture
def config():
    return MonitorConfig(schedule_id="sched-1", agent_id="agent-1", database_url="sqlite://")


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def fake_client():
    return FakeSchedulerClient()


@pytest.fixture
def session_factory():
    return create_session_factory("sqlite://")


@pytest.fixture
def email_preference(session_factory):
    return RecipientEmailPreference(PreferenceStore(session_factory, scope="test"))


@pytest.fixture
def controller(fake_client, config, scheduler, email_preference):
    return MonitorController(
        client=fake_client,
        config=config,
        scheduler=scheduler,
        preferences=email_preference,
        clock=scheduler.clock,
    )


async def settle():
    """Let pending tasks on the loop run."""
    for _ in range(5):
        await asyncio.sleep(0)
