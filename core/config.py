"""
Runtime configuration for the alert monitor.
Values come from environment variables (with defaults) and are passed
explicitly into the controller instead of living in module constants.
"""
import os
from typing import Optional

from pydantic import BaseModel

DEFAULT_DATABASE_URL = (
    f"sqlite:///{os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'storage', 'monitor.db')}"
)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class MonitorConfig(BaseModel):
    scheduler_base_url: str = "http://localhost:8002/api"
    scheduler_api_key: Optional[str] = None
    schedule_id: str
    agent_id: str = ""

    history_limit: int = 50
    poll_interval_seconds: float = 30.0
    countdown_tick_seconds: float = 1.0
    resync_delay_seconds: float = 2.0
    request_timeout_seconds: float = 10.0
    calls_per_second: float = 5.0

    # History read failures are logged but not surfaced unless enabled
    surface_schedule_errors: bool = True
    surface_history_errors: bool = False
    discard_stale_responses: bool = True

    database_url: str = DEFAULT_DATABASE_URL
    preference_scope: str = "default"
    default_symbol: str = "TSLA"

    @classmethod
    def from_env(cls) -> "MonitorConfig":
        return cls(
            scheduler_base_url=os.environ.get("SCHEDULER_BASE_URL", "http://localhost:8002/api"),
            scheduler_api_key=os.environ.get("SCHEDULER_API_KEY") or None,
            schedule_id=os.environ.get("MONITOR_SCHEDULE_ID", "698e0ad2ebe6fd87d1dcc1ae"),
            agent_id=os.environ.get("MONITOR_AGENT_ID", "698e0acc3e19f69d1aa0c41d"),
            history_limit=int(os.environ.get("MONITOR_HISTORY_LIMIT", "50")),
            poll_interval_seconds=float(os.environ.get("MONITOR_POLL_INTERVAL", "30")),
            countdown_tick_seconds=float(os.environ.get("MONITOR_COUNTDOWN_TICK", "1")),
            resync_delay_seconds=float(os.environ.get("MONITOR_RESYNC_DELAY", "2")),
            request_timeout_seconds=float(os.environ.get("MONITOR_REQUEST_TIMEOUT", "10")),
            calls_per_second=float(os.environ.get("MONITOR_CALLS_PER_SECOND", "5")),
            surface_schedule_errors=_env_bool("MONITOR_SURFACE_SCHEDULE_ERRORS", True),
            surface_history_errors=_env_bool("MONITOR_SURFACE_HISTORY_ERRORS", False),
            discard_stale_responses=_env_bool("MONITOR_DISCARD_STALE", True),
            database_url=os.environ.get("MONITOR_DATABASE_URL", DEFAULT_DATABASE_URL),
            preference_scope=os.environ.get("MONITOR_PREFERENCE_SCOPE", "default"),
            default_symbol=os.environ.get("MONITOR_DEFAULT_SYMBOL", "TSLA"),
        )
