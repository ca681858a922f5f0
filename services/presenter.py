"""
Assembles the dashboard payload from controller state.
Only formatting and defaults live here; no remote calls, no mutation.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from core.models import AlertHistoryItem, AlertResult
from services.formatting import format_currency, format_percentage, format_timestamp
from services.scheduler_client import cron_to_human

SAMPLE_QUOTES = [
    # (minutes ago, price, change, change %)
    (10, 242.84, 5.23, 2.2),
    (20, 240.12, 2.51, 1.06),
    (30, 238.76, 1.15, 0.48),
    (40, 237.61, -0.92, -0.39),
    (50, 238.53, -1.47, -0.61),
]


def sample_history(now: Optional[datetime] = None, symbol: str = "TSLA") -> List[AlertHistoryItem]:
    """Demonstration runs for previewing the dashboard without a backend."""
    now = now or datetime.now(timezone.utc)
    items = []
    for index, (minutes_ago, price, change, pct) in enumerate(SAMPLE_QUOTES, start=1):
        executed_at = (now - timedelta(minutes=minutes_ago)).isoformat()
        items.append(AlertHistoryItem(
            id=str(index),
            executed_at=executed_at,
            success=True,
            data=AlertResult(
                stock_symbol=symbol,
                current_price=price,
                daily_change_amount=change,
                daily_change_percentage=pct,
                timestamp=executed_at,
                market_status="Open",
                email_sent=True,
                recipient_email="user@example.com",
            ),
        ))
    return items


def signed_change(amount: Optional[float]) -> str:
    amount = amount or 0.0
    return f"{'+' if amount >= 0 else '-'}{format_currency(abs(amount))}"


def notification_badge(item: AlertHistoryItem) -> str:
    return "Sent" if item.success and item.data is not None and item.data.email_sent else "Failed"


def _latest_card(latest: Optional[AlertResult], default_symbol: str) -> Optional[Dict[str, Any]]:
    if latest is None:
        return None
    change = latest.daily_change_amount or 0.0
    return {
        "price": format_currency(latest.current_price),
        "symbol": latest.stock_symbol or default_symbol,
        "change": signed_change(latest.daily_change_amount),
        "direction": "up" if change >= 0 else "down",
        "percentage": f"{format_percentage(latest.daily_change_percentage)}%",
        "market_status": latest.market_status or "Unknown",
        "updated": format_timestamp(latest.timestamp),
    }


def _history_row(item: AlertHistoryItem) -> Dict[str, Any]:
    data = item.data
    return {
        "id": item.id,
        "price": format_currency(data.current_price if data else None),
        "percentage": f"{format_percentage(data.daily_change_percentage)}%" if data else None,
        "change": signed_change(data.daily_change_amount) if data else None,
        "direction": ("up" if (data.daily_change_amount or 0) >= 0 else "down") if data else None,
        "executed_at": format_timestamp(item.executed_at),
        "notification": notification_badge(item),
        "error_message": item.error_message,
    }


def build_dashboard(controller, sample_mode: bool = False,
                    now: Optional[datetime] = None) -> Dict[str, Any]:
    view = controller.view
    config = controller.config
    schedule = view.schedule

    if sample_mode:
        history = sample_history(now, symbol=config.default_symbol)
        latest = history[0].data
        loading = False
    else:
        history = view.history
        latest = view.latest
        loading = controller.loading_history

    is_active = bool(schedule and schedule.is_active)
    return {
        "status": {
            "state": "Active" if is_active else "Paused",
            "loading": controller.loading_schedule,
            "toggle_enabled": schedule is not None and not controller.busy,
            "trigger_enabled": not controller.busy,
            "frequency": cron_to_human(schedule.cron_expression) if schedule else "Not set",
            "next_run": controller.countdown.text if is_active else "Paused",
            "last_run": format_timestamp(schedule.last_run_at if schedule else None),
        },
        "latest": _latest_card(latest, config.default_symbol),
        "history": [_history_row(item) for item in history],
        "history_loading": loading,
        "sample_mode": sample_mode,
        "agent": {
            "agent_id": config.agent_id,
            "schedule_id": config.schedule_id,
            "recipient_email": controller.recipient_email,
        },
        "error": view.error,
    }
