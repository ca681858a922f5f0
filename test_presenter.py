import pytest

from conftest import EPOCH, make_log, make_schedule
from services.presenter import build_dashboard, sample_history, signed_change


def _logs(*records):
    return {"success": True, "executions": list(records)}


def test_empty_dashboard(controller):
    board = build_dashboard(controller)
    assert board["status"]["state"] == "Paused"
    assert board["status"]["frequency"] == "Not set"
    assert board["status"]["last_run"] == "Never"
    assert board["status"]["toggle_enabled"] is False
    assert board["latest"] is None
    assert board["history"] == []
    assert board["agent"]["agent_id"] == "agent-1"


@pytest.mark.asyncio
async def test_active_schedule_shows_countdown(controller):
    await controller.refresh_schedule()
    status = build_dashboard(controller)["status"]
    assert status["state"] == "Active"
    assert status["next_run"] == "2h 5m"
    assert status["frequency"] == "Every 30 minutes"
    assert status["toggle_enabled"] is True


@pytest.mark.asyncio
async def test_paused_schedule_shows_paused_instead_of_countdown(controller, fake_client):
    fake_client.schedule_result = {"success": True, "schedule": make_schedule(is_active=False)}
    await controller.refresh_schedule()
    assert build_dashboard(controller)["status"]["next_run"] == "Paused"


@pytest.mark.asyncio
async def test_latest_card_and_history_rows(controller, fake_client):
    fake_client.logs_result = _logs(
        make_log(2, success=True, result={
            "stock_symbol": "TSLA", "current_price": 237.61, "daily_change_amount": -0.92,
            "daily_change_percentage": -0.39, "email_sent": True,
        }),
        make_log(1, success=False, raw="not json", error_message="quote timeout"),
    )
    await controller.refresh_history()
    board = build_dashboard(controller)

    assert board["latest"]["price"] == "$237.61"
    assert board["latest"]["change"] == "-$0.92"
    assert board["latest"]["direction"] == "down"
    assert board["latest"]["percentage"] == "-0.39%"
    assert board["latest"]["market_status"] == "Unknown"

    sent, failed = board["history"]
    assert sent["notification"] == "Sent"
    assert failed["notification"] == "Failed"
    assert failed["price"] == "$---.--"
    assert failed["percentage"] is None
    assert failed["error_message"] == "quote timeout"


@pytest.mark.asyncio
async def test_latest_defaults_symbol(controller, fake_client):
    fake_client.logs_result = _logs(make_log(1, result={"current_price": 10}))
    await controller.refresh_history()
    latest = build_dashboard(controller)["latest"]
    assert latest["symbol"] == "TSLA"
    assert latest["percentage"] == "--.--%"
    assert latest["change"] == "+$0.00"


def test_sample_mode_does_not_touch_live_state(controller):
    board = build_dashboard(controller, sample_mode=True, now=EPOCH)
    assert board["sample_mode"] is True
    assert len(board["history"]) == len(sample_history(EPOCH))
    assert board["latest"]["price"] == "$242.84"
    assert board["latest"]["percentage"] == "+2.20%"
    assert controller.view.history == []


def test_busy_disables_actions(controller):
    controller.busy = True
    status = build_dashboard(controller)["status"]
    assert status["toggle_enabled"] is False
    assert status["trigger_enabled"] is False


def test_signed_change():
    assert signed_change(5.234) == "+$5.23"
    assert signed_change(-1.1) == "-$1.10"
    assert signed_change(None) == "+$0.00"
