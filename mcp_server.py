import asyncio
import logging
import os
from functools import wraps
from typing import Any, Callable, Dict, Optional

from mcp.server.fastmcp import FastMCP

from services.presenter import build_dashboard
from services.sync_controller import MonitorController, create_monitor

# Configure logging
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

MCP_HOST = os.environ.get('MCP_HOST', '0.0.0.0')
MCP_PORT = int(os.environ.get('MCP_PORT', '8000'))
MCP_TRANSPORT = os.environ.get('MCP_TRANSPORT', 'sse')  # 'sse' for network, 'stdio' for local

mcp = FastMCP("stock-alert-monitor", host=MCP_HOST, port=MCP_PORT)

_controller: Optional[MonitorController] = None
_controller_lock = asyncio.Lock()


async def get_controller() -> MonitorController:
    """Create and activate the shared controller on first use."""
    global _controller
    async with _controller_lock:
        if _controller is None:
            controller = create_monitor()
            await controller.activate()
            _controller = controller
    return _controller


def tool_endpoint(func: Callable[..., Any]):
    """Normalize tool output to {"success", "data", "error"} and never raise."""
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            raw = await func(*args, **kwargs)
        except Exception as exc:
            logger.exception("[TOOL_ERROR] %s failed", func.__name__)
            return {"success": False, "data": None, "error": str(exc)}
        if isinstance(raw, dict) and "success" in raw:
            return {"data": None, "error": None, **raw}
        return {"success": True, "data": raw, "error": None}
    return wrapper


@mcp.tool()
@tool_endpoint
async def get_monitor_state() -> Dict[str, Any]:
    """
    Current schedule, execution history and decoded alert results of the
    stock alert job, plus loading/busy flags and the live countdown.
    """
    controller = await get_controller()
    return controller.state()


@mcp.tool()
@tool_endpoint
async def get_dashboard(sample: bool = False) -> Dict[str, Any]:
    """
    Human-readable dashboard: status, next run countdown, latest quote and
    recent alerts with notification outcome.

    Parameters:
        sample: Show demonstration data instead of live history
    """
    controller = await get_controller()
    return build_dashboard(controller, sample_mode=sample)


@mcp.tool()
@tool_endpoint
async def toggle_schedule() -> Dict[str, Any]:
    """Pause the alert schedule if active, resume it if paused."""
    controller = await get_controller()
    ok = await controller.toggle()
    return {"success": ok, "data": controller.state(), "error": controller.view.error}


@mcp.tool()
@tool_endpoint
async def trigger_now() -> Dict[str, Any]:
    """Run the stock alert job immediately. History refreshes a few seconds later."""
    controller = await get_controller()
    ok = await controller.trigger_now()
    return {"success": ok, "data": controller.state(), "error": controller.view.error}


@mcp.tool()
@tool_endpoint
async def refresh_monitor() -> Dict[str, Any]:
    """Re-read schedule and execution history from the scheduler now."""
    controller = await get_controller()
    await controller.refresh()
    return controller.state()


@mcp.tool()
@tool_endpoint
async def set_recipient_email(email: str) -> Dict[str, Any]:
    """
    Save the email address that alert notifications are sent to.

    Parameters:
        email: Recipient address (must contain '@')
    """
    controller = await get_controller()
    ok = controller.save_recipient_email(email)
    return {"success": ok, "data": {"email": controller.recipient_email}, "error": controller.view.error}


def main():
    """CLI entrypoint for the monitor MCP server."""
    logger.info(
        "[SERVER] Starting Stock Alert Monitor MCP server "
        f"(transport={MCP_TRANSPORT}, host={MCP_HOST}, port={MCP_PORT})"
    )
    try:
        mcp.run(transport=MCP_TRANSPORT)
    except KeyboardInterrupt:
        pass
    finally:
        if _controller is not None:
            _controller.teardown()
            _controller.scheduler.shutdown()


if __name__ == "__main__":
    main()
