"""
Display helpers for quote values and server timestamps.
Pure functions: no I/O, no state, never raise on bad input.
"""
from datetime import datetime
from typing import Optional, Union

Timestamp = Union[str, datetime, None]


def parse_timestamp(value: Timestamp) -> datetime:
    """
    Parse an ISO-8601 server timestamp. A trailing 'Z' is accepted.
    Raises ValueError/TypeError for anything unparsable.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_currency(value: Optional[float]) -> str:
    if value is None:
        return "$---.--"
    return f"${value:.2f}"


def format_percentage(value: Optional[float]) -> str:
    if value is None:
        return "--.--"
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}"


def format_timestamp(timestamp: Timestamp) -> str:
    """
    Render a timestamp in the viewer's local time, e.g. "Oct 19, 02:30:45 PM".
    Missing values read "Never"; unparsable strings are returned as-is.
    """
    if not timestamp:
        return "Never"
    try:
        parsed = parse_timestamp(timestamp)
    except (TypeError, ValueError):
        return str(timestamp)

    # Naive values are already local wall-clock time
    local = parsed.astimezone() if parsed.tzinfo is not None else parsed
    return f"{local.strftime('%b')} {local.day}, {local.strftime('%I:%M:%S %p')}"
