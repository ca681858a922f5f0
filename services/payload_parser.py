"""
Decodes the alert result embedded in an execution log's response_output.

The payload is untrusted and changes shape over time, so decoding is a
fallible lookup: every failure mode yields None instead of an exception.
"""
import json
import logging
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from core.models import ALERT_RESULT_FIELDS, AlertHistoryItem, AlertResult, ExecutionLogRecord

logger = logging.getLogger(__name__)

# Strict per-field checks: a value is kept as sent or dropped, never coerced
_FIELD_ADAPTERS = {
    name: TypeAdapter(field.annotation) for name, field in AlertResult.model_fields.items()
}


def parse_execution_data(log: ExecutionLogRecord) -> Optional[AlertResult]:
    """Return the decoded AlertResult for a log record, or None if there is none."""
    raw = log.response_output
    if raw is None or raw == "":
        return None

    try:
        parsed: Any = json.loads(raw) if isinstance(raw, (str, bytes, bytearray)) else raw
    except (TypeError, ValueError, RecursionError):
        return None

    result = parsed.get("result") if isinstance(parsed, dict) else None
    if not isinstance(result, dict):
        return None

    # Only copy keys that are present; absent stays absent (None), no defaults
    fields = {}
    for name in ALERT_RESULT_FIELDS:
        if name not in result:
            continue
        try:
            fields[name] = _FIELD_ADAPTERS[name].validate_python(result[name], strict=True)
        except ValidationError:
            logger.debug(f"[PARSER] Dropping field {name!r} of log {log.id}: unexpected {type(result[name]).__name__}")
    return AlertResult.model_validate(fields)


def to_history_item(log: ExecutionLogRecord) -> AlertHistoryItem:
    return AlertHistoryItem(
        id=log.id,
        executed_at=log.executed_at,
        success=log.success,
        data=parse_execution_data(log),
        error_message=log.error_message or None,
    )


def find_latest_result(history) -> Optional[AlertResult]:
    """First successful run with decoded data, scanning newest first."""
    for item in history:
        if item.success and item.data is not None:
            return item.data
    return None
