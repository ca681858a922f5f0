"""
Pydantic models shared by the scheduler client, the sync controller and
the presentation layer.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Schedule(BaseModel):
    """Remote schedule descriptor. Timestamps are kept as the raw server strings."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Optional[str] = None
    is_active: bool = False
    cron_expression: str = ""
    next_run_time: Optional[str] = None
    last_run_at: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any):
        return None if value is None else str(value)


class ExecutionLogRecord(BaseModel):
    """One past run of the job. Immutable once created."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    executed_at: str
    success: bool = False
    response_output: Optional[Any] = None
    error_message: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any):
        return None if value is None else str(value)

    @field_validator("executed_at", mode="before")
    @classmethod
    def _executed_at_as_text(cls, value: Any):
        return "" if value is None else str(value)

    @field_validator("success", mode="before")
    @classmethod
    def _null_success_is_failure(cls, value: Any):
        return False if value is None else value


class AlertResult(BaseModel):
    """
    Business payload decoded from a log record.
    Every field is optional: None means "not reported", never zero.
    """
    model_config = ConfigDict(frozen=True)

    stock_symbol: Optional[str] = None
    current_price: Optional[float] = None
    daily_change_amount: Optional[float] = None
    daily_change_percentage: Optional[float] = None
    timestamp: Optional[str] = None
    market_status: Optional[str] = None
    email_sent: Optional[bool] = None
    recipient_email: Optional[str] = None


ALERT_RESULT_FIELDS = tuple(AlertResult.model_fields)


class AlertHistoryItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    executed_at: str
    success: bool
    data: Optional[AlertResult] = None
    error_message: Optional[str] = None


class ViewModel(BaseModel):
    """Controller-owned snapshot. Replaced, never edited in place."""
    model_config = ConfigDict(frozen=True)

    schedule: Optional[Schedule] = None
    history: List[AlertHistoryItem] = []
    latest: Optional[AlertResult] = None
    error: Optional[str] = None
