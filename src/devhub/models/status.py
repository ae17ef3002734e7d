from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class LogLevel(str, Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARN = "WARN"
    ERROR = "ERROR"


class LogEntry(BaseModel):
    model_config = {"frozen": True}

    timestamp: datetime = Field(default_factory=_now)
    level: LogLevel
    message: str


class MetricsSnapshot(BaseModel):
    model_config = {"frozen": True}

    cpu_percent: float = 0.0
    memory_mb: float = 0.0
    data_rate_kbps: float = 0.0
    updated_at: datetime | None = None
