from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    queued = "QUEUED"
    in_progress = "IN_PROGRESS"
    completed = "COMPLETED"
    failed = "FAILED"


class JobOutputs(BaseModel):
    message: str | None = None
    landing_page: Mapping[str, Any] | None = None
    generation_status: Mapping[str, Any] | None = None


class JobRecord(BaseModel):
    id: str
    status: JobStatus
    operation: str
    progress: float = 0.0
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    page_key: str | None = None
    errors: Sequence[str] = Field(default_factory=list)
    outputs: JobOutputs = Field(default_factory=JobOutputs)


__all__ = ["JobRecord", "JobStatus", "JobOutputs"]
