from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .page import SectionKind


class SectionGenerationStatus(str, Enum):
    pending = "PENDING"
    in_progress = "IN_PROGRESS"
    completed = "COMPLETED"
    failed = "FAILED"
    retrying = "RETRYING"


class SectionGenerationOptions(BaseModel):
    max_retries: int | None = Field(default=None, ge=1)
    simplify_prompt: bool = False
    is_retry: bool = False
    feedback: str | None = Field(default=None, description="Reviewer notes appended to retry prompts")


class SectionGenerationResult(BaseModel):
    section: SectionKind
    status: SectionGenerationStatus = SectionGenerationStatus.pending
    data: dict[str, Any] | None = None
    error: str | None = None
    retry_count: int = 0
    duration_ms: float = 0.0
    used_fallback: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status == SectionGenerationStatus.completed and not self.used_fallback


class RegenerationResults(BaseModel):
    succeeded: int = 0
    failed: int = 0
    sections: dict[SectionKind, SectionGenerationResult] = Field(default_factory=dict)


class RegenerationSummary(BaseModel):
    success: bool
    message: str
    results: RegenerationResults = Field(default_factory=RegenerationResults)

    @property
    def failed_sections(self) -> list[SectionKind]:
        return [kind for kind, result in self.results.sections.items() if not result.succeeded]


__all__ = [
    "SectionGenerationStatus",
    "SectionGenerationOptions",
    "SectionGenerationResult",
    "RegenerationResults",
    "RegenerationSummary",
]
