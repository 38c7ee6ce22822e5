from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .generation import RegenerationSummary
from .page import LandingPage, SectionKind


class QualityThresholds(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    min_combined_score: float = Field(default=7.0, ge=0, le=10)
    min_quality_score: float = Field(default=6.0, ge=0, le=10)
    min_confidence_score: float = Field(default=6.0, ge=0, le=10)


class SectionQualityAssessment(BaseModel):
    """Scores returned by the backend for one section (0-10 scale)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    quality_score: float = Field(ge=0, le=10)
    quality_justification: str
    confidence_score: float = Field(ge=0, le=10)
    confidence_justification: str
    combined_score: float = Field(ge=0, le=10)
    suggested_improvements: str = ""
    enabled: bool = True
    improvements_applied: bool = False


class AssessedSection(BaseModel):
    section: SectionKind
    score: float | None = None
    passed: bool
    rationale: str
    is_required: bool = False
    content: dict[str, Any] | None = None
    assessment: SectionQualityAssessment | None = None


class QualityReport(BaseModel):
    assessments: dict[SectionKind, AssessedSection]
    failing_sections: list[SectionKind] = Field(default_factory=list)
    page: LandingPage
    regeneration: RegenerationSummary | None = None
    success: bool = True


__all__ = ["QualityThresholds", "SectionQualityAssessment", "AssessedSection", "QualityReport"]
