from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from pydantic import ValidationError

from .dictionaries import REQUIRED_SECTION_KINDS
from .errors import BackendStructureError, LandingPageError
from .models.identity import BrandIdentity
from .models.page import LandingPage, SectionKind
from .models.quality import AssessedSection, QualityThresholds, SectionQualityAssessment
from .prompts import SECTION_QUALITY_ASSESSMENT_TEMPLATE, render_prompt
from .vertex_ai_adapter import GenerativeBackend

logger = logging.getLogger(__name__)


class QualityAssessor:
    """Scores sections through the backend and applies pass/fail thresholds.

    Scoring is model-driven; the threshold decision in :meth:`passes` is pure.
    """

    def __init__(
        self,
        *,
        backend: GenerativeBackend,
        thresholds: QualityThresholds | None = None,
        required_sections: frozenset[SectionKind] = REQUIRED_SECTION_KINDS,
    ) -> None:
        self._backend = backend
        self._thresholds = thresholds or QualityThresholds()
        self._required_sections = required_sections

    @property
    def thresholds(self) -> QualityThresholds:
        return self._thresholds.model_copy()

    def with_thresholds(self, overrides: QualityThresholds | Mapping[str, float] | None) -> "QualityAssessor":
        if overrides is None:
            return self
        if isinstance(overrides, QualityThresholds):
            thresholds = overrides
        else:
            thresholds = QualityThresholds.model_validate({**self._thresholds.model_dump(), **overrides})
        return QualityAssessor(
            backend=self._backend,
            thresholds=thresholds,
            required_sections=self._required_sections,
        )

    def passes(self, assessment: SectionQualityAssessment) -> bool:
        thresholds = self._thresholds
        return (
            assessment.combined_score >= thresholds.min_combined_score
            and assessment.quality_score >= thresholds.min_quality_score
            and assessment.confidence_score >= thresholds.min_confidence_score
        )

    def is_enabled(self, kind: SectionKind, assessment: SectionQualityAssessment) -> bool:
        # Required sections stay on the page whatever their score
        return kind in self._required_sections or self.passes(assessment)

    async def assess_section(
        self,
        kind: SectionKind,
        content: Mapping[str, Any],
        identity: BrandIdentity | None = None,
    ) -> SectionQualityAssessment:
        logger.info("Assessing quality for section", extra={"section": kind.value})

        prompt = render_prompt(
            SECTION_QUALITY_ASSESSMENT_TEMPLATE,
            {
                "section_type": kind.value,
                "section_content": json.dumps(dict(content), ensure_ascii=False, indent=2),
                "identity": identity,
            },
        )
        result = await self._backend.invoke(prompt, SectionQualityAssessment)
        if result is None:
            raise BackendStructureError(f"Failed to generate structured quality assessment for {kind.value}")

        try:
            assessment = SectionQualityAssessment.model_validate(result)
        except ValidationError as exc:
            raise BackendStructureError(f"Quality assessment for {kind.value} is malformed") from exc

        assessment = assessment.model_copy(update={"enabled": self.is_enabled(kind, assessment)})

        logger.debug(
            "Quality assessment complete",
            extra={
                "section": kind.value,
                "quality_score": assessment.quality_score,
                "confidence_score": assessment.confidence_score,
                "combined_score": assessment.combined_score,
                "enabled": assessment.enabled,
            },
        )
        return assessment

    async def assess_page(
        self,
        page: LandingPage,
        identity: BrandIdentity | None = None,
    ) -> dict[SectionKind, AssessedSection]:
        """Assess every section in page order, one backend call at a time.

        A section whose assessment cannot be obtained is left unassessed and is
        not reported as failing.
        """
        assessments: dict[SectionKind, AssessedSection] = {}
        for kind in page.section_order:
            assessments[kind] = await self.assess_page_section(page, kind, identity)
        return assessments

    async def assess_page_section(
        self,
        page: LandingPage,
        kind: SectionKind,
        identity: BrandIdentity | None = None,
    ) -> AssessedSection:
        section = page.get_section(kind)
        content = section.model_dump(mode="json", by_alias=True, exclude_none=True) if section else {}
        is_required = kind in self._required_sections
        try:
            assessment = await self.assess_section(kind, content, identity)
        except LandingPageError as exc:
            logger.warning(
                "Section left unassessed",
                extra={"section": kind.value, "error": str(exc)},
            )
            return AssessedSection(
                section=kind,
                passed=True,
                rationale=f"Not assessed: {exc}",
                is_required=is_required,
                content=content,
            )

        return AssessedSection(
            section=kind,
            score=assessment.combined_score,
            passed=self.passes(assessment),
            rationale=_rationale(assessment),
            is_required=is_required,
            content=content,
            assessment=assessment,
        )

    @staticmethod
    def failing_sections(assessments: Mapping[SectionKind, AssessedSection]) -> list[SectionKind]:
        return [kind for kind, assessed in assessments.items() if not assessed.passed]


def _rationale(assessment: SectionQualityAssessment) -> str:
    return (
        f"Quality {assessment.quality_score:g}/10: {assessment.quality_justification} "
        f"Confidence {assessment.confidence_score:g}/10: {assessment.confidence_justification}"
    )


def improvement_feedback(assessed: AssessedSection) -> str | None:
    """Reviewer notes for a retry prompt, built from a failing assessment."""
    assessment = assessed.assessment
    if assessment is None:
        return None
    lines = [
        f"Quality Score: {assessment.quality_score:g}/10 - {assessment.quality_justification}",
        f"Confidence Score: {assessment.confidence_score:g}/10 - {assessment.confidence_justification}",
        f"Combined Score: {assessment.combined_score:g}/10",
    ]
    if assessment.suggested_improvements:
        lines += ["", "Suggested Improvements:", assessment.suggested_improvements]
    return "\n".join(lines)


__all__ = ["QualityAssessor", "improvement_feedback"]
