from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence

from pydantic import ValidationError

from .dictionaries import (
    DEFAULT_PAGE_FIELDS,
    DEFAULT_SECTION_ORDER,
    FULL_SECTION_ORDER,
    REQUIRED_SECTION_KINDS,
    SECTION_REGISTRY,
    get_section_definition,
    resolve_section_kind,
)
from .errors import BackendStructureError, SchemaValidationError, SectionGenerationError
from .fallback_content import FallbackContentProvider
from .models.generation import (
    RegenerationResults,
    RegenerationSummary,
    SectionGenerationOptions,
    SectionGenerationResult,
    SectionGenerationStatus,
)
from .models.identity import BrandIdentity
from .models.page import LandingPage, LandingPageDraft, PageModel, SectionKind, ordered_kinds
from .models.quality import QualityReport, QualityThresholds
from .prompts import (
    LANDING_PAGE_GENERATION_TEMPLATE,
    LANDING_PAGE_REVIEW_TEMPLATE,
    build_brand_guidelines,
    render_prompt,
)
from .quality import QualityAssessor, improvement_feedback
from .section_generator import SectionGenerator
from .segment_cache import SegmentCache
from .vertex_ai_adapter import GenerativeBackend

logger = logging.getLogger(__name__)

# Wire name for every LandingPage field, keyed by both Python and wire name
_PAGE_FIELD_ALIASES: dict[str, str] = {
    key: field.alias or name
    for name, field in LandingPage.model_fields.items()
    for key in (name, field.alias or name)
}


class GenerationPhase(str, Enum):
    idle = "IDLE"
    drafting = "DRAFTING"
    reviewing = "REVIEWING"
    finalized = "FINALIZED"


class PageGenerationOrchestrator:
    """Drives whole-page generation and the section-level recovery workflows.

    Whole-page generation runs two backend passes (draft, then editorial
    review) and finalizes the result into a valid :class:`LandingPage`. Any
    section that cannot be validated is restored from the segment cache or
    replaced with disabled fallback content, so every page returned here is
    publishable. Sections that ended up as fallback are remembered and are the
    default target of :meth:`regenerate_failed_sections`.
    """

    def __init__(
        self,
        *,
        backend: GenerativeBackend,
        section_generator: SectionGenerator | None = None,
        quality_assessor: QualityAssessor | None = None,
        segment_cache: SegmentCache | None = None,
        fallback_provider: FallbackContentProvider | None = None,
        max_retries: int = 2,
        section_order: Sequence[SectionKind] = FULL_SECTION_ORDER,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._backend = backend
        self._fallback_provider = fallback_provider or FallbackContentProvider()
        self._section_generator = section_generator or SectionGenerator(
            backend=backend, fallback_provider=self._fallback_provider
        )
        self._quality_assessor = quality_assessor or QualityAssessor(backend=backend)
        self._segment_cache = segment_cache
        self._max_retries = max_retries
        self._section_order = tuple(section_order)

        self.phase = GenerationPhase.idle
        self._failed_sections: set[SectionKind] = set()
        self._last_generation_status: dict[SectionKind, SectionGenerationResult] = {}

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def failed_sections(self) -> list[SectionKind]:
        return [kind for kind in SectionKind if kind in self._failed_sections]

    @property
    def last_generation_status(self) -> dict[SectionKind, SectionGenerationResult]:
        return {kind: result.model_copy() for kind, result in self._last_generation_status.items()}

    async def generate_page_data(
        self,
        identity: BrandIdentity,
        overrides: Mapping[str, Any] | None = None,
    ) -> LandingPage:
        self._failed_sections.clear()
        self._last_generation_status.clear()
        brand_guidelines = build_brand_guidelines(identity)

        self.phase = GenerationPhase.drafting
        logger.info("Generating landing page draft", extra={"brand": identity.name})
        draft = await self._backend.invoke(
            render_prompt(
                LANDING_PAGE_GENERATION_TEMPLATE,
                {
                    "identity": identity,
                    "section_order": [kind.value for kind in self._section_order],
                    "brand_guidelines": brand_guidelines,
                },
            ),
            LandingPageDraft,
        )
        if draft is None:
            self.phase = GenerationPhase.idle
            raise BackendStructureError("Failed to generate structured landing page content")

        self.phase = GenerationPhase.reviewing
        logger.info("Reviewing landing page draft for consistency", extra={"brand": identity.name})
        reviewed = await self._backend.invoke(
            render_prompt(
                LANDING_PAGE_REVIEW_TEMPLATE,
                {
                    "page_json": json.dumps(draft, ensure_ascii=False, indent=2),
                    "brand_guidelines": brand_guidelines,
                },
            ),
            LandingPageDraft,
        )
        if reviewed is not None:
            document = _merge_document(draft, reviewed)
        else:
            logger.warning("Editorial review returned no structured content, keeping the draft")
            document = dict(draft)

        page = self._finalize(document, overrides)
        self.phase = GenerationPhase.finalized

        if self._segment_cache is not None:
            saved = self._segment_cache.save_page_segments(page, exclude=self._failed_sections)
            logger.debug("Cached landing page segments", extra={"segments": [kind.value for kind in saved]})

        logger.info(
            "Landing page generated",
            extra={
                "brand": identity.name,
                "sections": [kind.value for kind in page.section_order],
                "failed_sections": [kind.value for kind in self.failed_sections],
            },
        )
        return page

    async def edit_page(self, page: LandingPage, identity: BrandIdentity | None = None) -> LandingPage:
        """Run the editorial pass over an existing page.

        The edited fields are merged over the current page; there is no
        defaulting, so output that leaves the page invalid is rejected.
        """
        logger.info("Editing landing page", extra={"page": page.name})
        current = page.to_document()
        edited = await self._backend.invoke(
            render_prompt(
                LANDING_PAGE_REVIEW_TEMPLATE,
                {
                    "page_json": json.dumps(current, ensure_ascii=False, indent=2),
                    "brand_guidelines": build_brand_guidelines(identity) if identity else None,
                },
            ),
            LandingPageDraft,
        )
        if edited is None:
            raise BackendStructureError("Failed to generate structured content for landing page edit")

        try:
            return LandingPage.model_validate(_merge_document(current, edited))
        except ValidationError as exc:
            raise SchemaValidationError(
                f"Edited landing page failed validation: {exc.error_count()} error(s)"
            ) from exc

    async def assess_quality(
        self,
        page: LandingPage,
        identity: BrandIdentity | None = None,
        thresholds: QualityThresholds | Mapping[str, float] | None = None,
        apply_recommendations: bool = False,
    ) -> QualityReport:
        assessor = self._quality_assessor.with_thresholds(thresholds)
        assessments = await assessor.assess_page(page, identity)
        failing = assessor.failing_sections(assessments)

        logger.info(
            "Quality assessment finished",
            extra={
                "assessed": len(assessments),
                "failing_sections": [kind.value for kind in failing],
                "apply_recommendations": apply_recommendations,
            },
        )

        if not apply_recommendations or not failing:
            return QualityReport(
                assessments=assessments,
                failing_sections=failing,
                page=page,
            )

        updated = page.model_copy(deep=True)
        feedback = {kind: improvement_feedback(assessments[kind]) for kind in failing}
        summary = await self.regenerate_failed_sections(updated, identity, sections=failing, feedback=feedback)

        # Report the score of the improved content, not the score that triggered regeneration
        for kind, result in summary.results.sections.items():
            if not result.succeeded:
                continue
            reassessed = await assessor.assess_page_section(updated, kind, identity)
            if reassessed.assessment is not None:
                reassessed = reassessed.model_copy(
                    update={"assessment": reassessed.assessment.model_copy(update={"improvements_applied": True})}
                )
            assessments[kind] = reassessed

        return QualityReport(
            assessments=assessments,
            failing_sections=failing,
            page=updated,
            regeneration=summary,
            success=not summary.failed_sections,
        )

    async def regenerate_failed_sections(
        self,
        page: LandingPage,
        identity: BrandIdentity | None = None,
        sections: Iterable[SectionKind | str] | None = None,
        *,
        feedback: Mapping[SectionKind, str | None] | None = None,
        options: SectionGenerationOptions | None = None,
    ) -> RegenerationSummary:
        """Regenerate sections in place, one at a time and in page order.

        Without ``sections`` the targets are the sections recorded as failed plus
        any section on the page that still carries fallback content. A section
        that fails every attempt gets fallback content and counts as failed.
        ``options.max_retries`` overrides the attempt budget for this call, and
        ``options.simplify_prompt`` simplifies every attempt rather than only the
        later ones.
        """
        if sections is not None:
            targets = {resolve_section_kind(kind) for kind in sections}
        else:
            targets = self._failed_sections | set(self.fallback_sections(page))

        ordered = [kind for kind in page.section_order if kind in targets]
        if not ordered:
            return RegenerationSummary(success=True, message="No failed sections to regenerate")

        options = options or SectionGenerationOptions()
        attempts_allowed = options.max_retries or self._max_retries
        feedback = feedback or {}
        results = RegenerationResults()

        for kind in ordered:
            result = await self._regenerate_section(
                page, kind, identity, feedback.get(kind, options.feedback), attempts_allowed, options.simplify_prompt
            )
            results.sections[kind] = result
            self._last_generation_status[kind] = result
            if result.succeeded:
                results.succeeded += 1
                self._failed_sections.discard(kind)
            else:
                results.failed += 1
                self._failed_sections.add(kind)

        if self._segment_cache is not None and results.succeeded:
            self._segment_cache.save_page_segments(page, exclude=self._failed_sections)

        message = f"Regenerated {results.succeeded} of {len(ordered)} section(s)"
        if results.failed:
            failed_names = ", ".join(kind.value for kind in ordered if not results.sections[kind].succeeded)
            message += f"; fallback content applied to: {failed_names}"

        logger.info(
            "Section regeneration finished",
            extra={"succeeded": results.succeeded, "failed": results.failed},
        )
        return RegenerationSummary(success=results.failed == 0, message=message, results=results)

    async def _regenerate_section(
        self,
        page: LandingPage,
        kind: SectionKind,
        identity: BrandIdentity | None,
        feedback: str | None,
        attempts_allowed: int,
        simplify_prompt: bool = False,
    ) -> SectionGenerationResult:
        definition = get_section_definition(kind)
        if self._is_fallback(page, kind):
            # Generate from scratch rather than merging over placeholder text
            page.set_section(kind, None)

        result = SectionGenerationResult(section=kind)
        for attempt in range(1, attempts_allowed + 1):
            options = SectionGenerationOptions(
                is_retry=True,
                simplify_prompt=simplify_prompt or attempt > 1,
                feedback=feedback,
            )
            try:
                result = await self._section_generator.generate_section(
                    page,
                    kind,
                    definition.prompt_template,
                    definition.model,
                    identity,
                    options,
                )
            except SectionGenerationError as exc:
                result = exc.result
                logger.warning(
                    "Section regeneration attempt failed",
                    extra={"section": kind.value, "attempt": attempt, "max_retries": attempts_allowed},
                )
                if attempt < attempts_allowed:
                    result.status = SectionGenerationStatus.retrying
            else:
                result.retry_count = attempt
                return result

        result.retry_count = attempts_allowed
        result.data = self._section_generator.apply_fallback_content(page, kind)
        result.status = SectionGenerationStatus.completed
        result.used_fallback = True
        logger.warning(
            "Retries exhausted, fallback content applied",
            extra={"section": kind.value, "error": result.error},
        )
        return result

    def _finalize(self, document: dict[str, Any], overrides: Mapping[str, Any] | None) -> LandingPage:
        for field, default in DEFAULT_PAGE_FIELDS.items():
            value = document.get(field)
            if not isinstance(value, str) or not value.strip():
                logger.info("Backfilling missing page field", extra={"field": field})
                document[field] = default

        if overrides:
            for key, value in overrides.items():
                document[_PAGE_FIELD_ALIASES.get(key, key)] = value

        section_order = self._resolve_section_order(document.get("sectionOrder"))

        # hero and services are always present, even when not rendered
        unordered_required = [
            kind for kind in SectionKind if kind in REQUIRED_SECTION_KINDS and kind not in section_order
        ]
        sections: dict[str, PageModel] = {}
        for kind in [*section_order, *unordered_required]:
            sections[kind.name] = self._build_section(kind, document.get(kind.value))

        try:
            return LandingPage(
                title=document["title"],
                description=document["description"],
                name=document["name"],
                tagline=document["tagline"],
                section_order=section_order,
                **sections,
            )
        except ValidationError as exc:
            raise SchemaValidationError(
                f"Finalized landing page failed validation: {exc.error_count()} error(s)"
            ) from exc

    def _resolve_section_order(self, raw_order: Any) -> list[SectionKind]:
        values = [str(value) for value in raw_order] if isinstance(raw_order, list) else []
        kinds, unknown = ordered_kinds(values)
        if unknown:
            logger.warning("Dropping unknown section kinds from sectionOrder", extra={"unknown": unknown})
        if not kinds:
            logger.info("No usable sectionOrder, using the default order")
            kinds = list(DEFAULT_SECTION_ORDER)
        return kinds

    def _build_section(self, kind: SectionKind, raw: Any) -> PageModel:
        definition = SECTION_REGISTRY[kind]
        result = SectionGenerationResult(section=kind, status=SectionGenerationStatus.in_progress)

        content = dict(raw) if isinstance(raw, Mapping) else None
        if content is not None and definition.default_content:
            content = {**definition.default_content, **content}

        if content is not None:
            try:
                section = definition.model.model_validate(content)
            except ValidationError as exc:
                logger.warning(
                    "Generated section failed validation",
                    extra={"section": kind.value, "errors": exc.error_count()},
                )
                result.error = f"Section {kind.value} failed validation: {exc.error_count()} error(s)"
            else:
                return self._record(result, section)
        else:
            result.error = f"Section {kind.value} was not generated"

        cached = self._segment_cache.find_section(kind) if self._segment_cache is not None else None
        if cached is not None:
            try:
                section = definition.model.model_validate(cached)
            except ValidationError:
                logger.warning("Cached section failed validation", extra={"section": kind.value})
            else:
                logger.info("Restored section from segment cache", extra={"section": kind.value})
                result.error = None
                return self._record(result, section)

        if definition.default_content:
            section = definition.model.model_validate(definition.default_content)
        else:
            section = definition.model.model_validate(self._fallback_provider.get_fallback_content(kind))
        logger.warning("Applied fallback content for section", extra={"section": kind.value, "error": result.error})
        result.used_fallback = True
        self._failed_sections.add(kind)
        return self._record(result, section)

    def _record(self, result: SectionGenerationResult, section: PageModel) -> PageModel:
        result.status = SectionGenerationStatus.completed
        result.data = section.model_dump(mode="json", by_alias=True, exclude_none=True)
        self._last_generation_status[result.section] = result
        return section

    def _is_fallback(self, page: LandingPage, kind: SectionKind) -> bool:
        section = page.get_section(kind)
        if section is None:
            return False
        placeholder = get_section_definition(kind).model.model_validate(
            self._fallback_provider.get_fallback_content(kind)
        )
        return section == placeholder

    def fallback_sections(self, page: LandingPage) -> list[SectionKind]:
        return [kind for kind in page.section_order if self._is_fallback(page, kind)]


def _merge_document(current: Mapping[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(current)
    for key, value in update.items():
        existing = merged.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            merged[key] = {**existing, **value}
        else:
            merged[key] = value
    return merged


__all__ = ["GenerationPhase", "PageGenerationOrchestrator"]
