from __future__ import annotations

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Iterable, Mapping

from pydantic import BaseModel, ValidationError

from .dictionaries import resolve_section_kind
from .errors import LandingPageError
from .logging_config import bind_page
from .models.identity import BrandIdentity
from .models.page import SectionKind
from .models.quality import QualityReport, QualityThresholds
from .orchestrator import PageGenerationOrchestrator
from .page_store import PageStore

logger = logging.getLogger(__name__)


class OperationResult(BaseModel):
    success: bool
    message: str
    data: dict[str, Any] | None = None


class LandingPageService:
    """Load, lock, run, save: the facade behind the CLI and the HTTP API.

    Operations on the same page key run one at a time; operations on different
    keys may interleave, so every operation gets its own orchestrator.
    """

    def __init__(
        self,
        *,
        orchestrator_factory: Callable[[str], PageGenerationOrchestrator],
        page_store: PageStore,
        default_page_key: str = "default",
    ) -> None:
        self._orchestrator_factory = orchestrator_factory
        self._page_store = page_store
        self._default_page_key = default_page_key
        # Locks are dropped once no operation holds them
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self._failed_sections: dict[str, list[SectionKind]] = {}

    @property
    def default_page_key(self) -> str:
        return self._default_page_key

    def lock_for(self, page_key: str) -> asyncio.Lock:
        lock = self._locks.get(page_key)
        if lock is None:
            lock = self._locks[page_key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def _page_operation(self, page_key: str) -> AsyncIterator[None]:
        async with self.lock_for(page_key):
            with bind_page(page_key):
                yield

    def _record_failures(self, page_key: str, failed: list[SectionKind]) -> None:
        if failed:
            self._failed_sections[page_key] = list(failed)
        else:
            self._failed_sections.pop(page_key, None)

    async def generate(
        self,
        page_key: str | None = None,
        *,
        identity: BrandIdentity | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> OperationResult:
        key = page_key or self._default_page_key
        async with self._page_operation(key):
            identity = identity or await self._page_store.get_identity(key)
            if identity is None:
                return OperationResult(success=False, message=f"No brand identity found for page '{key}'")

            logger.info("Generating landing page")
            orchestrator = self._orchestrator_factory(key)
            try:
                page = await orchestrator.generate_page_data(identity, overrides)
            except LandingPageError as exc:
                logger.error("Landing page generation failed", exc_info=True)
                return OperationResult(success=False, message=f"Error generating landing page: {exc}")

            failed = orchestrator.failed_sections
            self._record_failures(key, failed)
            data = {
                "landingPage": page.to_document(),
                "generationStatus": {
                    kind.value: result.model_dump(mode="json")
                    for kind, result in orchestrator.last_generation_status.items()
                },
                "failedSections": [kind.value for kind in failed],
            }

            if not await self._page_store.save_landing_page(key, page):
                return OperationResult(
                    success=False,
                    message="Landing page generated but could not be saved",
                    data=data,
                )

            message = "Landing page generated and saved"
            if failed:
                message += f"; fallback content used for: {', '.join(kind.value for kind in failed)}"
            return OperationResult(success=True, message=message, data=data)

    async def edit(self, page_key: str | None = None) -> OperationResult:
        key = page_key or self._default_page_key
        async with self._page_operation(key):
            page = await self._page_store.get_landing_page(key)
            if page is None:
                return _no_page(key)
            identity = await self._page_store.get_identity(key)

            try:
                edited = await self._orchestrator_factory(key).edit_page(page, identity)
            except LandingPageError as exc:
                logger.error("Landing page edit failed", exc_info=True)
                return OperationResult(success=False, message=f"Error editing landing page: {exc}")

            data = {"landingPage": edited.to_document()}
            if not await self._page_store.save_landing_page(key, edited):
                return OperationResult(success=False, message="Landing page edited but could not be saved", data=data)
            return OperationResult(success=True, message="Landing page edited and saved", data=data)

    async def assess(
        self,
        page_key: str | None = None,
        *,
        thresholds: QualityThresholds | Mapping[str, float] | None = None,
    ) -> OperationResult:
        return await self._assess(page_key, thresholds, apply_recommendations=False)

    async def apply_recommendations(
        self,
        page_key: str | None = None,
        *,
        thresholds: QualityThresholds | Mapping[str, float] | None = None,
    ) -> OperationResult:
        return await self._assess(page_key, thresholds, apply_recommendations=True)

    async def regenerate_failed(
        self,
        page_key: str | None = None,
        *,
        sections: Iterable[SectionKind | str] | None = None,
    ) -> OperationResult:
        key = page_key or self._default_page_key
        async with self._page_operation(key):
            page = await self._page_store.get_landing_page(key)
            if page is None:
                return _no_page(key)
            identity = await self._page_store.get_identity(key)

            orchestrator = self._orchestrator_factory(key)
            try:
                if sections is not None:
                    targets = [resolve_section_kind(kind) for kind in sections]
                else:
                    recorded = self._failed_sections.get(key, [])
                    targets = [*recorded, *orchestrator.fallback_sections(page)]
                summary = await orchestrator.regenerate_failed_sections(page, identity, targets)
            except LandingPageError as exc:
                logger.error("Section regeneration failed", exc_info=True)
                return OperationResult(success=False, message=f"Error regenerating sections: {exc}")

            self._record_failures(key, summary.failed_sections)
            data = {
                "landingPage": page.to_document(),
                "results": summary.results.model_dump(mode="json"),
            }
            if summary.results.sections and not await self._page_store.save_landing_page(key, page):
                return OperationResult(success=False, message=f"{summary.message}; page could not be saved", data=data)
            return OperationResult(success=summary.success, message=summary.message, data=data)

    async def view(self, page_key: str | None = None) -> OperationResult:
        key = page_key or self._default_page_key
        page = await self._page_store.get_landing_page(key)
        if page is None:
            return _no_page(key)
        return OperationResult(
            success=True,
            message=f"Landing page '{page.title}'",
            data={"landingPage": page.to_document()},
        )

    async def get_identity(self, page_key: str | None = None) -> OperationResult:
        key = page_key or self._default_page_key
        identity = await self._page_store.get_identity(key)
        if identity is None:
            return OperationResult(success=False, message=f"No brand identity found for page '{key}'")
        return OperationResult(
            success=True,
            message=f"Brand identity for {identity.name}",
            data={"identity": identity.model_dump(mode="json", by_alias=True, exclude_none=True)},
        )

    async def save_identity(
        self,
        identity: BrandIdentity | Mapping[str, Any],
        page_key: str | None = None,
    ) -> OperationResult:
        key = page_key or self._default_page_key
        if not isinstance(identity, BrandIdentity):
            try:
                identity = BrandIdentity.model_validate(identity)
            except ValidationError as exc:
                return OperationResult(success=False, message=f"Invalid brand identity: {exc.error_count()} error(s)")

        async with self._page_operation(key):
            if not await self._page_store.save_identity(key, identity):
                return OperationResult(success=False, message="Brand identity could not be saved")
        return OperationResult(success=True, message=f"Brand identity saved for {identity.name}")

    async def _assess(
        self,
        page_key: str | None,
        thresholds: QualityThresholds | Mapping[str, float] | None,
        *,
        apply_recommendations: bool,
    ) -> OperationResult:
        key = page_key or self._default_page_key
        async with self._page_operation(key):
            page = await self._page_store.get_landing_page(key)
            if page is None:
                return _no_page(key)
            identity = await self._page_store.get_identity(key)

            try:
                report = await self._orchestrator_factory(key).assess_quality(
                    page,
                    identity,
                    thresholds=thresholds,
                    apply_recommendations=apply_recommendations,
                )
            except (LandingPageError, ValidationError) as exc:
                logger.error("Quality assessment failed", exc_info=True)
                return OperationResult(success=False, message=f"Error assessing landing page quality: {exc}")

            data = _report_data(report)
            if report.regeneration is None:
                return OperationResult(success=True, message=_assessment_message(report), data=data)

            self._record_failures(key, report.regeneration.failed_sections)
            if not await self._page_store.save_landing_page(key, report.page):
                return OperationResult(
                    success=False,
                    message=f"{report.regeneration.message}; page could not be saved",
                    data=data,
                )
            return OperationResult(success=report.success, message=report.regeneration.message, data=data)


def _no_page(page_key: str) -> OperationResult:
    return OperationResult(success=False, message=f"No landing page found for '{page_key}'; run generate first")


def _assessment_message(report: QualityReport) -> str:
    if not report.failing_sections:
        return f"All {len(report.assessments)} section(s) meet the quality thresholds"
    names = ", ".join(kind.value for kind in report.failing_sections)
    return f"{len(report.failing_sections)} section(s) below the quality thresholds: {names}"


def _report_data(report: QualityReport) -> dict[str, Any]:
    data: dict[str, Any] = {
        "assessments": {
            kind.value: assessed.model_dump(mode="json", exclude={"content"})
            for kind, assessed in report.assessments.items()
        },
        "failingSections": [kind.value for kind in report.failing_sections],
    }
    if report.regeneration is not None:
        data["landingPage"] = report.page.to_document()
        data["regeneration"] = report.regeneration.model_dump(mode="json")
    return data


__all__ = ["LandingPageService", "OperationResult"]
