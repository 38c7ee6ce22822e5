from __future__ import annotations

import json
import logging
import time
from typing import Any

from pydantic import BaseModel, ValidationError

from .dictionaries import get_section_definition, resolve_section_kind
from .errors import BackendStructureError, SchemaValidationError, SectionGenerationError
from .fallback_content import FallbackContentProvider
from .models.generation import (
    SectionGenerationOptions,
    SectionGenerationResult,
    SectionGenerationStatus,
)
from .models.identity import BrandIdentity
from .models.page import LandingPage, SectionKind
from .prompts import RETRY_MESSAGE, build_brand_guidelines, render_prompt
from .vertex_ai_adapter import GenerativeBackend

logger = logging.getLogger(__name__)


class SectionGenerator:
    """Generates or regenerates a single landing page section.

    Retries are not handled here: a failed attempt is logged, recorded on a
    ``FAILED`` result and raised as :class:`SectionGenerationError` so the caller
    can decide whether to retry (``is_retry=True``) or fall back.
    """

    def __init__(
        self,
        *,
        backend: GenerativeBackend,
        fallback_provider: FallbackContentProvider | None = None,
    ) -> None:
        self._backend = backend
        self._fallback_provider = fallback_provider or FallbackContentProvider()

    async def generate_section(
        self,
        page: LandingPage,
        section_kind: SectionKind | str,
        prompt_template: str,
        section_schema: type[BaseModel],
        identity: BrandIdentity | None = None,
        options: SectionGenerationOptions | None = None,
    ) -> SectionGenerationResult:
        kind = resolve_section_kind(section_kind)
        options = options or SectionGenerationOptions()

        logger.debug(
            "Generating content for section",
            extra={"section": kind.value, "using_identity": identity is not None, "is_retry": options.is_retry},
        )

        result = SectionGenerationResult(
            section=kind,
            status=SectionGenerationStatus.in_progress,
            retry_count=1 if options.is_retry else 0,
        )
        started = time.perf_counter()

        try:
            current = _section_document(page, kind)
            prompt = self.render_section_prompt(page, kind, prompt_template, current, identity, options)

            generated = await self._backend.invoke(prompt, section_schema)
            if generated is None:
                raise BackendStructureError(f"Failed to generate structured content for section: {kind.value}")

            merged = {**current, **generated}
            try:
                validated = section_schema.model_validate(merged)
                content = {**merged, **validated.model_dump(mode="json", by_alias=True, exclude_none=True)}
                section = get_section_definition(kind).model.model_validate(content)
            except ValidationError as exc:
                raise SchemaValidationError(
                    f"Generated content for section {kind.value} failed validation: {exc.error_count()} error(s)"
                ) from exc

            page.set_section(kind, section)

            result.status = SectionGenerationStatus.completed
            result.data = section.model_dump(mode="json", by_alias=True, exclude_none=True)
            result.duration_ms = _elapsed_ms(started)

            logger.debug(
                "Successfully generated content for section",
                extra={"section": kind.value, "is_retry": options.is_retry, "duration_ms": result.duration_ms},
            )
            return result

        except Exception as exc:
            result.status = SectionGenerationStatus.failed
            result.error = str(exc)
            result.duration_ms = _elapsed_ms(started)

            logger.error(
                "Error generating content for section",
                extra={"section": kind.value, "is_retry": options.is_retry, "error": result.error},
            )
            raise SectionGenerationError(result.error, result=result) from exc

    def apply_fallback_content(self, page: LandingPage, section_kind: SectionKind | str) -> dict[str, Any]:
        """Replace the section with disabled placeholder content and return it."""
        kind = resolve_section_kind(section_kind)
        logger.debug("Applying fallback content for section", extra={"section": kind.value})

        content = self._fallback_provider.get_fallback_content(kind)
        page.set_section(kind, get_section_definition(kind).model.model_validate(content))
        return content

    def render_section_prompt(
        self,
        page: LandingPage,
        kind: SectionKind,
        prompt_template: str,
        current: dict[str, Any],
        identity: BrandIdentity | None,
        options: SectionGenerationOptions,
    ) -> str:
        definition = get_section_definition(kind)
        template_data: dict[str, Any] = {
            **page.to_document(),
            "section_type": kind.value,
            "guidance": definition.guidance,
            "other_sections": [other.value for other in page.section_order if other != kind],
            "current_section_json": json.dumps(current, ensure_ascii=False, indent=2),
            "simplify": options.simplify_prompt,
            "is_retry": options.is_retry,
            "feedback": options.feedback,
            "identity": identity,
            "brand_guidelines": build_brand_guidelines(identity) if identity else None,
            "retry_message": RETRY_MESSAGE if options.is_retry else None,
        }
        return render_prompt(prompt_template, template_data)


def _section_document(page: LandingPage, kind: SectionKind) -> dict[str, Any]:
    section = page.get_section(kind)
    if section is None:
        return {}
    return section.model_dump(mode="json", by_alias=True, exclude_none=True)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


__all__ = ["SectionGenerator"]
