from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any

import pytest

from landing_page_drafter.config import PipelineSettings, build_service
from landing_page_drafter.models.identity import BrandIdentity
from landing_page_drafter.models.page import LandingPage
from landing_page_drafter.page_store import LocalPageStore
from landing_page_drafter.segment_cache import SegmentCache

DRAFT_MARKER = "compelling, outcome-focused landing page"
REVIEW_MARKER = "You are a professional editor for landing page content"


def section_marker(kind: str) -> str:
    return f'Write the "{kind}" section'


def quality_marker(kind: str) -> str:
    return f'You are reviewing the "{kind}" section'


def scores(quality: float, confidence: float, *, improvements: str = "") -> dict[str, Any]:
    return {
        "qualityScore": quality,
        "qualityJustification": "Quality rationale.",
        "confidenceScore": confidence,
        "confidenceJustification": "Confidence rationale.",
        "combinedScore": (quality + confidence) / 2,
        "suggestedImprovements": improvements,
    }


class FakeBackend:
    """Scripted generative backend.

    Responses are registered against a substring of the prompt. Each matching
    call consumes the next queued response; the last one repeats. Prompts that
    match no rule get ``None``.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, type]] = []
        self._rules: list[tuple[str, list[Any]]] = []

    def when(self, marker: str, *responses: Any) -> "FakeBackend":
        self._rules.append((marker, list(responses)))
        return self

    def prompts_matching(self, marker: str) -> list[str]:
        return [prompt for prompt, _ in self.calls if marker in prompt]

    async def invoke(self, prompt: str, output_schema: type) -> dict[str, Any] | None:
        self.calls.append((prompt, output_schema))
        for marker, queue in self._rules:
            if marker not in prompt:
                continue
            response = queue.pop(0) if len(queue) > 1 else queue[0]
            if callable(response):
                return response(prompt)
            return deepcopy(response)
        return None


HERO = {
    "headline": "Data platforms that ship on time",
    "subheading": "Senior data engineering for growing startups",
    "ctaText": "Book a discovery call",
    "ctaLink": "#contact",
}

SERVICES = {
    "title": "Services",
    "items": [
        {"title": "Pipeline audits", "description": "Find what breaks before your customers do."},
        {"title": "Platform builds", "description": "A warehouse your analysts trust."},
        {"title": "Team coaching", "description": "Leave your engineers stronger than before."},
    ],
}

ABOUT = {"title": "About Me", "content": "Ten years building data platforms for startups."}

FAQ = {
    "title": "FAQ",
    "items": [
        {"question": "How long is an audit?", "answer": "Two weeks."},
        {"question": "Do you work remotely?", "answer": "Yes."},
        {"question": "What stack do you use?", "answer": "Whatever already works for you."},
    ],
}

CTA = {"title": "Ready to fix your pipelines?", "buttonText": "Book a call", "buttonLink": "#contact"}

DRAFT = {
    "title": "Jane Doe Consulting",
    "description": "Data engineering consulting for startups",
    "name": "Jane Doe Consulting",
    "tagline": "Data platforms that ship",
    "sectionOrder": ["hero", "services", "about", "faq", "cta"],
    "hero": HERO,
    "services": SERVICES,
    "about": ABOUT,
    "faq": FAQ,
    "cta": CTA,
}


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def identity() -> BrandIdentity:
    return BrandIdentity.model_validate(BrandIdentity.model_config["json_schema_extra"]["example"])


@pytest.fixture
def landing_page() -> LandingPage:
    return LandingPage.model_validate(deepcopy(DRAFT))


@pytest.fixture
def draft() -> dict[str, Any]:
    return deepcopy(DRAFT)


@pytest.fixture
def segment_cache(tmp_path: Path) -> SegmentCache:
    return SegmentCache(cache_path=tmp_path / "segments")


@pytest.fixture
def settings(tmp_path: Path) -> PipelineSettings:
    return PipelineSettings(
        data_dir=tmp_path / "pages",
        segment_cache_dir=tmp_path / "segments",
        max_retries=2,
    )


@pytest.fixture
def page_store(settings: PipelineSettings) -> LocalPageStore:
    return LocalPageStore(base_path=settings.data_dir)


@pytest.fixture
def service(settings: PipelineSettings, backend: FakeBackend, page_store: LocalPageStore):
    return build_service(settings, backend=backend, page_store=page_store)
