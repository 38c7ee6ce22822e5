import pytest
from pydantic import BaseModel

from landing_page_drafter.errors import SchemaValidationError, SectionGenerationError, UnknownSectionKindError
from landing_page_drafter.models.generation import SectionGenerationOptions, SectionGenerationStatus
from landing_page_drafter.models.page import FaqSection, HeroSection, SectionKind, ServicesSection
from landing_page_drafter.prompts import RETRY_MESSAGE, SECTION_GENERATION_TEMPLATE
from landing_page_drafter.section_generator import SectionGenerator

from conftest import HERO, section_marker


class HeroHeadline(BaseModel):
    headline: str


@pytest.mark.asyncio
async def test_partial_schema_preserves_existing_fields(backend, landing_page):
    backend.when(section_marker("hero"), {"headline": "Pipelines you can trust"})
    generator = SectionGenerator(backend=backend)

    result = await generator.generate_section(
        landing_page, SectionKind.hero, SECTION_GENERATION_TEMPLATE, HeroHeadline
    )

    assert result.status == SectionGenerationStatus.completed
    assert result.data["headline"] == "Pipelines you can trust"
    assert landing_page.hero.headline == "Pipelines you can trust"
    assert landing_page.hero.subheading == HERO["subheading"]
    assert landing_page.hero.cta_text == HERO["ctaText"]
    assert result.retry_count == 0


@pytest.mark.asyncio
async def test_missing_backend_output_fails_and_raises(backend, landing_page):
    generator = SectionGenerator(backend=backend)

    with pytest.raises(SectionGenerationError) as excinfo:
        await generator.generate_section(landing_page, "hero", SECTION_GENERATION_TEMPLATE, HeroSection)

    result = excinfo.value.result
    assert result.status == SectionGenerationStatus.failed
    assert "hero" in result.error
    assert landing_page.hero.headline == HERO["headline"]


@pytest.mark.asyncio
async def test_invalid_output_is_a_schema_error(backend, landing_page):
    backend.when(section_marker("services"), {"items": "not a list"})
    generator = SectionGenerator(backend=backend)

    with pytest.raises(SectionGenerationError) as excinfo:
        await generator.generate_section(
            landing_page, SectionKind.services, SECTION_GENERATION_TEMPLATE, ServicesSection
        )

    assert isinstance(excinfo.value.__cause__, SchemaValidationError)
    assert len(landing_page.services.items) == 3


@pytest.mark.asyncio
async def test_retry_prompt_carries_retry_instruction(backend, landing_page):
    backend.when(section_marker("hero"), dict(HERO))
    generator = SectionGenerator(backend=backend)

    result = await generator.generate_section(
        landing_page,
        SectionKind.hero,
        SECTION_GENERATION_TEMPLATE,
        HeroSection,
        options=SectionGenerationOptions(is_retry=True),
    )

    prompt = backend.prompts_matching(section_marker("hero"))[0]
    assert RETRY_MESSAGE in prompt
    assert result.retry_count == 1


@pytest.mark.asyncio
async def test_brand_guidelines_only_with_identity(backend, landing_page, identity):
    backend.when(section_marker("hero"), dict(HERO))
    generator = SectionGenerator(backend=backend)

    await generator.generate_section(landing_page, SectionKind.hero, SECTION_GENERATION_TEMPLATE, HeroSection)
    await generator.generate_section(
        landing_page, SectionKind.hero, SECTION_GENERATION_TEMPLATE, HeroSection, identity=identity
    )

    without_identity, with_identity = backend.prompts_matching(section_marker("hero"))
    assert "BRAND IDENTITY GUIDELINES" not in without_identity
    assert "BRAND IDENTITY GUIDELINES" in with_identity
    assert "UNIQUE VALUE: Ten years of production data engineering" in with_identity
    assert RETRY_MESSAGE not in with_identity


@pytest.mark.asyncio
async def test_simplified_prompt_omits_page_context(backend, landing_page):
    backend.when(section_marker("hero"), dict(HERO))
    generator = SectionGenerator(backend=backend)

    await generator.generate_section(
        landing_page,
        SectionKind.hero,
        SECTION_GENERATION_TEMPLATE,
        HeroSection,
        options=SectionGenerationOptions(simplify_prompt=True),
    )

    assert "Other sections on the page" not in backend.prompts_matching(section_marker("hero"))[0]


@pytest.mark.asyncio
async def test_section_outside_the_order_is_written_without_reordering(backend, landing_page):
    landing_page.section_order.remove(SectionKind.faq)
    order = list(landing_page.section_order)
    landing_page.faq = None
    backend.when(
        section_marker("faq"),
        {
            "items": [
                {"question": "Q1?", "answer": "A1."},
                {"question": "Q2?", "answer": "A2."},
                {"question": "Q3?", "answer": "A3."},
            ]
        },
    )
    generator = SectionGenerator(backend=backend)

    await generator.generate_section(landing_page, SectionKind.faq, SECTION_GENERATION_TEMPLATE, FaqSection)

    assert landing_page.section_order == order
    assert landing_page.faq.items[0].question == "Q1?"


@pytest.mark.asyncio
async def test_empty_partial_result_keeps_existing_content(backend, landing_page):
    backend.when(section_marker("hero"), {})
    generator = SectionGenerator(backend=backend)

    result = await generator.generate_section(landing_page, SectionKind.hero, SECTION_GENERATION_TEMPLATE, HeroHeadline)

    assert result.status == SectionGenerationStatus.completed
    assert landing_page.hero.headline == HERO["headline"]
    assert landing_page.hero.subheading == HERO["subheading"]


@pytest.mark.asyncio
async def test_unknown_kind_is_rejected(backend, landing_page):
    generator = SectionGenerator(backend=backend)

    with pytest.raises(UnknownSectionKindError):
        await generator.generate_section(landing_page, "testimonials", SECTION_GENERATION_TEMPLATE, HeroSection)
    assert backend.calls == []


def test_apply_fallback_content_disables_section(backend, landing_page):
    generator = SectionGenerator(backend=backend)

    content = generator.apply_fallback_content(landing_page, SectionKind.about)

    assert content["enabled"] is False
    assert landing_page.about.enabled is False
