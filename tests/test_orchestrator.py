import pytest

from landing_page_drafter.dictionaries import DEFAULT_SECTION_ORDER, DEFAULT_SERVICES
from landing_page_drafter.errors import BackendStructureError, SchemaValidationError
from landing_page_drafter.models.generation import SectionGenerationOptions, SectionGenerationStatus
from landing_page_drafter.models.page import SectionKind
from landing_page_drafter.models.segment import SegmentKind
from landing_page_drafter.orchestrator import GenerationPhase, PageGenerationOrchestrator

from conftest import DRAFT_MARKER, FAQ, REVIEW_MARKER, quality_marker, scores, section_marker

NEW_FAQ = {
    "title": "Questions",
    "items": [
        {"question": "What does an audit cost?", "answer": "A fixed fee agreed up front."},
        {"question": "Who owns the code?", "answer": "You do."},
        {"question": "Can we start small?", "answer": "Yes, with a two week audit."},
    ],
}


@pytest.fixture
def orchestrator(backend, segment_cache):
    return PageGenerationOrchestrator(backend=backend, segment_cache=segment_cache, max_retries=2)


@pytest.mark.asyncio
async def test_generate_drops_unknown_kinds_and_falls_back_on_invalid_sections(
    orchestrator, backend, segment_cache, identity, draft
):
    draft["sectionOrder"] = ["hero", "services", "testimonials", "faq"]
    draft["faq"] = {"items": FAQ["items"][:2]}
    backend.when(DRAFT_MARKER, draft)

    page = await orchestrator.generate_page_data(identity)

    assert page.section_order == [SectionKind.hero, SectionKind.services, SectionKind.faq]
    assert page.faq.enabled is False
    assert orchestrator.failed_sections == [SectionKind.faq]
    status = orchestrator.last_generation_status
    assert status[SectionKind.faq].used_fallback
    assert status[SectionKind.faq].status == SectionGenerationStatus.completed
    assert status[SectionKind.hero].succeeded
    assert orchestrator.phase == GenerationPhase.finalized
    # review pass returned nothing, so the draft was kept
    assert len(backend.prompts_matching(REVIEW_MARKER)) == 1
    assert page.title == draft["title"]
    assert segment_cache.has_segment(SegmentKind.identity)
    assert not segment_cache.has_segment(SegmentKind.conversion)


@pytest.mark.asyncio
async def test_generate_backfills_required_fields(orchestrator, backend, identity):
    backend.when(DRAFT_MARKER, {"hero": {"headline": "Only a headline"}})

    page = await orchestrator.generate_page_data(identity)

    assert page.title == "Professional Services"
    assert page.tagline == "Expert Professional Services"
    assert page.section_order == list(DEFAULT_SECTION_ORDER)
    assert page.hero.headline == "Only a headline"
    assert page.hero.cta_text == "Contact Me"
    assert page.services.items[0].title == DEFAULT_SERVICES["items"][0]["title"]
    assert page.about.enabled is False
    assert page.cta.enabled is False
    assert SectionKind.hero not in orchestrator.failed_sections
    assert set(orchestrator.failed_sections) == {
        SectionKind.services,
        SectionKind.about,
        SectionKind.cta,
        SectionKind.footer,
    }


@pytest.mark.asyncio
async def test_generate_fails_without_draft(orchestrator, identity):
    with pytest.raises(BackendStructureError):
        await orchestrator.generate_page_data(identity)
    assert orchestrator.phase == GenerationPhase.idle


@pytest.mark.asyncio
async def test_empty_draft_is_backfilled_with_defaults(orchestrator, backend, identity):
    backend.when(DRAFT_MARKER, {})
    backend.when(REVIEW_MARKER, {})

    page = await orchestrator.generate_page_data(identity)

    assert orchestrator.phase == GenerationPhase.finalized
    assert page.title == "Professional Services"
    assert page.section_order == list(DEFAULT_SECTION_ORDER)
    assert page.hero.cta_text == "Contact Me"
    assert page.services.items[0].title == DEFAULT_SERVICES["items"][0]["title"]
    assert orchestrator.last_generation_status[SectionKind.hero].used_fallback


@pytest.mark.asyncio
async def test_review_output_is_merged_over_draft(orchestrator, backend, identity, draft):
    backend.when(DRAFT_MARKER, draft)
    backend.when(REVIEW_MARKER, {"tagline": "Reviewed tagline", "faq": {"title": "Questions"}})

    page = await orchestrator.generate_page_data(identity)

    assert page.tagline == "Reviewed tagline"
    assert page.faq.title == "Questions"
    assert len(page.faq.items) == 3
    assert orchestrator.failed_sections == []


@pytest.mark.asyncio
async def test_overrides_are_applied_last(orchestrator, backend, identity, draft):
    backend.when(DRAFT_MARKER, draft)
    backend.when(REVIEW_MARKER, {"title": "Reviewed title"})

    page = await orchestrator.generate_page_data(
        identity, overrides={"title": "Override title", "section_order": ["services", "hero"]}
    )

    assert page.title == "Override title"
    assert page.section_order == [SectionKind.services, SectionKind.hero]
    assert page.about is None


@pytest.mark.asyncio
async def test_missing_section_is_restored_from_segment_cache(orchestrator, backend, segment_cache, identity, draft):
    segment_cache.save_segment(SegmentKind.credibility, {"about": {"content": "Cached about copy"}})
    del draft["about"]
    backend.when(DRAFT_MARKER, draft)

    page = await orchestrator.generate_page_data(identity)

    assert page.about.content == "Cached about copy"
    assert page.about.enabled is True
    assert SectionKind.about not in orchestrator.failed_sections


@pytest.mark.asyncio
async def test_edit_page_merges_over_existing_page(orchestrator, backend, landing_page):
    backend.when(REVIEW_MARKER, {"hero": {"headline": "Edited headline"}})

    edited = await orchestrator.edit_page(landing_page)

    assert edited.hero.headline == "Edited headline"
    assert edited.hero.subheading == landing_page.hero.subheading
    assert edited.section_order == landing_page.section_order


@pytest.mark.asyncio
async def test_edit_page_errors(orchestrator, backend, landing_page):
    with pytest.raises(BackendStructureError):
        await orchestrator.edit_page(landing_page)

    backend.when(REVIEW_MARKER, {"title": ""})
    with pytest.raises(SchemaValidationError):
        await orchestrator.edit_page(landing_page)


@pytest.mark.asyncio
async def test_regeneration_falls_back_after_retries(backend, segment_cache, landing_page):
    orchestrator = PageGenerationOrchestrator(backend=backend, segment_cache=segment_cache, max_retries=3)

    summary = await orchestrator.regenerate_failed_sections(landing_page, sections=["faq"])

    assert not summary.success
    assert summary.results.failed == 1
    assert summary.failed_sections == [SectionKind.faq]
    result = summary.results.sections[SectionKind.faq]
    assert result.used_fallback
    assert result.status == SectionGenerationStatus.completed
    assert result.retry_count == 3
    assert landing_page.faq.enabled is False
    assert orchestrator.failed_sections == [SectionKind.faq]

    prompts = backend.prompts_matching(section_marker("faq"))
    assert len(prompts) == 3
    assert "Other sections on the page" in prompts[0]
    assert "Other sections on the page" not in prompts[1]


@pytest.mark.asyncio
async def test_regeneration_succeeds_on_a_later_attempt(orchestrator, backend, landing_page):
    backend.when(section_marker("faq"), None, NEW_FAQ)

    summary = await orchestrator.regenerate_failed_sections(landing_page, sections=[SectionKind.faq])

    assert summary.success
    result = summary.results.sections[SectionKind.faq]
    assert result.succeeded
    assert result.retry_count == 2
    assert landing_page.faq.title == "Questions"


@pytest.mark.asyncio
async def test_regeneration_targets_recorded_failures(orchestrator, backend, identity, draft):
    draft["faq"] = {"items": []}
    backend.when(DRAFT_MARKER, draft)
    page = await orchestrator.generate_page_data(identity)
    assert page.faq.enabled is False

    backend.when(section_marker("faq"), NEW_FAQ)
    summary = await orchestrator.regenerate_failed_sections(page, identity)

    assert summary.success
    assert list(summary.results.sections) == [SectionKind.faq]
    assert page.faq.enabled is True
    # generated from scratch, not merged over the placeholder
    assert page.faq.items[0].question == NEW_FAQ["items"][0]["question"]
    assert len(page.faq.items) == 3
    assert orchestrator.failed_sections == []


@pytest.mark.asyncio
async def test_regeneration_with_nothing_to_do(orchestrator, backend, landing_page):
    summary = await orchestrator.regenerate_failed_sections(landing_page)

    assert summary.success
    assert summary.message == "No failed sections to regenerate"
    assert backend.calls == []


@pytest.mark.asyncio
async def test_assess_quality_without_recommendations_leaves_page(orchestrator, backend, landing_page):
    backend.when(quality_marker("faq"), scores(3, 3))
    backend.when("You are reviewing the", scores(8, 8))

    report = await orchestrator.assess_quality(landing_page)

    assert report.failing_sections == [SectionKind.faq]
    assert report.page is landing_page
    assert report.regeneration is None
    assert backend.prompts_matching("Write the") == []


@pytest.mark.asyncio
async def test_assess_quality_applies_recommendations(orchestrator, backend, landing_page, identity):
    backend.when(
        quality_marker("faq"),
        scores(3, 3, improvements="Add a question about pricing."),
        scores(9, 8),
    )
    backend.when("You are reviewing the", scores(8, 8))
    backend.when(section_marker("faq"), NEW_FAQ)
    original_faq = landing_page.faq.model_copy(deep=True)

    report = await orchestrator.assess_quality(landing_page, identity, apply_recommendations=True)

    assert report.success
    assert report.failing_sections == [SectionKind.faq]
    assert report.page.faq != original_faq
    assert report.page.faq.title == "Questions"
    assert landing_page.faq == original_faq
    reassessed = report.assessments[SectionKind.faq]
    assert reassessed.score == 8.5
    assert reassessed.passed
    assert reassessed.assessment.improvements_applied
    assert len(backend.prompts_matching(quality_marker("faq"))) == 2
    assert "Add a question about pricing." in backend.prompts_matching(section_marker("faq"))[0]


@pytest.mark.asyncio
async def test_assess_quality_reports_fallback_as_failure(orchestrator, backend, landing_page):
    backend.when(quality_marker("faq"), scores(2, 2))
    backend.when("You are reviewing the", scores(9, 9))

    report = await orchestrator.assess_quality(
        landing_page, thresholds={"min_combined_score": 8.0}, apply_recommendations=True
    )

    assert not report.success
    assert report.regeneration.failed_sections == [SectionKind.faq]
    assert report.page.faq.enabled is False
    assert landing_page.faq.enabled is True


@pytest.mark.asyncio
async def test_regeneration_options_override_the_retry_budget(orchestrator, backend, landing_page):
    summary = await orchestrator.regenerate_failed_sections(
        landing_page, sections=["faq"], options=SectionGenerationOptions(max_retries=1, simplify_prompt=True)
    )

    result = summary.results.sections[SectionKind.faq]
    assert result.used_fallback
    assert result.retry_count == 1
    prompts = backend.prompts_matching(section_marker("faq"))
    assert len(prompts) == 1
    assert "Other sections on the page" not in prompts[0]
