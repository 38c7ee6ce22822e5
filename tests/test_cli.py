import json

import pytest
from click.testing import CliRunner

from landing_page_drafter.cli import cli

from conftest import DRAFT_MARKER, quality_marker, scores


@pytest.fixture
def run(settings, service):
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(cli, ["--page-key", "acme", *args], obj={"settings": settings, "service": service})

    return invoke


@pytest.fixture
def identity_file(tmp_path, identity):
    path = tmp_path / "identity.json"
    path.write_text(json.dumps(identity.model_dump(mode="json", by_alias=True)), encoding="utf-8")
    return path


def test_generate_then_view(run, backend, identity_file, draft):
    backend.when(DRAFT_MARKER, draft)

    generated = run("generate", "--identity", str(identity_file))
    assert generated.exit_code == 0, generated.output
    assert "Landing page generated and saved" in generated.output

    viewed = run("view")
    assert viewed.exit_code == 0
    page = json.loads(viewed.output.split("\n", 1)[1])
    assert page["landingPage"]["title"] == draft["title"]


def test_view_without_page_exits_non_zero(run):
    result = run("view")

    assert result.exit_code == 1
    assert "run generate first" in result.output


def test_identity_command(run, identity_file, page_store):
    result = run("identity", str(identity_file))

    assert result.exit_code == 0
    assert "Brand identity saved" in result.output


def test_qa_alias_runs_assessment(run, backend, page_store, landing_page):
    import asyncio

    asyncio.run(page_store.save_landing_page("acme", landing_page))
    backend.when(quality_marker("faq"), scores(3, 3))
    backend.when("You are reviewing the", scores(9, 9))

    result = run("qa", "--min-combined", "5")

    assert result.exit_code == 0, result.output
    assert "faq" in result.output
    assert "FAIL" in result.output


@pytest.mark.parametrize("command", ["regenerate-failed", "retry-failed"])
def test_regenerate_with_unknown_section_fails(run, page_store, landing_page, command):
    import asyncio

    asyncio.run(page_store.save_landing_page("acme", landing_page))

    result = run(command, "--section", "testimonials")

    assert result.exit_code == 1
    assert "Unknown section kind" in result.output


def test_apply_recommendations_alias_exits_non_zero_on_fallback(run, backend, page_store, landing_page):
    import asyncio

    asyncio.run(page_store.save_landing_page("acme", landing_page))
    backend.when(quality_marker("faq"), scores(2, 2))
    backend.when("You are reviewing the", scores(9, 9))

    result = run("apply-recommendations")

    assert result.exit_code == 1
    assert "fallback content applied to: faq" in result.output
