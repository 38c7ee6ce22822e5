"""
Landing page CLI

Commands map one-to-one onto the website service: generate, edit, assess (qa),
apply (apply-recommendations), regenerate-failed (retry-failed), view and
identity.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable

import click

from .config import PipelineSettings, build_service
from .logging_config import setup_logging
from .website_service import LandingPageService, OperationResult


def _service(ctx: click.Context) -> LandingPageService:
    obj = ctx.ensure_object(dict)
    if obj.get("service") is None:
        try:
            obj["service"] = build_service(obj["settings"])
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc
    return obj["service"]


def _run(ctx: click.Context, operation: Awaitable[OperationResult], *, show_data: bool = False) -> OperationResult:
    result = asyncio.run(operation)
    if result.success:
        click.echo(f"✅ {result.message}")
    else:
        click.echo(f"❌ {result.message}", err=True)
    if show_data and result.data is not None:
        click.echo(json.dumps(result.data, ensure_ascii=False, indent=2))
    if not result.success:
        ctx.exit(1)
    return result


def _load_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fp:
            return json.load(fp)
    except ValueError as exc:
        raise click.BadParameter(f"{path} is not valid JSON: {exc}") from exc


def _thresholds(min_combined: float | None, min_quality: float | None, min_confidence: float | None) -> dict[str, float] | None:
    thresholds = {
        "min_combined_score": min_combined,
        "min_quality_score": min_quality,
        "min_confidence_score": min_confidence,
    }
    thresholds = {key: value for key, value in thresholds.items() if value is not None}
    return thresholds or None


def threshold_options(command):
    command = click.option("--min-confidence", type=float, help="Minimum confidence score (0-10)")(command)
    command = click.option("--min-quality", type=float, help="Minimum quality score (0-10)")(command)
    command = click.option("--min-combined", type=float, help="Minimum combined score (0-10)")(command)
    return command


@click.group()
@click.version_option(version="0.1.0")
@click.option("--page-key", default=None, help="Page to operate on (defaults to LP_PAGE_KEY or 'default')")
@click.option("--verbose", is_flag=True, help="Log at debug level")
@click.pass_context
def cli(ctx: click.Context, page_key: str | None, verbose: bool) -> None:
    """
    Landing page drafter

    Generate a landing page from a brand identity, then assess it and
    regenerate the sections that failed or scored poorly.
    """
    obj = ctx.ensure_object(dict)
    if "settings" not in obj:
        obj["settings"] = PipelineSettings.from_env()
    settings: PipelineSettings = obj["settings"]
    obj["page_key"] = page_key or settings.page_key

    if obj.get("service") is None:
        setup_logging(
            environment="dev" if verbose else settings.environment,
            project_id=settings.project_id,
            use_cloud_logging=False,
        )


@cli.command(name="identity")
@click.argument("identity_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def identity_command(ctx: click.Context, identity_file: Path) -> None:
    """Load a brand identity JSON file for the page."""
    data = _load_json(identity_file)
    _run(ctx, _service(ctx).save_identity(data, ctx.obj["page_key"]))


@cli.command(name="generate")
@click.option(
    "--identity",
    "identity_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Brand identity JSON; saved for the page before generating",
)
@click.option(
    "--overrides",
    "overrides_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON object of page fields that replace generated values",
)
@click.option("--json", "as_json", is_flag=True, help="Print the generated page")
@click.pass_context
def generate_command(ctx: click.Context, identity_file: Path | None, overrides_file: Path | None, as_json: bool) -> None:
    """Generate the landing page from the saved brand identity."""
    service = _service(ctx)
    page_key = ctx.obj["page_key"]
    if identity_file is not None:
        _run(ctx, service.save_identity(_load_json(identity_file), page_key))
    overrides = _load_json(overrides_file) if overrides_file is not None else None
    _run(ctx, service.generate(page_key, overrides=overrides), show_data=as_json)


@cli.command(name="edit")
@click.option("--json", "as_json", is_flag=True, help="Print the edited page")
@click.pass_context
def edit_command(ctx: click.Context, as_json: bool) -> None:
    """Run an editorial consistency pass over the saved page."""
    _run(ctx, _service(ctx).edit(ctx.obj["page_key"]), show_data=as_json)


@cli.command(name="assess")
@threshold_options
@click.option("--json", "as_json", is_flag=True, help="Print per-section assessments")
@click.pass_context
def assess_command(
    ctx: click.Context,
    min_combined: float | None,
    min_quality: float | None,
    min_confidence: float | None,
    as_json: bool,
) -> None:
    """Score every section against the quality thresholds."""
    result = _run(
        ctx,
        _service(ctx).assess(ctx.obj["page_key"], thresholds=_thresholds(min_combined, min_quality, min_confidence)),
        show_data=as_json,
    )
    if not as_json and result.data:
        for section, assessed in result.data["assessments"].items():
            score = assessed["score"]
            status = "pass" if assessed["passed"] else "FAIL"
            click.echo(f"  {section:<18} {status:<5} {'-' if score is None else f'{score:.1f}'}")


@cli.command(name="apply")
@threshold_options
@click.option("--json", "as_json", is_flag=True, help="Print the assessment and regeneration results")
@click.pass_context
def apply_command(
    ctx: click.Context,
    min_combined: float | None,
    min_quality: float | None,
    min_confidence: float | None,
    as_json: bool,
) -> None:
    """Assess the page and regenerate the sections below threshold."""
    _run(
        ctx,
        _service(ctx).apply_recommendations(
            ctx.obj["page_key"], thresholds=_thresholds(min_combined, min_quality, min_confidence)
        ),
        show_data=as_json,
    )


@cli.command(name="regenerate-failed")
@click.option("--section", "sections", multiple=True, help="Section kind to regenerate (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Print per-section results")
@click.pass_context
def regenerate_failed_command(ctx: click.Context, sections: tuple[str, ...], as_json: bool) -> None:
    """Regenerate sections that failed or carry fallback content."""
    _run(
        ctx,
        _service(ctx).regenerate_failed(ctx.obj["page_key"], sections=list(sections) or None),
        show_data=as_json,
    )


@cli.command(name="view")
@click.pass_context
def view_command(ctx: click.Context) -> None:
    """Print the saved landing page as JSON."""
    _run(ctx, _service(ctx).view(ctx.obj["page_key"]), show_data=True)


# Aliases
cli.add_command(assess_command, name="qa")
cli.add_command(apply_command, name="apply-recommendations")
cli.add_command(regenerate_failed_command, name="retry-failed")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
