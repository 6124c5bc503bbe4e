"""CLI commands for the PowerShell Function Annotator.

Provides the Click-based command group 'ps-annotate' with subcommands
for annotating a single script, a directory tree of scripts, or
either one chosen through interactive prompts.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

import click

from ps_annotator import __version__
from ps_annotator.generators.annotator import Annotator, plan_files, validate_source
from ps_annotator.generators.llm_client import GeminiClient
from ps_annotator.generators.template_manager import TemplateManager
from ps_annotator.parsers.ps_parser import FunctionExtractor
from ps_annotator.parsers.structure import (
    MatchMode,
    RunSummary,
    SourceDocument,
    SpliceMode,
)
from ps_annotator.utils.config import (
    API_KEY_ENV_VAR,
    AppConfig,
    RunConfig,
    load_config,
)
from ps_annotator.utils.logging import setup_logging

logger = logging.getLogger(__name__)

_MODE_CHOICES = click.Choice(["single", "batch"])
_MATCH_CHOICES = click.Choice([mode.value for mode in MatchMode])
_SPLICE_CHOICES = click.Choice([mode.value for mode in SpliceMode])


def _run_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options shared by the file and dir commands."""
    options = [
        click.option(
            "--api-key",
            envvar=API_KEY_ENV_VAR,
            default=None,
            help=f"Gemini API key (defaults to ${API_KEY_ENV_VAR}).",
        ),
        click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt."),
        click.option(
            "--dry-run",
            is_flag=True,
            help="List the functions that would be annotated without calling the API.",
        ),
        click.option(
            "--match-mode",
            type=_MATCH_CHOICES,
            default=None,
            help="How function ends are found (default from config).",
        ),
        click.option(
            "--splice-mode",
            type=_SPLICE_CHOICES,
            default=None,
            help="How descriptions are inserted (default from config).",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_annotator(
    run: RunConfig,
    config: AppConfig,
    match_mode: Optional[str],
    splice_mode: Optional[str],
) -> Annotator:
    templates = TemplateManager(config.annotation.templates_dir)
    client = GeminiClient(run.api_key, config=config.api, template_manager=templates)
    return Annotator(
        client,
        extractor=FunctionExtractor(match_mode or config.extraction.match_mode),
        template_manager=templates,
        splice_mode=splice_mode or config.annotation.splice_mode,
        extensions=config.annotation.extensions,
    )


def _print_summary(summary: RunSummary) -> None:
    click.echo("\nSummary")
    click.echo(f"  Total:     {summary.attempted}")
    click.echo(f"  Succeeded: {summary.succeeded}")
    click.echo(f"  Failed:    {summary.failed}")
    if summary.failed_files:
        click.echo("  Failed files:")
        for name in summary.failed_files:
            click.echo(f"    - {name}")


def _dry_run(
    mode: str,
    source: Path,
    destination: Path,
    config: AppConfig,
    match_mode: Optional[str],
) -> RunSummary:
    """List what a run would annotate without calling the API.

    Unreadable files are reported and counted as failures.
    """
    validate_source(source, mode)
    if mode == "batch":
        pairs = plan_files(source, destination, config.annotation.extensions)
    else:
        pairs = [(source, destination)]

    extractor = FunctionExtractor(match_mode or config.extraction.match_mode)
    summary = RunSummary()
    click.echo(f"Found {len(pairs)} scripts")
    for src, dest in pairs:
        try:
            document = SourceDocument.from_file(src)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Could not read %s: %s", src, e)
            click.echo(f"  Cannot read: {src} ({e})")
            summary.record_failure(src)
            continue
        spans = extractor.extract(document.text)
        names = ", ".join(span.name for span in spans) or "no functions"
        click.echo(f"  Would annotate: {src} -> {dest} ({names})")
        summary.record_success(src)
    _print_summary(summary)
    click.echo("Dry run complete. No API calls made.")
    return summary


def _execute(
    run: RunConfig,
    config: AppConfig,
    match_mode: Optional[str] = None,
    splice_mode: Optional[str] = None,
    assume_yes: bool = False,
) -> Optional[RunSummary]:
    """Validate, confirm, annotate, and report one run.

    Returns:
        The RunSummary, or None if the run was declined.
    """
    validate_source(run.source, run.mode)

    click.echo(f"Mode:        {run.mode}")
    click.echo(f"Source:      {run.source}")
    click.echo(f"Destination: {run.destination}")
    if not assume_yes and not click.confirm("Proceed with annotation?", default=False):
        click.echo("Aborted. No files were changed.")
        return None

    annotator = _build_annotator(run, config, match_mode, splice_mode)

    def report(src: Path, dest: Path) -> None:
        click.echo(f"Annotated: {src} -> {dest}")

    if run.mode == "batch":
        summary = annotator.annotate_directory(
            run.source, run.destination, on_file_done=report
        )
    else:
        summary = annotator.annotate_single(
            run.source, run.destination, on_file_done=report
        )

    _print_summary(summary)
    return summary


def _guarded(action: Callable[[], Any]) -> None:
    """Run a command body, reporting any failure as an error message."""
    try:
        action()
    except (click.ClickException, click.Abort):
        raise
    except Exception as e:
        logger.debug("Run failed", exc_info=True)
        click.echo(f"Error: {e}", err=True)


def _resolve_api_key(api_key: Optional[str]) -> str:
    return api_key or click.prompt("Gemini API key", hide_input=True)


def _command(
    mode: str,
    config: AppConfig,
    source: Path,
    destination: Path,
    api_key: Optional[str],
    yes: bool,
    dry_run: bool,
    match_mode: Optional[str],
    splice_mode: Optional[str],
) -> None:
    if dry_run:
        _dry_run(mode, source, destination, config, match_mode)
        return

    validate_source(source, mode)
    run = RunConfig(
        mode=mode,
        api_key=_resolve_api_key(api_key),
        source=source,
        destination=destination,
    )
    _execute(run, config, match_mode, splice_mode, assume_yes=yes)


@click.group()
@click.version_option(version=__version__, prog_name="ps-annotate")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a YAML config file.",
)
@click.pass_context
def annotate(ctx: click.Context, config_path: Optional[str]) -> None:
    """PowerShell Function Annotator: describe functions with Gemini."""
    config = load_config(config_path)
    setup_logging(
        level=config.logging.level,
        log_format=config.logging.format,
        log_file=config.logging.file,
    )
    ctx.obj = config


@annotate.command("file")
@click.argument("source", type=click.Path(path_type=Path))
@click.argument("destination", type=click.Path(path_type=Path))
@_run_options
@click.pass_obj
def annotate_file(
    config: AppConfig,
    source: Path,
    destination: Path,
    api_key: Optional[str],
    yes: bool,
    dry_run: bool,
    match_mode: Optional[str],
    splice_mode: Optional[str],
) -> None:
    """Annotate a single PowerShell script.

    Writes a copy of SOURCE to DESTINATION with a description comment
    above every function.
    """
    _guarded(
        lambda: _command(
            "single",
            config,
            source,
            destination,
            api_key,
            yes,
            dry_run,
            match_mode,
            splice_mode,
        )
    )


@annotate.command("dir")
@click.argument("source", type=click.Path(path_type=Path))
@click.argument("destination", type=click.Path(path_type=Path))
@_run_options
@click.pass_obj
def annotate_dir(
    config: AppConfig,
    source: Path,
    destination: Path,
    api_key: Optional[str],
    yes: bool,
    dry_run: bool,
    match_mode: Optional[str],
    splice_mode: Optional[str],
) -> None:
    """Annotate every PowerShell script under a directory.

    Searches SOURCE recursively and writes annotated copies under
    DESTINATION, mirroring the directory layout.
    """
    _guarded(
        lambda: _command(
            "batch",
            config,
            source,
            destination,
            api_key,
            yes,
            dry_run,
            match_mode,
            splice_mode,
        )
    )


@annotate.command()
@click.pass_obj
def interactive(config: AppConfig) -> None:
    """Prompt for mode, API key, and paths, then annotate."""

    def body() -> None:
        mode = click.prompt("Mode", type=_MODE_CHOICES, default="single")
        api_key = click.prompt("Gemini API key", hide_input=True)
        source = Path(click.prompt("Source path"))
        destination = Path(click.prompt("Destination path"))
        run = RunConfig(
            mode=mode, api_key=api_key, source=source, destination=destination
        )
        _execute(run, config)

    _guarded(body)
