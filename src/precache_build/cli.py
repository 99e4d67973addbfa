"""Typer CLI entrypoint for precache_build."""

from __future__ import annotations

import logging
from pathlib import Path
from uuid import uuid4

import typer
import yaml

from precache_build.config import AppSettings, load_settings
from precache_build.errors import GenerationError, InvalidTargetError
from precache_build.generator.scan import scan_precache_entries
from precache_build.logging_utils import configure_logging
from precache_build.orchestrator import BuildOrchestrator
from precache_build.reporting import exit_code_for, format_result_line, summarize_results, write_run_summary
from precache_build.targets import TargetConfig, parse_target_specs, validate_targets

EXIT_INVALID_CONFIG = 2

app = typer.Typer(
    add_completion=False,
    help="precache_build command line interface.",
    no_args_is_help=True,
)


def _load_and_optionally_configure_logger(
    config_file: Path | None,
    configure: bool,
) -> tuple[AppSettings, logging.Logger]:
    settings = load_settings(config_file=config_file)
    if configure:
        logger = configure_logging(settings.paths.logs_root / "precache_build.log")
    else:
        logger = logging.getLogger("precache_build")
    return settings, logger


def _resolve_targets(target_specs: list[str] | None, settings: AppSettings) -> list[TargetConfig]:
    """Use CLI targets when given, otherwise the targets declared in settings."""

    if target_specs:
        try:
            targets = parse_target_specs(target_specs)
            validate_targets(targets)
        except InvalidTargetError as exc:
            raise typer.BadParameter(str(exc), param_hint="--target") from exc
        return targets

    try:
        targets = settings.target_configs()
        validate_targets(targets)
    except InvalidTargetError as exc:
        typer.echo(f"Invalid target configuration: {exc}", err=True)
        raise typer.Exit(code=EXIT_INVALID_CONFIG) from exc
    return targets


@app.command("show-config")
def show_config(
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Print the effective configuration after env overrides."""

    settings, _ = _load_and_optionally_configure_logger(config_file, configure=False)
    rendered = yaml.safe_dump(settings.as_dict(), sort_keys=False)
    typer.echo(rendered)


@app.command("build")
def build(
    target: list[str] | None = typer.Option(
        None,
        "--target",
        help="Target as <sourceDir>:<outputPath>[::<label>]. Repeatable; overrides configured targets.",
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        min=1,
        help="Generate up to N targets concurrently (default from settings, normally 1).",
    ),
    timeout_sec: float | None = typer.Option(
        None,
        "--timeout-sec",
        min=0.001,
        help=(
            "Fail a target whose generation takes longer than this many seconds. "
            "A timed-out generation is abandoned, not killed, and may still write its output later."
        ),
    ),
    write_summary: bool = typer.Option(
        False,
        "--write-summary",
        help="Also write a JSON summary and parquet results table under artifacts_root.",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Generate a precache service worker for every target."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    targets = _resolve_targets(target, settings)

    orchestrator = BuildOrchestrator(
        options=settings.generator.to_generate_options(),
        max_workers=workers or settings.build.max_workers,
        timeout_sec=timeout_sec if timeout_sec is not None else settings.build.timeout_sec,
        logger=logger,
    )
    try:
        results = orchestrator.run(targets)
    except InvalidTargetError as exc:
        typer.echo(f"Invalid target configuration: {exc}", err=True)
        raise typer.Exit(code=EXIT_INVALID_CONFIG) from exc

    summary = summarize_results(results)
    typer.echo(f"targets_total: {summary['targets_total']}")
    typer.echo(f"targets_succeeded: {summary['targets_succeeded']}")
    typer.echo(f"targets_failed: {summary['targets_failed']}")
    typer.echo(f"files_total: {summary['files_total']}")
    typer.echo(f"bytes_total: {summary['bytes_total']}")
    for result in results:
        typer.echo(format_result_line(result))

    if write_summary or settings.build.write_summary:
        run_id = f"precache-build-{uuid4().hex[:12]}"
        paths = write_run_summary(results, settings.paths.artifacts_root, run_id)
        logger.info("build.summary_written run_id=%s summary_path=%s", run_id, paths.summary_path)
        typer.echo(f"summary_path: {paths.summary_path}")
        typer.echo(f"results_path: {paths.results_path}")

    exit_code = exit_code_for(results)
    if exit_code != 0:
        raise typer.Exit(code=exit_code)


@app.command("scan")
def scan(
    target: list[str] | None = typer.Option(
        None,
        "--target",
        help="Target as <sourceDir>:<outputPath>[::<label>]. Repeatable; overrides configured targets.",
    ),
    show_entries: bool = typer.Option(
        False,
        "--show-entries",
        help="List every URL and revision that would be precached.",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Preview what each target would precache without writing anything."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=False)
    targets = _resolve_targets(target, settings)
    options = settings.generator.to_generate_options().excluding(item.output_path for item in targets)

    failures = 0
    for item in targets:
        try:
            result = scan_precache_entries(
                item.source_directory,
                options.for_source(item.source_directory),
                exclude=options.exclude_paths,
                logger=logger,
            )
        except GenerationError as exc:
            failures += 1
            typer.echo(f"Failed {item.label}: {exc.message}")
            continue

        typer.echo(f"{item.label}: {result.file_count} files, {result.total_bytes} bytes")
        if show_entries:
            for row in result.manifest.iter_rows(named=True):
                typer.echo(f"  {row['url']} {row['revision']} {row['size_bytes']}")
        for warning in result.warnings:
            typer.echo(f"  warning: {warning}")

    if failures:
        raise typer.Exit(code=1)


def main() -> None:
    """CLI script entrypoint."""

    app()


if __name__ == "__main__":
    main()
