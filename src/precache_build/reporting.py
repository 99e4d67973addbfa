"""Human-readable result lines, aggregate summaries, and run artifacts."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import polars as pl

from precache_build.models import BuildResult
from precache_build.utils.atomic import write_json_atomically, write_parquet_atomically
from precache_build.utils.time_utils import now_utc

EXIT_OK = 0
EXIT_TARGET_FAILED = 1


@dataclass(frozen=True, slots=True)
class RunSummaryPaths:
    """Locations of persisted run-summary artifacts."""

    summary_path: Path
    results_path: Path


def format_result_line(result: BuildResult) -> str:
    if result.succeeded:
        return (
            f"Generated {result.target.output_path.as_posix()}, which will precache "
            f"{result.file_count} files, totaling {result.total_bytes} bytes."
        )
    return f"Failed {result.target.label}: {result.error_message}"


def exit_code_for(results: Sequence[BuildResult]) -> int:
    """Return 0 when every target succeeded (or none were declared), else 1."""

    return EXIT_OK if all(result.succeeded for result in results) else EXIT_TARGET_FAILED


def _result_row(result: BuildResult) -> dict[str, object]:
    return {
        "label": result.target.label,
        "source_directory": str(result.target.source_directory),
        "output_path": str(result.target.output_path),
        "success": result.succeeded,
        "file_count": result.file_count,
        "total_bytes": result.total_bytes,
        "warning_count": len(result.warnings),
        "duration_sec": round(result.duration_sec, 3),
        "error_type": result.error_type,
        "error_message": result.error_message,
    }


def results_schema() -> dict[str, pl.DataType]:
    return {
        "label": pl.String,
        "source_directory": pl.String,
        "output_path": pl.String,
        "success": pl.Boolean,
        "file_count": pl.Int64,
        "total_bytes": pl.Int64,
        "warning_count": pl.Int64,
        "duration_sec": pl.Float64,
        "error_type": pl.String,
        "error_message": pl.String,
    }


def results_frame(results: Sequence[BuildResult]) -> pl.DataFrame:
    """Per-target results table in input order with a stable schema."""

    rows = [_result_row(result) for result in results]
    if not rows:
        return pl.DataFrame(schema=results_schema())
    return pl.DataFrame(rows, schema_overrides=results_schema())


def summarize_results(results: Sequence[BuildResult]) -> dict[str, Any]:
    failed = [result for result in results if not result.succeeded]
    return {
        "targets_total": len(results),
        "targets_succeeded": len(results) - len(failed),
        "targets_failed": len(failed),
        "files_total": sum(result.file_count for result in results),
        "bytes_total": sum(result.total_bytes for result in results),
        "failed_targets": [
            {
                "label": result.target.label,
                "error_type": result.error_type,
                "error_message": result.error_message,
            }
            for result in failed
        ],
        "results": [_result_row(result) for result in results],
        "exit_code": exit_code_for(results),
    }


def write_run_summary(
    results: Sequence[BuildResult],
    artifacts_root: Path,
    run_id: str,
) -> RunSummaryPaths:
    """Persist a JSON summary and a parquet results table for one run."""

    summaries_dir = artifacts_root / "run_summaries"
    summary_path = summaries_dir / f"{run_id}_build_summary.json"
    results_path = summaries_dir / f"{run_id}_target_results.parquet"

    payload = summarize_results(results)
    payload["run_id"] = run_id
    payload["written_ts"] = now_utc().isoformat()
    payload["outputs"] = {"results_path": str(results_path)}

    write_parquet_atomically(results_frame(results), results_path)
    write_json_atomically(payload, summary_path)
    return RunSummaryPaths(summary_path=summary_path, results_path=results_path)
