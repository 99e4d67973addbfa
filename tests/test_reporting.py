import json
from pathlib import Path

import polars as pl

from precache_build.errors import ScanError
from precache_build.models import BuildResult
from precache_build.reporting import (
    exit_code_for,
    format_result_line,
    results_frame,
    summarize_results,
    write_run_summary,
)
from precache_build.targets import TargetConfig


def _ok() -> BuildResult:
    return BuildResult(
        target=TargetConfig(source_directory="doc", output_path="doc/service-worker.js"),
        file_count=5,
        total_bytes=10000,
    )


def _failed() -> BuildResult:
    return BuildResult(
        target=TargetConfig(source_directory="missing-dir", output_path="x/service-worker.js"),
        error=ScanError("Source directory does not exist: missing-dir"),
    )


def test_format_result_line_success_and_failure():
    assert (
        format_result_line(_ok())
        == "Generated doc/service-worker.js, which will precache 5 files, totaling 10000 bytes."
    )
    assert format_result_line(_failed()) == "Failed missing-dir: Source directory does not exist: missing-dir"


def test_exit_code_for():
    assert exit_code_for([]) == 0
    assert exit_code_for([_ok()]) == 0
    assert exit_code_for([_ok(), _failed()]) == 1


def test_summarize_results_counts_and_order():
    summary = summarize_results([_ok(), _failed()])
    assert summary["targets_total"] == 2
    assert summary["targets_succeeded"] == 1
    assert summary["targets_failed"] == 1
    assert summary["files_total"] == 5
    assert summary["bytes_total"] == 10000
    assert summary["failed_targets"] == [
        {
            "label": "missing-dir",
            "error_type": "ScanError",
            "error_message": "Source directory does not exist: missing-dir",
        }
    ]
    assert [row["label"] for row in summary["results"]] == ["doc", "missing-dir"]
    assert summary["exit_code"] == 1


def test_results_frame_has_stable_schema_when_empty():
    frame = results_frame([])
    assert frame.height == 0
    assert frame.schema["success"] == pl.Boolean
    assert frame.schema["total_bytes"] == pl.Int64


def test_write_run_summary(tmp_path: Path):
    paths = write_run_summary([_ok(), _failed()], tmp_path / "artifacts", "precache-build-test")

    payload = json.loads(paths.summary_path.read_text(encoding="utf-8"))
    assert payload["run_id"] == "precache-build-test"
    assert payload["targets_failed"] == 1

    frame = pl.read_parquet(paths.results_path)
    assert frame["label"].to_list() == ["doc", "missing-dir"]
    assert frame["success"].to_list() == [True, False]
    assert frame["error_type"].to_list() == [None, "ScanError"]
