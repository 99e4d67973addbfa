import json
import logging
import threading
from pathlib import Path

import pytest
from typer.testing import CliRunner

from precache_build import cli as cli_module
from precache_build.cli import app
from precache_build.generator.workbox import WorkboxStyleGenerator
from precache_build.orchestrator import BuildOrchestrator

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_root_handlers():
    yield
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root_logger.removeHandler(handler)
            handler.close()


def _settings_file(root: Path, targets_yaml: str = "targets: []\n") -> Path:
    path = root / "configs" / "settings.yaml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(targets_yaml, encoding="utf-8")
    return path


def _site(root: Path, name: str = "doc", files: int = 5, size: int = 2000) -> Path:
    site = root / name
    site.mkdir(parents=True)
    for idx in range(files):
        (site / f"asset{idx}.js").write_bytes(b"x" * size)
    return site


def test_build_single_target_succeeds(tmp_path: Path):
    site = _site(tmp_path)
    output = site / "service-worker.js"

    result = runner.invoke(
        app,
        ["build", "--target", f"{site}:{output}", "--config-file", str(_settings_file(tmp_path))],
    )

    assert result.exit_code == 0, result.output
    assert "targets_succeeded: 1" in result.output
    assert "files_total: 5" in result.output
    assert "bytes_total: 10000" in result.output
    assert output.exists()
    assert (tmp_path / "logs" / "precache_build.log").exists()


def test_build_partial_failure_exits_nonzero(tmp_path: Path):
    site = _site(tmp_path)

    result = runner.invoke(
        app,
        [
            "build",
            "--target",
            f"{site}:{site / 'service-worker.js'}",
            "--target",
            f"{tmp_path / 'missing-dir'}:{tmp_path / 'x' / 'service-worker.js'}",
            "--config-file",
            str(_settings_file(tmp_path)),
        ],
    )

    assert result.exit_code == 1
    assert "targets_failed: 1" in result.output
    assert f"Failed {tmp_path / 'missing-dir'}: Source directory does not exist" in result.output
    assert f"Generated {(site / 'service-worker.js').as_posix()}, which will precache 5 files" in result.output
    assert (site / "service-worker.js").exists()


def test_build_uses_configured_targets(tmp_path: Path):
    site = _site(tmp_path, "blog", files=2, size=10)
    settings_file = _settings_file(
        tmp_path,
        f"targets:\n  - label: blog\n    source_directory: '{site}'\n    output_path: '{site / 'sw.js'}'\n",
    )

    result = runner.invoke(app, ["build", "--config-file", str(settings_file)])

    assert result.exit_code == 0, result.output
    assert "targets_total: 1" in result.output
    assert (site / "sw.js").exists()


def test_build_without_targets_exits_zero(tmp_path: Path):
    result = runner.invoke(app, ["build", "--config-file", str(_settings_file(tmp_path))])

    assert result.exit_code == 0, result.output
    assert "targets_total: 0" in result.output


def test_build_rejects_malformed_target_option(tmp_path: Path):
    result = runner.invoke(
        app,
        ["build", "--target", "no-separator", "--config-file", str(_settings_file(tmp_path))],
    )
    assert result.exit_code == 2


def test_build_rejects_blank_configured_target(tmp_path: Path):
    settings_file = _settings_file(tmp_path, "targets:\n  - source_directory: ''\n    output_path: out/sw.js\n")

    result = runner.invoke(app, ["build", "--config-file", str(settings_file)])

    assert result.exit_code == 2


def test_build_write_summary(tmp_path: Path):
    site = _site(tmp_path, files=1, size=3)

    result = runner.invoke(
        app,
        [
            "build",
            "--target",
            f"{site}:{site / 'service-worker.js'}",
            "--write-summary",
            "--config-file",
            str(_settings_file(tmp_path)),
        ],
    )

    assert result.exit_code == 0, result.output
    summaries = list((tmp_path / "artifacts" / "run_summaries").glob("*_build_summary.json"))
    assert len(summaries) == 1
    payload = json.loads(summaries[0].read_text(encoding="utf-8"))
    assert payload["targets_succeeded"] == 1
    assert list((tmp_path / "artifacts" / "run_summaries").glob("*_target_results.parquet"))


def test_scan_previews_without_writing(tmp_path: Path):
    site = _site(tmp_path, files=2, size=4)
    output = site / "service-worker.js"

    result = runner.invoke(
        app,
        [
            "scan",
            "--target",
            f"{site}:{output}",
            "--show-entries",
            "--config-file",
            str(_settings_file(tmp_path)),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "2 files, 8 bytes" in result.output
    assert "asset0.js" in result.output
    assert not output.exists()


def test_scan_missing_directory_exits_nonzero(tmp_path: Path):
    result = runner.invoke(
        app,
        [
            "scan",
            "--target",
            f"{tmp_path / 'missing-dir'}:{tmp_path / 'sw.js'}",
            "--config-file",
            str(_settings_file(tmp_path)),
        ],
    )

    assert result.exit_code == 1
    assert "Failed" in result.output


def test_show_config_renders_yaml(tmp_path: Path):
    result = runner.invoke(app, ["show-config", "--config-file", str(_settings_file(tmp_path))])

    assert result.exit_code == 0, result.output
    assert "glob_patterns" in result.output
    assert "max_workers: 1" in result.output


def test_build_passes_workers_and_timeout_to_orchestrator(tmp_path: Path, monkeypatch):
    captured = {}

    class CapturingOrchestrator(BuildOrchestrator):
        def __init__(self, *args, **kwargs):
            captured.update(kwargs)
            super().__init__(*args, **kwargs)

    monkeypatch.setattr(cli_module, "BuildOrchestrator", CapturingOrchestrator)
    first = _site(tmp_path, "first", files=1, size=10)
    second = _site(tmp_path, "second", files=2, size=10)

    result = runner.invoke(
        app,
        [
            "build",
            "--target",
            f"{first}:{first / 'sw.js'}",
            "--target",
            f"{second}:{second / 'sw.js'}",
            "--workers",
            "2",
            "--timeout-sec",
            "30",
            "--config-file",
            str(_settings_file(tmp_path)),
        ],
    )

    assert result.exit_code == 0, result.output
    assert captured["max_workers"] == 2
    assert captured["timeout_sec"] == 30.0
    lines = result.output.splitlines()
    first_line = f"Generated {(first / 'sw.js').as_posix()}, which will precache 1 files, totaling 10 bytes."
    second_line = f"Generated {(second / 'sw.js').as_posix()}, which will precache 2 files, totaling 20 bytes."
    assert lines.index(first_line) < lines.index(second_line)


def test_build_timeout_fails_only_the_slow_target(tmp_path: Path, monkeypatch):
    release = threading.Event()
    original_generate = WorkboxStyleGenerator.generate

    def slow_generate(self, source_directory, output_path, options):
        if Path(source_directory).name == "stuck":
            release.wait(5.0)
        return original_generate(self, source_directory, output_path, options)

    monkeypatch.setattr(WorkboxStyleGenerator, "generate", slow_generate)
    stuck = _site(tmp_path, "stuck", files=1, size=1)
    fine = _site(tmp_path, "fine", files=1, size=1)

    try:
        result = runner.invoke(
            app,
            [
                "build",
                "--target",
                f"{stuck}:{tmp_path / 'out' / 'stuck-sw.js'}",
                "--target",
                f"{fine}:{fine / 'sw.js'}",
                "--timeout-sec",
                "0.05",
                "--config-file",
                str(_settings_file(tmp_path)),
            ],
        )
    finally:
        release.set()

    assert result.exit_code == 1, result.output
    assert f"Failed {stuck.as_posix()}: Generation did not finish within 0.05 seconds." in result.output
    assert (fine / "sw.js").exists()


def test_build_help_mentions_abandoned_timeouts():
    result = runner.invoke(app, ["build", "--help"])
    assert result.exit_code == 0
    assert "abandoned" in result.output


def test_build_target_label_suffix(tmp_path: Path):
    site = _site(tmp_path, files=1, size=1)
    output = tmp_path / "out" / "v=2" / "sw.js"

    result = runner.invoke(
        app,
        ["build", "--target", f"{site}:{output}::docs", "--config-file", str(_settings_file(tmp_path))],
    )

    assert result.exit_code == 0, result.output
    assert output.exists()


def test_scan_excludes_sibling_outputs_in_shared_source(tmp_path: Path):
    site = _site(tmp_path, files=2, size=4)
    (site / "en-sw.js").write_text("old", encoding="utf-8")
    (site / "fr-sw.js").write_text("old", encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "scan",
            "--target",
            f"{site}:{site / 'en-sw.js'}::en",
            "--target",
            f"{site}:{site / 'fr-sw.js'}::fr",
            "--config-file",
            str(_settings_file(tmp_path)),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "en: 2 files, 8 bytes" in result.output
    assert "fr: 2 files, 8 bytes" in result.output
