"""Run manifest generation across declared targets and collect ordered results."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Sequence

from precache_build.errors import GenerationError, GenerationTimeoutError
from precache_build.generator.base import GenerateOptions, GenerateResult, ManifestGenerator
from precache_build.generator.workbox import WorkboxStyleGenerator
from precache_build.models import BuildResult
from precache_build.reporting import format_result_line
from precache_build.targets import TargetConfig, validate_targets

LOGGER = logging.getLogger(__name__)

__all__ = ["BuildOrchestrator", "BuildResult"]


def _call_with_timeout(
    fn: Callable[[], GenerateResult],
    timeout_sec: float,
    label: str,
) -> GenerateResult:
    """Run ``fn`` on a daemon thread and give up waiting after ``timeout_sec``.

    An expired call keeps running in the background; its result is discarded.
    """

    outcome: dict[str, object] = {}

    def _target() -> None:
        try:
            outcome["result"] = fn()
        except Exception as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=_target, name=f"precache-generate-{label}", daemon=True)
    worker.start()
    worker.join(timeout_sec)
    if worker.is_alive():
        raise GenerationTimeoutError(
            f"Generation did not finish within {timeout_sec:g} seconds.",
            target_label=label,
        )
    if "error" in outcome:
        raise outcome["error"]  # type: ignore[misc]
    if "result" not in outcome:
        raise GenerationError("Generation ended without a result.", target_label=label)
    return outcome["result"]  # type: ignore[return-value]


class BuildOrchestrator:
    """Invoke a manifest generator once per target.

    Per-target generation failures are recorded on the corresponding
    ``BuildResult`` and never stop sibling targets. Configuration problems
    raise ``InvalidTargetError`` before anything runs.
    """

    def __init__(
        self,
        generator: ManifestGenerator | None = None,
        *,
        options: GenerateOptions | None = None,
        max_workers: int = 1,
        timeout_sec: float | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1.")
        if timeout_sec is not None and timeout_sec <= 0:
            raise ValueError("timeout_sec must be > 0 when set.")
        self.logger = logger or LOGGER
        self.generator = generator or WorkboxStyleGenerator(logger=self.logger)
        self.options = options or GenerateOptions()
        self.max_workers = max_workers
        self.timeout_sec = timeout_sec

    def run(self, targets: Sequence[TargetConfig]) -> list[BuildResult]:
        """Attempt every target exactly once and return results in input order."""

        target_list = list(targets)
        validate_targets(target_list)

        workers = min(self.max_workers, len(target_list)) or 1
        self.logger.info("build.start targets=%s workers=%s timeout_sec=%s", len(target_list), workers, self.timeout_sec)
        started_mono = time.monotonic()
        run_options = self.options.excluding(target.output_path for target in target_list)

        if workers == 1:
            results = [self._build_one(target, run_options) for target in target_list]
        else:
            slots: list[BuildResult | None] = [None] * len(target_list)
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="precache-build") as executor:
                futures = {
                    executor.submit(self._build_one, target, run_options): idx
                    for idx, target in enumerate(target_list)
                }
                for future in as_completed(futures):
                    slots[futures[future]] = future.result()
            results = [result for result in slots if result is not None]

        failed = sum(1 for result in results if not result.succeeded)
        self.logger.info(
            "build.finish targets=%s succeeded=%s failed=%s elapsed_sec=%.2f",
            len(results),
            len(results) - failed,
            failed,
            time.monotonic() - started_mono,
        )
        return results

    def _generate(self, target: TargetConfig, options: GenerateOptions) -> GenerateResult:
        def _invoke() -> GenerateResult:
            return self.generator.generate(target.source_directory, target.output_path, options)

        if self.timeout_sec is None:
            return _invoke()
        return _call_with_timeout(_invoke, self.timeout_sec, target.label)

    def _build_one(self, target: TargetConfig, run_options: GenerateOptions) -> BuildResult:
        started_mono = time.monotonic()
        options = run_options.for_source(target.source_directory)
        try:
            generated = self._generate(target, options)
        except GenerationError as exc:
            if exc.target_label is None:
                exc.target_label = target.label
            result = BuildResult(
                target=target,
                error=exc,
                duration_sec=time.monotonic() - started_mono,
            )
        except Exception as exc:
            self.logger.exception("build.target_crashed label=%s", target.label)
            error = GenerationError(f"{type(exc).__name__}: {exc}", target_label=target.label)
            error.__cause__ = exc
            result = BuildResult(
                target=target,
                error=error,
                duration_sec=time.monotonic() - started_mono,
            )
        else:
            result = BuildResult(
                target=target,
                file_count=generated.file_count,
                total_bytes=generated.total_bytes,
                warnings=tuple(generated.warnings),
                duration_sec=time.monotonic() - started_mono,
            )

        if result.succeeded:
            self.logger.info(format_result_line(result))
        else:
            self.logger.error(format_result_line(result))
        return result
