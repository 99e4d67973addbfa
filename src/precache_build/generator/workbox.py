"""Default manifest generator producing a workbox-style service worker."""

from __future__ import annotations

import logging
from pathlib import Path

from precache_build.errors import WriteError
from precache_build.generator.base import GenerateOptions, GenerateResult
from precache_build.generator.scan import scan_precache_entries
from precache_build.generator.service_worker import render_service_worker
from precache_build.utils.atomic import write_text_atomically

LOGGER = logging.getLogger(__name__)


class WorkboxStyleGenerator:
    """Scan a glob directory, fingerprint assets, and write a precaching service worker."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or LOGGER

    def generate(
        self,
        source_directory: Path,
        output_path: Path,
        options: GenerateOptions,
    ) -> GenerateResult:
        glob_directory = Path(options.glob_directory or source_directory)
        output_path = Path(output_path)

        scan = scan_precache_entries(
            glob_directory,
            options,
            exclude=(output_path, *options.exclude_paths),
            logger=self.logger,
        )
        script = render_service_worker(scan.manifest, options)

        if output_path.is_dir():
            raise WriteError(f"Output path is a directory: {output_path}")
        try:
            write_text_atomically(script, output_path)
        except OSError as exc:
            raise WriteError(f"Unable to write {output_path}: {exc}") from exc

        self.logger.debug(
            "generator.written output_path=%s file_count=%s total_bytes=%s",
            output_path,
            scan.file_count,
            scan.total_bytes,
        )
        return GenerateResult(
            output_path=output_path,
            file_count=scan.file_count,
            total_bytes=scan.total_bytes,
            manifest=scan.manifest,
            warnings=scan.warnings,
        )
