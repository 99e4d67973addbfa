"""Manifest generator contract shared by the orchestrator and implementations."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

import polars as pl

DEFAULT_GLOB_PATTERNS: tuple[str, ...] = ("**/*",)
DEFAULT_GLOB_IGNORES: tuple[str, ...] = ("**/node_modules/**/*",)
DEFAULT_MAXIMUM_FILE_SIZE_TO_CACHE_IN_BYTES = 2 * 1024 * 1024
DEFAULT_WORKBOX_CDN_URL = "https://storage.googleapis.com/workbox-cdn/releases/7.1.0/workbox-sw.js"


@dataclass(frozen=True, slots=True)
class GenerateOptions:
    """Options understood by manifest generators.

    ``glob_directory`` is bound per target by the orchestrator. ``exclude_paths``
    lists files never precached, such as every declared output path; the
    remaining fields are shared across targets.
    """

    glob_directory: Path | None = None
    glob_patterns: tuple[str, ...] = DEFAULT_GLOB_PATTERNS
    glob_ignores: tuple[str, ...] = DEFAULT_GLOB_IGNORES
    maximum_file_size_to_cache_in_bytes: int = DEFAULT_MAXIMUM_FILE_SIZE_TO_CACHE_IN_BYTES
    cache_id: str | None = None
    skip_waiting: bool = False
    clients_claim: bool = False
    cleanup_outdated_caches: bool = False
    navigate_fallback: str | None = None
    import_scripts: tuple[str, ...] = ()
    workbox_cdn_url: str = DEFAULT_WORKBOX_CDN_URL
    exclude_paths: tuple[Path, ...] = ()

    def for_source(self, source_directory: Path) -> "GenerateOptions":
        """Return a copy with ``glob_directory`` bound to the given source directory."""

        return replace(self, glob_directory=source_directory)

    def excluding(self, paths: Iterable[Path]) -> "GenerateOptions":
        """Return a copy that additionally never precaches ``paths``."""

        return replace(self, exclude_paths=(*self.exclude_paths, *(Path(path) for path in paths)))


@dataclass(frozen=True, slots=True)
class GenerateResult:
    """Outcome of one successful generation call."""

    output_path: Path
    file_count: int
    total_bytes: int
    manifest: pl.DataFrame
    warnings: tuple[str, ...] = field(default_factory=tuple)


@runtime_checkable
class ManifestGenerator(Protocol):
    """Scan a directory and emit a precache manifest plus runtime script.

    Implementations raise ``ScanError`` when the source cannot be scanned and
    ``WriteError`` when the output cannot be written.
    """

    def generate(
        self,
        source_directory: Path,
        output_path: Path,
        options: GenerateOptions,
    ) -> GenerateResult:
        ...
