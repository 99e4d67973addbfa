"""Discover and fingerprint precacheable assets under a glob directory."""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import polars as pl

from precache_build.errors import ScanError
from precache_build.generator.base import GenerateOptions

LOGGER = logging.getLogger(__name__)

_HASH_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True, slots=True)
class PrecacheScan:
    """Fingerprinted entries for one glob directory."""

    glob_directory: Path
    manifest: pl.DataFrame
    warnings: tuple[str, ...]

    @property
    def file_count(self) -> int:
        return self.manifest.height

    @property
    def total_bytes(self) -> int:
        if self.manifest.height == 0:
            return 0
        return int(self.manifest["size_bytes"].sum())


def precache_manifest_schema() -> dict[str, pl.DataType]:
    """Stable schema for precache manifest frames."""

    return {
        "url": pl.String,
        "revision": pl.String,
        "size_bytes": pl.Int64,
        "source_file": pl.String,
    }


def empty_precache_manifest() -> pl.DataFrame:
    return pl.DataFrame(schema=precache_manifest_schema())


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives, e.g. ``**/*.{js,css}`` -> ``**/*.js``, ``**/*.css``."""

    open_idx = pattern.find("{")
    if open_idx < 0:
        return [pattern]

    depth = 0
    for close_idx in range(open_idx, len(pattern)):
        char = pattern[close_idx]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                break
    else:
        return [pattern]

    body = pattern[open_idx + 1 : close_idx]
    alternatives: list[str] = []
    depth = 0
    current = ""
    for char in body:
        if char == "," and depth == 0:
            alternatives.append(current)
            current = ""
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        current += char
    alternatives.append(current)

    prefix = pattern[:open_idx]
    suffix = pattern[close_idx + 1 :]
    expanded: list[str] = []
    for alternative in alternatives:
        expanded.extend(expand_braces(f"{prefix}{alternative}{suffix}"))
    return expanded


def expand_glob_patterns(patterns: Iterable[str]) -> list[str]:
    expanded: list[str] = []
    for pattern in patterns:
        for candidate in expand_braces(pattern.strip()):
            if candidate and candidate not in expanded:
                expanded.append(candidate)
    return expanded


def _glob_relative(glob_directory: Path, patterns: Iterable[str]) -> dict[str, Path]:
    matched: dict[str, Path] = {}
    for pattern in expand_glob_patterns(patterns):
        try:
            for path in glob_directory.glob(pattern):
                matched[path.relative_to(glob_directory).as_posix()] = path
        except (OSError, ValueError, NotImplementedError) as exc:
            raise ScanError(f"Unable to glob '{pattern}' under {glob_directory}: {exc}") from exc
    return matched


def _file_revision(path: Path) -> str:
    digest = hashlib.md5()
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(_HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _check_glob_directory(glob_directory: Path) -> None:
    if not glob_directory.exists():
        raise ScanError(f"Source directory does not exist: {glob_directory}")
    if not glob_directory.is_dir():
        raise ScanError(f"Source path is not a directory: {glob_directory}")
    if not os.access(glob_directory, os.R_OK | os.X_OK):
        raise ScanError(f"Source directory is not readable: {glob_directory}")


def scan_precache_entries(
    glob_directory: Path,
    options: GenerateOptions,
    *,
    exclude: Iterable[Path] = (),
    logger: logging.Logger | None = None,
) -> PrecacheScan:
    """Match, filter, and fingerprint files under ``glob_directory``.

    Directories are skipped. Broken symlinks and special files matched by the
    patterns raise ``ScanError``; oversized files are skipped with a warning.
    """

    effective_logger = logger or LOGGER
    glob_directory = Path(glob_directory)
    _check_glob_directory(glob_directory)

    excluded = {Path(path).resolve(strict=False) for path in exclude}
    matched = _glob_relative(glob_directory, options.glob_patterns)
    ignored = set(_glob_relative(glob_directory, options.glob_ignores)) if options.glob_ignores else set()

    warnings: list[str] = []
    rows: list[dict[str, object]] = []
    for url in sorted(matched):
        path = matched[url]
        if url in ignored or path.resolve(strict=False) in excluded:
            continue
        if path.is_dir():
            continue
        if not path.is_file():
            raise ScanError(f"Unsupported entry (not a regular file): {path}")

        try:
            size_bytes = path.stat().st_size
            if size_bytes > options.maximum_file_size_to_cache_in_bytes:
                message = (
                    f"{url} is {size_bytes} bytes, and won't be precached. "
                    f"Configure maximum_file_size_to_cache_in_bytes to change this limit."
                )
                warnings.append(message)
                effective_logger.warning("generator.file_too_large url=%s size_bytes=%s", url, size_bytes)
                continue
            revision = _file_revision(path)
        except OSError as exc:
            raise ScanError(f"Unable to read {path}: {exc}") from exc

        rows.append(
            {
                "url": url,
                "revision": revision,
                "size_bytes": size_bytes,
                "source_file": str(path),
            }
        )

    if not rows:
        message = f"The glob patterns {list(options.glob_patterns)} didn't match any files in {glob_directory}."
        warnings.append(message)
        effective_logger.warning("generator.no_matches glob_directory=%s", glob_directory)
        manifest = empty_precache_manifest()
    else:
        manifest = pl.DataFrame(rows, schema_overrides=precache_manifest_schema())

    return PrecacheScan(glob_directory=glob_directory, manifest=manifest, warnings=tuple(warnings))
