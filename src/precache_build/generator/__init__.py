"""Manifest generation: contract, directory scan, and service-worker emission."""

from precache_build.generator.base import (
    DEFAULT_GLOB_IGNORES,
    DEFAULT_GLOB_PATTERNS,
    DEFAULT_MAXIMUM_FILE_SIZE_TO_CACHE_IN_BYTES,
    GenerateOptions,
    GenerateResult,
    ManifestGenerator,
)
from precache_build.generator.scan import (
    PrecacheScan,
    empty_precache_manifest,
    expand_braces,
    expand_glob_patterns,
    scan_precache_entries,
)
from precache_build.generator.service_worker import manifest_entries, render_service_worker
from precache_build.generator.workbox import WorkboxStyleGenerator

__all__ = [
    "DEFAULT_GLOB_IGNORES",
    "DEFAULT_GLOB_PATTERNS",
    "DEFAULT_MAXIMUM_FILE_SIZE_TO_CACHE_IN_BYTES",
    "GenerateOptions",
    "GenerateResult",
    "ManifestGenerator",
    "PrecacheScan",
    "empty_precache_manifest",
    "expand_braces",
    "expand_glob_patterns",
    "scan_precache_entries",
    "manifest_entries",
    "render_service_worker",
    "WorkboxStyleGenerator",
]
