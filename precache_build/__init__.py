"""Local development shim for src-layout imports."""

from __future__ import annotations

from pathlib import Path
from pkgutil import extend_path

__path__ = extend_path(__path__, __name__)  # type: ignore[name-defined]

src_package_dir = Path(__file__).resolve().parent.parent / "src" / "precache_build"
if src_package_dir.exists():
    __path__.append(str(src_package_dir))

from precache_build.errors import (  # noqa: E402
    GenerationError,
    GenerationTimeoutError,
    InvalidTargetError,
    PrecacheBuildError,
    ScanError,
    WriteError,
)
from precache_build.orchestrator import BuildOrchestrator, BuildResult  # noqa: E402
from precache_build.targets import TargetConfig, parse_target_spec, validate_targets  # noqa: E402

__version__ = "0.1.0"

__all__ = [
    "BuildOrchestrator",
    "BuildResult",
    "GenerationError",
    "GenerationTimeoutError",
    "InvalidTargetError",
    "PrecacheBuildError",
    "ScanError",
    "TargetConfig",
    "WriteError",
    "parse_target_spec",
    "validate_targets",
]
