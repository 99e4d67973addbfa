"""Multi-target precache manifest builder."""

from precache_build.errors import (
    GenerationError,
    GenerationTimeoutError,
    InvalidTargetError,
    PrecacheBuildError,
    ScanError,
    WriteError,
)
from precache_build.orchestrator import BuildOrchestrator, BuildResult
from precache_build.targets import TargetConfig, parse_target_spec, validate_targets

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
