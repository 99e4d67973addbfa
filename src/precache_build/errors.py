"""Exception taxonomy for target configuration and manifest generation."""

from __future__ import annotations


class PrecacheBuildError(Exception):
    """Base class for all precache-build failures."""


class InvalidTargetError(PrecacheBuildError, ValueError):
    """Raised when a target declaration is unusable before any generation starts."""


class GenerationError(PrecacheBuildError):
    """Per-target generation failure recorded on a build result."""

    def __init__(self, message: str, *, target_label: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.target_label = target_label

    @property
    def kind(self) -> str:
        return type(self).__name__


class ScanError(GenerationError):
    """Source directory missing, unreadable, or containing unsupported entries."""


class WriteError(GenerationError):
    """Output path could not be written."""


class GenerationTimeoutError(GenerationError):
    """Generation did not finish within the per-target timeout."""
