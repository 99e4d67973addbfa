"""Typed result models shared by the orchestrator and reporting layers."""

from __future__ import annotations

from dataclasses import dataclass, field

from precache_build.errors import GenerationError
from precache_build.targets import TargetConfig


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Outcome of one target's generation attempt."""

    target: TargetConfig
    file_count: int = 0
    total_bytes: int = 0
    error: GenerationError | None = None
    warnings: tuple[str, ...] = field(default_factory=tuple)
    duration_sec: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def error_type(self) -> str | None:
        return None if self.error is None else self.error.kind

    @property
    def error_message(self) -> str | None:
        return None if self.error is None else self.error.message
