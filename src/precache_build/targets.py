"""Build target declarations and fail-fast validation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from precache_build.errors import InvalidTargetError

_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:[\\/]")
LABEL_MARKER = "::"


def _require_path(value: str | Path | None, field_name: str) -> Path:
    if value is None:
        raise InvalidTargetError(f"{field_name} must be set.")
    if isinstance(value, Path):
        return value
    if not isinstance(value, str):
        raise InvalidTargetError(f"{field_name} must be a path, got {type(value).__name__}.")
    if value.strip() == "":
        raise InvalidTargetError(f"{field_name} must not be empty.")
    return Path(value.strip())


@dataclass(frozen=True, slots=True)
class TargetConfig:
    """One (source directory, output path) pair to generate a manifest for."""

    source_directory: Path
    output_path: Path
    label: str = field(default="")

    def __post_init__(self) -> None:
        source_directory = _require_path(self.source_directory, "source_directory")
        output_path = _require_path(self.output_path, "output_path")
        if output_path == Path("."):
            raise InvalidTargetError("output_path must name a file, not the current directory.")
        label = (self.label or "").strip() or source_directory.as_posix()
        object.__setattr__(self, "source_directory", source_directory)
        object.__setattr__(self, "output_path", output_path)
        object.__setattr__(self, "label", label)

    def as_dict(self) -> dict[str, str]:
        return {
            "label": self.label,
            "source_directory": str(self.source_directory),
            "output_path": str(self.output_path),
        }


def _split_source_and_output(spec: str) -> tuple[str, str]:
    start = 2 if _DRIVE_PREFIX.match(spec) else 0
    sep_idx = spec.find(":", start)
    if sep_idx < 0:
        raise InvalidTargetError(f"Target '{spec}' must look like <sourceDir>:<outputPath>.")
    return spec[:sep_idx], spec[sep_idx + 1 :]


def _split_output_and_label(spec: str, remainder: str) -> tuple[str, str]:
    if remainder.startswith(":"):
        raise InvalidTargetError(f"Target '{spec}' is ambiguous: output path starts with ':'.")
    if remainder.count(LABEL_MARKER) > 1:
        raise InvalidTargetError(f"Target '{spec}' has more than one '{LABEL_MARKER}' label marker.")
    if LABEL_MARKER not in remainder:
        return remainder, ""
    output_text, label = remainder.split(LABEL_MARKER, 1)
    if label.strip() == "":
        raise InvalidTargetError(f"Target '{spec}' has an empty label after '{LABEL_MARKER}'.")
    return output_text, label


def parse_target_spec(spec: str) -> TargetConfig:
    """Parse a CLI target of the form ``<sourceDir>:<outputPath>[::<label>]``.

    The output path is taken verbatim, so it may contain ``=`` or a drive prefix.
    """

    text = spec.strip()
    source_text, remainder = _split_source_and_output(text)
    output_text, label = _split_output_and_label(text, remainder)
    return TargetConfig(source_directory=source_text, output_path=output_text, label=label)


def parse_target_specs(specs: Iterable[str]) -> list[TargetConfig]:
    return [parse_target_spec(spec) for spec in specs]


def validate_targets(targets: Sequence[TargetConfig]) -> None:
    """Reject target lists whose output paths collide."""

    seen: dict[Path, str] = {}
    for target in targets:
        if not isinstance(target, TargetConfig):
            raise InvalidTargetError(f"Expected TargetConfig, got {type(target).__name__}.")
        key = target.output_path.resolve(strict=False)
        previous = seen.get(key)
        if previous is not None:
            raise InvalidTargetError(
                f"Targets '{previous}' and '{target.label}' both write {target.output_path}."
            )
        seen[key] = target.label
