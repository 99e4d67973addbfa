"""Configuration models and loading logic."""

from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from precache_build.generator.base import (
    DEFAULT_GLOB_IGNORES,
    DEFAULT_GLOB_PATTERNS,
    DEFAULT_MAXIMUM_FILE_SIZE_TO_CACHE_IN_BYTES,
    DEFAULT_WORKBOX_CDN_URL,
    GenerateOptions,
)
from precache_build.targets import TargetConfig

DEFAULT_SETTINGS_FILE = Path("configs/settings.yaml")
SETTINGS_FILE_ENV = "PRECACHE_BUILD_SETTINGS_FILE"


class ProjectConfig(BaseModel):
    """Project metadata settings."""

    name: str = "precache_build"
    env: str = "dev"


class PathsConfig(BaseModel):
    """Filesystem paths for logs and run artifacts."""

    artifacts_root: Path = Path("./artifacts")
    logs_root: Path = Path("./logs")

    def resolved(self, project_root: Path) -> "PathsConfig":
        """Return a copy with project-relative paths resolved to absolute paths."""

        updates: dict[str, Path] = {}
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)
            updates[field_name] = value if value.is_absolute() else (project_root / value).resolve()
        return self.model_copy(update=updates)


class GeneratorConfig(BaseModel):
    """Manifest generator options shared by every target."""

    glob_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_GLOB_PATTERNS), min_length=1)
    glob_ignores: list[str] = Field(default_factory=lambda: list(DEFAULT_GLOB_IGNORES))
    maximum_file_size_to_cache_in_bytes: int = Field(default=DEFAULT_MAXIMUM_FILE_SIZE_TO_CACHE_IN_BYTES, ge=0)
    cache_id: str | None = None
    skip_waiting: bool = False
    clients_claim: bool = False
    cleanup_outdated_caches: bool = False
    navigate_fallback: str | None = None
    import_scripts: list[str] = Field(default_factory=list)
    workbox_cdn_url: str = DEFAULT_WORKBOX_CDN_URL

    def to_generate_options(self) -> GenerateOptions:
        return GenerateOptions(
            glob_patterns=tuple(self.glob_patterns),
            glob_ignores=tuple(self.glob_ignores),
            maximum_file_size_to_cache_in_bytes=self.maximum_file_size_to_cache_in_bytes,
            cache_id=self.cache_id,
            skip_waiting=self.skip_waiting,
            clients_claim=self.clients_claim,
            cleanup_outdated_caches=self.cleanup_outdated_caches,
            navigate_fallback=self.navigate_fallback,
            import_scripts=tuple(self.import_scripts),
            workbox_cdn_url=self.workbox_cdn_url,
        )


class BuildConfig(BaseModel):
    """Orchestration settings."""

    max_workers: int = Field(default=1, ge=1)
    timeout_sec: float | None = Field(default=None, gt=0.0)
    write_summary: bool = False


class TargetEntry(BaseModel):
    """One target as declared in the settings file.

    Blank values are accepted here and rejected by ``TargetConfig`` so the
    CLI and settings paths share one validation rule.
    """

    source_directory: str = ""
    output_path: str = ""
    label: str | None = None

    def to_target(self) -> TargetConfig:
        return TargetConfig(
            source_directory=self.source_directory,
            output_path=self.output_path,
            label=self.label or "",
        )


class AppSettings(BaseSettings):
    """Top-level application settings."""

    _yaml_file_override: ClassVar[Path | None] = None

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    targets: list[TargetEntry] = Field(default_factory=list)

    model_config = SettingsConfigDict(
        env_prefix="PRECACHE_BUILD_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Use YAML defaults while allowing env vars to override values."""

        yaml_file = resolve_settings_file(cls._yaml_file_override)
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )

    def as_dict(self) -> dict[str, object]:
        """Return settings as a standard nested dictionary."""

        return self.model_dump(mode="json")

    def target_configs(self) -> list[TargetConfig]:
        """Build ``TargetConfig`` values for every declared target."""

        return [entry.to_target() for entry in self.targets]


def find_project_root(start: Path | None = None) -> Path:
    """Locate the project root by traversing upward for config markers."""

    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / DEFAULT_SETTINGS_FILE).exists():
            return candidate
    return current


def resolve_settings_file(override: Path | None = None) -> Path:
    """Resolve settings file from explicit override, env var, or default."""

    chosen = override
    if chosen is None:
        env_value = os.getenv(SETTINGS_FILE_ENV)
        if env_value:
            chosen = Path(env_value)
    if chosen is None:
        chosen = DEFAULT_SETTINGS_FILE

    if not chosen.is_absolute():
        chosen = (find_project_root() / chosen).resolve()
    return chosen


def load_settings(config_file: Path | None = None) -> AppSettings:
    """Load settings with YAML defaults and environment variable overrides."""

    settings_file = resolve_settings_file(config_file)
    project_root = settings_file.parent.parent.resolve()
    AppSettings._yaml_file_override = settings_file
    try:
        settings = AppSettings()
    finally:
        AppSettings._yaml_file_override = None
    resolved_paths = settings.paths.resolved(project_root=project_root)
    return settings.model_copy(update={"paths": resolved_paths})
