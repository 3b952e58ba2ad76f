"""
Typed configuration helpers for the Course Composer.

The YAML file is optional: every section has defaults so a bare
``course-composer`` invocation works against ``outputs/`` in the current
directory.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Literal

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

CONFIG_ENV_VAR = "COURSE_COMPOSER_CONFIG"
STORE_ENV_VAR = "COURSE_COMPOSER_STORE"
LOG_LEVEL_ENV_VAR = "COURSE_COMPOSER_LOG_LEVEL"
DEFAULT_CONFIG_PATH = Path("config/composer.yaml")


class StorageConfig(BaseModel):
    """Where saved courses live and how their keys are built."""

    model_config = ConfigDict()

    sqlite_path: Path = Field(default=Path("outputs/courses.sqlite"))
    key_prefix: str = Field(default="course_", min_length=1)
    active_key: str = Field(default="active_course", min_length=1)

    @field_validator("sqlite_path", mode="before")
    @classmethod
    def coerce_path(cls, value: Any) -> Path:
        return Path(value).expanduser().resolve()

    @model_validator(mode="after")
    def active_key_outside_prefix(self) -> "StorageConfig":
        if self.active_key.startswith(self.key_prefix):
            raise ValueError("active_key must not start with key_prefix")
        return self


class ExportConfig(BaseModel):
    """Options for MECS file export/import."""

    export_dir: Path = Field(default=Path("outputs/exports"))
    indent: int = Field(default=2, ge=0, le=8)
    validate_on_import: bool = True

    @field_validator("export_dir", mode="before")
    @classmethod
    def coerce_path(cls, value: Any) -> Path:
        return Path(value).expanduser().resolve()


class CourseDefaults(BaseModel):
    """Placeholder values applied when a course or section omits a field."""

    title: str = Field(default="Untitled Course", min_length=1)
    new_course_title: str = Field(default="New Course", min_length=1)
    section_title: str = Field(default="Untitled Section", min_length=1)
    content_type: str = Field(default="markdown", min_length=1)

    @field_validator("title", "new_course_title", "section_title", "content_type", mode="before")
    @classmethod
    def strip_value(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    journal: bool = Field(default=True, description="Append one JSONL event per course edit next to the store.")

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class ComposerConfig(BaseModel):
    """Top-level configuration for a composer session."""

    model_config = ConfigDict(extra="ignore")

    storage: StorageConfig = Field(default_factory=StorageConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    defaults: CourseDefaults = Field(default_factory=CourseDefaults)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    enabled_kinds: List[str] = Field(default_factory=list)

    @field_validator("enabled_kinds", mode="before")
    @classmethod
    def strip_items(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, list):
            return [item.strip() for item in value if isinstance(item, str) and item.strip()]
        return value


def read_yaml_file(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return a dictionary."""
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at root of {path}, received {type(data)}")
    return data


def _resolve_config_path(value: Any, base_dir: Path) -> str:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    else:
        path = path.resolve()
    return str(path)


def _absolutize_paths(data: Dict[str, Any], base_dir: Path) -> None:
    storage = data.get("storage")
    if isinstance(storage, dict) and storage.get("sqlite_path"):
        storage["sqlite_path"] = _resolve_config_path(storage["sqlite_path"], base_dir)

    export = data.get("export")
    if isinstance(export, dict) and export.get("export_dir"):
        export["export_dir"] = _resolve_config_path(export["export_dir"], base_dir)


def load_composer_config(path: Path | None = None, *, base_dir: Path | None = None) -> ComposerConfig:
    """
    Load the composer config, falling back to defaults when ``path`` is missing.

    Relative paths inside the file are resolved against ``base_dir`` (default:
    the directory holding the file).
    """
    if path is None:
        env_path = os.getenv(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
    path = path.expanduser().resolve()
    if not path.exists():
        return ComposerConfig()

    data = read_yaml_file(path)
    _absolutize_paths(data, base_dir=(base_dir or path.parent).resolve())
    try:
        return ComposerConfig.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid composer config in {path}") from exc


def apply_env_overrides(config: ComposerConfig) -> ComposerConfig:
    """Return a copy of ``config`` with store/log-level environment overrides applied."""
    store_override = os.getenv(STORE_ENV_VAR)
    if store_override:
        storage = config.storage.model_copy(update={"sqlite_path": Path(store_override).expanduser().resolve()})
        config = config.model_copy(update={"storage": storage})

    level_override = os.getenv(LOG_LEVEL_ENV_VAR)
    if level_override:
        try:
            logging_cfg = LoggingConfig(level=level_override, journal=config.logging.journal)
        except ValidationError as exc:
            raise ValueError(f"Invalid {LOG_LEVEL_ENV_VAR} value: {level_override}") from exc
        config = config.model_copy(update={"logging": logging_cfg})
    return config


__all__ = [
    "ComposerConfig",
    "CourseDefaults",
    "ExportConfig",
    "LoggingConfig",
    "StorageConfig",
    "apply_env_overrides",
    "load_composer_config",
    "read_yaml_file",
]
