"""Unified configuration loaded from .quire.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from quire.errors import ConfigError
from quire.publish.models import OutputFormat, PublishConfig
from quire.revisions.services import DEFAULT_SHINGLE_SIZE, DEFAULT_THRESHOLD, RevisionDetector

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".quire.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]


class SourcesConfig(BaseModel):
    """[sources] section."""

    model_config = ConfigDict(extra="forbid")

    published_dir: str = "_posts"
    drafts_dir: str = "_drafts"


class OutputConfig(BaseModel):
    """[output] section."""

    model_config = ConfigDict(extra="forbid")

    directory: str = "./_site"
    format: OutputFormat = OutputFormat.HTML


class DetectorConfig(BaseModel):
    """[detector] section."""

    model_config = ConfigDict(extra="forbid")

    threshold: float = Field(default=DEFAULT_THRESHOLD, ge=0.0, le=1.0, allow_inf_nan=False)
    shingle_size: int = Field(default=DEFAULT_SHINGLE_SIZE, ge=1)

    def build(self) -> RevisionDetector:
        return RevisionDetector(threshold=self.threshold, shingle_size=self.shingle_size)


class PipelineSectionConfig(BaseModel):
    """[pipeline] section."""

    model_config = ConfigDict(extra="forbid")

    workers: int | None = Field(default=None, ge=1)


class QuireConfig(BaseModel):
    """Top-level configuration for a build."""

    model_config = ConfigDict(extra="forbid")

    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    pipeline: PipelineSectionConfig = Field(default_factory=PipelineSectionConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuireConfig:
        """Validate raw data, raising ConfigError instead of ValidationError."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"invalid configuration: {exc}") from exc


def load_config(path: str | Path | None = None) -> QuireConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .quire.toml in CWD
    3. ~/.config/quire/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged QuireConfig.

    Raises:
        ConfigError: If any value is invalid.
    """
    data: dict[str, Any] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
            logger.info("Loaded config from %s", toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        global_config = Path.home() / ".config" / "quire" / "config.toml"
        if not data and global_config.exists():
            data = _load_toml(global_config)
            logger.info("Loaded config from %s", global_config)

    config = QuireConfig.from_dict(data)
    return _apply_env_vars(config)


def merge_cli_overrides(config: QuireConfig, **cli_kwargs: object) -> QuireConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).

    Raises:
        ConfigError: If an override is invalid.
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "output_directory": ("output", "directory"),
        "output_format": ("output", "format"),
        "published_dir": ("sources", "published_dir"),
        "drafts_dir": ("sources", "drafts_dir"),
        "threshold": ("detector", "threshold"),
        "include_drafts": ("publish", "include_drafts"),
        "sort_order": ("publish", "sort_order"),
        "dedupe": ("publish", "dedupe"),
        "workers": ("pipeline", "workers"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key not in mapping:
            raise ConfigError(f"unknown option: {key}")
        section, field = mapping[key]
        data[section][field] = value

    return QuireConfig.from_dict(data)


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: QuireConfig) -> QuireConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "QUIRE_OUTPUT_DIR": ("output", "directory"),
        "QUIRE_OUTPUT_FORMAT": ("output", "format"),
        "QUIRE_THRESHOLD": ("detector", "threshold"),
        "QUIRE_WORKERS": ("pipeline", "workers"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    drafts_raw = os.environ.get("QUIRE_INCLUDE_DRAFTS")
    if drafts_raw is not None:
        data["publish"]["include_drafts"] = drafts_raw.lower() in ("true", "1", "yes")

    return QuireConfig.from_dict(data)
