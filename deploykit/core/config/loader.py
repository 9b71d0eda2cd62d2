"""
Configuration loader — reads deploykit.yml into engine settings.

The file is optional: with no file, every setting keeps its default and
the engine behaves exactly as documented. When present, it is read with
``yaml.safe_load`` and validated against ``EngineSettings``.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from deploykit.core.models.migration import MigrationOptions

logger = logging.getLogger(__name__)

# Default config filename
SETTINGS_FILE = "deploykit.yml"

DEFAULT_REGISTRY_VENDOR = "Vendor"


class ConfigError(Exception):
    """Raised when the settings file is invalid or unreadable."""


class EngineSettings(BaseModel):
    """Tunables for rule synthesis and the surfaces around it."""

    model_config = ConfigDict(frozen=True)

    # Vendor segment of the registry marker key: HK??\SOFTWARE\<vendor>\Apps\<id>
    registry_vendor: str = DEFAULT_REGISTRY_VENDOR
    max_batch_items: int = Field(default=10, ge=1)
    migration: MigrationOptions = Field(default_factory=MigrationOptions)

    @field_validator("registry_vendor")
    @classmethod
    def _vendor_is_single_segment(cls, value: str) -> str:
        value = value.strip()
        if not value or "\\" in value:
            raise ValueError("registry_vendor must be a single, non-empty key segment")
        return value


DEFAULT_SETTINGS = EngineSettings()


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Nearest deploykit.yml in ``start_dir`` (default: cwd) or any ancestor."""
    start = (start_dir or Path.cwd()).resolve()
    return next(
        (d / SETTINGS_FILE for d in (start, *start.parents) if (d / SETTINGS_FILE).is_file()),
        None,
    )


def load_settings(path: Path | None = None) -> EngineSettings:
    """Load and validate engine settings.

    Args:
        path: Explicit path to deploykit.yml. If None, searches upward
            and falls back to defaults when nothing is found.

    Returns:
        Validated EngineSettings.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None:
        path = find_settings_file()
        if path is None:
            logger.debug("No %s found, using default settings", SETTINGS_FILE)
            return DEFAULT_SETTINGS

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return DEFAULT_SETTINGS

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Settings may sit under a top-level "deploykit" key or be flat
    settings_data = data.get("deploykit", data)

    try:
        settings = EngineSettings.model_validate(settings_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    logger.info("Loaded settings from %s (vendor=%s)", path, settings.registry_vendor)
    return settings
