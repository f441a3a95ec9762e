"""Recycle bin configuration and settings.

This module provides the configuration model and I/O functions for the
recycle bin: where it lives, how long entries are retained and how large
it may grow before old entries are evicted.

Configuration is stored in ~/.config/better-rm/config.json. A missing file
is not an error: in-memory defaults are used and the caller may offer the
first-time setup flow.
"""

import json
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from better_rm import __version__
from better_rm.core.paths import get_config_path, get_default_recycle_bin_path

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 7
DEFAULT_MAX_SIZE_MB = 1024


class RecycleBinConfig(BaseModel):
    """Configuration for the recycle bin.

    Attributes:
        version: Version of better-rm that wrote the configuration.
        recycle_bin_path: Absolute path of the recycle bin root directory.
        retention_days: Days an entry is kept before it is evicted.
        max_size_mb: Aggregate payload size that triggers eviction.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: Annotated[str, Field(description="Writer version")] = __version__
    recycle_bin_path: Annotated[
        Path,
        Field(default_factory=get_default_recycle_bin_path, description="Recycle bin root"),
    ]
    retention_days: Annotated[
        int,
        Field(ge=1, description="Retention period in days"),
    ] = DEFAULT_RETENTION_DAYS
    max_size_mb: Annotated[
        int,
        Field(ge=0, description="Size limit in MiB before eviction"),
    ] = DEFAULT_MAX_SIZE_MB

    @field_validator("recycle_bin_path", mode="after")
    @classmethod
    def validate_absolute(cls, v: Path) -> Path:
        """Require an absolute recycle bin location."""
        v = v.expanduser()
        if not v.is_absolute():
            msg = f"recycle_bin_path must be absolute, got '{v}'"
            raise ValueError(msg)
        return v

    @property
    def max_size_bytes(self) -> int:
        """Size limit in bytes."""
        return self.max_size_mb * 1024 * 1024


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file is not valid JSON."""


class ConfigValidationError(ConfigError):
    """Raised when the configuration content doesn't match the schema."""


def default_config() -> RecycleBinConfig:
    """Create a RecycleBinConfig with default settings.

    Returns:
        RecycleBinConfig with the platform default location, 7 days
        retention and a 1024 MB size limit.
    """
    return RecycleBinConfig()


def config_exists(path: Path | None = None) -> bool:
    """Check if a configuration file exists.

    Args:
        path: Path to check. If None, uses the default config path.

    Returns:
        True if the configuration file exists.
    """
    return (path or get_config_path()).exists()


def load_config(path: Path | None = None) -> RecycleBinConfig:
    """Load the recycle bin configuration from a JSON file.

    Args:
        path: Path to the config file. If None, uses default config path.

    Returns:
        Validated RecycleBinConfig, or the defaults if the file is absent.

    Raises:
        ConfigParseError: If the JSON syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
        ConfigError: If the file cannot be read.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.debug("No config at %s, using defaults", config_path)
        return default_config()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigParseError(f"Invalid JSON in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigValidationError(f"Invalid config content in {config_path}: expected an object")

    try:
        return RecycleBinConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid config content in {config_path}: {e}") from e


def save_config(config: RecycleBinConfig, path: Path | None = None) -> Path:
    """Save the recycle bin configuration to a JSON file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.
    The resulting file is only readable by its owner.

    Args:
        config: The RecycleBinConfig to save.
        path: Path to save the config. If None, uses default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    data = config.model_dump(mode="json")

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            json.dump(data, f, indent=2)
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, config_path)
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config {config_path}: {e}") from e

    return config_path


def with_retention(config: RecycleBinConfig, days: int | None) -> RecycleBinConfig:
    """Return a copy of config with the retention period overridden.

    Args:
        config: Loaded configuration.
        days: Retention override in days, or None to keep the configured value.

    Returns:
        The original config if days is None, otherwise an updated copy.

    Raises:
        ConfigValidationError: If days is smaller than 1.
    """
    if days is None:
        return config
    if days < 1:
        raise ConfigValidationError(f"Retention days must be at least 1, got {days}")
    return config.model_copy(update={"retention_days": days})
