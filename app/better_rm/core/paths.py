"""XDG-compliant path management for better-rm.

This module provides standardized paths following the XDG Base Directory
Specification for configuration and recycle bin storage.

XDG defaults:
- Config: ~/.config/better-rm/
- Recycle bin: ~/.local/share/better-rm/recycle-bin/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "better-rm"

# Name of the metadata directory inside the recycle bin root
METADATA_DIRNAME = ".metadata"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/better-rm/ (or XDG_CONFIG_HOME/better-rm/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_data_dir() -> Path:
    """Get the data directory path.

    Returns:
        Path to ~/.local/share/better-rm/ (or XDG_DATA_HOME/better-rm/).
    """
    return _get_xdg_dir("XDG_DATA_HOME", ".local/share")


def get_config_path() -> Path:
    """Get the recycle bin configuration file path.

    Returns:
        Path to ~/.config/better-rm/config.json.
    """
    return get_config_dir() / "config.json"


def get_user_theme_path() -> Path:
    """Get the user theme configuration path.

    Returns:
        Path to ~/.config/better-rm/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def get_default_recycle_bin_path() -> Path:
    """Get the default recycle bin location.

    Returns:
        Path to ~/.local/share/better-rm/recycle-bin.
    """
    return get_data_dir() / "recycle-bin"


def ensure_dir(path: Path, name: str, mode: int = 0o700) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.
        mode: Permission bits for newly created directories.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(mode=mode, parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def locate(path: str | Path) -> Path:
    """Return the absolute location of a path without resolving the entry itself.

    Symlinks in the parent directories are resolved, the final component
    is kept as-is, so a symlink is located where the link lives rather
    than where it points.

    Args:
        path: Absolute or relative path.

    Returns:
        Absolute path with a canonical parent directory.
    """
    absolute = os.path.abspath(path)
    parent, name = os.path.split(absolute)
    return Path(os.path.realpath(parent)) / name


def is_within(path: Path, root: Path) -> bool:
    """Check whether path equals root or lies below it."""
    return path == root or path.is_relative_to(root)
