"""Unit tests for recycle bin configuration.

Tests for the RecycleBinConfig model and its JSON load/save functions.
"""

import json
import stat
from pathlib import Path

import pytest
from better_rm import __version__
from better_rm.core.config import (
    ConfigError,
    ConfigParseError,
    ConfigValidationError,
    RecycleBinConfig,
    config_exists,
    default_config,
    load_config,
    save_config,
    with_retention,
)
from pydantic import ValidationError


class TestRecycleBinConfig:
    """Tests for the RecycleBinConfig model."""

    def test_defaults(self, xdg_home: Path) -> None:
        """Defaults match the documented values."""
        config = default_config()

        assert config.version == __version__
        assert config.retention_days == 7
        assert config.max_size_mb == 1024
        assert config.recycle_bin_path == (
            xdg_home / ".local" / "share" / "better-rm" / "recycle-bin"
        )

    def test_max_size_bytes(self, tmp_path: Path) -> None:
        """max_size_bytes converts MiB to bytes."""
        config = RecycleBinConfig(recycle_bin_path=tmp_path, max_size_mb=2)

        assert config.max_size_bytes == 2 * 1024 * 1024

    def test_relative_path_rejected(self) -> None:
        """Relative recycle bin locations are invalid."""
        with pytest.raises(ValidationError, match="must be absolute"):
            RecycleBinConfig(recycle_bin_path=Path("relative/bin"))

    def test_zero_retention_rejected(self, tmp_path: Path) -> None:
        """Retention must be at least one day."""
        with pytest.raises(ValidationError):
            RecycleBinConfig(recycle_bin_path=tmp_path, retention_days=0)

    def test_unknown_field_rejected(self, tmp_path: Path) -> None:
        """Extra fields are forbidden."""
        with pytest.raises(ValidationError):
            RecycleBinConfig.model_validate({"recycle_bin_path": str(tmp_path), "colour": "red"})


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_returns_defaults(self, tmp_path: Path, xdg_home: Path) -> None:
        """A missing file yields the defaults without error."""
        config = load_config(tmp_path / "absent.json")

        assert config.retention_days == 7
        assert not config_exists(tmp_path / "absent.json")

    def test_loads_saved_fields(self, tmp_path: Path) -> None:
        """All four persisted fields are read."""
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "version": "1.0.0",
                    "recycle_bin_path": str(tmp_path / "bin"),
                    "retention_days": 3,
                    "max_size_mb": 10,
                }
            )
        )

        config = load_config(path)

        assert config.recycle_bin_path == tmp_path / "bin"
        assert config.retention_days == 3
        assert config.max_size_mb == 10

    def test_invalid_json(self, tmp_path: Path) -> None:
        """Invalid JSON raises ConfigParseError."""
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with pytest.raises(ConfigParseError):
            load_config(path)

    def test_non_object(self, tmp_path: Path) -> None:
        """A JSON document that is not an object is rejected."""
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")

        with pytest.raises(ConfigValidationError):
            load_config(path)

    def test_invalid_values(self, tmp_path: Path) -> None:
        """Schema violations raise ConfigValidationError."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"recycle_bin_path": "relative", "retention_days": 1}))

        with pytest.raises(ConfigValidationError):
            load_config(path)

    def test_errors_share_base_class(self) -> None:
        """Parse and validation errors are ConfigErrors."""
        assert issubclass(ConfigParseError, ConfigError)
        assert issubclass(ConfigValidationError, ConfigError)


class TestSaveConfig:
    """Tests for save_config."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """A saved config loads back unchanged."""
        path = tmp_path / "nested" / "config.json"
        config = RecycleBinConfig(recycle_bin_path=tmp_path / "bin", retention_days=14)

        saved = save_config(config, path)

        assert saved == path
        assert load_config(path) == config

    def test_field_names(self, tmp_path: Path) -> None:
        """The file uses the shared field names."""
        path = tmp_path / "config.json"
        save_config(RecycleBinConfig(recycle_bin_path=tmp_path / "bin"), path)

        data = json.loads(path.read_text())

        assert set(data) == {"version", "recycle_bin_path", "retention_days", "max_size_mb"}
        assert data["recycle_bin_path"] == str(tmp_path / "bin")

    def test_owner_only_permissions(self, tmp_path: Path) -> None:
        """The config file is readable by its owner only."""
        path = tmp_path / "config.json"
        save_config(RecycleBinConfig(recycle_bin_path=tmp_path / "bin"), path)

        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        """Only the config file remains after saving."""
        path = tmp_path / "config.json"
        save_config(RecycleBinConfig(recycle_bin_path=tmp_path / "bin"), path)

        assert [p.name for p in tmp_path.iterdir() if p.is_file()] == ["config.json"]


class TestWithRetention:
    """Tests for the retention override."""

    def test_none_keeps_config(self, bin_config: RecycleBinConfig) -> None:
        """No override returns the same config."""
        assert with_retention(bin_config, None) is bin_config

    def test_override(self, bin_config: RecycleBinConfig) -> None:
        """An override replaces only the retention period."""
        updated = with_retention(bin_config, 30)

        assert updated.retention_days == 30
        assert updated.recycle_bin_path == bin_config.recycle_bin_path
        assert bin_config.retention_days == 7

    def test_invalid_override(self, bin_config: RecycleBinConfig) -> None:
        """Overrides below one day are rejected."""
        with pytest.raises(ConfigValidationError):
            with_retention(bin_config, 0)
