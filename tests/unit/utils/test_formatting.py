"""Unit tests for utils/formatting.py."""

import pytest
from better_rm.utils import formatting
from better_rm.utils.formatting import format_size


class TestFormatSize:
    """Tests for format_size."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (None, "0 B"),
            (0, "0 B"),
            (512, "512 B"),
            (1023, "1023 B"),
            (1024, "1.0 KB"),
            (1536, "1.5 KB"),
            (5 * 1024 * 1024, "5.0 MB"),
            (3 * 1024**3, "3.0 GB"),
        ],
    )
    def test_units(self, size: int | None, expected: str) -> None:
        """Sizes use 1024-based units with one decimal."""
        assert format_size(size) == expected


class TestPrintHelpers:
    """Tests for the print_* helpers."""

    def test_failure_uses_rm_prefix(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Failures are printed to stderr prefixed with rm:."""
        formatting.print_failure("cannot remove 'x': Is a directory")

        assert "rm: cannot remove 'x': Is a directory" in capsys.readouterr().err

    def test_markup_is_escaped(self, capsys: pytest.CaptureFixture[str]) -> None:
        """File names that look like markup are printed literally."""
        formatting.print_info("Restored '[bold]x'")

        assert "Restored '[bold]x'" in capsys.readouterr().out
