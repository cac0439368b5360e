"""Tests for octal mode parsing and sanity checks."""
from __future__ import annotations

import logging

import pytest

from assemblykit.errors import AssemblyFormattingError
from assemblykit.format.modes import UNSET, mode_to_int, to_octal_string, verify_mode_sanity


class TestModeToInt:
    """Test octal string parsing."""

    def test_parses_octal(self):
        """Test that modes are read as base-8."""
        assert mode_to_int("0755") == 0o755
        assert mode_to_int("644") == 0o644

    def test_unset(self):
        """Test that None and blank strings are the unset sentinel."""
        assert mode_to_int(None) == UNSET == -1
        assert mode_to_int("  ") == -1

    def test_not_octal_raises(self):
        """Test that a decimal-looking string with 8 or 9 digits fails."""
        with pytest.raises(AssemblyFormattingError, match="octal"):
            mode_to_int("493")

    def test_garbage_raises(self):
        """Test that non-numeric strings fail."""
        with pytest.raises(AssemblyFormattingError):
            mode_to_int("rwxr-xr-x")

    @pytest.mark.parametrize("mode", ["0o755", "-7", "7_55", "-1", "+755", "0x1ed"])
    def test_literal_forms_rejected(self, mode):
        """Test that only plain octal digits are accepted."""
        with pytest.raises(AssemblyFormattingError, match="octal"):
            mode_to_int(mode)

    @pytest.mark.parametrize("mode", [0o755, 0o644, 0o700, 0o600])
    def test_octal_string_inverse(self, mode):
        """Test that to_octal_string undoes mode_to_int."""
        assert mode_to_int(to_octal_string(mode)) == mode


class TestVerifyModeSanity:
    """Test nonsensical permission detection."""

    def test_sane_mode(self):
        """Test that ordinary modes pass."""
        assert verify_mode_sanity(0o755) is True

    def test_group_without_user_warns(self, caplog):
        """Test that group access the user lacks is reported."""
        with caplog.at_level(logging.WARNING):
            assert verify_mode_sanity(0o070) is False
        assert "Group has read access, but user does not." in caplog.text

    def test_world_without_group_reported(self, caplog):
        """Test that world access the group lacks is reported."""
        with caplog.at_level(logging.WARNING):
            verify_mode_sanity(0o704)
        assert "World has read access, but group does not." in caplog.text

    def test_strict_raises(self):
        """Test that strict mode raises instead of warning."""
        with pytest.raises(AssemblyFormattingError, match="nonsensical"):
            verify_mode_sanity(0o007, strict=True)

    def test_insane_mode_still_parsed(self):
        """Test that parsing does not reject an insane mode."""
        assert mode_to_int("0070") == 0o070
