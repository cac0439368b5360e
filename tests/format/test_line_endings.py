"""Tests for line ending names and conversion."""
from __future__ import annotations

import pytest

from assemblykit.errors import AssemblyFormattingError
from assemblykit.format.line_endings import LineEndings, get_line_ending


class TestGetLineEnding:
    """Test line ending lookup by name."""

    @pytest.mark.parametrize("name", ["dos", "windows", "crlf", "CRLF"])
    def test_crlf_aliases(self, name):
        """Test that the CRLF names share one value."""
        assert get_line_ending(name).value == b"\r\n"

    @pytest.mark.parametrize("name", ["unix", "lf", " LF "])
    def test_lf_aliases(self, name):
        """Test that the LF names share one value."""
        assert get_line_ending(name).value == b"\n"

    def test_none_is_keep(self):
        """Test that no name keeps the content."""
        assert get_line_ending(None) is LineEndings.KEEP
        assert get_line_ending("keep") is LineEndings.KEEP

    def test_unknown_raises(self):
        """Test that unknown names are rejected."""
        with pytest.raises(AssemblyFormattingError, match="Illegal lineEnding"):
            get_line_ending("mac")


class TestConvert:
    """Test content conversion."""

    def test_to_crlf(self):
        """Test that every terminator style becomes CRLF."""
        assert LineEndings.CRLF.convert(b"a\nb\r\nc\rd") == b"a\r\nb\r\nc\r\nd"

    def test_to_lf(self):
        """Test that CRLF becomes LF without adding a final newline."""
        assert LineEndings.LF.convert(b"a\r\nb") == b"a\nb"

    def test_keep(self):
        """Test that KEEP leaves bytes untouched."""
        data = b"a\r\nb\n"
        assert LineEndings.KEEP.convert(data) is data
        assert not LineEndings.KEEP.is_new_line
