"""Tests for filtered content transformation."""
from __future__ import annotations

import pytest

from assemblykit.errors import AssemblyFormattingError
from assemblykit.format.transform import get_file_set_transformer, read_properties


class TestReadProperties:
    """Test filter file loading."""

    def test_properties_file(self, tmp_path):
        """Test key=value, key:value and comments."""
        path = tmp_path / "filter.properties"
        path.write_text("# comment\n! other\ngreeting=hello\nname : world\n\n", encoding="iso-8859-1")
        assert read_properties(path) == {"greeting": "hello", "name": "world"}

    def test_yaml_file(self, tmp_path):
        """Test flat YAML mappings."""
        path = tmp_path / "filter.yaml"
        path.write_text("greeting: hello\ncount: 3\n", encoding="utf-8")
        assert read_properties(path) == {"greeting": "hello", "count": "3"}

    def test_missing_file_raises(self, tmp_path):
        """Test that unreadable files fail with a formatting error."""
        with pytest.raises(AssemblyFormattingError, match="Error loading property file"):
            read_properties(tmp_path / "missing.properties")


class TestFileSetTransformer:
    """Test the transformer built for file-sets and file items."""

    def test_passthrough_is_none(self, make_config):
        """Test that unfiltered, keep-eol content needs no transformer."""
        assert get_file_set_transformer(make_config(), False, [], None) is None
        assert get_file_set_transformer(make_config(), False, [], "keep") is None

    def test_project_expressions(self, make_config):
        """Test ${...} and @...@ interpolation from the owning project."""
        transform = get_file_set_transformer(make_config(), True, [], None)
        assert transform("README.txt", b"${project.version} @project.artifactId@") == b"1.0 app"

    def test_unknown_expressions_kept(self, make_config):
        """Test that unresolved expressions survive filtering."""
        transform = get_file_set_transformer(make_config(), True, [], None)
        assert transform("a.txt", b"${nope} @nope@") == b"${nope} @nope@"

    def test_filter_files_win(self, tmp_path, make_config):
        """Test that filter file values shadow project values."""
        path = tmp_path / "filter.properties"
        path.write_text("project.version=9.9\n", encoding="iso-8859-1")
        transform = get_file_set_transformer(make_config(filters=[path]), True, [], None)
        assert transform("a.txt", b"v${project.version}") == b"v9.9"

    def test_additional_properties(self, make_config):
        """Test that execution properties are available."""
        config = make_config(additional_properties={"env.label": "prod"})
        transform = get_file_set_transformer(config, True, [], None)
        assert transform("a.txt", b"${env.label}") == b"prod"

    def test_non_filtered_extension_skipped(self, make_config):
        """Test that listed extensions pass through unfiltered."""
        transform = get_file_set_transformer(make_config(), True, ["jpg"], "crlf")
        assert transform("img/photo.JPG", b"${project.version}\n") == b"${project.version}\r\n"

    def test_line_ending_only(self, make_config):
        """Test line ending conversion without filtering."""
        transform = get_file_set_transformer(make_config(), False, [], "unix")
        assert transform("a.txt", b"x\r\ny") == b"x\ny"

    def test_bad_line_ending_raises(self, make_config):
        """Test that an unknown line ending fails when building the transformer."""
        with pytest.raises(AssemblyFormattingError):
            get_file_set_transformer(make_config(), False, [], "bogus")
