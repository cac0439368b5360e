"""
Unit tests for the YAML descriptor reader.

Tests cover:
- Nested dataclass conversion
- Unknown keys, scalars read as numbers, malformed input
- Duplicate ids and the site directory
"""
from __future__ import annotations

import logging
from textwrap import dedent

import pytest

from assemblykit.errors import InvalidAssemblerConfigurationError
from assemblykit.model.descriptor import DEFAULT_OUTPUT_FILE_NAME_MAPPING, DependencySet, FileSet
from assemblykit.model.io import parse_assembly, read_assemblies, read_assembly

DESCRIPTOR = dedent(
    """\
    id: bin
    formats: [zip, tar.gz]
    base_directory: ${project.artifactId}
    files:
      - source: README.txt
        output_directory: ""
        file_mode: "0644"
    file_sets:
      - directory: src/main/scripts
        output_directory: bin
        file_mode: "0755"
        includes: ["*.sh"]
        colour: blue
    dependency_sets:
      - output_directory: lib
        scope: runtime
        unpack: true
        unpack_options:
          excludes: ["META-INF/**"]
    module_sets:
      - use_all_reactor_projects: true
        binaries:
          output_directory: modules
          unpack: false
    repositories:
      - output_directory: repo
        include_metadata: true
    container_descriptor_handlers:
      - handler_name: metaInf-services
    """
)


@pytest.fixture
def descriptor_file(tmp_path):
    path = tmp_path / "assembly.yaml"
    path.write_text(DESCRIPTOR, encoding="utf-8")
    return path


class TestReadAssembly:
    """Test reading one descriptor."""

    def test_full_descriptor(self, descriptor_file):
        """Test that every section becomes typed dataclasses."""
        assembly = read_assembly(descriptor_file)
        assert assembly.id == "bin"
        assert assembly.formats == ["zip", "tar.gz"]
        assert assembly.base_directory == "${project.artifactId}"
        assert assembly.files[0].source == "README.txt"
        assert assembly.files[0].output_directory == ""

        file_set = assembly.file_sets[0]
        assert isinstance(file_set, FileSet)
        assert file_set.file_mode == "0755"
        assert file_set.includes == ["*.sh"]
        assert file_set.use_default_excludes is True

        dependency_set = assembly.dependency_sets[0]
        assert isinstance(dependency_set, DependencySet)
        assert dependency_set.unpack_options.excludes == ["META-INF/**"]
        assert dependency_set.output_file_name_mapping == DEFAULT_OUTPUT_FILE_NAME_MAPPING

        assert assembly.module_sets[0].binaries.output_directory == "modules"
        assert assembly.repositories[0].include_metadata is True
        assert assembly.container_descriptor_handlers[0].handler_name == "metaInf-services"

    def test_numbers_become_strings(self):
        """Test that string fields read as numbers are converted back."""
        assembly = parse_assembly({"id": 1, "files": [{"source": "a", "output_directory": 2.0}]})
        assert assembly.id == "1"
        assert assembly.files[0].output_directory == "2.0"

    def test_unquoted_mode_rejected(self, tmp_path):
        """Test that an unquoted YAML mode names the field and asks for quotes."""
        path = tmp_path / "modes.yaml"
        path.write_text("id: bin\nfile_sets:\n  - directory: bin\n    file_mode: 0755\n", encoding="utf-8")
        with pytest.raises(InvalidAssemblerConfigurationError, match=r"FileSet.file_mode must be a quoted octal string"):
            read_assembly(path)

    def test_missing_id(self):
        """Test that an id is required."""
        with pytest.raises(InvalidAssemblerConfigurationError, match="has no id"):
            parse_assembly({"formats": ["zip"]})

    def test_wrong_shape(self):
        """Test that a list where a mapping belongs is rejected."""
        with pytest.raises(InvalidAssemblerConfigurationError, match="Expected a mapping for FileSet"):
            parse_assembly({"id": "x", "file_sets": [["not", "a", "mapping"]]})

    def test_missing_file(self, tmp_path):
        """Test that a missing descriptor is a configuration error."""
        with pytest.raises(InvalidAssemblerConfigurationError, match="not found"):
            read_assembly(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test that YAML syntax errors are wrapped."""
        path = tmp_path / "bad.yaml"
        path.write_text("id: [unclosed\n", encoding="utf-8")
        with pytest.raises(InvalidAssemblerConfigurationError, match="Error reading descriptor"):
            read_assembly(path)


class TestReadAssemblies:
    """Test reading several descriptors."""

    def test_duplicate_ids_warn(self, descriptor_file, caplog):
        """Test that duplicate ids only warn."""
        with caplog.at_level(logging.WARNING):
            assemblies = read_assemblies([descriptor_file, descriptor_file])
        assert len(assemblies) == 2
        assert "The assembly id bin is used more than once." in caplog.text

    def test_none_found(self):
        """Test that an empty list is an error."""
        with pytest.raises(InvalidAssemblerConfigurationError, match="No assembly descriptors found."):
            read_assemblies([])


class TestSiteDirectory:
    """Test include_site_directory."""

    def test_site_added(self, tmp_path, make_config):
        """Test that the site directory becomes a file-set under /site."""
        site = tmp_path / "site"
        site.mkdir()
        path = tmp_path / "site.yaml"
        path.write_text("id: site\ninclude_site_directory: true\n", encoding="utf-8")
        assembly = read_assembly(path, make_config(site_directory=site))
        assert assembly.file_sets[-1].directory == str(site)
        assert assembly.file_sets[-1].output_directory == "/site"

    def test_site_missing(self, tmp_path, make_config):
        """Test that a missing site directory fails."""
        path = tmp_path / "site.yaml"
        path.write_text("id: site\ninclude_site_directory: true\n", encoding="utf-8")
        with pytest.raises(InvalidAssemblerConfigurationError, match="site did not exist"):
            read_assembly(path, make_config(site_directory=tmp_path / "nope"))
