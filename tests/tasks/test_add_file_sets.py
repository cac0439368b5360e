"""
Unit tests for AddFileSetsTask.

Tests cover:
- Directory resolution (basedir, absolute, archive base directory)
- Output directory defaults and ${module.*}
- Filtering and modes
"""
from __future__ import annotations

from pathlib import Path

import pytest

from assemblykit.errors import ArchiveCreationError, AssemblyFormattingError
from assemblykit.model.descriptor import FileSet
from assemblykit.tasks.add_file_sets import AddFileSetsTask


@pytest.fixture
def project(make_project):
    project = make_project(properties={"greeting": "hello"})
    (project.basedir / "src").mkdir()
    (project.basedir / "src" / "main.py").write_text("print('${greeting}')\n")
    (project.basedir / "conf").mkdir()
    (project.basedir / "conf" / "app.cfg").write_text("version=${project.version}\n")
    return project


class TestAddFileSetsTask:
    """Test file-set resolution and placement."""

    def test_relative_directory(self, writer, project, make_config):
        """Test that directories resolve against the project basedir."""
        AddFileSetsTask([FileSet(directory="src", output_directory="lib")]).execute(
            writer, make_config(project)
        )
        assert writer.names() == ["lib/main.py"]

    def test_output_defaults_to_directory(self, writer, project, make_config):
        """Test that the output directory falls back to the source directory."""
        AddFileSetsTask([FileSet(directory="src")]).execute(writer, make_config(project))
        assert writer.names() == ["src/main.py"]

    def test_filtered(self, writer, project, make_config):
        """Test that filtered file-sets interpolate content."""
        AddFileSetsTask([FileSet(directory="conf", output_directory="", filtered=True)]).execute(
            writer, make_config(project)
        )
        assert writer.content("app.cfg") == b"version=1.0\n"

    def test_unfiltered_content_untouched(self, writer, project, make_config):
        """Test that expressions stay when filtering is off."""
        AddFileSetsTask([FileSet(directory="src", output_directory="")]).execute(
            writer, make_config(project)
        )
        assert writer.content("main.py") == b"print('${greeting}')\n"

    def test_modes(self, writer, project, make_config):
        """Test that file-set modes apply to its entries."""
        AddFileSetsTask(
            [FileSet(directory="src", output_directory="bin", file_mode="0755", directory_mode="0700")]
        ).execute(writer, make_config(project))
        assert writer.entries["bin/main.py"].mode == 0o755
        assert writer.file_mode == -1

    def test_bad_mode_raises(self, writer, project, make_config):
        """Test that a non-octal mode is a formatting error."""
        with pytest.raises(AssemblyFormattingError):
            AddFileSetsTask([FileSet(directory="src", file_mode="0x1")]).execute(
                writer, make_config(project)
            )

    def test_missing_directory_skipped(self, writer, project, make_config):
        """Test that a missing directory adds nothing."""
        AddFileSetsTask([FileSet(directory="missing")]).execute(writer, make_config(project))
        assert writer.names() == []

    def test_module_output_directory(self, writer, project, make_project, make_config):
        """Test ${module.*} with a module project and its basedir."""
        core = make_project("core")
        (core.basedir / "res").mkdir()
        (core.basedir / "res" / "a.txt").write_text("a")
        task = AddFileSetsTask([FileSet(directory="res", output_directory="${module.artifactId}")])
        task.project = core
        task.module_project = core
        task.execute(writer, make_config(project))
        assert writer.names() == ["core/a.txt"]

    def test_archive_base_directory(self, writer, tmp_path, project, make_config):
        """Test that directories resolve against the archive base directory."""
        base = tmp_path / "staged"
        (base / "src").mkdir(parents=True)
        (base / "src" / "other.py").write_text("x")
        AddFileSetsTask([FileSet(directory="/src", output_directory="")]).execute(
            writer, make_config(project, archive_base_directory=base)
        )
        assert writer.names() == ["other.py"]

    def test_archive_base_directory_missing(self, writer, tmp_path, project, make_config):
        """Test that a missing archive base directory fails."""
        config = make_config(project, archive_base_directory=tmp_path / "nope")
        with pytest.raises(ArchiveCreationError, match="does not exist"):
            AddFileSetsTask([FileSet(directory="src")]).execute(writer, config)

    def test_archive_base_directory_not_dir(self, writer, tmp_path, project, make_config):
        """Test that an archive base directory must be a directory."""
        plain = tmp_path / "plain.txt"
        plain.write_text("x")
        config = make_config(project, archive_base_directory=plain)
        with pytest.raises(ArchiveCreationError, match="not a directory"):
            AddFileSetsTask([FileSet(directory="src")]).execute(writer, config)

    def test_filesystem_root_rejected(self, writer, project, make_config):
        """Test that the whole file system cannot be a file-set."""
        with pytest.raises(AssemblyFormattingError, match="entire"):
            AddFileSetsTask([FileSet(directory="/", output_directory="x")]).execute(
                writer, make_config(project)
            )


class TestGetFileSetDirectory:
    """Test source directory resolution."""

    def test_absolute(self, tmp_path):
        """Test that absolute directories are kept."""
        assert AddFileSetsTask.get_file_set_directory(FileSet(directory=str(tmp_path)), Path("/p"), None) == tmp_path

    def test_unset_is_basedir(self, tmp_path):
        """Test that no directory means the basedir."""
        assert AddFileSetsTask.get_file_set_directory(FileSet(), tmp_path, None) == tmp_path.absolute()

    def test_archive_base(self, tmp_path):
        """Test that the archive base directory wins over basedir."""
        result = AddFileSetsTask.get_file_set_directory(FileSet(directory="/a"), Path("/p"), tmp_path)
        assert result == tmp_path / "a"
