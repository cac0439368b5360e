"""
Integration tests for create_archive.

Tests cover:
- Archive naming and formats
- Base directory handling
- The full phase pipeline into real zip/tar/dir output
- Working directory protection end to end
"""
from __future__ import annotations

import tarfile
import zipfile

import pytest

from assemblykit.archiver.assembly_archiver import create_archive, get_base_directory
from assemblykit.errors import ArchiveCreationError, InvalidAssemblerConfigurationError
from assemblykit.model.descriptor import (
    Assembly,
    ContainerDescriptorHandlerConfig,
    DependencySet,
    FileItem,
    FileSet,
)


@pytest.fixture
def project(make_project, make_artifact):
    project = make_project(dependencies=[make_artifact("a", content=b"A")])
    (project.basedir / "README.txt").write_text("readme")
    (project.basedir / "bin").mkdir()
    (project.basedir / "bin" / "run.sh").write_text("#!/bin/sh\n")
    return project


def _assembly(**kwargs) -> Assembly:
    kwargs.setdefault("id", "bin")
    kwargs.setdefault(
        "files", [FileItem(source="README.txt", output_directory="")]
    )
    kwargs.setdefault(
        "file_sets", [FileSet(directory="bin", output_directory="bin", file_mode="0755")]
    )
    kwargs.setdefault(
        "dependency_sets", [DependencySet(output_directory="lib", use_project_artifact=False)]
    )
    return Assembly(**kwargs)


class TestGetBaseDirectory:
    """Test the root prefix of an assembly."""

    def test_final_name_default(self, make_config):
        """Test that the final name is the default base directory."""
        assert get_base_directory(Assembly(id="x"), make_config()) == "app-1.0"

    def test_formatted(self, make_config):
        """Test that base_directory is interpolated."""
        assembly = Assembly(id="x", base_directory="${project.artifactId}")
        assert get_base_directory(assembly, make_config()) == "app/"

    @pytest.mark.parametrize("descriptor_flag,config_flag", [(False, True), (True, False)])
    def test_disabled(self, make_config, descriptor_flag, config_flag):
        """Test that either flag turns the base directory off."""
        assembly = Assembly(id="x", include_base_directory=descriptor_flag)
        assert get_base_directory(assembly, make_config(include_base_directory=config_flag)) == ""


class TestCreateArchive:
    """Test end-to-end archive creation."""

    def test_zip(self, project, make_config):
        """Test a zip with file items, file-sets and dependencies under the base directory."""
        config = make_config(project)
        dest = create_archive(_assembly(), "app-1.0-bin", "zip", config)
        assert dest == config.output_directory / "app-1.0-bin.zip"
        with zipfile.ZipFile(dest) as zf:
            names = zf.namelist()
            assert "app-1.0/README.txt" in names
            assert "app-1.0/bin/run.sh" in names
            assert "app-1.0/lib/a-1.0.jar" in names
            assert (zf.getinfo("app-1.0/bin/run.sh").external_attr >> 16) & 0o777 == 0o755

    def test_tar_gz_without_base_directory(self, project, make_config):
        """Test a compressed tar with entries at the root."""
        config = make_config(project)
        dest = create_archive(_assembly(include_base_directory=False), "dist", "tar.gz", config)
        assert dest.name == "dist.tar.gz"
        with tarfile.open(dest, "r:gz") as tf:
            assert {"README.txt", "bin/run.sh", "lib/a-1.0.jar"} <= set(tf.getnames())

    def test_dir_format_has_no_extension(self, project, make_config):
        """Test that the directory format writes a plain tree."""
        config = make_config(project)
        dest = create_archive(_assembly(), "app-1.0-bin", "dir", config)
        assert dest == config.output_directory / "app-1.0-bin"
        assert (dest / "app-1.0" / "README.txt").read_text() == "readme"

    def test_given_writer(self, project, make_config, writer):
        """Test that a supplied writer is used and receives the destination."""
        config = make_config(project)
        create_archive(_assembly(), "app-1.0-bin", "zip", config, writer=writer)
        assert writer.dest_file == config.output_directory / "app-1.0-bin.zip"
        assert "app-1.0/README.txt" in [e.name for e in writer.written]

    def test_update_only(self, project, make_config, writer):
        """Test that update_only turns forcing off."""
        create_archive(_assembly(), "x", "zip", make_config(project, update_only=True), writer=writer)
        assert writer.forced is False

    def test_handlers(self, project, make_config, writer):
        """Test that configured handlers aggregate entries."""
        services = project.basedir / "svc"
        for part in ("one", "two"):
            (services / part / "META-INF" / "services").mkdir(parents=True)
            (services / part / "META-INF" / "services" / "org.example.Plugin").write_text(f"org.example.{part}\n")
        assembly = _assembly(
            files=[],
            dependency_sets=[],
            include_base_directory=False,
            file_sets=[
                FileSet(directory="svc/one", output_directory=""),
                FileSet(directory="svc/two", output_directory=""),
            ],
            container_descriptor_handlers=[ContainerDescriptorHandlerConfig("metaInf-services")],
        )
        create_archive(assembly, "x", "zip", make_config(project), writer=writer)
        assert writer.content("META-INF/services/org.example.Plugin") == b"org.example.one\norg.example.two\n"

    def test_working_directory_never_archived(self, project, make_config):
        """Test that a file-set over the basedir skips the working directory."""
        config = make_config(project, output_directory=project.basedir / "target")
        config.working_directory.mkdir(parents=True)
        (config.working_directory / "staged.tmp").write_text("tmp")
        assembly = _assembly(
            files=[], dependency_sets=[], file_sets=[FileSet(output_directory="")], include_base_directory=False
        )
        dest = create_archive(assembly, "self", "zip", config)
        with zipfile.ZipFile(dest) as zf:
            names = zf.namelist()
        assert "README.txt" in names
        assert not any("staged.tmp" in n for n in names)

    def test_missing_id(self, make_config):
        """Test that an assembly id is required."""
        with pytest.raises(InvalidAssemblerConfigurationError, match="Assembly ID must be present"):
            create_archive(Assembly(id=" "), "x", "zip", make_config())

    def test_unknown_format(self, make_config):
        """Test that unknown formats are reported with the assembly id."""
        with pytest.raises(ArchiveCreationError, match="Unable to obtain archiver for extension 'rar', for assembly: 'bin'"):
            create_archive(Assembly(id="bin"), "x", "rar", make_config())
