"""Tests for FileSetsPhase."""
from __future__ import annotations

from assemblykit.model.descriptor import Assembly, FileSet
from assemblykit.phases.file_sets import FileSetsPhase


class TestFileSetsPhase:
    """Test top-level file-sets."""

    def test_all_file_sets_added(self, writer, make_project, make_config):
        """Test that every declared file-set is added in order."""
        project = make_project()
        for name in ("bin", "docs"):
            (project.basedir / name).mkdir()
            (project.basedir / name / f"{name}.txt").write_text(name)
        assembly = Assembly(
            id="test",
            file_sets=[
                FileSet(directory="bin", output_directory="bin", file_mode="0755"),
                FileSet(directory="docs", output_directory="share/doc"),
            ],
        )
        FileSetsPhase().execute(assembly, writer, make_config(project))
        assert writer.names() == ["bin/bin.txt", "share/doc/docs.txt"]
        assert writer.entries["bin/bin.txt"].mode == 0o755
        assert writer.entries["share/doc/docs.txt"].mode == 0o644

    def test_no_file_sets(self, writer, make_config):
        """Test that an empty section adds nothing."""
        FileSetsPhase().execute(Assembly(id="test"), writer, make_config())
        assert writer.names() == []
