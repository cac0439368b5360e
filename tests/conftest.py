"""
Shared test fixtures.

- make_project: ModuleProject factory rooted in tmp_path
- make_config: ConfigSource factory for a project
- writer: an in-memory writer that stages entries without writing anything
- make_artifact: Artifact factory with a real backing file
"""
from __future__ import annotations

from pathlib import Path

import pytest

from assemblykit.archiver.writers import AbstractArchiveWriter
from assemblykit.config import ConfigSource
from assemblykit.model.project import Artifact, ModuleProject


class StagingWriter(AbstractArchiveWriter):
    """Keeps the entries handed to _write instead of producing a file."""

    format_name = "staging"

    def __init__(self) -> None:
        super().__init__()
        self.written: list = []

    def _write(self, entries) -> None:
        self.written = list(entries)

    def names(self) -> list[str]:
        return sorted(self.entries)

    def content(self, name: str) -> bytes:
        return self.entries[name].read_bytes()


@pytest.fixture
def writer() -> StagingWriter:
    return StagingWriter()


@pytest.fixture
def make_project(tmp_path: Path):
    """Factory: make_project("core", modules=[...], basedir=...)."""

    def _make(artifact_id: str = "app", version: str = "1.0", **kwargs) -> ModuleProject:
        basedir = kwargs.pop("basedir", tmp_path / artifact_id)
        Path(basedir).mkdir(parents=True, exist_ok=True)
        return ModuleProject(
            group_id=kwargs.pop("group_id", "org.example"),
            artifact_id=artifact_id,
            version=version,
            basedir=basedir,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_artifact(tmp_path: Path):
    """Factory: make_artifact("lib", content=b"...") creates the backing file too."""

    def _make(
        artifact_id: str = "lib",
        version: str = "1.0",
        content: bytes | None = b"jar-bytes",
        **kwargs,
    ) -> Artifact:
        type_ = kwargs.get("type", "jar")
        classifier = kwargs.get("classifier")
        file = None
        if content is not None:
            repo = tmp_path / "repo"
            repo.mkdir(exist_ok=True)
            suffix = f"-{classifier}" if classifier else ""
            file = repo / f"{artifact_id}-{version}{suffix}.{type_}"
            file.write_bytes(content)
        return Artifact(
            group_id=kwargs.pop("group_id", "org.example"),
            artifact_id=artifact_id,
            version=version,
            file=kwargs.pop("file", file),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_config(tmp_path: Path, make_project):
    """Factory: make_config(project=None, **overrides) with output under tmp_path/target."""

    def _make(project: ModuleProject | None = None, **kwargs) -> ConfigSource:
        project = project or make_project()
        kwargs.setdefault("basedir", project.basedir)
        kwargs.setdefault("output_directory", tmp_path / "target")
        return ConfigSource(project=project, **kwargs)

    return _make
