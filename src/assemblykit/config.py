# src/assemblykit/config.py
"""
Build configuration for assemblykit.

- ConfigSource: everything the phases need besides the descriptor
  (directories, final name, projects, properties, collaborators)
- load_config_source(): reads a YAML build configuration
- Normalizes relative paths against the configuration file's directory
- Supports safe forward-compatibility (unknown keys ignored)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from assemblykit.collaborators import (
    DependencyResolver,
    LocalRepositoryAssembler,
    ModuleProjectBuilder,
    ProjectDependencyResolver,
    ReactorProjectBuilder,
    RepositoryAssembler,
)
from assemblykit.errors import InvalidAssemblerConfigurationError
from assemblykit.model.project import Artifact, ModuleProject

logger = logging.getLogger(__name__)


@dataclass
class ConfigSource:
    """
    Configuration source consumed by every phase.

    Attributes:
        project: The owning project
        basedir: Project base directory; relative file-set paths resolve here
        final_name: Build final name (archive base name and base directory)
        output_directory: Where finished archives are written
        temporary_root_directory: Staging root for copies and repository mirrors
        working_directory: Staging directory of the archive being built;
            never included in its own output
        archive_base_directory: Alternate root for file-set directories
        site_directory: Generated site, added when a descriptor asks for it
        reactor_projects: All projects of the build; the first one is the root
        append_assembly_id: Append "-<id>" to the archive name
        include_base_directory: Global switch ANDed with the descriptor flag
        update_only: Keep an up-to-date archive instead of forcing a rebuild
        additional_properties: Extra properties for paths and filtering
        filters: Property files used when filtering content
        encoding: Encoding of filtered text content
        resolver: Dependency resolver (defaults to the project's declared deps)
        project_builder: Module project lookup (defaults to the reactor)
        repository_assembler: Repository mirroring
    """

    project: ModuleProject
    basedir: Path = field(default_factory=Path.cwd)
    final_name: Optional[str] = None
    output_directory: Path = Path("target")
    temporary_root_directory: Optional[Path] = None
    working_directory: Optional[Path] = None
    archive_base_directory: Optional[Path] = None
    site_directory: Optional[Path] = None
    reactor_projects: list[ModuleProject] = field(default_factory=list)
    append_assembly_id: bool = True
    include_base_directory: bool = True
    update_only: bool = False
    additional_properties: dict[str, str] = field(default_factory=dict)
    filters: list[Path] = field(default_factory=list)
    encoding: str = "utf-8"
    resolver: Optional[DependencyResolver] = None
    project_builder: Optional[ModuleProjectBuilder] = None
    repository_assembler: Optional[RepositoryAssembler] = None

    def __post_init__(self) -> None:
        self.basedir = Path(self.basedir)
        self.output_directory = Path(self.output_directory)
        if not self.output_directory.is_absolute():
            self.output_directory = self.basedir / self.output_directory
        if self.temporary_root_directory is None:
            self.temporary_root_directory = self.output_directory / "archive-tmp"
        if self.working_directory is None:
            self.working_directory = self.output_directory / "assembly" / "work"
        self.temporary_root_directory = Path(self.temporary_root_directory)
        self.working_directory = Path(self.working_directory)
        if self.archive_base_directory is not None:
            self.archive_base_directory = Path(self.archive_base_directory)
        if self.final_name is None:
            self.final_name = self.project.build_final_name
        if not self.reactor_projects:
            self.reactor_projects = [self.project]

        if self.resolver is None:
            self.resolver = ProjectDependencyResolver()
        if self.project_builder is None:
            self.project_builder = ReactorProjectBuilder(self.reactor_projects)
        if self.repository_assembler is None:
            self.repository_assembler = LocalRepositoryAssembler(self.resolver)


# -----------------------------
# Helpers
# -----------------------------
def _path(value: Any, root: Path) -> Optional[Path]:
    if value is None or value == "":
        return None
    p = Path(str(value))
    return p if p.is_absolute() else (root / p).resolve()


def _artifact(data: dict[str, Any], root: Path) -> Artifact:
    try:
        return Artifact(
            group_id=str(data["group_id"]),
            artifact_id=str(data["artifact_id"]),
            version=str(data["version"]),
            type=str(data.get("type", "jar")),
            classifier=data.get("classifier"),
            file=_path(data.get("file"), root),
            scope=str(data.get("scope", "compile")),
            base_version=data.get("base_version"),
            dependency_trail=tuple(data.get("dependency_trail") or ()),
        )
    except KeyError as exc:
        raise InvalidAssemblerConfigurationError(
            f"Artifact is missing coordinate {exc.args[0]!r}: {data}"
        ) from exc


def _project(data: dict[str, Any], root: Path) -> ModuleProject:
    try:
        group_id = str(data["group_id"])
        artifact_id = str(data["artifact_id"])
        version = str(data["version"])
    except KeyError as exc:
        raise InvalidAssemblerConfigurationError(
            f"Project is missing coordinate {exc.args[0]!r}: {data}"
        ) from exc

    basedir = _path(data.get("basedir"), root) or root
    artifact = data.get("artifact")
    return ModuleProject(
        group_id=group_id,
        artifact_id=artifact_id,
        version=version,
        packaging=str(data.get("packaging", "jar")),
        basedir=basedir,
        modules=[str(m) for m in data.get("modules") or []],
        artifact=_artifact(artifact, basedir) if artifact else None,
        attached_artifacts=[
            _artifact(a, basedir) for a in data.get("attached_artifacts") or []
        ],
        properties={str(k): str(v) for k, v in (data.get("properties") or {}).items()},
        build_final_name=data.get("build_final_name"),
        dependencies=[_artifact(a, basedir) for a in data.get("dependencies") or []],
        description=str(data.get("description", "")),
    )


def load_config_source(yaml_path: str | Path) -> ConfigSource:
    """
    Load a YAML build configuration into a ConfigSource.

    Relative paths are resolved against the configuration file's directory.
    Environment overrides: ASSEMBLY_FINAL_NAME, ASSEMBLY_OUTPUT_DIR.

    Raises:
        FileNotFoundError: If the configuration file does not exist
        InvalidAssemblerConfigurationError: If the project section is missing
    """
    p = Path(yaml_path).resolve()
    if not p.exists():
        raise FileNotFoundError(f"Configuration file not found: {p}")

    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    root = p.parent

    # --- Environment variable overrides ---
    if os.getenv("ASSEMBLY_FINAL_NAME"):
        data["final_name"] = os.getenv("ASSEMBLY_FINAL_NAME")
    if os.getenv("ASSEMBLY_OUTPUT_DIR"):
        data["output_directory"] = os.getenv("ASSEMBLY_OUTPUT_DIR")

    basedir = _path(data.get("basedir"), root) or root

    project_data = data.get("project")
    if not project_data:
        raise InvalidAssemblerConfigurationError(f"`project` is required in {p}")
    project = _project(project_data, basedir)

    # The owning project is matched by coordinates so the reactor holds one instance
    reactor: list[ModuleProject] = []
    for entry in data.get("reactor_projects") or []:
        sub = _project(entry, basedir)
        reactor.append(project if sub.id == project.id else sub)

    config = ConfigSource(
        project=project,
        basedir=basedir,
        final_name=data.get("final_name"),
        output_directory=_path(data.get("output_directory"), basedir) or basedir / "target",
        temporary_root_directory=_path(data.get("temporary_root_directory"), basedir),
        working_directory=_path(data.get("working_directory"), basedir),
        archive_base_directory=_path(data.get("archive_base_directory"), basedir),
        site_directory=_path(data.get("site_directory"), basedir),
        reactor_projects=reactor,
        append_assembly_id=bool(data.get("append_assembly_id", True)),
        include_base_directory=bool(data.get("include_base_directory", True)),
        update_only=bool(data.get("update_only", False)),
        additional_properties={
            str(k): str(v) for k, v in (data.get("additional_properties") or {}).items()
        },
        filters=[_path(f, basedir) for f in data.get("filters") or []],
        encoding=str(data.get("encoding", "utf-8")),
    )
    logger.debug(f"Loaded build configuration from {p} (final name {config.final_name})")
    return config
