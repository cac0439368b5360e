"""
Collaborator contracts consumed by the phases, with default implementations.

- DependencyResolver: dependency-set -> resolved artifacts
- ModuleProjectBuilder: artifact -> module project
- RepositoryAssembler: materializes a repository mirror into a directory

The defaults work from what the build configuration already declares: the
owning project's resolved dependencies and the reactor projects.
"""
from __future__ import annotations

import logging
import shutil
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, Sequence, runtime_checkable

from assemblykit.errors import (
    DependencyResolutionError,
    ProjectBuildingError,
    RepositoryAssemblyError,
)
from assemblykit.model.descriptor import DependencySet, Repository
from assemblykit.model.project import Artifact, ModuleProject
from assemblykit.utils.filters import filter_artifacts, new_scope_filter

if TYPE_CHECKING:
    from assemblykit.config import ConfigSource

logger = logging.getLogger(__name__)


@runtime_checkable
class DependencyResolver(Protocol):
    """Resolves dependency-sets for a project."""

    def resolve(
        self, project: ModuleProject, dependency_sets: Sequence[DependencySet]
    ) -> dict[DependencySet, list[Artifact]]:
        ...


@runtime_checkable
class ModuleProjectBuilder(Protocol):
    """Builds the project that produced an artifact."""

    def build(self, artifact: Artifact) -> ModuleProject:
        ...


@runtime_checkable
class RepositoryAssembler(Protocol):
    """Materializes a repository mirror."""

    def build_mirror(
        self, directory: Path, repository: Repository, config_source: "ConfigSource"
    ) -> None:
        ...


class ProjectDependencyResolver:
    """
    Resolve dependency-sets from the project's declared dependencies.

    Direct dependencies carry an empty dependency trail; a set that turns off
    transitive dependencies only sees those.
    """

    def resolve(
        self, project: ModuleProject, dependency_sets: Sequence[DependencySet]
    ) -> dict[DependencySet, list[Artifact]]:
        for dep in project.dependencies:
            if dep.file is not None and not dep.file.exists():
                raise DependencyResolutionError(
                    f"Failed to resolve dependencies for {project.id}: "
                    f"file of {dep.id} does not exist: {dep.file}"
                )

        result: dict[DependencySet, list[Artifact]] = {}
        for dependency_set in dependency_sets:
            if dependency_set.use_transitive_dependencies:
                artifacts = list(project.dependencies)
            else:
                artifacts = [d for d in project.dependencies if not d.dependency_trail]
            logger.debug(f"Resolved {len(artifacts)} artifact(s) for {project.id}")
            result[dependency_set] = artifacts
        return result


class ReactorProjectBuilder:
    """Look up artifacts among the projects of the current build."""

    def __init__(self, reactor_projects: Sequence[ModuleProject]):
        self._projects = {
            (p.group_id, p.artifact_id, p.version): p for p in reactor_projects
        }

    def build(self, artifact: Artifact) -> ModuleProject:
        key = (artifact.group_id, artifact.artifact_id, artifact.base_version)
        try:
            return self._projects[key]
        except KeyError:
            raise ProjectBuildingError(
                f"No project in the build produces {artifact.id}"
            ) from None


_METADATA_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<metadata>
  <groupId>{group_id}</groupId>
  <artifactId>{artifact_id}</artifactId>
  <versioning>
    <versions>
{versions}
    </versions>
  </versioning>
</metadata>
"""


class LocalRepositoryAssembler:
    """
    Lay out resolved dependency files as a repository.

    Files land at ``<group path>/<artifactId>/<version>/<artifactId>-<version>[-<classifier>].<ext>``.
    """

    def __init__(self, resolver: DependencyResolver | None = None):
        self.resolver = resolver or ProjectDependencyResolver()

    def build_mirror(
        self, directory: Path, repository: Repository, config_source: "ConfigSource"
    ) -> None:
        project = config_source.project
        selection = DependencySet(
            scope=repository.scope,
            includes=list(repository.includes),
            excludes=list(repository.excludes),
        )
        try:
            artifacts = list(self.resolver.resolve(project, [selection])[selection])
        except DependencyResolutionError as exc:
            raise RepositoryAssemblyError(f"Error resolving artifacts: {exc}") from exc

        filter_artifacts(
            artifacts,
            repository.includes,
            repository.excludes,
            False,
            True,
            new_scope_filter(repository.scope),
        )

        versions: dict[tuple[str, str], list[str]] = defaultdict(list)
        for artifact in artifacts:
            if artifact.file is None:
                raise RepositoryAssemblyError(f"Artifact {artifact.id} has no file to mirror")

            target_dir = (
                directory
                / artifact.group_id.replace(".", "/")
                / artifact.artifact_id
                / artifact.base_version
            )
            name = f"{artifact.artifact_id}-{artifact.version}"
            if artifact.classifier:
                name += f"-{artifact.classifier}"
            name += f".{artifact.extension}"

            try:
                target_dir.mkdir(parents=True, exist_ok=True)
                shutil.copy2(artifact.file, target_dir / name)
            except OSError as exc:
                raise RepositoryAssemblyError(f"Error copying {artifact.id}: {exc}") from exc

            key = (artifact.group_id, artifact.artifact_id)
            if artifact.base_version not in versions[key]:
                versions[key].append(artifact.base_version)

        if repository.include_metadata:
            for (group_id, artifact_id), found in versions.items():
                path = directory / group_id.replace(".", "/") / artifact_id / "maven-metadata.xml"
                path.write_text(
                    _METADATA_TEMPLATE.format(
                        group_id=group_id,
                        artifact_id=artifact_id,
                        versions="\n".join(f"      <version>{v}</version>" for v in found),
                    ),
                    encoding="utf-8",
                )

        logger.info(f"Mirrored {len(artifacts)} artifact(s) into {directory}")
