"""Resolved artifacts and module projects.

Artifacts come out of a dependency resolver and module projects out of a
project builder; both are passed by reference into the phases.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


# Types whose packaged file extension differs from the type name
_TYPE_EXTENSIONS = {
    "test-jar": "jar",
    "maven-plugin": "jar",
    "ejb": "jar",
    "ejb-client": "jar",
    "java-source": "jar",
    "javadoc": "jar",
    "bundle": "jar",
}


@dataclass(frozen=True)
class Artifact:
    """A resolved build artifact.

    Attributes:
        group_id: Group coordinate
        artifact_id: Artifact coordinate
        version: Version as resolved
        type: Artifact type (jar, war, pom, zip, ...)
        classifier: Optional classifier (sources, tests, bin, ...)
        file: Backing file, or None when the artifact was never built
        scope: Dependency scope it was resolved in
        base_version: Version without snapshot timestamps (defaults to version)
        dependency_trail: Ids of the dependencies leading to this artifact,
            outermost first; empty for direct dependencies

    Example:
        >>> a = Artifact("org.example", "core", "1.0", classifier="tests")
        >>> a.id
        'org.example:core:jar:tests:1.0'
    """
    group_id: str
    artifact_id: str
    version: str
    type: str = "jar"
    classifier: Optional[str] = None
    file: Optional[Path] = None
    scope: str = "compile"
    base_version: Optional[str] = None
    dependency_trail: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.base_version is None:
            object.__setattr__(self, "base_version", self.version)
        if self.file is not None and not isinstance(self.file, Path):
            object.__setattr__(self, "file", Path(self.file))

    @property
    def extension(self) -> str:
        return _TYPE_EXTENSIONS.get(self.type, self.type)

    @property
    def has_classifier(self) -> bool:
        return bool(self.classifier)

    @property
    def dependency_conflict_id(self) -> str:
        cid = f"{self.group_id}:{self.artifact_id}:{self.type}"
        if self.has_classifier:
            cid += f":{self.classifier}"
        return cid

    @property
    def id(self) -> str:
        return f"{self.dependency_conflict_id}:{self.version}"

    def __str__(self) -> str:
        return self.id


@dataclass(eq=False)
class ModuleProject:
    """A project of the build, either the owning project or a sub-project.

    Attributes:
        group_id, artifact_id, version: Coordinates
        packaging: Packaging type; "pom" projects carry no binary
        basedir: Project directory
        modules: Declared sub-module directory names, relative to basedir
        artifact: The project's own artifact
        attached_artifacts: Secondary artifacts (sources, javadoc, ...)
        properties: Project properties usable in path templates and filtering
        build_final_name: Build output name; defaults to artifactId-version
        dependencies: Resolved dependencies, direct and transitive
        description: Free text
    """
    group_id: str
    artifact_id: str
    version: str
    packaging: str = "jar"
    basedir: Optional[Path] = None
    modules: list[str] = field(default_factory=list)
    artifact: Optional[Artifact] = None
    attached_artifacts: list[Artifact] = field(default_factory=list)
    properties: dict[str, str] = field(default_factory=dict)
    build_final_name: Optional[str] = None
    dependencies: list[Artifact] = field(default_factory=list)
    description: str = ""

    def __post_init__(self) -> None:
        if self.basedir is not None and not isinstance(self.basedir, Path):
            self.basedir = Path(self.basedir)
        if self.build_final_name is None:
            self.build_final_name = f"{self.artifact_id}-{self.version}"

    @property
    def id(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.packaging}:{self.version}"

    def project_artifact(self) -> Artifact:
        """Own artifact, or a file-less artifact carrying the project's coordinates."""
        if self.artifact is not None:
            return self.artifact
        return Artifact(self.group_id, self.artifact_id, self.version, type=self.packaging)

    def __repr__(self) -> str:
        return f"ModuleProject({self.id})"


@dataclass(frozen=True)
class ResolvedProject:
    """Outcome of a module project lookup.

    ``stand_in`` is True when no real project could be built and the project
    was synthesized from the artifact's coordinates.
    """
    project: ModuleProject
    stand_in: bool = False

    @classmethod
    def stand_in_for(cls, artifact: Artifact) -> "ResolvedProject":
        project = ModuleProject(
            group_id=artifact.group_id,
            artifact_id=artifact.artifact_id,
            version=artifact.base_version or artifact.version,
            packaging=artifact.type,
            artifact=artifact,
            description=f"Stub for {artifact.id}",
        )
        return cls(project=project, stand_in=True)
