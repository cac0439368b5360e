"""Output path formatting.

Destination directories and file names are computed from templates
containing ``${...}`` expressions. Expressions are looked up in an ordered
list of value sources; the first source that knows an expression wins and
unknown expressions are left verbatim.

Variable groups:
    ${finalName}, ${build.finalName}      final name of the build
    ${module.*}                           module project / module artifact
    ${artifact.*}                         artifact being placed / its project
    ${groupId}, ${project.*}, ${pom.*}    owning project
    ${myProperty}, ${project.properties.myProperty}
                                          owning project properties
    ${env.NAME}                           environment
    ${dashClassifier?}                    "-<classifier>" or ""

Example:
    >>> fix_relative_refs("some/../path/")
    'path/'
"""
from __future__ import annotations

import logging
import os
import re
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from assemblykit.model.project import Artifact, ModuleProject

if TYPE_CHECKING:
    from assemblykit.config import ConfigSource
    from assemblykit.model.descriptor import Assembly

logger = logging.getLogger(__name__)

ValueSource = Callable[[str], Optional[str]]

PROJECT_PREFIXES = ("pom.", "project.")
PROJECT_PROPERTIES_PREFIXES = ("pom.properties.", "project.properties.")

_EXPRESSION = re.compile(r"\$\{([^}]+)\}")
_MAX_DEPTH = 10


class Interpolator:
    """Resolves ``${...}`` expressions against ordered value sources."""

    def __init__(self, *sources: Optional[ValueSource]):
        self._sources = [s for s in sources if s is not None]

    def lookup(self, expression: str) -> Optional[str]:
        for source in self._sources:
            value = source(expression)
            if value is not None:
                return value
        return None

    def interpolate(self, template: str) -> str:
        return self._interpolate(template, 0)

    def _interpolate(self, template: str, depth: int) -> str:
        def replace(match: re.Match) -> str:
            value = self.lookup(match.group(1))
            if value is None:
                return match.group(0)
            if depth < _MAX_DEPTH and "${" in value:
                return self._interpolate(value, depth + 1)
            return value

        return _EXPRESSION.sub(replace, template)


# -----------------------------
# Value sources
# -----------------------------
def _artifact_value(artifact: Artifact, key: str) -> Optional[str]:
    if key == "groupIdPath":
        return artifact.group_id.replace(".", "/")
    if key == "file.name":
        return artifact.file.name if artifact.file is not None else None
    values = {
        "groupId": artifact.group_id,
        "artifactId": artifact.artifact_id,
        "version": artifact.version,
        "baseVersion": artifact.base_version,
        "type": artifact.type,
        "classifier": artifact.classifier,
        "extension": artifact.extension,
        "scope": artifact.scope,
        "id": artifact.id,
        "dependencyConflictId": artifact.dependency_conflict_id,
    }
    return values.get(key)


def _project_value(project: ModuleProject, key: str) -> Optional[str]:
    if key.startswith("properties."):
        return project.properties.get(key[len("properties."):])
    if key == "groupIdPath":
        return project.group_id.replace(".", "/")
    if key.startswith("artifact.") and project.artifact is not None:
        return _artifact_value(project.artifact, key[len("artifact."):])
    if key == "file.name":
        artifact = project.artifact
        return artifact.file.name if artifact is not None and artifact.file is not None else None
    values = {
        "groupId": project.group_id,
        "artifactId": project.artifact_id,
        "version": project.version,
        "packaging": project.packaging,
        "id": project.id,
        "description": project.description,
        "build.finalName": project.build_final_name,
        "basedir": str(project.basedir) if project.basedir is not None else None,
    }
    return values.get(key)


def artifact_source(
    artifact: Optional[Artifact], prefixes: Iterable[str] = ("artifact.",)
) -> Optional[ValueSource]:
    """Expose an artifact's coordinates under the given prefixes."""
    if artifact is None:
        return None
    prefixes = tuple(prefixes)

    def source(expression: str) -> Optional[str]:
        for prefix in prefixes:
            if expression.startswith(prefix):
                value = _artifact_value(artifact, expression[len(prefix):])
                if value is not None:
                    return value
        return None

    return source


def project_source(
    project: Optional[ModuleProject],
    prefixes: Iterable[str],
    *,
    bare: bool = False,
) -> Optional[ValueSource]:
    """
    Expose a project's coordinates and properties under the given prefixes.

    Args:
        project: Project to expose (None yields no source)
        prefixes: Expression prefixes, e.g. ("module.",)
        bare: Also resolve unprefixed coordinates and property names
    """
    if project is None:
        return None
    prefixes = tuple(prefixes) + (("",) if bare else ())

    def source(expression: str) -> Optional[str]:
        for prefix in prefixes:
            if prefix and not expression.startswith(prefix):
                continue
            value = _project_value(project, expression[len(prefix):])
            if value is not None:
                return value
        if bare:
            return project.properties.get(expression)
        return None

    return source


def main_project_source(project: Optional[ModuleProject]) -> Optional[ValueSource]:
    """The owning project: ${project.*}, ${pom.*}, bare coordinates and properties."""
    if project is None:
        return None
    by_prefix = project_source(project, PROJECT_PREFIXES, bare=True)

    def source(expression: str) -> Optional[str]:
        for prefix in PROJECT_PROPERTIES_PREFIXES:
            if expression.startswith(prefix):
                return project.properties.get(expression[len(prefix):])
        return by_prefix(expression)

    return source


def main_artifact_source(project: Optional[ModuleProject]) -> Optional[ValueSource]:
    """The owning project's own artifact plus its properties."""
    if project is None:
        return None
    by_artifact = artifact_source(project.project_artifact(), PROJECT_PREFIXES + ("",))

    def source(expression: str) -> Optional[str]:
        for prefix in PROJECT_PROPERTIES_PREFIXES:
            if expression.startswith(prefix):
                return project.properties.get(expression[len(prefix):])
        return by_artifact(expression) or project.properties.get(expression)

    return source


def final_name_source(final_name: Optional[str]) -> Optional[ValueSource]:
    if final_name is None:
        return None
    return lambda expression: (
        final_name if expression in ("finalName", "build.finalName") else None
    )


def dash_classifier_source(artifact: Artifact) -> ValueSource:
    def source(expression: str) -> Optional[str]:
        if expression in ("dashClassifier", "dashClassifier?"):
            return f"-{artifact.classifier}" if artifact.classifier else ""
        return None

    return source


def execution_properties_source(config_source: Optional["ConfigSource"]) -> Optional[ValueSource]:
    if config_source is None:
        return None
    return config_source.additional_properties.get


def env_source(expression: str) -> Optional[str]:
    if expression.startswith("env."):
        return os.environ.get(expression[len("env."):])
    return None


# -----------------------------
# Normalization
# -----------------------------
def fix_relative_refs(src: str) -> str:
    """
    Remove "." segments and collapse ".." segments.

    A leading ".." has nothing to collapse into and is dropped, so a path never
    escapes the archive root. A trailing separator is preserved.

    Example:
        >>> fix_relative_refs("../path/")
        'path/'
        >>> fix_relative_refs("some/./path/")
        'some/path/'
    """
    value = src
    final_sep: Optional[str] = None
    for sep in ("/", "\\"):
        if value.endswith(sep):
            final_sep = sep
        if f".{sep}" in value:
            parts: list[str] = []
            for part in value.split(sep):
                if part == ".":
                    continue
                if part == "..":
                    if parts:
                        parts.pop()
                    continue
                parts.append(part)
            value = sep.join(parts)

    if final_sep is not None and value and not value.endswith(final_sep):
        value += final_sep
    return value


def _normalize(value: str) -> str:
    value = value.replace("\\", "/")
    while "//" in value:
        value = value.replace("//", "/")
    return fix_relative_refs(value)


# -----------------------------
# Public API
# -----------------------------
def get_output_directory(
    output: Optional[str],
    final_name: Optional[str],
    config_source: Optional["ConfigSource"],
    module_project: Optional[ModuleProject] = None,
    artifact_project: Optional[ModuleProject] = None,
) -> str:
    """
    Compute a destination directory inside the archive.

    Args:
        output: Directory template; None falls back to the final name
        final_name: Value of ${finalName}
        config_source: Supplies the owning project and execution properties
        module_project: Value source for ${module.*}
        artifact_project: Value source for ${artifact.*}

    Returns:
        Normalized directory ending with "/", or "" for the archive root

    Example:
        >>> get_output_directory("${finalName}", "app-1.0", None)
        'app-1.0/'
    """
    value = output
    if value is None:
        value = final_name or ""

    interpolator = Interpolator(
        final_name_source(final_name),
        project_source(module_project, ("module.",)),
        project_source(artifact_project, ("artifact.",)),
        execution_properties_source(config_source),
        main_project_source(config_source.project if config_source else None),
        env_source,
    )
    value = interpolator.interpolate(value)

    if value and not value.endswith(("/", "\\")):
        value += "/"
    return _normalize(value.lstrip("/\\"))


def evaluate_file_name_mapping(
    expression: str,
    artifact: Artifact,
    main_project: Optional[ModuleProject],
    module_artifact: Optional[Artifact],
    config_source: Optional["ConfigSource"],
    module_project: Optional[ModuleProject] = None,
    artifact_project: Optional[ModuleProject] = None,
) -> str:
    """
    Compute the file name of a placed artifact.

    Lookup order: module artifact, module project, the artifact itself,
    ${dashClassifier?}, the artifact's project, the owning project's artifact,
    execution properties, environment, then the owning project.

    Example:
        >>> a = Artifact("g", "core", "1.0", classifier="tests")
        >>> evaluate_file_name_mapping(
        ...     "${artifact.artifactId}${dashClassifier?}.jar", a, None, None, None)
        'core-tests.jar'
    """
    interpolator = Interpolator(
        artifact_source(module_artifact, ("module.",)),
        project_source(module_project, ("module.",)),
        artifact_source(artifact),
        dash_classifier_source(artifact),
        project_source(artifact_project, ("artifact.",)),
        main_artifact_source(main_project),
        execution_properties_source(config_source),
        env_source,
        main_project_source(config_source.project if config_source else None),
    )
    return _normalize(interpolator.interpolate(expression))


def get_distribution_name(assembly: "Assembly", config_source: "ConfigSource") -> str:
    """Final name, with "-<assembly id>" appended when configured."""
    name = config_source.final_name or ""
    if config_source.append_assembly_id:
        name = f"{name}-{assembly.id}"
    return name


def is_windows_path(path: Optional[str]) -> bool:
    return path is not None and len(path) >= 2 and path[1] == ":"


def is_unix_root_reference(path: Optional[str]) -> bool:
    return path is not None and path.startswith("/")


def warn_for_platform_specifics(path: Optional[str]) -> None:
    """Log descriptor paths that only work on one platform family."""
    if os.name == "nt":
        if is_unix_root_reference(path):
            logger.error(
                "OS=Windows and the assembly descriptor contains a *nix-specific "
                f"root-relative-reference (starting with slash): {path}"
            )
        elif is_windows_path(path):
            logger.warning(
                "The assembly descriptor contains a Windows-specific directory reference "
                f"(with a drive letter). This is not portable: {path}"
            )
    elif is_windows_path(path):
        logger.error(
            "OS=Unix and the assembly descriptor contains a Windows-specific directory "
            f"reference (with a drive letter): {path}"
        )
    elif is_unix_root_reference(path):
        logger.warning(
            "The assembly descriptor contains a *nix-specific root-relative-reference "
            f"(starting with slash). This is non-portable: {path}"
        )
