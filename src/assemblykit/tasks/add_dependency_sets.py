"""Place the artifacts selected by dependency-sets."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from assemblykit.errors import ArchiveCreationError, ProjectBuildingError
from assemblykit.format.modes import mode_to_int
from assemblykit.format.paths import evaluate_file_name_mapping, get_output_directory
from assemblykit.format.transform import get_file_set_transformer
from assemblykit.model.descriptor import DependencySet
from assemblykit.model.project import Artifact, ModuleProject, ResolvedProject
from assemblykit.tasks.add_artifact import AddArtifactTask
from assemblykit.utils.filters import filter_artifacts, new_scope_filter

if TYPE_CHECKING:
    from assemblykit.collaborators import ModuleProjectBuilder
    from assemblykit.config import ConfigSource

logger = logging.getLogger(__name__)

NON_ARCHIVE_DEPENDENCY_TYPES = ("pom",)


def _is_unpack_with_options(dependency_set: DependencySet) -> bool:
    return dependency_set.unpack and dependency_set.unpack_options is not None


def _unpack_transforms_content(dependency_set: DependencySet) -> bool:
    if not _is_unpack_with_options(dependency_set):
        return False
    opts = dependency_set.unpack_options
    return opts.filtered or opts.line_ending is not None


class AddDependencySetsTask:
    """
    Add every artifact matched by the dependency-sets.

    Args:
        dependency_sets: Sets to process
        resolved_artifacts: Artifacts the resolver produced for these sets
        project: Project owning the sets (its artifact/attachments may be added)
        project_builder: Looks up the project of each dependency

    Attributes:
        module_project, module_artifact: Exposed as ${module.*} when the sets
            belong to a module-set's binaries
        default_output_directory, default_output_file_name_mapping: Used when a
            set leaves them unset
    """

    def __init__(
        self,
        dependency_sets: Sequence[DependencySet],
        resolved_artifacts: Iterable[Artifact],
        project: ModuleProject,
        project_builder: Optional["ModuleProjectBuilder"],
    ):
        self.dependency_sets = list(dependency_sets)
        self.resolved_artifacts = list(resolved_artifacts)
        self.project = project
        self.project_builder = project_builder
        self.module_project: Optional[ModuleProject] = None
        self.module_artifact: Optional[Artifact] = None
        self.default_output_directory: Optional[str] = None
        self.default_output_file_name_mapping: Optional[str] = None

    def execute(self, archiver, config_source: "ConfigSource") -> None:
        if not self.dependency_sets:
            logger.debug("No dependency sets specified.")
            return
        if not self.project.dependencies:
            logger.debug(f"Project {self.project.id} has no declared dependencies.")

        for dependency_set in self.dependency_sets:
            self.add_dependency_set(dependency_set, archiver, config_source)

    def add_dependency_set(
        self, dependency_set: DependencySet, archiver, config_source: "ConfigSource"
    ) -> None:
        logger.debug(f"Processing DependencySet (output={dependency_set.output_directory})")

        if not dependency_set.use_transitive_dependencies and dependency_set.use_transitive_filtering:
            logger.warning(
                "DependencySet has nonsensical configuration: use_transitive_dependencies == false "
                "AND use_transitive_filtering == true. Transitive filtering flag will be ignored."
            )

        artifacts = self.resolve_dependency_artifacts(dependency_set)

        if not _unpack_transforms_content(dependency_set) and len(artifacts) > 1:
            self.check_multi_artifact_output_config(dependency_set)

        logger.debug(f"Adding {len(artifacts)} dependency artifacts.")

        transformer = None
        if _is_unpack_with_options(dependency_set):
            opts = dependency_set.unpack_options
            transformer = get_file_set_transformer(
                config_source, opts.filtered, opts.non_filtered_file_extensions, opts.line_ending
            )

        for artifact in artifacts:
            resolved = self.resolve_project(artifact)
            if artifact.type in NON_ARCHIVE_DEPENDENCY_TYPES:
                self.add_non_archive_dependency(artifact, resolved.project, dependency_set, archiver, config_source)
            else:
                self.add_normal_artifact(
                    dependency_set, artifact, resolved.project, archiver, config_source, transformer
                )

    def resolve_project(self, artifact: Artifact) -> ResolvedProject:
        """The project behind a dependency, or a stand-in built from its coordinates."""
        if self.project_builder is not None:
            try:
                return ResolvedProject(self.project_builder.build(artifact))
            except ProjectBuildingError as exc:
                logger.debug(
                    f"Error retrieving POM of module-dependency: {artifact.id}; Reason: {exc}\n\n"
                    "Building stub project instance."
                )
        return ResolvedProject.stand_in_for(artifact)

    def resolve_dependency_artifacts(self, dependency_set: DependencySet) -> list[Artifact]:
        """Resolved artifacts plus project artifact/attachments, after scope and pattern filtering."""
        artifacts: list[Artifact] = list(self.resolved_artifacts)

        if dependency_set.use_project_artifact:
            project_artifact = self.project.artifact
            if project_artifact is not None and project_artifact.file is not None:
                artifacts.append(project_artifact)
            else:
                logger.warning(
                    f"Cannot include project artifact: {project_artifact}; "
                    "it doesn't have an associated file or directory."
                )

        if dependency_set.use_project_attachments:
            for attachment in self.project.attached_artifacts:
                if attachment.file is not None:
                    artifacts.append(attachment)
                else:
                    logger.warning(
                        f"Cannot include attached artifact: {attachment.id} for project: "
                        f"{self.project.id}; it doesn't have an associated file or directory."
                    )

        if dependency_set.use_transitive_filtering:
            logger.debug("Filtering dependency artifacts USING transitive dependency path information.")
        else:
            logger.debug("Filtering dependency artifacts WITHOUT transitive dependency path information.")

        # Keep first occurrence, preserve order
        artifacts = list(dict.fromkeys(artifacts))
        filter_artifacts(
            artifacts,
            dependency_set.includes,
            dependency_set.excludes,
            dependency_set.use_strict_filtering,
            dependency_set.use_transitive_filtering,
            new_scope_filter(dependency_set.scope),
        )
        return artifacts

    def check_multi_artifact_output_config(self, dependency_set: DependencySet) -> None:
        directory = dependency_set.output_directory
        if directory is None:
            directory = self.default_output_directory
        mapping = dependency_set.output_file_name_mapping
        if mapping is None:
            mapping = self.default_output_file_name_mapping

        if (directory is None or "${" not in directory) and (mapping is None or "${" not in mapping):
            logger.warning(
                "NOTE: Your assembly specifies a dependencySet that matches multiple artifacts, but "
                "specifies a concrete output format. THIS MAY RESULT IN ONE OR MORE ARTIFACTS BEING "
                f"OBSCURED!\n\nOutput directory: '{directory}'\nOutput filename mapping: '{mapping}'"
            )

    def add_normal_artifact(
        self,
        dependency_set: DependencySet,
        artifact: Artifact,
        dep_project: ModuleProject,
        archiver,
        config_source: "ConfigSource",
        transformer,
    ) -> None:
        logger.debug(f"Adding dependency artifact {artifact.id}.")

        encoding = dependency_set.unpack_options.encoding if _is_unpack_with_options(dependency_set) else None
        task = AddArtifactTask(artifact, transformer, encoding)
        task.project = dep_project
        task.module_project = self.module_project
        task.module_artifact = self.module_artifact
        task.set_output_directory(dependency_set.output_directory, self.default_output_directory)
        task.set_file_name_mapping(
            dependency_set.output_file_name_mapping, self.default_output_file_name_mapping
        )

        task.directory_mode = mode_to_int(dependency_set.directory_mode)
        task.file_mode = mode_to_int(dependency_set.file_mode)
        task.unpack = dependency_set.unpack

        if _is_unpack_with_options(dependency_set):
            opts = dependency_set.unpack_options
            task.includes = list(opts.includes)
            task.excludes = list(opts.excludes)
            task.use_default_excludes = opts.use_default_excludes

        task.execute(archiver, config_source)

    def add_non_archive_dependency(
        self,
        artifact: Artifact,
        dep_project: ModuleProject,
        dependency_set: DependencySet,
        archiver,
        config_source: "ConfigSource",
    ) -> None:
        output_directory = get_output_directory(
            dependency_set.output_directory,
            dep_project.build_final_name,
            config_source,
            module_project=self.module_project,
            artifact_project=dep_project,
        )
        mapping = dependency_set.output_file_name_mapping or self.default_output_file_name_mapping
        dest_name = evaluate_file_name_mapping(
            mapping,
            artifact,
            config_source.project,
            self.module_artifact,
            config_source,
            module_project=self.module_project,
            artifact_project=dep_project,
        )

        if not output_directory or output_directory.endswith(("/", "\\")):
            target = output_directory + dest_name
        else:
            target = f"{output_directory}/{dest_name}"

        if artifact.file is None:
            raise ArchiveCreationError(f"Error adding file to archive: {artifact.id} has no file")
        try:
            mode = mode_to_int(dependency_set.file_mode)
            if mode > -1:
                archiver.add_file(artifact.file, target, mode)
            else:
                archiver.add_file(artifact.file, target)
        except OSError as exc:
            raise ArchiveCreationError(f"Error adding file to archive: {exc}") from exc
