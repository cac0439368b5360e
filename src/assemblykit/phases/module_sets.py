"""
Module sets: sources and binaries of sibling sub-projects.

For each module-set:
- select the sub-projects (reactor-wide or the current project's modules)
- add one file-set per sub-project for the sources section
- place each sub-project's artifact (or a classified attachment), then its
  dependencies, for the binaries section
"""
from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from assemblykit.errors import ArchiveCreationError, InvalidAssemblerConfigurationError
from assemblykit.format.modes import UNSET, mode_to_int
from assemblykit.format.paths import evaluate_file_name_mapping, get_output_directory
from assemblykit.model.descriptor import (
    Assembly,
    DependencySet,
    FileSet,
    ModuleBinaries,
    ModuleSet,
    ModuleSources,
)
from assemblykit.model.project import Artifact, ModuleProject
from assemblykit.phases.base import Phase
from assemblykit.tasks.add_artifact import AddArtifactTask
from assemblykit.tasks.add_dependency_sets import AddDependencySetsTask
from assemblykit.tasks.add_file_sets import AddFileSetsTask
from assemblykit.utils.filters import filter_projects
from assemblykit.utils.projects import find_artifact_by_classifier, get_project_modules

if TYPE_CHECKING:
    from assemblykit.config import ConfigSource

logger = logging.getLogger(__name__)

DEFAULT_MODULE_SOURCE_DIRECTORY = "src"


# =============================================================================
# Selection
# =============================================================================


def get_dependency_sets(binaries: ModuleBinaries) -> list[DependencySet]:
    """
    Dependency-sets of a binaries section.

    When none are declared and ``include_dependencies`` is set, a single set
    is implied from the section's output directory, modes, patterns and
    unpack settings.
    """
    if binaries.dependency_sets or not binaries.include_dependencies:
        return list(binaries.dependency_sets)

    implied = DependencySet(
        output_directory=binaries.output_directory,
        file_mode=binaries.file_mode,
        directory_mode=binaries.directory_mode,
        includes=list(binaries.includes),
        excludes=list(binaries.excludes),
        unpack=binaries.unpack,
        unpack_options=binaries.unpack_options,
    )
    return [implied]


def get_module_projects(module_set: ModuleSet, config_source: "ConfigSource") -> list[ModuleProject]:
    """Sub-projects selected by a module-set, after include/exclude filtering."""
    project = config_source.project
    reactor = list(config_source.reactor_projects)

    if module_set.use_all_reactor_projects and not module_set.include_sub_modules:
        module_projects = [p for p in reactor if p is not project]
    else:
        root = reactor[0] if module_set.use_all_reactor_projects and reactor else project
        module_projects = get_project_modules(root, reactor, module_set.include_sub_modules)

    return filter_projects(module_projects, module_set.includes, module_set.excludes, True)


def _is_deprecated_sources_config_present(sources: ModuleSources) -> bool:
    return sources.output_directory is not None or bool(sources.includes) or bool(sources.excludes)


def _divergent_versions(projects: list[ModuleProject]) -> list[ModuleProject]:
    if not projects:
        return []
    version = projects[0].version
    logger.debug(f"First version: {version}")
    return [p for p in projects if p.version != version]


# =============================================================================
# Phase
# =============================================================================


class ModuleSetsPhase(Phase):
    order = 30

    def execute(self, assembly: Assembly, archiver, config_source: "ConfigSource") -> None:
        for module_set in assembly.module_sets:
            self.validate(module_set, config_source)
            module_projects = get_module_projects(module_set, config_source)
            self.add_module_source_file_sets(module_set.sources, module_projects, archiver, config_source)
            self.add_module_binaries(module_set.binaries, module_projects, archiver, config_source)

    def validate(self, module_set: ModuleSet, config_source: "ConfigSource") -> None:
        """Warn about configurations that are ignored or deprecated."""
        if module_set.sources is None and module_set.binaries is None:
            logger.warning("Encountered ModuleSet with no sources or binaries specified. Skipping.")

        if module_set.use_all_reactor_projects and not module_set.include_sub_modules:
            logger.warning(
                "include_sub_modules == false is incompatible with use_all_reactor_projects. Ignoring.\n\n"
                "To refactor, remove the include_sub_modules flag, and use the includes and excludes "
                "sections to fine-tune the modules included."
            )

        reactor = config_source.reactor_projects
        if len(reactor) > 1 and reactor[0] is config_source.project and module_set.binaries is not None:
            logger.warning(
                "[DEPRECATION] module_set/binaries section detected in root-project assembly.\n\n"
                "MODULE BINARIES MAY NOT BE AVAILABLE FOR THIS ASSEMBLY!\n\n"
                "To refactor, move this assembly into a child project and use the flag "
                "use_all_reactor_projects: true in each module set."
            )

        sources = module_set.sources
        if sources is not None:
            if _is_deprecated_sources_config_present(sources):
                logger.warning(
                    "[DEPRECATION] Use of module sources as a file-set is deprecated. "
                    "Please use the file_sets sub-element of sources instead."
                )
            elif not sources.use_default_excludes:
                logger.warning(
                    "[DEPRECATION] Use of directory_mode, file_mode, or use_default_excludes "
                    "directly within module sources is deprecated. "
                    "Please use the file_sets sub-element of sources instead."
                )

    # -------------------------------------------------------------------------
    # Sources
    # -------------------------------------------------------------------------

    def add_module_source_file_sets(
        self,
        sources: Optional[ModuleSources],
        module_projects: list[ModuleProject],
        archiver,
        config_source: "ConfigSource",
    ) -> None:
        if sources is None:
            return

        file_sets: list[FileSet] = []
        if _is_deprecated_sources_config_present(sources):
            file_sets.append(
                FileSet(
                    output_directory=sources.output_directory,
                    includes=list(sources.includes),
                    excludes=list(sources.excludes),
                    use_default_excludes=sources.use_default_excludes,
                    file_mode=sources.file_mode,
                    directory_mode=sources.directory_mode,
                )
            )
        file_sets.extend(sources.file_sets or [FileSet(directory=DEFAULT_MODULE_SOURCE_DIRECTORY)])

        for module_project in module_projects:
            logger.info(f"Processing sources for module project: {module_project.id}")
            module_file_sets = [
                self.create_file_set(fs, sources, module_project, config_source) for fs in file_sets
            ]
            task = AddFileSetsTask(module_file_sets)
            task.project = module_project
            task.module_project = module_project
            task.execute(archiver, config_source)

    def create_file_set(
        self,
        file_set: FileSet,
        sources: ModuleSources,
        module_project: ModuleProject,
        config_source: "ConfigSource",
    ) -> FileSet:
        """Rebase ``file_set`` on a sub-project's directory and output prefix."""
        module_basedir = Path(module_project.basedir or config_source.basedir)
        source_path = file_set.directory
        if source_path is None:
            source_path = str(module_basedir.absolute())
        elif not (os.path.isabs(source_path) or source_path.startswith(("/", "\\"))):
            source_path = str((module_basedir / source_path).absolute())

        excludes = list(file_set.excludes)
        if sources.exclude_sub_module_directories:
            excludes.extend(f"{module}/**" for module in module_project.modules)

        dest_prefix = ""
        if sources.include_module_directory:
            module_artifact = module_project.project_artifact()
            dest_prefix = evaluate_file_name_mapping(
                sources.output_directory_mapping,
                module_artifact,
                config_source.project,
                module_artifact,
                config_source,
                module_project=module_project,
                artifact_project=module_project,
            )
            if not dest_prefix.endswith("/"):
                dest_prefix += "/"

        dest_path = dest_prefix if file_set.output_directory is None else dest_prefix + file_set.output_directory
        dest_path = get_output_directory(
            dest_path,
            config_source.final_name,
            config_source,
            module_project=module_project,
            artifact_project=module_project,
        )

        logger.debug(f"module source directory is: {source_path}")
        logger.debug(f"module dest directory is: {dest_path} (assembly basedir may be prepended)")
        return replace(file_set, directory=source_path, excludes=excludes, output_directory=dest_path)

    # -------------------------------------------------------------------------
    # Binaries
    # -------------------------------------------------------------------------

    def add_module_binaries(
        self,
        binaries: Optional[ModuleBinaries],
        projects: list[ModuleProject],
        archiver,
        config_source: "ConfigSource",
    ) -> None:
        if binaries is None:
            return

        module_projects = []
        for project in projects:
            if project.packaging == "pom":
                logger.debug(f"Excluding {project.id} (packaging: pom)")
            else:
                module_projects.append(project)

        classifier = binaries.attachment_classifier
        chosen: dict[int, Artifact] = {}
        for project in module_projects:
            if classifier is None:
                logger.debug(f"Processing binary artifact for module project: {project.id}")
                artifact = project.project_artifact()
            else:
                logger.debug(f"Processing binary attachment: {classifier} for module project: {project.id}")
                artifact = find_artifact_by_classifier(project, classifier)
                if artifact is None:
                    raise InvalidAssemblerConfigurationError(
                        f"Cannot find attachment with classifier: {classifier} in module project: "
                        f"{project.id}. Please exclude this module from the module-set."
                    )
            chosen[id(project)] = artifact
            self.add_module_artifact(artifact, project, archiver, config_source, binaries)

        # The module's own artifact was placed above
        dependency_sets = [
            replace(ds, use_project_artifact=False) for ds in get_dependency_sets(binaries)
        ]
        if not dependency_sets:
            return

        divergent = _divergent_versions(module_projects)
        if divergent:
            logger.warning(
                "The current modules seemed to be having different versions.\n"
                + "".join(f" --> {p.id}\n" for p in divergent)
            )

        for module_project in module_projects:
            logger.debug(f"Processing binary dependencies for module project: {module_project.id}")
            resolved = config_source.resolver.resolve(module_project, dependency_sets)
            for dependency_set, artifacts in resolved.items():
                task = AddDependencySetsTask(
                    [dependency_set], artifacts, module_project, config_source.project_builder
                )
                task.module_project = module_project
                task.module_artifact = chosen[id(module_project)]
                task.default_output_directory = binaries.output_directory
                task.default_output_file_name_mapping = binaries.output_file_name_mapping
                task.execute(archiver, config_source)

    def add_module_artifact(
        self,
        artifact: Artifact,
        project: ModuleProject,
        archiver,
        config_source: "ConfigSource",
        binaries: ModuleBinaries,
    ) -> None:
        if artifact.file is None:
            raise ArchiveCreationError(
                f"Artifact: {artifact.id} (included by module) does not have an artifact with a file. "
                "Please ensure the package phase is run before the assembly is generated."
            )

        task = AddArtifactTask(artifact)
        task.set_file_name_mapping(binaries.output_file_name_mapping, None)
        task.set_output_directory(binaries.output_directory, None)
        task.project = project
        task.module_project = project
        task.module_artifact = artifact

        dir_mode = mode_to_int(binaries.directory_mode)
        if dir_mode != UNSET:
            task.directory_mode = dir_mode
        file_mode = mode_to_int(binaries.file_mode)
        if file_mode != UNSET:
            task.file_mode = file_mode

        task.unpack = binaries.unpack
        if binaries.unpack and binaries.unpack_options is not None:
            task.includes = list(binaries.unpack_options.includes)
            task.excludes = list(binaries.unpack_options.excludes)

        task.execute(archiver, config_source)
