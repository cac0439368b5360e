"""Repositories: mirrors materialized in the staging area, then added as trees."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from assemblykit.errors import ArchiveCreationError, RepositoryAssemblyError
from assemblykit.format.modes import UNSET, mode_to_int
from assemblykit.format.paths import get_output_directory
from assemblykit.model.descriptor import Assembly, Repository
from assemblykit.phases.base import Phase
from assemblykit.tasks.add_directory import AddDirectoryTask

if TYPE_CHECKING:
    from assemblykit.config import ConfigSource

logger = logging.getLogger(__name__)


class RepositoriesPhase(Phase):
    order = 50

    def execute(self, assembly: Assembly, archiver, config_source: "ConfigSource") -> None:
        for repository in assembly.repositories:
            self.add_repository(repository, archiver, config_source)

    def add_repository(self, repository: Repository, archiver, config_source: "ConfigSource") -> None:
        output_directory = get_output_directory(
            repository.output_directory,
            config_source.final_name,
            config_source,
            module_project=config_source.project,
        )
        repository_directory = Path(config_source.temporary_root_directory) / output_directory
        repository_directory.mkdir(parents=True, exist_ok=True)

        logger.debug(f"Assembling repository to: {repository_directory}")
        try:
            config_source.repository_assembler.build_mirror(repository_directory, repository, config_source)
        except RepositoryAssemblyError as exc:
            raise ArchiveCreationError(f"Failed to assemble repository: {exc}") from exc
        logger.debug(f"Finished assembling repository to: {repository_directory}")

        task = AddDirectoryTask(repository_directory)
        dir_mode = mode_to_int(repository.directory_mode)
        if dir_mode != UNSET:
            task.directory_mode = dir_mode
        file_mode = mode_to_int(repository.file_mode)
        if file_mode != UNSET:
            task.file_mode = file_mode
        task.output_directory = output_directory
        task.execute(archiver)
