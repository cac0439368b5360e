"""Add the file-sets of a descriptor section."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence

from assemblykit.errors import ArchiveCreationError, AssemblyFormattingError
from assemblykit.format.modes import UNSET, mode_to_int, to_octal_string
from assemblykit.format.paths import get_output_directory, warn_for_platform_specifics
from assemblykit.format.transform import get_file_set_transformer
from assemblykit.model.descriptor import FileSet
from assemblykit.model.project import ModuleProject
from assemblykit.tasks.add_directory import AddDirectoryTask

if TYPE_CHECKING:
    from assemblykit.config import ConfigSource

logger = logging.getLogger(__name__)


def _is_absolute(path: str) -> bool:
    # "/x" counts as absolute on every platform
    return os.path.isabs(path) or path.startswith(("/", "\\"))


class AddFileSetsTask:
    """
    Resolve, format and add each file-set through AddDirectoryTask.

    Attributes:
        project: Project whose basedir anchors relative directories
            (defaults to the owning project)
        module_project: Module exposed as ${module.*} in output directories
    """

    def __init__(self, file_sets: Sequence[FileSet]):
        self.file_sets = list(file_sets)
        self.project: Optional[ModuleProject] = None
        self.module_project: Optional[ModuleProject] = None

    def execute(self, archiver, config_source: "ConfigSource") -> None:
        archive_base_dir = config_source.archive_base_directory
        if archive_base_dir is not None:
            archive_base_dir = Path(archive_base_dir)
            if not archive_base_dir.exists():
                raise ArchiveCreationError(
                    f"The archive base directory '{archive_base_dir.absolute()}' does not exist"
                )
            if not archive_base_dir.is_dir():
                raise ArchiveCreationError(
                    f"The archive base directory '{archive_base_dir.absolute()}' exists, "
                    "but it is not a directory"
                )

        for file_set in self.file_sets:
            self.add_file_set(file_set, archiver, config_source, archive_base_dir)

    def add_file_set(
        self,
        file_set: FileSet,
        archiver,
        config_source: "ConfigSource",
        archive_base_dir: Optional[Path],
    ) -> None:
        project = self.project or config_source.project
        basedir = project.basedir or config_source.basedir

        dest_directory = file_set.output_directory
        if dest_directory is None:
            dest_directory = file_set.directory
            warn_for_platform_specifics(dest_directory)

        dest_directory = get_output_directory(
            dest_directory,
            config_source.final_name,
            config_source,
            module_project=self.module_project,
            artifact_project=project,
        )

        logger.debug(
            f"FileSet[{dest_directory}] dir perms: {to_octal_string(archiver.directory_mode)} "
            f"file perms: {to_octal_string(archiver.file_mode)}"
            + (f" lineEndings: {file_set.line_ending}" if file_set.line_ending else "")
        )
        logger.debug(f"The archive base directory is '{archive_base_dir}'")

        file_set_dir = self.get_file_set_directory(file_set, basedir, archive_base_dir)
        if not file_set_dir.exists():
            logger.debug(f"File-set directory {file_set_dir} does not exist; skipping.")
            return

        transformer = get_file_set_transformer(
            config_source,
            file_set.filtered,
            file_set.non_filtered_file_extensions,
            file_set.line_ending,
        )
        if transformer is None:
            logger.debug(f"NOT reformatting any files in {file_set_dir}")

        if file_set_dir.is_absolute() and file_set_dir.parent == file_set_dir:
            raise AssemblyFormattingError(
                f"Your assembly descriptor specifies a directory of {file_set_dir}, which is your "
                "*entire* file system.\nThese are not the files you are looking for"
            )

        task = AddDirectoryTask(file_set_dir, transformer)
        dir_mode = mode_to_int(file_set.directory_mode)
        if dir_mode != UNSET:
            task.directory_mode = dir_mode
        file_mode = mode_to_int(file_set.file_mode)
        if file_mode != UNSET:
            task.file_mode = file_mode
        task.use_default_excludes = file_set.use_default_excludes
        task.excludes = list(file_set.excludes)
        task.includes = list(file_set.includes)
        task.output_directory = dest_directory
        task.execute(archiver)

    @staticmethod
    def get_file_set_directory(
        file_set: FileSet, basedir: Path, archive_base_dir: Optional[Path]
    ) -> Path:
        """
        Source directory of a file-set.

        Example:
            >>> AddFileSetsTask.get_file_set_directory(FileSet(directory="src"), Path("/p"), None)
            PosixPath('/p/src')
        """
        source_directory = file_set.directory
        if source_directory is None or not source_directory.strip():
            source_directory = str(Path(basedir).absolute())

        if archive_base_dir is None:
            if _is_absolute(source_directory):
                return Path(source_directory)
            return Path(basedir) / source_directory
        return Path(archive_base_dir) / source_directory.lstrip("/\\")
