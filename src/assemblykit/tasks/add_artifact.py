"""Place one resolved artifact into the archive."""
from __future__ import annotations

import logging
import shutil
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from assemblykit.archiver.base import ArchivedFileSet, DirectoryFileSet, ModeOverride
from assemblykit.errors import ArchiveCreationError
from assemblykit.format.modes import UNSET
from assemblykit.format.paths import evaluate_file_name_mapping, get_output_directory
from assemblykit.format.transform import Transformer
from assemblykit.model.descriptor import DEFAULT_OUTPUT_FILE_NAME_MAPPING
from assemblykit.model.project import Artifact, ModuleProject

if TYPE_CHECKING:
    from assemblykit.config import ConfigSource

logger = logging.getLogger(__name__)

DEFAULT_INCLUDES = ["**/*"]


class AddArtifactTask:
    """
    Copy an artifact as one file, or unpack its content.

    Args:
        artifact: Artifact to place
        transformer: Content transformation for unpacked entries
        encoding: Entry-name encoding of unpacked zip archives

    Example:
        task = AddArtifactTask(artifact)
        task.set_output_directory(None, "lib/")
        task.file_mode = 0o644
        task.execute(archiver, config_source)
    """

    def __init__(
        self,
        artifact: Artifact,
        transformer: Optional[Transformer] = None,
        encoding: Optional[str] = None,
    ):
        self.artifact = artifact
        self.transformer = transformer
        self.encoding = encoding
        self.directory_mode = UNSET
        self.file_mode = UNSET
        self.unpack = False
        self.includes: Optional[list[str]] = None
        self.excludes: Optional[list[str]] = None
        self.use_default_excludes = True
        self.project: Optional[ModuleProject] = None
        self.module_project: Optional[ModuleProject] = None
        self.module_artifact: Optional[Artifact] = None
        self.output_directory: Optional[str] = None
        self.output_file_name_mapping: str = DEFAULT_OUTPUT_FILE_NAME_MAPPING

    def set_output_directory(self, output_directory: Optional[str], default: Optional[str]) -> None:
        self.output_directory = default if output_directory is None else output_directory

    def set_file_name_mapping(self, mapping: Optional[str], default: Optional[str]) -> None:
        self.output_file_name_mapping = default if mapping is None else mapping

    def execute(self, archiver, config_source: "ConfigSource") -> None:
        if self._artifact_is_archiver_destination(archiver):
            self.artifact = replace(self.artifact, file=self._move_artifact_somewhere_else(config_source))

        dest_directory = get_output_directory(
            self.output_directory,
            config_source.final_name,
            config_source,
            module_project=self.module_project,
            artifact_project=self.project,
        )

        with ModeOverride(archiver, self.directory_mode, self.file_mode):
            if self.unpack:
                self._unpacked(archiver, dest_directory)
            else:
                self._as_file(archiver, config_source, dest_directory)

    def _as_file(self, archiver, config_source: "ConfigSource", dest_directory: str) -> None:
        mapping = evaluate_file_name_mapping(
            self.output_file_name_mapping,
            self.artifact,
            config_source.project,
            self.module_artifact,
            config_source,
            module_project=self.module_project,
            artifact_project=self.project,
        )
        output_location = dest_directory + mapping
        artifact_file = self.artifact.file

        logger.debug(
            f"Adding artifact: {self.artifact.id} with file: {artifact_file} "
            f"to assembly location: {output_location}."
        )
        if artifact_file is None:
            raise ArchiveCreationError(
                f"Error adding file '{self.artifact.id}' to archive: it has no associated file"
            )
        try:
            if self.file_mode != UNSET:
                archiver.add_file(artifact_file, output_location, self.file_mode)
            else:
                archiver.add_file(artifact_file, output_location)
        except (ArchiveCreationError, OSError) as exc:
            raise ArchiveCreationError(
                f"Error adding file '{self.artifact.id}' to archive: {exc}"
            ) from exc

    def _unpacked(self, archiver, dest_directory: str) -> None:
        output_location = dest_directory
        if output_location and not output_location.endswith("/"):
            output_location += "/"

        includes = list(self.includes) if self.includes else list(DEFAULT_INCLUDES)
        excludes = list(self.excludes or [])
        artifact_file = self.artifact.file

        try:
            if artifact_file is None:
                logger.warning(
                    f"Skipping artifact: {self.artifact.id}; it does not have an associated file or directory."
                )
            elif artifact_file.is_dir():
                logger.debug(f"Adding artifact directory contents for: {self.artifact} to: {output_location}")
                archiver.add_file_set(
                    DirectoryFileSet(
                        source=artifact_file,
                        prefix=output_location,
                        includes=includes,
                        excludes=excludes,
                        use_default_excludes=self.use_default_excludes,
                        transformer=self.transformer,
                    )
                )
            else:
                logger.debug(f"Unpacking artifact contents for: {self.artifact} to: {output_location}")
                logger.debug("includes:\n" + "\n".join(includes))
                logger.debug("excludes:\n" + ("\n".join(excludes) if excludes else "none"))
                archiver.add_archived_file_set(
                    ArchivedFileSet(
                        source=artifact_file,
                        prefix=output_location,
                        includes=includes,
                        excludes=excludes,
                        use_default_excludes=self.use_default_excludes,
                        transformer=self.transformer,
                    ),
                    self.encoding,
                )
        except (ArchiveCreationError, OSError) as exc:
            raise ArchiveCreationError(
                f"Error adding file-set for '{self.artifact.id}' to archive: {exc}"
            ) from exc

    def _move_artifact_somewhere_else(self, config_source: "ConfigSource") -> Path:
        temp_root = Path(config_source.temporary_root_directory)
        source = self.artifact.file
        temp_file = temp_root / source.name
        logger.warning(
            f"Artifact: {self.artifact.id} references the same file as the assembly destination file. "
            "Moving it to a temporary location for inclusion."
        )
        try:
            temp_root.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, temp_file)
        except OSError as exc:
            raise ArchiveCreationError(
                f"Error moving artifact file: '{source}' to temporary location: {temp_file}. Reason: {exc}"
            ) from exc
        return temp_file

    def _artifact_is_archiver_destination(self, archiver) -> bool:
        artifact_file = self.artifact.file
        dest_file = archiver.dest_file
        if artifact_file is None or dest_file is None:
            return False
        return Path(artifact_file).absolute() == Path(dest_file).absolute()
