"""Add one directory tree as a single file-set."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from assemblykit.archiver.base import DirectoryFileSet, ModeOverride
from assemblykit.errors import ArchiveCreationError
from assemblykit.format.modes import UNSET
from assemblykit.format.transform import Transformer

logger = logging.getLogger(__name__)


def normalize_pattern(pattern: str) -> str:
    value = pattern.replace("\\", "/")
    return value[1:] if value.startswith("/") else value


class AddDirectoryTask:
    """
    Add a directory under ``output_directory`` with include/exclude patterns.

    A directory that does not exist is skipped without error.
    """

    def __init__(self, directory: Path, transformer: Optional[Transformer] = None):
        self.directory = Path(directory)
        self.transformer = transformer
        self.includes: list[str] = []
        self.excludes: list[str] = []
        self.output_directory: str = ""
        self.use_default_excludes = True
        self.directory_mode = UNSET
        self.file_mode = UNSET

    def execute(self, archiver) -> None:
        output_directory = self.output_directory or ""
        if output_directory == ".":
            output_directory = ""
        elif output_directory == "..":
            raise ArchiveCreationError(
                f"Cannot add source directory: {self.directory} to archive-path: {output_directory}. "
                "All paths must be within the archive root directory."
            )

        if not self.directory.exists():
            logger.debug(f"Directory {self.directory} does not exist; skipping.")
            return

        file_set = DirectoryFileSet(
            source=self.directory,
            prefix=output_directory,
            includes=[normalize_pattern(p) for p in self.includes],
            excludes=[normalize_pattern(p) for p in self.excludes],
            use_default_excludes=self.use_default_excludes,
            transformer=self.transformer,
        )

        with ModeOverride(archiver, self.directory_mode, self.file_mode):
            try:
                archiver.add_file_set(file_set)
            except OSError as exc:
                raise ArchiveCreationError(f"Error adding directory to archive: {exc}") from exc
