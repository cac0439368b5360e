"""File items: single explicit files, optionally concatenated."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from assemblykit.archiver.base import Resource
from assemblykit.errors import ArchiveCreationError, InvalidAssemblerConfigurationError
from assemblykit.format.modes import mode_to_int
from assemblykit.format.paths import get_output_directory
from assemblykit.format.transform import get_file_set_transformer
from assemblykit.model.descriptor import Assembly, FileItem
from assemblykit.phases.base import Phase

if TYPE_CHECKING:
    from assemblykit.config import ConfigSource

logger = logging.getLogger(__name__)


def _resolve(basedir: Path, path: str) -> Path:
    if os.path.isabs(path) or path.startswith(("/", "\\")):
        return Path(path)
    return Path(basedir) / path


def join_target(output_directory: str, dest_name: str) -> str:
    """
    Entry path for ``dest_name`` placed in ``output_directory``.

    Example:
        >>> join_target("", "file.txt")
        'file.txt'
        >>> join_target("conf", "app.yaml")
        'conf/app.yaml'
    """
    if output_directory.endswith(("/", "\\")):
        return output_directory + dest_name
    if not output_directory:
        return dest_name
    return f"{output_directory}/{dest_name}"


def _concatenated(paths: list[Path]):
    def read() -> bytes:
        return b"".join(p.read_bytes() for p in paths)

    return read


class FileItemsPhase(Phase):
    """Add each declared file item as one mode-tagged resource."""

    order = 10

    def execute(self, assembly: Assembly, archiver, config_source: "ConfigSource") -> None:
        for file_item in assembly.files:
            self.add_file_item(file_item, archiver, config_source)

    def add_file_item(self, file_item: FileItem, archiver, config_source: "ConfigSource") -> None:
        has_source = file_item.source is not None
        has_sources = bool(file_item.sources)
        if has_source == has_sources:
            raise InvalidAssemblerConfigurationError(
                "Misconfigured file: one of source or sources must be set"
            )

        basedir = config_source.basedir
        source_path = file_item.source if has_source else file_item.sources[0]
        dest_name = file_item.dest_name or Path(source_path).name

        output_directory = get_output_directory(
            file_item.output_directory or "",
            config_source.final_name,
            config_source,
            module_project=config_source.project,
        )
        target = join_target(output_directory, dest_name)

        transformer = get_file_set_transformer(
            config_source, file_item.filtered, [], file_item.line_ending
        )

        paths = [_resolve(basedir, s) for s in ([file_item.source] if has_source else file_item.sources)]
        for path in paths:
            if not path.is_file():
                raise ArchiveCreationError(f"Error adding file to archive: {path} (No such file)")

        opener = paths[0].read_bytes if has_source else _concatenated(paths)
        if transformer is not None:
            raw = opener

            def opener() -> bytes:
                return transformer(dest_name, raw())

        resource = Resource(dest_name, opener, last_modified=max(p.stat().st_mtime for p in paths))
        logger.debug(f"Adding file item {source_path} as {target}")
        try:
            archiver.add_resource(resource, target, mode_to_int(file_item.file_mode))
        except OSError as exc:
            raise ArchiveCreationError(f"Error adding file to archive: {exc}") from exc
