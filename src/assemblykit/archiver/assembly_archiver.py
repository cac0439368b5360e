"""
Create one archive for one assembly and format.

- Picks a writer for the format (or uses the one given)
- Wraps it in the proxy (base directory prefix, handlers, working directory)
- Runs the phases, then creates the archive
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from assemblykit.archiver.handlers import create_handler
from assemblykit.archiver.proxy import AssemblyProxyArchiver
from assemblykit.archiver.writers import get_archive_writer
from assemblykit.errors import ArchiveCreationError, InvalidAssemblerConfigurationError, NoSuchArchiverError
from assemblykit.format.paths import get_output_directory
from assemblykit.model.descriptor import Assembly
from assemblykit.phases import run_phases

if TYPE_CHECKING:
    from assemblykit.archiver.base import ArchiveWriter
    from assemblykit.config import ConfigSource

logger = logging.getLogger(__name__)


def get_base_directory(assembly: Assembly, config_source: "ConfigSource") -> str:
    """
    Root prefix of every entry: the formatted ``base_directory`` or the final name.

    Empty when either the descriptor or the build configuration turns the base
    directory off.
    """
    if not (assembly.include_base_directory and config_source.include_base_directory):
        return ""
    if assembly.base_directory is None:
        return config_source.final_name or ""
    return get_output_directory(
        assembly.base_directory,
        config_source.final_name,
        config_source,
        module_project=config_source.project,
    )


def create_archive(
    assembly: Assembly,
    full_name: str,
    fmt: str,
    config_source: "ConfigSource",
    writer: Optional["ArchiveWriter"] = None,
) -> Path:
    """
    Build ``<output_directory>/<full_name>.<fmt>`` (no extension for "dir").

    Args:
        assembly: Descriptor to assemble
        full_name: Archive name without extension
        fmt: Archive format (dir, zip, jar, tar.gz, ...)
        config_source: Build configuration
        writer: Writer to use instead of the one registered for ``fmt``

    Returns:
        Path of the created archive (a directory for the "dir" format)

    Raises:
        InvalidAssemblerConfigurationError: If the assembly has no id
        ArchiveCreationError: If the writer cannot be obtained or fails
    """
    if not assembly.id or not assembly.id.strip():
        raise InvalidAssemblerConfigurationError("Assembly ID must be present and non-empty.")

    # "dir" output is a plain directory named after the distribution
    filename = full_name if fmt == "dir" else f"{full_name}.{fmt}"
    dest_file = Path(config_source.output_directory) / filename

    if writer is None:
        try:
            writer = get_archive_writer(fmt)
        except NoSuchArchiverError as exc:
            raise ArchiveCreationError(
                f"Unable to obtain archiver for extension '{fmt}', for assembly: '{assembly.id}'"
            ) from exc

    handlers = [create_handler(c) for c in assembly.container_descriptor_handlers]
    archiver = AssemblyProxyArchiver(
        get_base_directory(assembly, config_source),
        writer,
        container_handlers=handlers,
        working_directory=config_source.working_directory,
    )
    archiver.forced = not config_source.update_only
    archiver.dest_file = dest_file

    logger.debug(f"Assembly {assembly.id}: writing {fmt} to {dest_file}")
    try:
        run_phases(assembly, archiver, config_source)
        dest_file.parent.mkdir(parents=True, exist_ok=True)
        archiver.create_archive()
    except OSError as exc:
        raise ArchiveCreationError(f"Error creating assembly archive {assembly.id}: {exc}") from exc

    return dest_file
