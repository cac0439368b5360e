"""Container descriptor handlers.

Handlers are file selectors that intercept well-known files while entries
are added, merge their content, and write the merged result when the
archive is created. ``is_selected`` returns False for an intercepted file so
the original is not added on its own.

Registered names:
    file-aggregator    FileAggregatingHandler
    metaInf-services   MetaInfServicesHandler
    metaInf-spring     MetaInfSpringHandler
"""
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from assemblykit.archiver.base import FileInfo, Resource
from assemblykit.errors import ArchiveCreationError, InvalidAssemblerConfigurationError
from assemblykit.model.descriptor import ContainerDescriptorHandlerConfig

logger = logging.getLogger(__name__)


def _is_property_file(name: str) -> bool:
    return name.lower().endswith(".properties")


class ContainerDescriptorHandler(ABC):
    """Base class: a selector that contributes entries at archive creation."""

    def is_selected(self, file_info: FileInfo) -> bool:
        return True

    @abstractmethod
    def finalize_archive_creation(self, writer) -> None:
        """Add the aggregated entries through ``writer``."""

    @property
    def virtual_files(self) -> list[str]:
        """Entry names this handler will add."""
        return []


class FileAggregatingHandler(ContainerDescriptorHandler):
    """
    Concatenate every file whose path matches ``file_pattern`` into ``output_path``.

    The output starts with a comment naming the aggregated files.

    Args:
        file_pattern: Regular expression matched against the whole entry path
        output_path: Entry name of the aggregate (a file, not a directory)
    """

    comment_chars = "#"

    def __init__(self, file_pattern: Optional[str] = None, output_path: Optional[str] = None):
        self.file_pattern = file_pattern
        self.output_path = output_path
        self._parts: list[str] = []
        self.filenames: list[str] = []

    def _check_config(self) -> None:
        if self.file_pattern is None or self.output_path is None:
            raise InvalidAssemblerConfigurationError(
                "You must configure file_pattern and output_path in your "
                "container descriptor handler declaration."
            )

    @property
    def virtual_files(self) -> list[str]:
        self._check_config()
        return [self.output_path]

    def is_selected(self, file_info: FileInfo) -> bool:
        self._check_config()
        name = file_info.name.replace("\\", "/")
        if file_info.is_file and re.fullmatch(self.file_pattern, name):
            encoding = "iso-8859-1" if _is_property_file(name) else "utf-8"
            self._parts.append("\n" + file_info.read_bytes().decode(encoding))
            self.filenames.append(name)
            return False
        return True

    def finalize_archive_creation(self, writer) -> None:
        self._check_config()
        if self.output_path.endswith("/"):
            raise ArchiveCreationError(
                "Cannot write aggregated properties to a directory. You must specify a "
                f"file name in the output_path configuration for this handler ({type(self).__name__})."
            )
        if not self.filenames:
            return

        output_path = self.output_path.lstrip("/")
        header = f"{self.comment_chars} Aggregated on {datetime.now():%a %b %d %H:%M:%S %Y} from: "
        body = header + "".join(f"\n{self.comment_chars} {n}" for n in self.filenames)
        body += "\n\n" + "".join(self._parts)
        encoding = "iso-8859-1" if _is_property_file(output_path) else "utf-8"
        writer.add_resource(Resource.from_bytes(output_path, body.encode(encoding)), output_path)


class LineAggregatingHandler(ContainerDescriptorHandler):
    """Merge matching files line by line, dropping duplicate lines."""

    encoding = "utf-8"

    def __init__(self) -> None:
        self.catalog: dict[str, list[str]] = {}

    @abstractmethod
    def file_matches(self, name: str) -> bool:
        ...

    @abstractmethod
    def output_path_prefix(self, name: str) -> str:
        ...

    @property
    def virtual_files(self) -> list[str]:
        return list(self.catalog)

    def is_selected(self, file_info: FileInfo) -> bool:
        name = file_info.name.replace("\\", "/")
        if file_info.is_file and self.file_matches(name):
            key = self.output_path_prefix(name) + name.rsplit("/", 1)[-1]
            lines = self.catalog.setdefault(key, [])
            for line in file_info.read_bytes().decode(self.encoding).splitlines():
                if line not in lines:
                    lines.append(line)
            return False
        return True

    def finalize_archive_creation(self, writer) -> None:
        for name, lines in self.catalog.items():
            data = "".join(f"{line}\n" for line in lines).encode(self.encoding)
            writer.add_resource(Resource.from_bytes(name, data), name)


class MetaInfSpringHandler(LineAggregatingHandler):
    """Merge META-INF/spring.* files (handlers, schemas, ...)."""

    def file_matches(self, name: str) -> bool:
        return name.startswith("META-INF/spring.")

    def output_path_prefix(self, name: str) -> str:
        return "META-INF/"


class MetaInfServicesHandler(LineAggregatingHandler):
    """Merge META-INF/services/* service provider files."""

    def file_matches(self, name: str) -> bool:
        return name.startswith("META-INF/services/") and not name.endswith("/")

    def output_path_prefix(self, name: str) -> str:
        return "META-INF/services/"


HANDLERS: dict[str, type[ContainerDescriptorHandler]] = {
    "file-aggregator": FileAggregatingHandler,
    "metaInf-services": MetaInfServicesHandler,
    "metaInf-spring": MetaInfSpringHandler,
}


def create_handler(config: ContainerDescriptorHandlerConfig) -> ContainerDescriptorHandler:
    """
    Instantiate and configure a handler from its descriptor declaration.

    Raises:
        InvalidAssemblerConfigurationError: If the name or an option is unknown
    """
    try:
        cls = HANDLERS[config.handler_name]
    except KeyError:
        raise InvalidAssemblerConfigurationError(
            f"Cannot find container descriptor handler: '{config.handler_name}'"
        ) from None

    handler = cls()
    options: dict[str, Any] = config.configuration or {}
    for key, value in options.items():
        if key.startswith("_") or not hasattr(handler, key):
            raise InvalidAssemblerConfigurationError(
                f"Failed to configure container descriptor handler '{config.handler_name}': "
                f"unknown option '{key}'"
            )
        setattr(handler, key, value)

    logger.debug(f"Created container descriptor handler {config.handler_name}")
    return handler
