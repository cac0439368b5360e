"""Archive writer abstraction.

Phases and tasks only ever talk to an ``ArchiveWriter``: single files,
in-memory resources, directory file-sets and the content of other archives
are added to it, and ``create_archive`` materializes the result.

The writer carries ambient directory/file modes. They are shared state for
every add call that does not pass an explicit mode, so callers that need a
different mode hold it through ``ModeOverride``.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Protocol, runtime_checkable

from assemblykit.format.modes import UNSET
from assemblykit.format.transform import Transformer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileInfo:
    """What a selector sees of an entry: its relative name, kind and content."""
    name: str
    is_file: bool = True
    opener: Optional[Callable[[], bytes]] = None

    @property
    def is_dir(self) -> bool:
        return not self.is_file

    def read_bytes(self) -> bytes:
        return self.opener() if self.opener is not None else b""


@runtime_checkable
class FileSelector(Protocol):
    """Decides whether an entry is added; may also capture its content."""

    def is_selected(self, file_info: FileInfo) -> bool:
        ...


@dataclass
class Resource:
    """An entry whose content is produced on demand."""
    name: str
    opener: Callable[[], bytes]
    last_modified: float = 0.0

    def read_bytes(self) -> bytes:
        return self.opener()

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> "Resource":
        return cls(name=name, opener=lambda: data)


@dataclass
class BaseFileSet:
    """
    Common shape of directory and archived file-sets.

    Attributes:
        source: Directory to scan, or archive to read
        prefix: Destination prefix inside the archive ("" or ending in "/")
        includes: Ant-style include patterns; empty means everything
        excludes: Ant-style exclude patterns
        use_default_excludes: Also drop version-control and editor files
        selectors: Consulted in order for every entry
        transformer: Content transformation applied to every file
    """
    source: Path
    prefix: str = ""
    includes: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    use_default_excludes: bool = True
    selectors: list[FileSelector] = field(default_factory=list)
    transformer: Optional[Transformer] = None


@dataclass
class DirectoryFileSet(BaseFileSet):
    """A directory tree on disk."""


@dataclass
class ArchivedFileSet(BaseFileSet):
    """The content of a zip or tar archive."""


class ArchiveWriter(ABC):
    """Generic archive writer."""

    default_directory_mode: int = 0o755
    default_file_mode: int = 0o644

    @abstractmethod
    def add_file(self, source: Path, dest: str, mode: int = UNSET) -> None:
        """Add one file under the destination name."""

    @abstractmethod
    def add_resource(self, resource: Resource, dest: str, mode: int = UNSET) -> None:
        """Add generated content under the destination name."""

    @abstractmethod
    def add_file_set(self, file_set: DirectoryFileSet) -> None:
        """Add the selected part of a directory tree."""

    @abstractmethod
    def add_archived_file_set(
        self, file_set: ArchivedFileSet, encoding: Optional[str] = None
    ) -> None:
        """Add the selected content of another archive."""

    @abstractmethod
    def create_archive(self) -> None:
        """Materialize every staged entry at dest_file."""

    @property
    @abstractmethod
    def dest_file(self) -> Optional[Path]:
        ...

    @dest_file.setter
    @abstractmethod
    def dest_file(self, value: Optional[Path]) -> None:
        ...

    @property
    @abstractmethod
    def directory_mode(self) -> int:
        """Ambient directory mode, -1 when unset."""

    @directory_mode.setter
    @abstractmethod
    def directory_mode(self, value: int) -> None:
        ...

    @property
    @abstractmethod
    def file_mode(self) -> int:
        """Ambient file mode, -1 when unset."""

    @file_mode.setter
    @abstractmethod
    def file_mode(self, value: int) -> None:
        ...

    @property
    @abstractmethod
    def forced(self) -> bool:
        ...

    @forced.setter
    @abstractmethod
    def forced(self, value: bool) -> None:
        ...

    @property
    def supports_forced(self) -> bool:
        return True


class ModeOverride:
    """
    Context manager holding ambient writer modes for the duration of a block.

    Only modes other than -1 are applied; the previous values are restored on
    exit, including when the block raises.

    Example:
        with ModeOverride(writer, directory_mode=0o750, file_mode=0o640):
            writer.add_file_set(file_set)
    """

    def __init__(self, writer, directory_mode: int = UNSET, file_mode: int = UNSET):
        self.writer = writer
        self.new_directory_mode = directory_mode
        self.new_file_mode = file_mode
        self.old_directory_mode = UNSET
        self.old_file_mode = UNSET

    def __enter__(self):
        self.old_directory_mode = self.writer.directory_mode
        self.old_file_mode = self.writer.file_mode
        if self.new_directory_mode != UNSET:
            self.writer.directory_mode = self.new_directory_mode
        if self.new_file_mode != UNSET:
            self.writer.file_mode = self.new_file_mode
        return self.writer

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.new_directory_mode != UNSET:
            self.writer.directory_mode = self.old_directory_mode
        if self.new_file_mode != UNSET:
            self.writer.file_mode = self.old_file_mode
        return False
