"""
Proxy in front of the archive writer used for one assembly.

The proxy:
- prepends the root prefix to every destination and file-set prefix
- merges the container descriptor handlers and extra selectors into the
  selectors of externally originated adds
- never lets a file-set pick up the assembly's own working directory
- holds the "forced" flag and pushes it to the writer at creation time

Every other attribute is read from the wrapped writer.

Adds made by the pipeline for its own bookkeeping (finalizers writing
aggregated files, the proxy calling itself) pass ``internal=True`` so the
selectors are not applied to them.
"""
from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from assemblykit.archiver.base import (
    ArchivedFileSet,
    ArchiveWriter,
    DirectoryFileSet,
    FileInfo,
    FileSelector,
    Resource,
)
from assemblykit.archiver.handlers import ContainerDescriptorHandler
from assemblykit.format.modes import UNSET

logger = logging.getLogger(__name__)


def _normalized_path(path: str | Path) -> str:
    return os.path.abspath(str(path)).replace("\\", "/").rstrip("/")


def normalize_root_prefix(root_prefix: Optional[str]) -> str:
    """
    Example:
        >>> normalize_root_prefix("app-1.0")
        'app-1.0/'
        >>> normalize_root_prefix("")
        ''
    """
    prefix = root_prefix or ""
    if prefix and not prefix.endswith("/"):
        prefix += "/"
    return prefix


class _InternalCalls:
    """Routes a finalizer's adds through the proxy as internal calls."""

    def __init__(self, proxy: "AssemblyProxyArchiver"):
        self._proxy = proxy

    def add_file(self, source: Path, dest: str, mode: int = UNSET) -> None:
        self._proxy.add_file(source, dest, mode, internal=True)

    def add_resource(self, resource: Resource, dest: str, mode: int = UNSET) -> None:
        self._proxy.add_resource(resource, dest, mode, internal=True)

    def __getattr__(self, name: str):
        return getattr(self._proxy, name)


class AssemblyProxyArchiver:
    """
    Archive writer decorator for one assembly build.

    Args:
        root_prefix: Prefix of every entry ("" for none); "/" is appended if missing
        delegate: The writer that materializes the archive
        container_handlers: Aggregating handlers; used as selectors and finalized
            before the archive is created
        extra_selectors: Further selectors applied after the handlers
        working_directory: Staging directory of this build, never added to itself
    """

    def __init__(
        self,
        root_prefix: Optional[str],
        delegate: ArchiveWriter,
        container_handlers: Optional[Sequence[ContainerDescriptorHandler]] = None,
        extra_selectors: Optional[Sequence[FileSelector]] = None,
        working_directory: Optional[str | Path] = None,
    ):
        self._delegate = delegate
        self.root_prefix = normalize_root_prefix(root_prefix)
        self._handlers = list(container_handlers or [])
        self._selectors: list[FileSelector] = [*self._handlers, *(extra_selectors or [])]
        self._working_path = (
            _normalized_path(working_directory) if working_directory is not None else None
        )
        self._forced = delegate.forced

    def __getattr__(self, name: str):
        if name == "_delegate":
            raise AttributeError(name)
        return getattr(self._delegate, name)

    @property
    def delegate(self) -> ArchiveWriter:
        return self._delegate

    @property
    def selectors(self) -> list[FileSelector]:
        return list(self._selectors)

    # --- Forwarded state ---
    @property
    def dest_file(self) -> Optional[Path]:
        return self._delegate.dest_file

    @dest_file.setter
    def dest_file(self, value: Optional[Path]) -> None:
        self._delegate.dest_file = value

    @property
    def directory_mode(self) -> int:
        return self._delegate.directory_mode

    @directory_mode.setter
    def directory_mode(self, value: int) -> None:
        self._delegate.directory_mode = value

    @property
    def file_mode(self) -> int:
        return self._delegate.file_mode

    @file_mode.setter
    def file_mode(self, value: int) -> None:
        self._delegate.file_mode = value

    @property
    def forced(self) -> bool:
        return self._forced

    @forced.setter
    def forced(self, value: bool) -> None:
        self._forced = value

    # --- Selection ---
    def _accept(self, file_info: FileInfo) -> bool:
        for selector in self._selectors:
            if not selector.is_selected(file_info):
                return False
        return True

    def _prefixed(self, prefix: Optional[str]) -> str:
        if prefix is None:
            return self.root_prefix
        return self.root_prefix + prefix.lstrip("/")

    # --- Adds ---
    def add_file(
        self, source: Path, dest: str, mode: int = UNSET, *, internal: bool = False
    ) -> None:
        if not internal:
            info = FileInfo(dest.lstrip("/"), opener=Path(source).read_bytes)
            if not self._accept(info):
                logger.debug(f"{dest} was intercepted by a selector")
                return
        self._delegate.add_file(source, self.root_prefix + dest.lstrip("/"), mode)

    def add_resource(
        self, resource: Resource, dest: str, mode: int = UNSET, *, internal: bool = False
    ) -> None:
        if not internal:
            info = FileInfo(dest.lstrip("/"), opener=resource.read_bytes)
            if not self._accept(info):
                logger.debug(f"{dest} was intercepted by a selector")
                return
        self._delegate.add_resource(resource, self.root_prefix + dest.lstrip("/"), mode)

    def add_directory(
        self,
        directory: Path,
        prefix: str = "",
        includes: Optional[Sequence[str]] = None,
        excludes: Optional[Sequence[str]] = None,
        *,
        internal: bool = False,
    ) -> None:
        file_set = DirectoryFileSet(
            source=Path(directory),
            prefix=prefix,
            includes=list(includes or []),
            excludes=list(excludes or []),
        )
        self.add_file_set(file_set, internal=internal)

    def add_file_set(self, file_set: DirectoryFileSet, *, internal: bool = False) -> None:
        selectors = list(file_set.selectors)
        if not internal:
            selectors.extend(self._selectors)
        prefixed = replace(file_set, prefix=self._prefixed(file_set.prefix), selectors=selectors)
        self._do_add_file_set(prefixed)

    def add_archived_file_set(
        self,
        file_set: ArchivedFileSet,
        encoding: Optional[str] = None,
        *,
        internal: bool = False,
    ) -> None:
        selectors = list(file_set.selectors)
        if not internal:
            selectors.extend(self._selectors)
        prefixed = replace(file_set, prefix=self._prefixed(file_set.prefix), selectors=selectors)
        self._delegate.add_archived_file_set(prefixed, encoding)

    def _do_add_file_set(self, file_set: DirectoryFileSet) -> None:
        """Delegate a file-set, keeping the working directory out of it."""
        fs_path = _normalized_path(file_set.source)
        work_path = self._working_path

        if work_path is not None and fs_path == work_path:
            logger.debug(f"File-set source directory is the assembly working directory; skipping: {fs_path}")
            return

        if work_path is not None and work_path.startswith(fs_path + "/"):
            work_dir_exclude = work_path[len(fs_path) + 1:]
            logger.debug(
                f"Adding exclude for the assembly working directory: {work_dir_exclude} "
                f"(file-set source directory: {fs_path})"
            )
            file_set = replace(
                file_set,
                excludes=[*file_set.excludes, work_dir_exclude],
                includes=[i for i in file_set.includes if not i.startswith(work_dir_exclude)],
            )

        self._delegate.add_file_set(file_set)

    # --- Creation ---
    def create_archive(self) -> None:
        if self._delegate.supports_forced:
            self._delegate.forced = self._forced
        writer = _InternalCalls(self)
        for handler in self._handlers:
            handler.finalize_archive_creation(writer)
        self._delegate.create_archive()


ArchiveWriter.register(AssemblyProxyArchiver)
