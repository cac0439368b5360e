"""
Concrete archive writers.

Entries are staged in insertion order keyed by destination name (a later
add to the same name replaces the earlier one) and written in one pass by
``create_archive``. Timestamps are fixed so identical inputs produce
identical archives.

Formats:
    dir                       DirectoryArchiveWriter
    zip, jar, war, ear        ZipArchiveWriter
    tar, tar.gz/tgz, tar.bz2/tbz2, tar.xz/txz
                              TarArchiveWriter
"""
from __future__ import annotations

import io
import logging
import os
import tarfile
import zipfile
from abc import abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

from assemblykit.archiver.base import (
    ArchivedFileSet,
    ArchiveWriter,
    BaseFileSet,
    DirectoryFileSet,
    FileInfo,
    Resource,
)
from assemblykit.archiver.patterns import PathMatcher
from assemblykit.errors import ArchiveCreationError, NoSuchArchiverError
from assemblykit.format.modes import UNSET

logger = logging.getLogger(__name__)

Finalizer = Callable[[ArchiveWriter], None]


@dataclass
class Entry:
    """A staged archive entry."""
    name: str
    mode: int
    is_dir: bool = False
    opener: Optional[Callable[[], bytes]] = None
    mtime: float = 0.0

    def read_bytes(self) -> bytes:
        return self.opener() if self.opener is not None else b""


def _clean_name(name: str) -> str:
    return name.replace("\\", "/").lstrip("/")


def _file_opener(path: Path, name: str, transformer) -> Callable[[], bytes]:
    if transformer is None:
        return path.read_bytes
    return lambda: transformer(name, path.read_bytes())


class AbstractArchiveWriter(ArchiveWriter):
    """Stages entries and leaves the container format to subclasses."""

    def __init__(self) -> None:
        self._entries: dict[str, Entry] = {}
        self._dest_file: Optional[Path] = None
        self._directory_mode = UNSET
        self._file_mode = UNSET
        self._forced = True
        self._finalizers: list[Finalizer] = []

    # --- State ---
    @property
    def dest_file(self) -> Optional[Path]:
        return self._dest_file

    @dest_file.setter
    def dest_file(self, value: Optional[Path]) -> None:
        self._dest_file = Path(value) if value is not None else None

    @property
    def directory_mode(self) -> int:
        return self._directory_mode

    @directory_mode.setter
    def directory_mode(self, value: int) -> None:
        self._directory_mode = value

    @property
    def file_mode(self) -> int:
        return self._file_mode

    @file_mode.setter
    def file_mode(self, value: int) -> None:
        self._file_mode = value

    @property
    def forced(self) -> bool:
        return self._forced

    @forced.setter
    def forced(self, value: bool) -> None:
        self._forced = value

    @property
    def entries(self) -> dict[str, Entry]:
        return dict(self._entries)

    def add_finalizer(self, finalizer: Finalizer) -> None:
        self._finalizers.append(finalizer)

    def _file_mode_for(self, mode: int) -> int:
        if mode != UNSET:
            return mode
        return self._file_mode if self._file_mode != UNSET else self.default_file_mode

    def _dir_mode_for(self, mode: int = UNSET) -> int:
        if mode != UNSET:
            return mode
        return self._directory_mode if self._directory_mode != UNSET else self.default_directory_mode

    def _stage(self, entry: Entry) -> None:
        if entry.name in self._entries:
            logger.debug(f"Replacing archive entry {entry.name}")
        self._entries[entry.name] = entry

    # --- Adds ---
    def add_file(self, source: Path, dest: str, mode: int = UNSET) -> None:
        source = Path(source)
        if not source.is_file():
            raise ArchiveCreationError(f"{source} isn't a file.")
        self._stage(
            Entry(
                name=_clean_name(dest),
                mode=self._file_mode_for(mode),
                opener=source.read_bytes,
                mtime=source.stat().st_mtime,
            )
        )

    def add_resource(self, resource: Resource, dest: str, mode: int = UNSET) -> None:
        self._stage(
            Entry(
                name=_clean_name(dest),
                mode=self._file_mode_for(mode),
                opener=resource.read_bytes,
                mtime=resource.last_modified,
            )
        )

    def _accept(self, file_set: BaseFileSet, info: FileInfo) -> bool:
        return all(selector.is_selected(info) for selector in file_set.selectors)

    def add_file_set(self, file_set: DirectoryFileSet) -> None:
        base = Path(file_set.source)
        if not base.is_dir():
            raise ArchiveCreationError(f"{base} isn't a directory.")

        matcher = PathMatcher(file_set.includes, file_set.excludes, file_set.use_default_excludes)
        prefix = _clean_name(file_set.prefix)

        for root, dirs, files in os.walk(base):
            rel_root = Path(root).relative_to(base).as_posix()
            rel_root = "" if rel_root == "." else rel_root + "/"

            # Prune excluded subtrees
            dirs[:] = sorted(d for d in dirs if not matcher.is_excluded(rel_root + d))
            for d in dirs:
                rel = rel_root + d
                if matcher.is_included(rel) and self._accept(file_set, FileInfo(rel, is_file=False)):
                    self._stage(Entry(name=f"{prefix}{rel}/", mode=self._dir_mode_for(), is_dir=True))

            for f in sorted(files):
                rel = rel_root + f
                if not matcher.matches(rel):
                    continue
                path = Path(root) / f
                opener = _file_opener(path, rel, file_set.transformer)
                if not self._accept(file_set, FileInfo(rel, opener=opener)):
                    continue
                self._stage(
                    Entry(
                        name=f"{prefix}{rel}",
                        mode=self._file_mode_for(UNSET),
                        opener=opener,
                        mtime=path.stat().st_mtime,
                    )
                )

    def _archive_members(
        self, archive: Path, encoding: Optional[str]
    ) -> Iterable[tuple[str, bool, bytes]]:
        if zipfile.is_zipfile(archive):
            with zipfile.ZipFile(archive, metadata_encoding=encoding) as zf:
                for info in zf.infolist():
                    yield info.filename, info.is_dir(), b"" if info.is_dir() else zf.read(info)
        elif tarfile.is_tarfile(archive):
            with tarfile.open(archive, encoding=encoding or tarfile.ENCODING) as tf:
                for member in tf.getmembers():
                    if member.isdir():
                        yield member.name, True, b""
                    elif member.isfile():
                        handle = tf.extractfile(member)
                        yield member.name, False, handle.read() if handle else b""
        else:
            raise ArchiveCreationError(f"Unsupported archive type: {archive}")

    def add_archived_file_set(
        self, file_set: ArchivedFileSet, encoding: Optional[str] = None
    ) -> None:
        archive = Path(file_set.source)
        if not archive.is_file():
            raise ArchiveCreationError(f"{archive} isn't a file.")

        matcher = PathMatcher(file_set.includes, file_set.excludes, file_set.use_default_excludes)
        prefix = _clean_name(file_set.prefix)
        mtime = archive.stat().st_mtime
        transformer = file_set.transformer

        try:
            for raw_name, is_dir, data in self._archive_members(archive, encoding):
                rel = _clean_name(raw_name).rstrip("/")
                if not rel or not matcher.matches(rel):
                    continue
                if is_dir:
                    if self._accept(file_set, FileInfo(rel, is_file=False)):
                        self._stage(Entry(name=f"{prefix}{rel}/", mode=self._dir_mode_for(), is_dir=True))
                    continue

                def opener(rel=rel, data=data) -> bytes:
                    return transformer(rel, data) if transformer is not None else data

                if self._accept(file_set, FileInfo(rel, opener=opener)):
                    self._stage(
                        Entry(name=f"{prefix}{rel}", mode=self._file_mode_for(UNSET), opener=opener, mtime=mtime)
                    )
        except (zipfile.BadZipFile, tarfile.TarError, OSError) as exc:
            raise ArchiveCreationError(f"Error reading archive {archive}: {exc}") from exc

    # --- Creation ---
    def _with_parent_dirs(self) -> list[Entry]:
        staged = list(self._entries.values())
        known = {e.name.rstrip("/") for e in staged if e.is_dir}
        parents: list[Entry] = []
        for entry in staged:
            parts = entry.name.rstrip("/").split("/")[:-1]
            for i in range(1, len(parts) + 1):
                d = "/".join(parts[:i])
                if d not in known:
                    known.add(d)
                    parents.append(Entry(name=f"{d}/", mode=self._dir_mode_for(), is_dir=True))
        return parents + staged

    def is_up_to_date(self) -> bool:
        dest = self._dest_file
        if dest is None or not dest.exists():
            return False
        newest = max((e.mtime for e in self._entries.values()), default=0.0)
        return newest <= dest.stat().st_mtime

    def create_archive(self) -> None:
        if self._dest_file is None:
            raise ArchiveCreationError("You must set the destination file.")

        for finalizer in self._finalizers:
            finalizer(self)

        if not self._forced and self.is_up_to_date():
            logger.info(f"Archive {self._dest_file} is up to date.")
            return

        logger.info(f"Building {self.format_name}: {self._dest_file}")
        try:
            self._dest_file.parent.mkdir(parents=True, exist_ok=True)
            self._write(self._with_parent_dirs())
        except OSError as exc:
            raise ArchiveCreationError(f"Error writing {self._dest_file}: {exc}") from exc

    format_name = "archive"

    @abstractmethod
    def _write(self, entries: list[Entry]) -> None:
        ...


class DirectoryArchiveWriter(AbstractArchiveWriter):
    """Writes the entries as a plain directory tree at dest_file."""

    format_name = "dir"

    def _write(self, entries: list[Entry]) -> None:
        root = self._dest_file
        root.mkdir(parents=True, exist_ok=True)
        for entry in entries:
            target = root / entry.name
            if entry.is_dir:
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(entry.read_bytes())
            if os.name != "nt":
                os.chmod(target, entry.mode)


class ZipArchiveWriter(AbstractArchiveWriter):
    """Writes a deflated zip file."""

    format_name = "zip"

    def _write(self, entries: list[Entry]) -> None:
        with zipfile.ZipFile(self._dest_file, "w") as zf:
            for entry in entries:
                zi = zipfile.ZipInfo(filename=entry.name)
                zi.date_time = (1980, 1, 1, 0, 0, 0)
                if entry.is_dir:
                    zi.external_attr = ((0o040000 | entry.mode) << 16) | 0x10
                    zf.writestr(zi, b"")
                else:
                    zi.compress_type = zipfile.ZIP_DEFLATED
                    zi.external_attr = (0o100000 | entry.mode) << 16
                    zf.writestr(zi, entry.read_bytes())


class TarArchiveWriter(AbstractArchiveWriter):
    """Writes a tar file, optionally compressed."""

    def __init__(self, compression: str = "") -> None:
        super().__init__()
        self.compression = compression

    @property
    def format_name(self) -> str:
        return f"tar.{self.compression}" if self.compression else "tar"

    def _write(self, entries: list[Entry]) -> None:
        with tarfile.open(self._dest_file, f"w:{self.compression}") as tf:
            for entry in entries:
                ti = tarfile.TarInfo(name=entry.name.rstrip("/") if entry.is_dir else entry.name)
                ti.mtime = 0
                ti.uid = ti.gid = 0
                ti.uname = ti.gname = ""
                ti.mode = entry.mode
                if entry.is_dir:
                    ti.type = tarfile.DIRTYPE
                    tf.addfile(ti)
                else:
                    data = entry.read_bytes()
                    ti.size = len(data)
                    tf.addfile(ti, io.BytesIO(data))


class DryRunArchiveWriter(AbstractArchiveWriter):
    """Logs what would be written instead of writing it."""

    format_name = "dry run"

    def create_archive(self) -> None:
        if self._dest_file is None:
            raise ArchiveCreationError("You must set the destination file.")
        for finalizer in self._finalizers:
            finalizer(self)
        self._write(self._with_parent_dirs())

    def _write(self, entries: list[Entry]) -> None:
        for entry in entries:
            logger.info(f"[dry run] {oct(entry.mode)} {entry.name}")
        logger.info(f"[dry run] {len(entries)} entries for {self._dest_file}")


_TAR_COMPRESSION = {
    "tar": "",
    "tar.gz": "gz",
    "tgz": "gz",
    "tar.bz2": "bz2",
    "tbz2": "bz2",
    "tar.xz": "xz",
    "txz": "xz",
}

_ZIP_FORMATS = ("zip", "jar", "war", "ear")


def get_archive_writer(fmt: str, *, dry_run: bool = False) -> AbstractArchiveWriter:
    """
    Writer for an archive format.

    Raises:
        NoSuchArchiverError: If no writer handles the format
    """
    fmt = fmt.lower()
    if fmt not in _ZIP_FORMATS and fmt not in _TAR_COMPRESSION and fmt != "dir":
        raise NoSuchArchiverError(f"Cannot find archiver for format: {fmt}")
    if dry_run:
        return DryRunArchiveWriter()
    if fmt == "dir":
        return DirectoryArchiveWriter()
    if fmt in _ZIP_FORMATS:
        return ZipArchiveWriter()
    return TarArchiveWriter(_TAR_COMPRESSION[fmt])
