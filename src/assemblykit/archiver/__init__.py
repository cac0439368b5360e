"""Archive writers, the per-assembly proxy and container descriptor handlers."""
from assemblykit.archiver.base import (
    ArchivedFileSet,
    ArchiveWriter,
    DirectoryFileSet,
    FileInfo,
    FileSelector,
    ModeOverride,
    Resource,
)
from assemblykit.archiver.handlers import (
    ContainerDescriptorHandler,
    FileAggregatingHandler,
    MetaInfServicesHandler,
    MetaInfSpringHandler,
    create_handler,
)
from assemblykit.archiver.proxy import AssemblyProxyArchiver, normalize_root_prefix
from assemblykit.archiver.writers import (
    AbstractArchiveWriter,
    DirectoryArchiveWriter,
    DryRunArchiveWriter,
    TarArchiveWriter,
    ZipArchiveWriter,
    get_archive_writer,
)

__all__ = [
    # Abstraction
    "ArchiveWriter",
    "ArchivedFileSet",
    "DirectoryFileSet",
    "FileInfo",
    "FileSelector",
    "ModeOverride",
    "Resource",
    # Writers
    "AbstractArchiveWriter",
    "DirectoryArchiveWriter",
    "DryRunArchiveWriter",
    "TarArchiveWriter",
    "ZipArchiveWriter",
    "get_archive_writer",
    # Proxy
    "AssemblyProxyArchiver",
    "normalize_root_prefix",
    # Handlers
    "ContainerDescriptorHandler",
    "FileAggregatingHandler",
    "MetaInfServicesHandler",
    "MetaInfSpringHandler",
    "create_handler",
]
