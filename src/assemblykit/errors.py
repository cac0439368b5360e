# src/assemblykit/errors.py


class AssemblyError(Exception):
    """Base class for all assembly errors."""

    pass


class InvalidAssemblerConfigurationError(AssemblyError):
    """Raised when a descriptor is contradictory or misses a required field."""

    pass


class AssemblyFormattingError(AssemblyError):
    """Raised for malformed modes, line endings or path templates."""

    pass


class ArchiveCreationError(AssemblyError):
    """Raised for I/O and writer failures while populating an archive."""

    pass


class DependencyResolutionError(AssemblyError):
    """Raised by a dependency resolver that cannot resolve a dependency set."""

    pass


class RepositoryAssemblyError(AssemblyError):
    """Raised when a repository mirror cannot be materialized."""

    pass


class ProjectBuildingError(AssemblyError):
    """Raised when no module project can be built for an artifact."""

    pass


class NoSuchArchiverError(ArchiveCreationError):
    """Raised when no archive writer exists for a requested format."""

    pass
