# src/assemblykit/__init__.py
"""
assemblykit - build distributable archives from an assembly descriptor.

    from assemblykit import create_archive, get_distribution_name, load_config_source, read_assembly

    config = load_config_source("build.yaml")
    assembly = read_assembly("assembly.yaml", config)
    create_archive(assembly, get_distribution_name(assembly, config), "zip", config)
"""
from __future__ import annotations

from .archiver.assembly_archiver import create_archive
from .config import ConfigSource, load_config_source
from .errors import (
    ArchiveCreationError,
    AssemblyError,
    AssemblyFormattingError,
    DependencyResolutionError,
    InvalidAssemblerConfigurationError,
    RepositoryAssemblyError,
)
from .format.paths import get_distribution_name
from .model.io import read_assemblies, read_assembly
from .phases import PHASES, run_phases

__version__ = "0.1.0"

__all__ = [
    "ArchiveCreationError",
    "AssemblyError",
    "AssemblyFormattingError",
    "ConfigSource",
    "DependencyResolutionError",
    "InvalidAssemblerConfigurationError",
    "PHASES",
    "RepositoryAssemblyError",
    "create_archive",
    "get_distribution_name",
    "load_config_source",
    "read_assemblies",
    "read_assembly",
    "run_phases",
]
