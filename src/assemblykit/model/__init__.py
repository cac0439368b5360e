"""Descriptor and project model."""
from assemblykit.model.descriptor import (
    DEFAULT_OUTPUT_FILE_NAME_MAPPING,
    Assembly,
    ContainerDescriptorHandlerConfig,
    DependencySet,
    FileItem,
    FileSet,
    ModuleBinaries,
    ModuleSet,
    ModuleSources,
    Repository,
    UnpackOptions,
)
from assemblykit.model.io import parse_assembly, read_assemblies, read_assembly
from assemblykit.model.project import Artifact, ModuleProject, ResolvedProject

__all__ = [
    # Descriptor
    "Assembly",
    "ContainerDescriptorHandlerConfig",
    "DependencySet",
    "FileItem",
    "FileSet",
    "ModuleBinaries",
    "ModuleSet",
    "ModuleSources",
    "Repository",
    "UnpackOptions",
    "DEFAULT_OUTPUT_FILE_NAME_MAPPING",
    # Projects
    "Artifact",
    "ModuleProject",
    "ResolvedProject",
    # IO
    "parse_assembly",
    "read_assembly",
    "read_assemblies",
]
