"""Dataclasses describing an assembly descriptor.

A descriptor is read once per build and treated as read-only afterwards.
Entries that are used as mapping keys (dependency sets in particular) are
declared with ``eq=False`` so they hash by identity: two sets with the same
settings are still two distinct selections.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


DEFAULT_OUTPUT_FILE_NAME_MAPPING = (
    "${artifact.artifactId}-${artifact.version}${dashClassifier?}.${artifact.extension}"
)


@dataclass(eq=False)
class FileItem:
    """A single explicit file (or a concatenation of files).

    Attributes:
        source: Path of the single source file
        sources: Paths of several files concatenated into one entry
        dest_name: Name of the entry; derived from the first source when unset
        output_directory: Directory template inside the archive
        file_mode: Octal permission string (e.g. "0644")
        filtered: Interpolate ``${...}`` expressions in the content
        line_ending: Line ending name (keep, unix, lf, dos, windows, crlf)
    """
    source: Optional[str] = None
    sources: list[str] = field(default_factory=list)
    dest_name: Optional[str] = None
    output_directory: Optional[str] = None
    file_mode: Optional[str] = None
    filtered: bool = False
    line_ending: Optional[str] = None


@dataclass(eq=False)
class FileSet:
    """A directory tree selected by include/exclude patterns."""
    directory: Optional[str] = None
    output_directory: Optional[str] = None
    includes: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    use_default_excludes: bool = True
    file_mode: Optional[str] = None
    directory_mode: Optional[str] = None
    filtered: bool = False
    line_ending: Optional[str] = None
    non_filtered_file_extensions: list[str] = field(default_factory=list)


@dataclass(eq=False)
class UnpackOptions:
    """How the content of an unpacked artifact is selected and transformed."""
    includes: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    use_default_excludes: bool = True
    filtered: bool = False
    line_ending: Optional[str] = None
    encoding: Optional[str] = None
    non_filtered_file_extensions: list[str] = field(default_factory=list)


@dataclass(eq=False)
class DependencySet:
    """Selection policy over resolved dependency artifacts.

    Attributes:
        output_directory: Directory template inside the archive
        output_file_name_mapping: Name template for each placed artifact
        includes: Artifact patterns (``group:artifact[:type[:classifier]]:version``)
        excludes: Artifact patterns to drop
        scope: Resolution scope (compile, provided, runtime, system, test)
        use_project_artifact: Also place the owning project's own artifact
        use_project_attachments: Also place the owning project's attachments
        use_transitive_dependencies: Resolve beyond direct dependencies
        use_transitive_filtering: Match patterns against the dependency trail
        use_strict_filtering: Fail when a pattern matches nothing
        unpack: Extract the artifacts instead of copying them whole
        unpack_options: Selection and filtering for extracted content
    """
    output_directory: Optional[str] = None
    output_file_name_mapping: Optional[str] = DEFAULT_OUTPUT_FILE_NAME_MAPPING
    includes: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    scope: str = "runtime"
    use_project_artifact: bool = True
    use_project_attachments: bool = False
    use_transitive_dependencies: bool = True
    use_transitive_filtering: bool = False
    use_strict_filtering: bool = False
    unpack: bool = False
    unpack_options: Optional[UnpackOptions] = None
    file_mode: Optional[str] = None
    directory_mode: Optional[str] = None


@dataclass(eq=False)
class ModuleSources:
    """Source file-sets taken from each selected sub-project.

    ``output_directory``, ``includes``, ``excludes``, ``file_mode``,
    ``directory_mode`` and ``use_default_excludes`` are the deprecated direct
    file-set fields; ``file_sets`` is the supported shape.
    """
    file_sets: list[FileSet] = field(default_factory=list)
    include_module_directory: bool = True
    exclude_sub_module_directories: bool = True
    output_directory_mapping: str = "${module.artifactId}"
    output_directory: Optional[str] = None
    includes: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    file_mode: Optional[str] = None
    directory_mode: Optional[str] = None
    use_default_excludes: bool = True


@dataclass(eq=False)
class ModuleBinaries:
    """Placement rules for each selected sub-project's artifact."""
    output_directory: Optional[str] = None
    output_file_name_mapping: str = DEFAULT_OUTPUT_FILE_NAME_MAPPING
    includes: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    attachment_classifier: Optional[str] = None
    include_dependencies: bool = True
    dependency_sets: list[DependencySet] = field(default_factory=list)
    unpack: bool = True
    unpack_options: Optional[UnpackOptions] = None
    file_mode: Optional[str] = None
    directory_mode: Optional[str] = None


@dataclass(eq=False)
class ModuleSet:
    """Selection over sibling sub-projects of the same build."""
    use_all_reactor_projects: bool = False
    include_sub_modules: bool = True
    includes: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    sources: Optional[ModuleSources] = None
    binaries: Optional[ModuleBinaries] = None


@dataclass(eq=False)
class Repository:
    """A repository mirror materialized into the staging directory."""
    output_directory: Optional[str] = None
    includes: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    include_metadata: bool = False
    scope: str = "runtime"
    file_mode: Optional[str] = None
    directory_mode: Optional[str] = None


@dataclass(eq=False)
class ContainerDescriptorHandlerConfig:
    """Names an aggregating handler and its options."""
    handler_name: str = ""
    configuration: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Assembly:
    """Root of an assembly descriptor."""
    id: str = ""
    formats: list[str] = field(default_factory=list)
    include_base_directory: bool = True
    base_directory: Optional[str] = None
    include_site_directory: bool = False
    files: list[FileItem] = field(default_factory=list)
    file_sets: list[FileSet] = field(default_factory=list)
    dependency_sets: list[DependencySet] = field(default_factory=list)
    module_sets: list[ModuleSet] = field(default_factory=list)
    repositories: list[Repository] = field(default_factory=list)
    container_descriptor_handlers: list[ContainerDescriptorHandlerConfig] = field(
        default_factory=list
    )
