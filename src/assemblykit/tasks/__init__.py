"""Add-tasks: turn one resolved entity into archive writer calls."""
from assemblykit.tasks.add_artifact import AddArtifactTask
from assemblykit.tasks.add_dependency_sets import AddDependencySetsTask
from assemblykit.tasks.add_directory import AddDirectoryTask
from assemblykit.tasks.add_file_sets import AddFileSetsTask

__all__ = [
    "AddArtifactTask",
    "AddDependencySetsTask",
    "AddDirectoryTask",
    "AddFileSetsTask",
]
