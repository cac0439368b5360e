"""Filtering and project helpers."""
from assemblykit.utils.filters import (
    PatternFilter,
    filter_artifacts,
    filter_projects,
    new_scope_filter,
)
from assemblykit.utils.projects import find_artifact_by_classifier, get_project_modules

__all__ = [
    "PatternFilter",
    "filter_artifacts",
    "filter_projects",
    "new_scope_filter",
    "find_artifact_by_classifier",
    "get_project_modules",
]
