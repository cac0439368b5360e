"""Helpers over the projects of a multi-project build."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from assemblykit.model.project import Artifact, ModuleProject

logger = logging.getLogger(__name__)


def _norm(path: Path) -> str:
    return os.path.normcase(os.path.abspath(str(path)))


def _is_module_of(candidate: ModuleProject, parents: Iterable[ModuleProject]) -> bool:
    target = _norm(candidate.basedir)
    for parent in parents:
        if parent.basedir is None:
            continue
        for module in parent.modules:
            if _norm(parent.basedir / module) == target:
                logger.debug(f"{candidate.id} is a module of {parent.id}")
                return True
    return False


def get_project_modules(
    project: ModuleProject,
    reactor: Iterable[ModuleProject],
    include_sub_modules: bool,
) -> list[ModuleProject]:
    """
    Sub-projects of ``project`` found among the reactor projects.

    A reactor project is a module of a parent when its basedir equals
    ``parent.basedir / <declared module name>``. With ``include_sub_modules``
    the search continues through modules of modules until nothing changes.
    The project itself is never part of the result.

    Args:
        project: Root of the search
        reactor: All projects of the build
        include_sub_modules: Follow nested modules transitively

    Returns:
        Modules in discovery order
    """
    candidates = [p for p in reactor if p is not project]
    parents: list[ModuleProject] = [project]
    modules: list[ModuleProject] = []

    changed = True
    while changed:
        changed = False
        for candidate in list(candidates):
            if candidate.basedir is None:
                logger.warning(
                    f"Cannot compute whether {candidate.id} is a module of {project.id}; "
                    "it does not have an associated base directory."
                )
                candidates.remove(candidate)
                continue
            if _is_module_of(candidate, parents if include_sub_modules else [project]):
                modules.append(candidate)
                candidates.remove(candidate)
                if include_sub_modules:
                    parents.append(candidate)
                changed = True

    return modules


def find_artifact_by_classifier(
    project: ModuleProject, classifier: str
) -> Optional[Artifact]:
    """The project's attachment carrying ``classifier``, if any."""
    for attachment in project.attached_artifacts:
        if attachment.classifier == classifier:
            return attachment
    return None
