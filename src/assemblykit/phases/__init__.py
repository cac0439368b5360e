"""
Assembly phases, in execution order.

run_phases() is the entry point of the pipeline: it populates the archive
writer but does not create the archive.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from assemblykit.model.descriptor import Assembly
from assemblykit.phases.base import Phase
from assemblykit.phases.dependency_sets import DependencySetsPhase
from assemblykit.phases.file_items import FileItemsPhase
from assemblykit.phases.file_sets import FileSetsPhase
from assemblykit.phases.module_sets import ModuleSetsPhase
from assemblykit.phases.repositories import RepositoriesPhase

if TYPE_CHECKING:
    from assemblykit.config import ConfigSource

logger = logging.getLogger(__name__)

PHASES: tuple[type[Phase], ...] = (
    FileItemsPhase,
    FileSetsPhase,
    ModuleSetsPhase,
    DependencySetsPhase,
    RepositoriesPhase,
)


def run_phases(assembly: Assembly, archive_writer, config_source: "ConfigSource") -> None:
    """
    Run every phase once, in order, against one writer.

    The first error aborts the remaining phases; entries already added stay
    in the writer.
    """
    for phase_cls in PHASES:
        phase = phase_cls()
        logger.debug(f"Running {phase!r} for assembly {assembly.id}")
        phase.execute(assembly, archive_writer, config_source)


__all__ = [
    "PHASES",
    "DependencySetsPhase",
    "FileItemsPhase",
    "FileSetsPhase",
    "ModuleSetsPhase",
    "Phase",
    "RepositoriesPhase",
    "run_phases",
]
