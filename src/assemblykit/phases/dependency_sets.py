"""Dependency sets: resolved artifacts of the owning project."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from assemblykit.model.descriptor import Assembly
from assemblykit.phases.base import Phase
from assemblykit.tasks.add_dependency_sets import AddDependencySetsTask

if TYPE_CHECKING:
    from assemblykit.config import ConfigSource

logger = logging.getLogger(__name__)


class DependencySetsPhase(Phase):
    """Resolve every declared dependency-set, then place each one on its own."""

    order = 40

    def execute(self, assembly: Assembly, archiver, config_source: "ConfigSource") -> None:
        if not assembly.dependency_sets:
            return

        resolved = config_source.resolver.resolve(config_source.project, assembly.dependency_sets)
        for dependency_set, artifacts in resolved.items():
            task = AddDependencySetsTask(
                [dependency_set], artifacts, config_source.project, config_source.project_builder
            )
            task.execute(archiver, config_source)
