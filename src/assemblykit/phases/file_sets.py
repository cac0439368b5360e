"""File sets: directory trees declared at the top of the descriptor."""
from __future__ import annotations

from typing import TYPE_CHECKING

from assemblykit.model.descriptor import Assembly
from assemblykit.phases.base import Phase
from assemblykit.tasks.add_file_sets import AddFileSetsTask

if TYPE_CHECKING:
    from assemblykit.config import ConfigSource


class FileSetsPhase(Phase):
    order = 20

    def execute(self, assembly: Assembly, archiver, config_source: "ConfigSource") -> None:
        AddFileSetsTask(assembly.file_sets).execute(archiver, config_source)
