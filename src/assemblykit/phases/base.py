"""
Phase - Abstract base class for the assembly phases.

Each phase consumes one section of the assembly descriptor and drives the
add-tasks against the shared (proxied) archive writer:
- File items (10)
- File sets (20)
- Module sets (30)
- Dependency sets (40)
- Repositories (50)

The set of phases is closed, so the order is a fixed tuple rather than a
registry sorted at runtime. Phases share no state except the writer.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from assemblykit.model.descriptor import Assembly

if TYPE_CHECKING:
    from assemblykit.config import ConfigSource

logger = logging.getLogger(__name__)


class Phase(ABC):
    """
    One step of the assembly pipeline.

    Subclasses set ``order`` and implement ``execute``. Any error raised
    aborts the whole build; nothing is retried or rolled back.
    """

    order: int = 0

    @abstractmethod
    def execute(self, assembly: Assembly, archiver, config_source: "ConfigSource") -> None:
        """Add this phase's descriptor section to ``archiver``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(order={self.order})"
