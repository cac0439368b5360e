"""Line ending names accepted by file items, file-sets and unpack options."""
from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from assemblykit.errors import AssemblyFormattingError

_ANY_EOL = re.compile(rb"\r\n|\r|\n")


class LineEndings(Enum):
    """Target line ending; KEEP leaves content untouched."""

    KEEP = None
    DOS = b"\r\n"
    WINDOWS = b"\r\n"
    CRLF = b"\r\n"
    UNIX = b"\n"
    LF = b"\n"

    @property
    def is_new_line(self) -> bool:
        return self.value is not None

    def convert(self, data: bytes) -> bytes:
        """Rewrite every line terminator; no terminator is added at the end."""
        if self.value is None:
            return data
        return _ANY_EOL.sub(self.value, data)


def get_line_ending(name: Optional[str]) -> LineEndings:
    """
    Look up a line ending by name (case-insensitive).

    Raises:
        AssemblyFormattingError: If the name is unknown

    Example:
        >>> get_line_ending("crlf").value
        b'\\r\\n'
    """
    if name is None:
        return LineEndings.KEEP
    try:
        return LineEndings[name.strip().upper()]
    except KeyError as exc:
        raise AssemblyFormattingError(f"Illegal lineEnding specified: '{name}'") from exc
