"""Octal permission modes.

-1 is the "unset" sentinel throughout the pipeline: a writer given -1 falls
back to its ambient or default mode.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from assemblykit.errors import AssemblyFormattingError

logger = logging.getLogger(__name__)

UNSET = -1

_OCTAL_DIGITS = re.compile(r"[0-7]+")

# (user, group, world) bits per permission class
_PERMISSIONS = (
    ("read", 0o400, 0o040, 0o004),
    ("write", 0o200, 0o020, 0o002),
    ("execute/list", 0o100, 0o010, 0o001),
)


def mode_to_int(mode: Optional[str]) -> int:
    """
    Parse an octal mode string.

    Args:
        mode: Octal string such as "0755"; None or blank means unset

    Returns:
        Numeric mode, or -1 when unset

    Raises:
        AssemblyFormattingError: If the string is not a base-8 number

    Example:
        >>> mode_to_int("0644")
        420
        >>> mode_to_int(None)
        -1
    """
    if mode is None or not str(mode).strip():
        return UNSET

    text = str(mode).strip()
    if not _OCTAL_DIGITS.fullmatch(text):
        raise AssemblyFormattingError(
            f"Failed to parse mode as an octal number: '{mode}'"
        )
    value = int(text, 8)

    verify_mode_sanity(value)
    return value


def to_octal_string(mode: int) -> str:
    """Inverse of mode_to_int for valid modes (no leading zero)."""
    return format(mode, "o")


def verify_mode_sanity(mode: int, strict: bool = False) -> bool:
    """
    Check a mode for permission combinations that make no sense.

    For each of read, write and execute/list the mode is insane when the group
    has an access the user lacks, the world has an access the user lacks, or
    the world has an access the group lacks.

    Args:
        mode: Numeric mode
        strict: Raise instead of warning

    Returns:
        True if the mode is sane

    Raises:
        AssemblyFormattingError: If strict and the mode is insane
    """
    messages: list[str] = []
    for name, user, group, world in _PERMISSIONS:
        if mode & group and not mode & user:
            messages.append(f"Group has {name} access, but user does not.")
        if mode & world and not mode & user:
            messages.append(f"World has {name} access, but user does not.")
        if mode & world and not mode & group:
            messages.append(f"World has {name} access, but group does not.")

    if not messages:
        return True

    report = f"The mode: {to_octal_string(mode)} contains nonsensical permissions:\n- " + "\n- ".join(
        messages
    )
    if strict:
        raise AssemblyFormattingError(report)
    logger.warning(report)
    return False
