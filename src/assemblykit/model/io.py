"""
YAML descriptor reader.

- Reads one or several assembly descriptors (YAML)
- Converts nested mappings and lists into typed dataclasses
- Ignores unknown keys so descriptors can be slightly ahead of code
- Warns (never fails) on duplicate assembly ids
"""

from __future__ import annotations

import logging
import typing
from dataclasses import is_dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, TYPE_CHECKING

import yaml

from assemblykit.errors import InvalidAssemblerConfigurationError
from assemblykit.model.descriptor import Assembly, FileSet

if TYPE_CHECKING:
    from assemblykit.config import ConfigSource

logger = logging.getLogger(__name__)


def _unwrap_optional(typ: Any) -> Any:
    if typing.get_origin(typ) is typing.Union:
        args = [a for a in typing.get_args(typ) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return typ


def _convert(value: Any, typ: Any) -> Any:
    typ = _unwrap_optional(typ)
    if value is None:
        return None
    if is_dataclass(typ):
        return _as(value, typ)
    if typing.get_origin(typ) is list and isinstance(value, list):
        (item_type,) = typing.get_args(typ) or (Any,)
        return [_convert(v, item_type) for v in value]
    if typ is str and not isinstance(value, str):
        # YAML reads 1.0 as a float
        return str(value)
    return value


def _as(obj: Any, cls: Any):
    """
    Minimal recursive 'constructor' to turn nested dicts into dataclass instances.
    Ignores unknown keys so YAML can be slightly ahead of code.
    """
    if obj is None or isinstance(obj, cls):
        return obj if obj is not None else cls()
    if not isinstance(obj, dict):
        raise InvalidAssemblerConfigurationError(
            f"Expected a mapping for {cls.__name__}, got {type(obj).__name__}"
        )
    hints = typing.get_type_hints(cls)
    unknown = sorted(set(obj) - set(hints))
    if unknown:
        logger.debug(f"Ignoring unknown {cls.__name__} keys: {unknown}")
    for key, value in obj.items():
        # YAML reads an unquoted 0755 as the integer 493
        if key.endswith("_mode") and isinstance(value, int) and not isinstance(value, bool):
            raise InvalidAssemblerConfigurationError(
                f"{cls.__name__}.{key} must be a quoted octal string such as \"0755\", got {value}"
            )
    kwargs = {k: _convert(v, hints[k]) for k, v in obj.items() if k in hints}
    return cls(**kwargs)


def parse_assembly(data: dict[str, Any], *, source: str = "<memory>") -> Assembly:
    """
    Build an Assembly from an already-loaded mapping.

    Raises:
        InvalidAssemblerConfigurationError: If the mapping is malformed or lacks an id
    """
    assembly = _as(data or {}, Assembly)
    if not assembly.id or not assembly.id.strip():
        raise InvalidAssemblerConfigurationError(
            f"Assembly descriptor {source} has no id"
        )
    return assembly


def include_site_in_assembly(assembly: Assembly, config_source: "ConfigSource") -> None:
    """Add the generated site directory as a file-set placed under /site."""
    site_dir = config_source.site_directory
    if site_dir is None or not Path(site_dir).exists():
        raise InvalidAssemblerConfigurationError(
            "site did not exist in the target directory - "
            "please generate the site before creating the assembly"
        )

    logger.info(f"Adding site directory to assembly : {site_dir}")
    assembly.file_sets.append(FileSet(directory=str(site_dir), output_directory="/site"))


def read_assembly(
    path: str | Path, config_source: Optional["ConfigSource"] = None
) -> Assembly:
    """
    Load one descriptor file.

    Args:
        path: YAML descriptor path
        config_source: Needed only when the descriptor includes the site directory

    Returns:
        Parsed Assembly

    Raises:
        InvalidAssemblerConfigurationError: If the file is missing or malformed
    """
    p = Path(path)
    if not p.is_file():
        raise InvalidAssemblerConfigurationError(f"Assembly descriptor not found: {p}")

    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise InvalidAssemblerConfigurationError(
            f"Error reading descriptor: {p}: {exc}"
        ) from exc

    assembly = parse_assembly(data, source=str(p))
    if assembly.include_site_directory and config_source is not None:
        include_site_in_assembly(assembly, config_source)
    return assembly


def read_assemblies(
    paths: Iterable[str | Path], config_source: Optional["ConfigSource"] = None
) -> list[Assembly]:
    """Load several descriptors, warning when an id is used more than once."""
    assemblies = [read_assembly(p, config_source) for p in paths]
    if not assemblies:
        raise InvalidAssemblerConfigurationError("No assembly descriptors found.")

    ids: set[str] = set()
    for assembly in assemblies:
        if assembly.id in ids:
            logger.warning(f"The assembly id {assembly.id} is used more than once.")
        ids.add(assembly.id)
    return assemblies
