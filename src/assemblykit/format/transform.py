"""Content transformation for filtered entries.

A transformer is a callable ``(entry_name, data) -> bytes`` handed to the
archive writer together with a file-set; the writer calls it for every entry
it copies.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Optional

import yaml

from assemblykit.errors import AssemblyFormattingError
from assemblykit.format.line_endings import LineEndings, get_line_ending
from assemblykit.format.paths import Interpolator, env_source, main_project_source

if TYPE_CHECKING:
    from assemblykit.config import ConfigSource

logger = logging.getLogger(__name__)

Transformer = Callable[[str, bytes], bytes]

_AT_EXPRESSION = re.compile(r"@([A-Za-z0-9_.\-]+)@")
_PROPERTY_LINE = re.compile(r"^\s*([^=:\s]+)\s*[=:]?\s*(.*?)\s*$")


def read_properties(path: Path) -> dict[str, str]:
    """
    Read a filter file.

    ``.yaml``/``.yml`` files must hold a flat mapping; anything else is read as
    ``key=value`` lines with ``#`` or ``!`` comments.

    Raises:
        AssemblyFormattingError: If the file cannot be read
    """
    try:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            return {str(k): str(v) for k, v in data.items()}
        text = path.read_text(encoding="iso-8859-1")
    except (OSError, yaml.YAMLError, AttributeError) as exc:
        raise AssemblyFormattingError(f"Error loading property file '{path}': {exc}") from exc

    props: dict[str, str] = {}
    for line in text.splitlines():
        if not line.strip() or line.lstrip().startswith(("#", "!")):
            continue
        m = _PROPERTY_LINE.match(line)
        if m:
            props[m.group(1)] = m.group(2)
    return props


def build_filter_interpolator(config_source: "ConfigSource") -> Interpolator:
    """Filter files, additional properties, the owning project, then the environment."""
    file_props: dict[str, str] = {}
    for filter_file in config_source.filters:
        file_props.update(read_properties(Path(filter_file)))

    return Interpolator(
        file_props.get,
        config_source.additional_properties.get,
        main_project_source(config_source.project),
        env_source,
    )


def _is_filterable(name: str, non_filtered_extensions: Iterable[str]) -> bool:
    suffix = name.rsplit(".", 1)[-1].lower() if "." in name.rsplit("/", 1)[-1] else ""
    return suffix not in {ext.lower().lstrip(".") for ext in non_filtered_extensions}


def get_file_set_transformer(
    config_source: "ConfigSource",
    filtered: bool,
    non_filtered_extensions: Iterable[str],
    line_ending: Optional[str],
) -> Optional[Transformer]:
    """
    Build the content transformer for a file-set, file item or unpacked artifact.

    Args:
        config_source: Supplies properties, filter files and the text encoding
        filtered: Interpolate ${...} and @...@ expressions
        non_filtered_extensions: Extensions never interpolated (e.g. "jpg")
        line_ending: Line ending name, None to keep

    Returns:
        Transformer, or None when content passes through unchanged

    Raises:
        AssemblyFormattingError: If the line ending name is unknown
    """
    eol = get_line_ending(line_ending)
    if not filtered and eol is LineEndings.KEEP:
        return None

    interpolator = build_filter_interpolator(config_source) if filtered else None
    skip_extensions = list(non_filtered_extensions)

    def transform(name: str, data: bytes) -> bytes:
        if interpolator is not None and _is_filterable(name, skip_extensions):
            # Property files are latin-1 by definition
            encoding = "iso-8859-1" if name.endswith(".properties") else config_source.encoding
            text = interpolator.interpolate(data.decode(encoding))
            text = _AT_EXPRESSION.sub(
                lambda m: interpolator.lookup(m.group(1)) or m.group(0), text
            )
            data = text.encode(encoding)
        return eol.convert(data)

    logger.debug(f"Content transformer: filtered={filtered}, line ending={eol.name}")
    return transform
