"""Path formatting, permission modes and content transformation."""
from assemblykit.format.line_endings import LineEndings, get_line_ending
from assemblykit.format.modes import UNSET, mode_to_int, to_octal_string, verify_mode_sanity
from assemblykit.format.paths import (
    Interpolator,
    evaluate_file_name_mapping,
    fix_relative_refs,
    get_distribution_name,
    get_output_directory,
)
from assemblykit.format.transform import Transformer, get_file_set_transformer

__all__ = [
    # Paths
    "Interpolator",
    "evaluate_file_name_mapping",
    "fix_relative_refs",
    "get_distribution_name",
    "get_output_directory",
    # Modes
    "UNSET",
    "mode_to_int",
    "to_octal_string",
    "verify_mode_sanity",
    # Content
    "LineEndings",
    "get_line_ending",
    "Transformer",
    "get_file_set_transformer",
]
