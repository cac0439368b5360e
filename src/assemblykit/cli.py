# src/assemblykit/cli.py
"""
assemblykit command line.

    assemblykit build --config build.yaml --descriptor assembly.yaml [--format zip] [--dry-run]
    assemblykit validate --descriptor assembly.yaml
"""
from __future__ import annotations

import argparse
import logging
from typing import Optional

from assemblykit.archiver.assembly_archiver import create_archive
from assemblykit.archiver.writers import get_archive_writer
from assemblykit.config import load_config_source
from assemblykit.errors import AssemblyError, InvalidAssemblerConfigurationError
from assemblykit.format.paths import get_distribution_name
from assemblykit.logging_config import add_logging_args, setup_logging
from assemblykit.model.io import read_assemblies

logger = logging.getLogger("assemblykit.cli")


def _setup(args: argparse.Namespace) -> None:
    setup_logging(
        name="assemblykit",
        level=args.log_level,
        log_file=args.log_file,
        quiet=args.quiet,
        debug=args.debug,
    )


# ----------------------------
# Commands
# ----------------------------
def cmd_build(args: argparse.Namespace) -> int:
    """Build every format of every descriptor; print the created paths."""
    config_source = load_config_source(args.config)
    assemblies = read_assemblies(args.descriptor, config_source)

    for assembly in assemblies:
        formats = args.format or assembly.formats
        if not formats:
            raise InvalidAssemblerConfigurationError(
                f"No formats specified in the execution parameters or the assembly descriptor "
                f"{assembly.id}."
            )

        full_name = get_distribution_name(assembly, config_source)
        for fmt in formats:
            writer = get_archive_writer(fmt, dry_run=True) if args.dry_run else None
            dest = create_archive(assembly, full_name, fmt, config_source, writer=writer)
            print(dest)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Load the descriptors (and configuration, when given) without building."""
    config_source = load_config_source(args.config) if args.config else None
    assemblies = read_assemblies(args.descriptor, config_source)
    for assembly in assemblies:
        print(f"{assembly.id}: OK ({', '.join(assembly.formats) or 'no formats'})")
    return 0


# ----------------------------
# Main / Parser
# ----------------------------
def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="assemblykit",
        description="Assemble distributable archives from assembly descriptors",
    )
    sub = ap.add_subparsers(dest="cmd")

    p_build = sub.add_parser("build", help="Build the archives of one or more descriptors")
    p_build.add_argument("--config", "-c", required=True, help="Build configuration YAML")
    p_build.add_argument(
        "--descriptor",
        "-d",
        action="append",
        required=True,
        help="Assembly descriptor YAML (repeatable)",
    )
    p_build.add_argument(
        "--format",
        "-f",
        action="append",
        default=None,
        help="Archive format overriding the descriptor's formats (repeatable)",
    )
    p_build.add_argument(
        "--dry-run",
        action="store_true",
        help="Log every entry instead of writing archives",
    )
    add_logging_args(p_build)
    p_build.set_defaults(func=cmd_build)

    p_validate = sub.add_parser("validate", help="Load and check descriptors without building")
    p_validate.add_argument(
        "--descriptor",
        "-d",
        action="append",
        required=True,
        help="Assembly descriptor YAML (repeatable)",
    )
    p_validate.add_argument("--config", "-c", default=None, help="Build configuration YAML (optional)")
    add_logging_args(p_validate)
    p_validate.set_defaults(func=cmd_validate)

    return ap


def main(argv: Optional[list[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    if not (hasattr(args, "func") and callable(args.func)):
        ap.print_help()
        return 2

    _setup(args)
    try:
        return int(args.func(args))
    except (AssemblyError, FileNotFoundError) as exc:
        logger.error(f"Assembly failed: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
