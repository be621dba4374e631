"""CLI entry point for cloak — I/O boundary only."""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from typing import TextIO

from cloak import CloakError, __version__
from cloak.engine import RunOptions, run
from cloak.filter import ObjectType
from cloak.hide import Hider
from cloak.report import Reporter


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser.

    Returns:
        argparse.ArgumentParser: Configured parser for the ``cloak`` command.
    """
    parser = argparse.ArgumentParser(
        prog="cloak",
        description="Hide files and folders matching glob and regex patterns",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        default=["."],
        metavar="PATH",
        help="Directories to hide files and folders in (default: current directory)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    # modes
    parser.add_argument(
        "-r",
        "--recursive",
        action="store_true",
        help="Search and watch subdirectories too",
    )
    parser.add_argument(
        "-w",
        "--watch",
        action="store_true",
        help="Keep running and hide new matches as they appear",
    )
    parser.add_argument(
        "-m",
        "--test",
        "--dry-run",
        action="store_true",
        dest="dry_run",
        help="Only print what would be hidden",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Explain every skipped entry",
    )

    # patterns
    parser.add_argument(
        "-p",
        "--pattern",
        action="append",
        default=None,
        dest="include_globs",
        help="Glob pattern selecting entries to hide (can be specified multiple times)",
    )
    parser.add_argument(
        "-x",
        "--exclude",
        action="append",
        default=None,
        dest="exclude_globs",
        help="Glob pattern protecting entries from hiding; checked first",
    )
    parser.add_argument(
        "-g",
        "--regex",
        action="append",
        default=None,
        dest="include_regexes",
        help="Regex selecting entries to hide, searched in the full path",
    )
    parser.add_argument(
        "-e",
        "--regex-exclude",
        action="append",
        default=None,
        dest="exclude_regexes",
        help="Regex protecting entries from hiding, searched in the full path",
    )
    parser.add_argument(
        "--exclude-from",
        action="append",
        default=None,
        dest="ignore_files",
        metavar="FILE",
        help="Read .gitignore-style exclude patterns from FILE",
    )

    # filters and resources
    parser.add_argument(
        "-t",
        "--types",
        action="append",
        default=None,
        choices=[t.value for t in ObjectType],
        help="Object type to hide (can be specified multiple times; default: all)",
    )
    parser.add_argument(
        "-j",
        "--threads",
        type=int,
        default=None,
        dest="workers",
        help="Worker thread count (default: number of logical cores)",
    )
    return parser


def _validate_workers(workers: int | None) -> None:
    """Validate the ``--threads`` value.

    Raises:
        CloakError: If the value is not a positive integer.
    """
    if workers is not None and workers < 1:
        raise CloakError("--threads must be a positive integer")


def _optional_tuple(values: list[str] | None) -> tuple[str, ...] | None:
    return tuple(values) if values else None


def options_from_args(args: argparse.Namespace) -> RunOptions:
    """Translate parsed arguments into :class:`RunOptions`.

    Raises:
        CloakError: On invalid values.
    """
    _validate_workers(args.workers)
    accepted = (
        frozenset(ObjectType(value) for value in args.types) if args.types else None
    )
    return RunOptions(
        roots=tuple(args.paths),
        recursive=args.recursive,
        watch=args.watch,
        dry_run=args.dry_run,
        verbose=args.verbose,
        include_globs=_optional_tuple(args.include_globs),
        exclude_globs=_optional_tuple(args.exclude_globs),
        include_regexes=_optional_tuple(args.include_regexes),
        exclude_regexes=_optional_tuple(args.exclude_regexes),
        ignore_files=_optional_tuple(args.ignore_files),
        accepted_types=accepted,
        workers=args.workers,
    )


def _run_with_args(
    args: argparse.Namespace,
    out: TextIO,
    err: TextIO,
    hider: Hider | None = None,
    stop: threading.Event | None = None,
) -> Reporter:
    """Run the selected mode for parsed arguments.

    Raises:
        CloakError: On any configuration or watcher error.
    """
    options = options_from_args(args)
    reporter = Reporter(out, err, verbose=options.verbose)
    run(options, reporter, hider=hider, stop=stop)
    return reporter


def run_cloak(
    argv: list[str] | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
    hider: Hider | None = None,
    stop: threading.Event | None = None,
) -> Reporter:
    """Run cloak with provided CLI args.

    This is the primary test target for CLI behavior.

    Args:
        argv: Command-line argument list without program name.
        out: Success stream. Defaults to ``sys.stdout``.
        err: Diagnostic stream. Defaults to ``sys.stderr``.
        hider: Hide primitive override.
        stop: Ends watch mode when set.

    Returns:
        Reporter: The reporter, with per-status counts.

    Raises:
        CloakError: On any configuration or watcher error.
    """
    args = build_parser().parse_args(argv)
    return _run_with_args(args, out or sys.stdout, err or sys.stderr, hider, stop)


def main() -> None:
    """Run the CLI entry point with process arguments.

    Parses args exactly once. Exits with code 1 on configuration or
    watcher errors and 130 on interrupt; per-entry errors do not change
    the exit status.
    """
    parser = build_parser()
    args = parser.parse_args()  # single parse
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="cloak: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        _run_with_args(args, sys.stdout, sys.stderr)
    except CloakError as exc:
        sys.stderr.write(f"cloak: {exc}\n")
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)
