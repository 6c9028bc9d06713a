"""CLI entry point for treewalk, the I/O boundary."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from treewalk import TreewalkError
from treewalk.errors import WalkError
from treewalk.events import Event
from treewalk.formatter.text import TextOptions, format_events
from treewalk.provider import ConfinedPolicy, OsFileSystem
from treewalk.walker import FileTreeWalker, WalkConfig


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser.

    Returns:
        argparse.ArgumentParser: Configured parser for the ``treewalk`` command.
    """
    parser = argparse.ArgumentParser(
        prog="treewalk",
        description="walk a directory tree depth-first and list every entry",
    )
    parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Root directory to walk (default: current directory)",
    )

    # walk policy
    parser.add_argument(
        "--maxdepth",
        "--max-depth",
        type=int,
        default=None,
        dest="max_depth",
        help="Expand only directories fewer than N levels below the root",
    )
    parser.add_argument(
        "--followlinks",
        "--follow-links",
        action="store_true",
        dest="follow_links",
        help="Report and descend into symbolic link targets",
    )
    parser.add_argument(
        "--ignore-access-errors",
        "--ignoresecurityexception",
        action="store_true",
        dest="ignore_access_errors",
        help="Skip entries refused by the access policy instead of aborting",
    )
    parser.add_argument(
        "--use-attribute-cache",
        "--useattributecache",
        action="store_true",
        dest="use_attribute_cache",
        help="Reuse attributes gathered while listing directories",
    )
    parser.add_argument(
        "--confine",
        action="append",
        default=[],
        dest="confine_roots",
        metavar="DIR",
        help="Refuse any access outside DIR (can be specified multiple times)",
    )
    parser.add_argument(
        "--sorted",
        action="store_true",
        dest="sort_entries",
        help="List directory children by name instead of filesystem order",
    )

    # output
    parser.add_argument(
        "--csv",
        action="store_true",
        dest="csv_mode",
        help="Output as CSV (type, path, depth, error)",
    )
    parser.add_argument(
        "--relative",
        action="store_true",
        help="Print paths relative to the root directory",
    )
    parser.add_argument(
        "--noreport",
        "--no-report",
        action="store_true",
        dest="no_report",
        help="Omit the summary report at the end",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        dest="output_file",
        help="Write output to a file instead of stdout",
    )

    log_level_group = parser.add_mutually_exclusive_group()
    log_level_group.add_argument(
        "-v",
        "--verbose",
        action="store_const",
        dest="log_level",
        const=logging.DEBUG,
        help="Enable verbose (DEBUG) logging",
    )
    log_level_group.add_argument(
        "-q",
        "--quiet",
        action="store_const",
        dest="log_level",
        const=logging.ERROR,
        help="Silence all logging except errors",
    )
    return parser


def run_treewalk(argv: list[str] | None = None) -> str:
    """Run treewalk with provided CLI args and return formatted output.

    This function is intentionally side-effect free and is the primary
    test target for CLI behavior.

    Args:
        argv: Command-line argument list without program name. If ``None``,
            uses process arguments via ``argparse`` defaults.

    Returns:
        str: Final rendered output.

    Raises:
        TreewalkError: On any user-facing validation or walk error.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    return _run_with_args(args)


def _resolve_root(directory: str) -> Path:
    """Validate the root argument.

    The path is made absolute but links in it are kept, so events show
    the tree as the user named it.

    Raises:
        TreewalkError: If directory does not exist or is not a directory.
    """
    root = Path(directory).absolute()
    if not root.is_dir():
        raise TreewalkError(f"'{directory}' is not a directory")
    return root


def _build_config(args: argparse.Namespace) -> WalkConfig:
    if args.max_depth is not None and args.max_depth < 0:
        raise TreewalkError("Invalid max depth, must be 0 or greater.")
    return WalkConfig(
        max_depth=args.max_depth,
        follow_links=args.follow_links,
        ignore_access_errors=args.ignore_access_errors,
        use_attribute_cache=args.use_attribute_cache,
    )


def _build_filesystem(args: argparse.Namespace) -> OsFileSystem:
    policy = ConfinedPolicy(args.confine_roots) if args.confine_roots else None
    return OsFileSystem(policy, sort=args.sort_entries)


def _format_output(args: argparse.Namespace, root: Path, events: list[Event]) -> str:
    """Render walk events using the selected formatter."""
    if args.csv_mode:
        from treewalk.formatter.csv_ import (
            DEFAULT_COLUMNS,
            TARGET_COLUMN,
            CsvOptions,
            format_csv,
        )

        columns = list(DEFAULT_COLUMNS)
        if args.follow_links:
            columns.append(TARGET_COLUMN)
        return format_csv(events, CsvOptions(root_path=root, columns=columns))

    text_opts = TextOptions(
        no_report=args.no_report,
        root_path=root if args.relative else None,
    )
    return format_events(events, text_opts)


def _run_with_args(args: argparse.Namespace) -> str:
    """Run the walk/format pipeline for parsed arguments.

    Raises:
        TreewalkError: On any user-facing validation or walk error.
    """
    root = _resolve_root(args.directory)
    config = _build_config(args)
    walker = FileTreeWalker(config, _build_filesystem(args))

    try:
        events = list(walker.walk(root))
    except WalkError as exc:
        raise TreewalkError(str(exc)) from exc

    return _format_output(args, root, events)


def _configure_logging(level: int | None) -> None:
    logging.basicConfig(
        level=level if level is not None else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
    )


def main() -> None:
    """Run the CLI entry point with process arguments.

    Parses args exactly once and writes output to stdout or ``-o`` file.
    Exits with code 1 on user-facing errors.
    """
    parser = build_parser()
    args = parser.parse_args()  # single parse
    _configure_logging(args.log_level)

    try:
        output = _run_with_args(args)
    except TreewalkError as exc:
        sys.stderr.write(f"treewalk: {exc}\n")
        sys.exit(1)

    if args.output_file:
        try:
            Path(args.output_file).write_text(
                output + "\n", encoding="utf-8", newline=""
            )
        except OSError as exc:
            sys.stderr.write(f"treewalk: cannot write to '{args.output_file}': {exc}\n")
            sys.exit(1)
    else:
        sys.stdout.write(output + "\n")
