"""Argument parser construction for the artifact builder CLI."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="Configuration file (default: .drupal-artifact.yml in the project root)",
    )
    parser.add_argument(
        "--repository",
        "--repo",
        help="Git repository URL / SSH the artifact is pushed to",
    )
    parser.add_argument(
        "--branch",
        "-b",
        help="Source branch name (default: current branch, or $GIT_BRANCH)",
    )
    parser.add_argument(
        "--author",
        "-a",
        help="Git commit author, 'Name <email>'",
    )
    parser.add_argument(
        "--include",
        "--extra-paths",
        action="append",
        default=[],
        metavar="PATHS",
        help="Comma separated extra paths to copy into the artifact (repeatable)",
    )


def _add_assembly_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--docroot",
        help="Name of the docroot folder (default: first of docroot, web)",
    )
    parser.add_argument(
        "--symlink",
        help="Location of a symlink to the docroot inside the artifact, "
        "e.g. public_html",
    )
    parser.add_argument(
        "--no-symlink",
        action="store_true",
        help="Do not create the docroot symlink even if one is configured",
    )


def _add_sync_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--depth",
        "--commits-number",
        type=positive_int,
        help="Commits of artifact history to fetch (default: 1)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="drupal-artifact-builder",
        description="Build deployable artifacts and push them to a git repository",
    )
    parser.add_argument(
        "--workdir",
        "-w",
        type=Path,
        help="Project root directory (default: current directory)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show debug output, including every command run",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Build command (create + git)
    build_parser_ = subparsers.add_parser(
        "build",
        aliases=["artifact"],
        help="Create an artifact and push the changes to git",
    )
    _add_common_options(build_parser_)
    _add_assembly_options(build_parser_)
    _add_sync_options(build_parser_)

    # Create command (assembly only)
    create_parser = subparsers.add_parser(
        "create",
        aliases=["assemble"],
        help="Create the artifact folder without touching git",
    )
    _add_common_options(create_parser)
    _add_assembly_options(create_parser)

    # Git command (sync only)
    git_parser = subparsers.add_parser(
        "git",
        aliases=["sync"],
        help="Commit and push an existing artifact to git",
    )
    _add_common_options(git_parser)
    git_parser.add_argument(
        "--docroot",
        help="Name of the docroot folder inside the artifact",
    )
    _add_sync_options(git_parser)

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments from argv (or sys.argv when omitted)."""
    parser = build_parser()
    if argv is None:
        return parser.parse_args()
    return parser.parse_args(list(argv))
