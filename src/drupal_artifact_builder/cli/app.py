"""CLI orchestration and command routing."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from drupal_artifact_builder.cli.commands import cmd_build, cmd_create, cmd_sync
from drupal_artifact_builder.cli.parser import build_parser, parse_args
from drupal_artifact_builder.errors import ArtifactBuilderError
from drupal_artifact_builder.runtime.workdir import preserve_cwd

logger = logging.getLogger(__name__)

COMMAND_HANDLERS: dict[str, Callable[[argparse.Namespace], int]] = {
    "build": cmd_build,
    "artifact": cmd_build,
    "create": cmd_create,
    "assemble": cmd_create,
    "git": cmd_sync,
    "sync": cmd_sync,
}


def dispatch(args: argparse.Namespace) -> int:
    """Route parsed args to the correct command handler.

    Returns the process exit code; handled failures are logged, not raised.
    """
    handler = COMMAND_HANDLERS.get(args.command) if args.command else None
    if handler is None:
        build_parser().print_help()
        return 2

    try:
        return handler(args)
    except ArtifactBuilderError as e:
        logger.error("%s", e)
        logger.debug("Command %s failed", args.command, exc_info=True)
        return 1


def run(
    argv: Sequence[str] | None = None,
    *,
    configure_logging: Callable[[argparse.Namespace], None] | None = None,
) -> int:
    """Parse args, apply shared CLI setup, and execute command."""
    args = parse_args(argv)

    if configure_logging is not None:
        configure_logging(args)

    workdir = args.workdir.resolve() if args.workdir else None
    if workdir is not None and not workdir.is_dir():
        logger.error("Working directory %s does not exist", workdir)
        return 1

    with preserve_cwd(workdir):
        logger.debug("Working directory: %s", Path.cwd())
        return dispatch(args)
