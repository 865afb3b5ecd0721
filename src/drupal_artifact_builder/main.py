"""Main module for the artifact builder."""

import argparse
import logging
import os
import sys

from drupal_artifact_builder.cli import run

LOG_LEVEL_ENV_VAR = "ARTIFACT_BUILDER_LOG_LEVEL"
PROGRESS_FORMAT = "[-->] %(message)s"
DEBUG_FORMAT = "[-->] %(levelname)s %(name)s: %(message)s"


def setup_logging(args: argparse.Namespace) -> None:
    """Configure console logging for progress lines."""
    if getattr(args, "verbose", False):
        level = logging.DEBUG
    else:
        # Set level from env var, default to INFO
        level_name = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
        level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=level,
        format=DEBUG_FORMAT if level <= logging.DEBUG else PROGRESS_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def main() -> None:
    """Entry point for the artifact builder."""
    sys.exit(run(configure_logging=setup_logging))


if __name__ == "__main__":
    main()
