"""Git command: commit and push an existing artifact."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from drupal_artifact_builder.cli.context import load_config
from drupal_artifact_builder.git import sync
from drupal_artifact_builder.preflight import run_preflight

logger = logging.getLogger(__name__)


def cmd_sync(args: argparse.Namespace) -> int:
    """Synchronize the generated artifact changes into git."""
    root = Path.cwd()
    config = load_config(args, root)
    run_preflight(config, root)

    result = sync(config, root)
    if result.pushed:
        logger.info("Artifact pushed to %s (%s)", config.repository, result.branch)
    else:
        logger.info("Artifact already up to date on %s, no changes", result.branch)
    return 0
