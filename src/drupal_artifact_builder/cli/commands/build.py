"""Build command: create the artifact, then push it to git."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from drupal_artifact_builder.artifact import assemble
from drupal_artifact_builder.cli.context import load_config
from drupal_artifact_builder.config.paths import ARTIFACT_FOLDER
from drupal_artifact_builder.git import sync
from drupal_artifact_builder.preflight import run_preflight

logger = logging.getLogger(__name__)

FOLLOW_UP = """\
Please, complete the process with:
  - Adding a tag (if needed)
  - Merging with master (if this is a prod release)"""


def cmd_build(args: argparse.Namespace) -> int:
    """Create an artifact and push the changes to the artifact repository."""
    root = Path.cwd()
    config = load_config(args, root)
    run_preflight(config, root)

    logger.info("Generating artifact")
    assemble(config, root)

    logger.info("Adding changes to git")
    result = sync(config, root)
    if not result.pushed:
        logger.info("Artifact already up to date on %s, no changes", result.branch)

    logger.info(
        "Artifact generation finished successfully in the %s folder", ARTIFACT_FOLDER
    )
    logger.info(
        "Take into account that the operation may have run with development "
        "packages removed, so you may want to run 'composer install'"
    )
    logger.info(FOLLOW_UP)
    return 0
