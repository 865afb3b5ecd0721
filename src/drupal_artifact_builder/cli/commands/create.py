"""Create command: assemble the artifact folder only."""

from __future__ import annotations

import argparse
from pathlib import Path

from drupal_artifact_builder.artifact import assemble
from drupal_artifact_builder.cli.context import load_config
from drupal_artifact_builder.preflight import run_preflight


def cmd_create(args: argparse.Namespace) -> int:
    """Create the artifact from an already set up codebase."""
    root = Path.cwd()
    config = load_config(args, root)
    run_preflight(config, root)
    assemble(config, root)
    return 0
