"""Shared context helpers for CLI command modules."""

from __future__ import annotations

import argparse
from pathlib import Path

from drupal_artifact_builder.config.settings import (
    ArtifactConfig,
    ConfigOverrides,
    resolve_config,
    split_paths,
)


def overrides_from_args(args: argparse.Namespace) -> ConfigOverrides:
    """Collect CLI-supplied configuration values from parsed args."""
    return ConfigOverrides(
        repository=getattr(args, "repository", None),
        branch=getattr(args, "branch", None),
        author=getattr(args, "author", None),
        include=split_paths(getattr(args, "include", None) or []),
        docroot=getattr(args, "docroot", None),
        symlink=getattr(args, "symlink", None),
        no_symlink=bool(getattr(args, "no_symlink", False)),
        depth=getattr(args, "depth", None),
    )


def load_config(args: argparse.Namespace, root: Path | None = None) -> ArtifactConfig:
    """Resolve configuration for the project at ``root`` (default: cwd)."""
    return resolve_config(
        root or Path.cwd(),
        overrides_from_args(args),
        getattr(args, "config", None),
    )
