"""Artifact assembly: manifest, copy/prune pipeline and deployment .gitignore."""
from __future__ import annotations

from drupal_artifact_builder.artifact.assembler import (
    LEGACY_FILES,
    AssembledArtifact,
    assemble,
    symlink_target,
)
from drupal_artifact_builder.artifact.gitignore import render_gitignore
from drupal_artifact_builder.artifact.manifest import (
    DOCROOT_CANDIDATES,
    REQUIRED_PATHS,
    SYMLINK_CANDIDATES,
    TOOLING_PATHS,
    ArtifactManifest,
    detect_docroot,
)

__all__ = [
    "DOCROOT_CANDIDATES",
    "LEGACY_FILES",
    "REQUIRED_PATHS",
    "SYMLINK_CANDIDATES",
    "TOOLING_PATHS",
    "AssembledArtifact",
    "ArtifactManifest",
    "assemble",
    "detect_docroot",
    "render_gitignore",
    "symlink_target",
]
