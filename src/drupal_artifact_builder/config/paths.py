"""Centralized path management for artifact building.

All locations are derived from the project root (the directory holding
composer.json):
- Artifact: <root>/deploy-artifact
- Scratch clone: <root>/deploy-artifact-repository
- Config file: <root>/.drupal-artifact.yml
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

ARTIFACT_FOLDER = "deploy-artifact"
ARTIFACT_REPOSITORY_FOLDER = "deploy-artifact-repository"
CONFIG_FILENAME = ".drupal-artifact.yml"
HASH_FILENAME = "hash.txt"


@dataclass(frozen=True, slots=True)
class ArtifactPaths:
    """Filesystem locations used by one invocation."""

    root: Path

    @classmethod
    def for_root(cls, root: Path) -> "ArtifactPaths":
        return cls(root=root.resolve())

    @property
    def artifact_dir(self) -> Path:
        """Directory the artifact is assembled into."""
        return self.root / ARTIFACT_FOLDER

    @property
    def scratch_clone_dir(self) -> Path:
        """Temporary clone of the artifact remote."""
        return self.root / ARTIFACT_REPOSITORY_FOLDER

    @property
    def default_config_file(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def source_git_dir(self) -> Path:
        return self.root / ".git"

    def hash_file(self, docroot: str) -> Path:
        """Provenance file inside the artifact docroot."""
        return self.artifact_dir / docroot / HASH_FILENAME
