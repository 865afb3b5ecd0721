"""Configuration management for artifact building."""
from __future__ import annotations

from drupal_artifact_builder.config.paths import (
    ARTIFACT_FOLDER,
    ARTIFACT_REPOSITORY_FOLDER,
    CONFIG_FILENAME,
    ArtifactPaths,
)
from drupal_artifact_builder.config.settings import (
    DEFAULT_COMMIT_AUTHOR,
    ArtifactConfig,
    ConfigOverrides,
    load_config_file,
    resolve_config,
)

__all__ = [
    "ARTIFACT_FOLDER",
    "ARTIFACT_REPOSITORY_FOLDER",
    "CONFIG_FILENAME",
    "DEFAULT_COMMIT_AUTHOR",
    "ArtifactConfig",
    "ArtifactPaths",
    "ConfigOverrides",
    "load_config_file",
    "resolve_config",
]
