"""Configuration resolution for artifact building.

Configuration is layered, highest precedence first:
1. CLI overrides
2. The YAML configuration file (.drupal-artifact.yml by default)
3. Built-in defaults

``include`` is the exception: file and CLI entries are merged.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from drupal_artifact_builder.config.paths import ArtifactPaths
from drupal_artifact_builder.errors import BranchNotDetectedError, ConfigFormatError

logger = logging.getLogger(__name__)

DEFAULT_COMMIT_AUTHOR = "Drupal <drupal@artifact-builder>"
DEFAULT_CLONE_DEPTH = 1
BRANCH_ENV_VAR = "GIT_BRANCH"

STRING_KEYS = ("repository", "author", "docroot", "symlink")
KNOWN_KEYS = (*STRING_KEYS, "include", "branches_map")


@dataclass(frozen=True, slots=True)
class ArtifactConfig:
    """Resolved configuration for one invocation. Never persisted."""

    repository: str | None = None
    source_branch: str | None = None
    author: str = DEFAULT_COMMIT_AUTHOR
    include: tuple[str, ...] = ()
    branches_map: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )
    docroot: str | None = None
    symlink: str | None = None
    generate_symlink: bool = True
    depth: int = DEFAULT_CLONE_DEPTH

    def __post_init__(self) -> None:
        if self.depth < 1:
            raise ValueError(f"depth must be a positive integer, got {self.depth}")

    @property
    def branch(self) -> str:
        """Target branch: the source branch passed through ``branches_map``."""
        if not self.source_branch:
            raise BranchNotDetectedError()
        return self.branches_map.get(self.source_branch, self.source_branch)

    @property
    def has_branch(self) -> bool:
        return bool(self.source_branch)


@dataclass(frozen=True, slots=True)
class ConfigOverrides:
    """Values supplied on the command line. None means "not given"."""

    repository: str | None = None
    branch: str | None = None
    author: str | None = None
    include: tuple[str, ...] = ()
    docroot: str | None = None
    symlink: str | None = None
    no_symlink: bool = False
    depth: int | None = None


@dataclass(frozen=True, slots=True)
class FileConfig:
    """Validated contents of the configuration file."""

    repository: str | None = None
    author: str | None = None
    include: tuple[str, ...] = ()
    branches_map: dict[str, str] = field(default_factory=dict)
    docroot: str | None = None
    symlink: str | None = None


def split_paths(values: Iterable[str]) -> tuple[str, ...]:
    """Flatten comma-separated path lists, dropping blanks."""
    paths = []
    for value in values:
        for part in value.split(","):
            part = part.strip()
            if part:
                paths.append(part)
    return tuple(paths)


def merge_include(*groups: Iterable[str]) -> tuple[str, ...]:
    """Union of include lists, keeping first-seen order."""
    merged: dict[str, None] = {}
    for group in groups:
        for path in group:
            normalized = path.strip().rstrip("/")
            if normalized:
                merged.setdefault(normalized, None)
    return tuple(merged)


def load_config_file(path: Path) -> FileConfig:
    """Parse and type-check the YAML configuration file.

    Raises:
        ConfigFormatError: The file is not valid YAML or a known key has
            the wrong type.
    """
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigFormatError(path, f"malformed YAML: {e}") from e
    except OSError as e:
        raise ConfigFormatError(path, f"unreadable: {e}") from e

    if raw is None:
        logger.info("Configuration file %s is empty, using defaults", path)
        return FileConfig()
    if not isinstance(raw, dict):
        raise ConfigFormatError(
            path, f"top level must be a mapping, {type(raw).__name__} given"
        )
    data: dict[str, Any] = raw

    for key in STRING_KEYS:
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            raise ConfigFormatError(
                path,
                f'"{key}" configuration key must be a string, '
                f"{type(value).__name__} given",
            )

    include_raw = data.get("include")
    if include_raw is None:
        include: tuple[str, ...] = ()
    elif isinstance(include_raw, list) and all(
        isinstance(item, str) for item in include_raw
    ):
        include = tuple(include_raw)
    else:
        raise ConfigFormatError(
            path,
            '"include" configuration key must be a list of strings, '
            f"{type(include_raw).__name__} given",
        )

    branches_raw = data.get("branches_map")
    if branches_raw is None:
        branches_map: dict[str, str] = {}
    elif isinstance(branches_raw, dict) and all(
        isinstance(key, str) and isinstance(value, str)
        for key, value in branches_raw.items()
    ):
        branches_map = dict(branches_raw)
    else:
        raise ConfigFormatError(
            path,
            '"branches_map" configuration key must be a mapping of strings, '
            f"{type(branches_raw).__name__} given",
        )

    unknown = sorted(str(key) for key in data if key not in KNOWN_KEYS)
    if unknown:
        logger.debug("Ignoring unknown configuration keys: %s", ", ".join(unknown))

    logger.debug("Loaded configuration from %s", path)
    return FileConfig(
        repository=data.get("repository"),
        author=data.get("author"),
        include=include,
        branches_map=branches_map,
        docroot=data.get("docroot"),
        symlink=data.get("symlink"),
    )


def detect_source_branch(root: Path) -> str | None:
    """Detect the branch the artifact is built from.

    Uses the checked-out branch; when HEAD is detached (typical on CI) the
    GIT_BRANCH environment variable is consulted instead.
    """
    from drupal_artifact_builder.git.service import GitService, git_available

    branch = None
    if git_available() and ArtifactPaths.for_root(root).source_git_dir.exists():
        branch = GitService(root).get_current_branch()
    if not branch:
        branch = os.environ.get(BRANCH_ENV_VAR, "").strip() or None
    return branch


def resolve_config(
    root: Path,
    overrides: ConfigOverrides | None = None,
    config_file: Path | None = None,
    *,
    branch_detector: Callable[[Path], str | None] = detect_source_branch,
) -> ArtifactConfig:
    """Build the authoritative configuration for this invocation.

    Args:
        root: Project root directory.
        overrides: CLI-supplied values.
        config_file: Configuration file path; defaults to
            ``<root>/.drupal-artifact.yml``.
        branch_detector: Used when no branch is given on the CLI.

    Raises:
        ConfigFormatError: The configuration file is malformed.
    """
    overrides = overrides or ConfigOverrides()
    path = config_file or ArtifactPaths.for_root(root).default_config_file
    if not path.is_absolute():
        path = root / path

    if path.exists():
        file_config = load_config_file(path)
    else:
        logger.info("No configuration file found at %s, using defaults", path)
        file_config = FileConfig()

    source_branch = overrides.branch or branch_detector(root)
    if source_branch:
        logger.info("Selected %s branch", source_branch)

    config = ArtifactConfig(
        repository=overrides.repository or file_config.repository,
        source_branch=source_branch,
        author=overrides.author or file_config.author or DEFAULT_COMMIT_AUTHOR,
        include=merge_include(file_config.include, overrides.include),
        branches_map=MappingProxyType(dict(file_config.branches_map)),
        docroot=overrides.docroot or file_config.docroot,
        symlink=overrides.symlink or file_config.symlink,
        generate_symlink=not overrides.no_symlink,
        depth=DEFAULT_CLONE_DEPTH if overrides.depth is None else overrides.depth,
    )
    if config.has_branch and config.branch != source_branch:
        logger.info("Branch %s maps to %s", source_branch, config.branch)
    return config
