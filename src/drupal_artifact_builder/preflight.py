"""Checks that must pass before assembly or sync touch anything.

The clean-tree check only looks at artifact-relevant paths, so scratch files
elsewhere in the working copy never block a build. It is skipped entirely
when git or the source .git directory is missing; in that case nothing stops
uncommitted local changes from being shipped.
"""
from __future__ import annotations

import logging
from pathlib import Path

from drupal_artifact_builder.artifact.manifest import (
    CONFIG_DIRECTORY,
    DEPENDENCY_MANIFEST,
    DOCROOT_CANDIDATES,
    ArtifactManifest,
)
from drupal_artifact_builder.config.paths import ArtifactPaths
from drupal_artifact_builder.config.settings import ArtifactConfig
from drupal_artifact_builder.errors import DirtyTreeError, NotAProjectRootError
from drupal_artifact_builder.git.service import GitService, git_available

logger = logging.getLogger(__name__)


def assert_root_location(root: Path, docroot: str | None = None) -> None:
    """Fail unless ``root`` holds a docroot, config/ and composer.json.

    Raises:
        NotAProjectRootError: Any of them is missing.
    """
    missing = []
    docroots = (docroot,) if docroot else DOCROOT_CANDIDATES
    if not any((root / candidate).exists() for candidate in docroots):
        missing.append(" or ".join(docroots))
    for path in (CONFIG_DIRECTORY, DEPENDENCY_MANIFEST):
        if not (root / path).exists():
            missing.append(path)
    if missing:
        raise NotAProjectRootError(root, missing)


def assert_repository_is_clean(
    root: Path,
    manifest: ArtifactManifest,
    *,
    git: GitService | None = None,
) -> None:
    """Fail when artifact-relevant paths have uncommitted or untracked changes.

    Raises:
        DirtyTreeError: With the offending paths.
    """
    if not git_available():
        logger.warning("git not found, skipping clean repository check")
        return
    if not ArtifactPaths.for_root(root).source_git_dir.exists():
        logger.warning(
            "%s is not a git checkout, skipping clean repository check", root
        )
        return

    git = git or GitService(root)
    relevant = manifest.relevant_paths()
    changed = git.changed_paths(relevant)
    if changed:
        raise DirtyTreeError(changed)
    logger.debug("Repository is clean for %d artifact path(s)", len(relevant))


def run_preflight(config: ArtifactConfig, root: Path) -> ArtifactManifest:
    """Run the root-location and clean-tree checks.

    Returns the manifest the checks were computed from.
    """
    assert_root_location(root, config.docroot)
    manifest = ArtifactManifest.build(root, config)
    assert_repository_is_clean(root, manifest)
    return manifest
