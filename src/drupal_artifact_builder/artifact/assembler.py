"""Artifact assembly.

Builds <root>/deploy-artifact from scratch on every run:
clear, copy, symlink, prune, then write the deployment .gitignore.
Only the artifact directory is ever written to.
"""
from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from drupal_artifact_builder.artifact.gitignore import write_gitignore
from drupal_artifact_builder.artifact.manifest import (
    DOCROOT_CANDIDATES,
    ArtifactManifest,
)
from drupal_artifact_builder.config.paths import ArtifactPaths
from drupal_artifact_builder.config.settings import ArtifactConfig
from drupal_artifact_builder.errors import (
    CopyFailedError,
    NotAProjectRootError,
    SymlinkFailedError,
)

logger = logging.getLogger(__name__)

# Upstream boilerplate that has no place in a deployment
LEGACY_FILES = frozenset(
    {
        "CHANGELOG.txt",
        "COPYRIGHT.txt",
        "INSTALL.txt",
        "INSTALL.mysql.txt",
        "INSTALL.pgsql.txt",
        "INSTALL.sqlite.txt",
        "LICENSE.txt",
        "README.txt",
        "UPDATE.txt",
        "USAGE.txt",
        "PATCHES.txt",
    }
)

VCS_METADATA = ".git"


@dataclass(slots=True)
class AssembledArtifact:
    """Outcome of one assembly run."""

    artifact_dir: Path
    docroot: str
    copied: list[str] = field(default_factory=list)
    symlink: str | None = None
    removed_files: int = 0
    removed_vcs_dirs: int = 0


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def prepare_artifact_dir(artifact_dir: Path) -> None:
    """Create the artifact directory, emptying it if it already exists."""
    if artifact_dir.exists():
        logger.info("Cleaning previous artifact")
        for child in artifact_dir.iterdir():
            _remove(child)
    else:
        logger.info("Creating artifact folder")
        artifact_dir.mkdir(parents=True)


def _is_contained(relative: str) -> bool:
    """True when ``relative`` names an entry strictly below its base directory."""
    path = PurePosixPath(relative)
    return bool(path.parts) and not path.is_absolute() and ".." not in path.parts


def copy_path(root: Path, artifact_dir: Path, relative: str) -> None:
    """Archive-copy ``relative`` from ``root`` into the same place in the artifact.

    Permissions and timestamps are kept and nested symlinks stay symlinks.

    Raises:
        CopyFailedError: The path is missing, outside the root, or unreadable.
    """
    source = root / relative
    if not _is_contained(relative):
        raise CopyFailedError(relative, "path must be relative to the project root")
    if not (source.exists() or source.is_symlink()):
        raise CopyFailedError(relative, "no such file or directory")

    destination = artifact_dir / relative
    logger.info("Copying %s...", relative)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        if source.is_symlink():
            os.symlink(os.readlink(source), destination)
        elif source.is_dir():
            shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)
        else:
            shutil.copy2(source, destination)
    except (OSError, shutil.Error) as e:
        raise CopyFailedError(relative, str(e)) from e


def symlink_target(docroot: str, symlink: str) -> str:
    """Relative link target for ``symlink`` pointing at ``docroot``.

    A link at ``a/b/public`` sits two levels below the artifact root, so it
    needs ``../../<docroot>``.
    """
    levels = len(PurePosixPath(symlink).parts) - 1
    return "../" * levels + docroot


def check_symlink_location(docroot: str, symlink: str) -> None:
    """Reject symlink locations that would replace something outside the link.

    The location must sit inside the artifact and must not overlap the docroot:
    replacing the docroot (or a directory holding it) would delete the copy the
    link is meant to point at.

    Raises:
        SymlinkFailedError: The location is unusable.
    """
    target = symlink_target(docroot, symlink)
    if not _is_contained(symlink):
        raise SymlinkFailedError(
            symlink, target, "location must be relative to the artifact root"
        )
    link = PurePosixPath(symlink)
    docroot_path = PurePosixPath(docroot)
    if link == docroot_path or docroot_path in link.parents:
        raise SymlinkFailedError(
            symlink, target, "location must not be the docroot or inside it"
        )
    if link in docroot_path.parents:
        raise SymlinkFailedError(
            symlink, target, "location must not contain the docroot"
        )


def create_docroot_symlink(artifact_dir: Path, docroot: str, symlink: str) -> str:
    """Create ``symlink`` inside the artifact pointing at the docroot.

    Anything already at the symlink location (e.g. a copied ``public_html``
    directory) is replaced.

    Raises:
        SymlinkFailedError: The location is unusable or the link could not be
            created.
    """
    check_symlink_location(docroot, symlink)
    target = symlink_target(docroot, symlink)
    link = artifact_dir / symlink
    try:
        link.parent.mkdir(parents=True, exist_ok=True)
        if link.exists() or link.is_symlink():
            _remove(link)
        os.symlink(target, link)
    except OSError as e:
        raise SymlinkFailedError(symlink, target, str(e)) from e
    logger.info("Symlink generated from %s to %s", target, symlink)
    return target


def purge_legacy_files(artifact_dir: Path) -> int:
    """Delete legacy documentation files anywhere below ``artifact_dir``."""
    removed = 0
    for dirpath, _dirnames, filenames in os.walk(artifact_dir):
        for filename in filenames:
            if filename in LEGACY_FILES:
                (Path(dirpath) / filename).unlink()
                removed += 1
                logger.debug("Removed %s", Path(dirpath, filename))
    return removed


def strip_nested_vcs(artifact_dir: Path) -> int:
    """Remove .git entries copied along with contrib modules or vendor packages.

    The artifact repository would otherwise record them as submodules.
    """
    removed = 0
    for dirpath, dirnames, filenames in os.walk(artifact_dir):
        if VCS_METADATA in dirnames:
            dirnames.remove(VCS_METADATA)
            _remove(Path(dirpath) / VCS_METADATA)
            removed += 1
        if VCS_METADATA in filenames:
            (Path(dirpath) / VCS_METADATA).unlink()
            removed += 1
    return removed


def assemble(config: ArtifactConfig, root: Path) -> AssembledArtifact:
    """Build the artifact directory for the project at ``root``.

    Raises:
        NotAProjectRootError: No docroot could be detected.
        CopyFailedError: A required path or include could not be copied.
        SymlinkFailedError: The docroot symlink could not be created.
    """
    paths = ArtifactPaths.for_root(root)
    manifest = ArtifactManifest.build(paths.root, config)
    if manifest.docroot is None:
        raise NotAProjectRootError(paths.root, DOCROOT_CANDIDATES)
    if config.generate_symlink and config.symlink:
        check_symlink_location(manifest.docroot, config.symlink)

    artifact_dir = paths.artifact_dir
    prepare_artifact_dir(artifact_dir)
    result = AssembledArtifact(artifact_dir=artifact_dir, docroot=manifest.docroot)

    logger.info("Starting source copy to artifact folder")
    for relative in manifest.copy_plan():
        copy_path(paths.root, artifact_dir, relative)
        result.copied.append(relative)

    if config.generate_symlink and config.symlink:
        create_docroot_symlink(artifact_dir, manifest.docroot, config.symlink)
        result.symlink = config.symlink

    result.removed_files = purge_legacy_files(artifact_dir)
    result.removed_vcs_dirs = strip_nested_vcs(artifact_dir)
    logger.info(
        "Removed %d legacy file(s) and %d nested .git entries",
        result.removed_files,
        result.removed_vcs_dirs,
    )

    write_gitignore(artifact_dir, manifest.docroot)
    logger.info("Artifact generated successfully in %s", artifact_dir)
    return result
