"""Synchronize an assembled artifact into the artifact repository.

The steps run strictly in order, each depending on the filesystem state the
previous one left behind:

1. Branch discovery on the remote.
2. History transplant: shallow-clone the remote into a scratch directory and
   move only its .git into the artifact. The remote's file tree is never
   checked out inside the artifact.
3. Provenance stamp: <docroot>/hash.txt with the source HEAD revision.
4. Add everything, then force-add the entry points the .gitignore rules
   would otherwise hide.
5. Commit and push, unless nothing is staged.
"""
from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from drupal_artifact_builder.artifact.manifest import (
    DOCROOT_CANDIDATES,
    detect_docroot,
)
from drupal_artifact_builder.config.paths import ArtifactPaths
from drupal_artifact_builder.config.settings import ArtifactConfig
from drupal_artifact_builder.errors import (
    ArtifactMissingError,
    GitUnavailableError,
    NotAProjectRootError,
    RepositoryNotConfiguredError,
)
from drupal_artifact_builder.git.service import GitService, git_available
from drupal_artifact_builder.runtime.workdir import preserve_cwd

logger = logging.getLogger(__name__)

COMMIT_MESSAGE = "Artifact commit by artifact generation script"

# Docroot files Drupal scaffolding usually lists in a nested .gitignore but
# which the site cannot run without.
FORCE_ADD_DOCROOT_FILES = (
    ".htaccess",
    ".ht.router.php",
    "autoload.php",
    "index.php",
    "robots.txt",
    "update.php",
    "web.config",
    "sites/default/default.services.yml",
    "sites/default/default.settings.php",
    "sites/development.services.yml",
    "sites/example.settings.local.php",
    "sites/example.sites.php",
)


@dataclass(slots=True)
class GitSyncState:
    """Transient data gathered during one sync run."""

    branch: str
    branch_exists: bool = False
    revision: str | None = None
    has_changes: bool = False


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Outcome of a sync run."""

    pushed: bool
    branch: str
    message: str
    revision: str | None = None


def assert_artifact_exists(artifact_dir: Path) -> None:
    """Fail unless the artifact directory exists and has content.

    Raises:
        ArtifactMissingError: The directory is absent or empty.
    """
    if not artifact_dir.is_dir() or not any(
        child.name != ".git" for child in artifact_dir.iterdir()
    ):
        raise ArtifactMissingError(artifact_dir)


def force_add_paths(
    artifact_dir: Path, docroot: str, include: tuple[str, ...]
) -> list[str]:
    """Paths to re-add with --force: existing, non-symlink entries only."""
    candidates = [f"{docroot}/{name}" for name in FORCE_ADD_DOCROOT_FILES]
    candidates.extend(include)
    selected = []
    for relative in candidates:
        path = artifact_dir / relative
        if path.exists() and not path.is_symlink():
            selected.append(relative)
    return selected


class ArtifactSynchronizer:
    """Pushes the contents of the artifact directory to the target branch."""

    def __init__(
        self,
        config: ArtifactConfig,
        root: Path,
        *,
        source_git: GitService | None = None,
        artifact_git: GitService | None = None,
    ) -> None:
        self.config = config
        self.paths = ArtifactPaths.for_root(root)
        self._source_git = source_git or GitService(self.paths.root)
        self._artifact_git = artifact_git or GitService(self.paths.artifact_dir)

    def check_preconditions(self) -> str:
        """Validate everything that can be checked before touching the remote.

        Returns the target branch.
        """
        if not self.config.repository:
            raise RepositoryNotConfiguredError()
        assert_artifact_exists(self.paths.artifact_dir)
        if not git_available():
            raise GitUnavailableError()
        return self.config.branch

    @property
    def repository(self) -> str:
        if not self.config.repository:
            raise RepositoryNotConfiguredError()
        return self.config.repository

    def discover_branch(self, state: GitSyncState) -> None:
        state.branch_exists = self._artifact_git.remote_branch_exists(
            self.repository, state.branch
        )
        if state.branch_exists:
            logger.info("Branch %s exists on the artifact repository", state.branch)
        else:
            logger.info(
                "Branch %s will be created on the artifact repository", state.branch
            )

    def transplant_history(self, state: GitSyncState) -> None:
        """Graft the target branch history onto the artifact directory."""
        scratch = self.paths.scratch_clone_dir
        artifact_git_dir = self.paths.artifact_dir / ".git"
        if scratch.exists():
            shutil.rmtree(scratch)
        try:
            self._source_git.clone(
                self.repository,
                scratch,
                branch=state.branch if state.branch_exists else None,
                depth=self.config.depth,
            )
            if not state.branch_exists:
                GitService(scratch).create_branch(state.branch)
            if artifact_git_dir.exists():
                shutil.rmtree(artifact_git_dir)
            shutil.move(str(scratch / ".git"), str(artifact_git_dir))
        finally:
            if scratch.exists():
                shutil.rmtree(scratch)
        logger.info("Attached %s history to the artifact", state.branch)

    def stamp_revision(self, state: GitSyncState) -> Path:
        """Write the source HEAD revision into <docroot>/hash.txt."""
        docroot = self._docroot()
        state.revision = self._source_git.get_head_commit()
        hash_file = self.paths.hash_file(docroot)
        hash_file.parent.mkdir(parents=True, exist_ok=True)
        hash_file.write_text(f"{state.revision}\n", encoding="utf-8")
        logger.info("Added hash file with revision %s", state.revision[:12])
        return hash_file

    def _docroot(self) -> str:
        docroot = detect_docroot(self.paths.artifact_dir, self.config.docroot)
        if docroot is None:
            raise NotAProjectRootError(self.paths.artifact_dir, DOCROOT_CANDIDATES)
        return docroot

    def stage(self) -> list[str]:
        """Stage the artifact, then force-add the ignore-bypass paths."""
        docroot = self._docroot()
        self._artifact_git.stage_all()
        forced = force_add_paths(self.paths.artifact_dir, docroot, self.config.include)
        for relative in forced:
            self._artifact_git.force_add(relative)
        logger.debug("Force-added %d path(s)", len(forced))
        return forced

    def commit_and_push(self, state: GitSyncState) -> SyncResult:
        state.has_changes = self._artifact_git.has_staged_changes()
        if not state.has_changes:
            logger.info("No changes to commit, skipping commit and push")
            return SyncResult(
                pushed=False,
                branch=state.branch,
                message="no changes",
                revision=state.revision,
            )

        logger.info("Committing and pushing changes to the artifact repository...")
        self._artifact_git.commit(COMMIT_MESSAGE, self.config.author)
        self._artifact_git.push(state.branch)
        logger.info("Changes pushed to the artifact repository")
        return SyncResult(
            pushed=True,
            branch=state.branch,
            message="pushed",
            revision=state.revision,
        )

    def run(self) -> SyncResult:
        """Run every sync step in order. Any failure aborts the run."""
        with preserve_cwd():
            state = GitSyncState(branch=self.check_preconditions())
            logger.info("Setting up git")
            self.discover_branch(state)
            self.transplant_history(state)
            self.stamp_revision(state)
            self.stage()
            return self.commit_and_push(state)


def sync(config: ArtifactConfig, root: Path) -> SyncResult:
    """Commit the artifact under ``root`` and push it to the configured branch."""
    return ArtifactSynchronizer(config, root).run()
