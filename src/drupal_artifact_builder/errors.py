"""Error taxonomy for artifact building.

Every failure the CLI reports derives from ArtifactBuilderError, grouped by
the pipeline stage that raises it:

- Configuration: ConfigFormatError, BranchNotDetectedError
- Preflight: NotAProjectRootError, DirtyTreeError
- Assembly: CopyFailedError, SymlinkFailedError
- Sync: RepositoryNotConfiguredError, ArtifactMissingError,
  GitUnavailableError, GitCommandError, NetworkError, RemoteAuthError
"""
from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class ArtifactBuilderError(Exception):
    """Base exception for all artifact builder failures."""

    pass


# --- Configuration ---


class ConfigFormatError(ArtifactBuilderError):
    """Raised when the configuration file is malformed or mistyped."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"Invalid configuration in {path}: {message}")


class BranchNotDetectedError(ArtifactBuilderError):
    """Raised when no source branch could be determined."""

    def __init__(self) -> None:
        super().__init__(
            "Could not detect the selected branch. Either pass --branch, "
            "set the GIT_BRANCH environment variable or check out a branch "
            "(HEAD is detached)."
        )


# --- Preflight ---


class PreflightError(ArtifactBuilderError):
    """Base exception for checks run before assembly or sync."""

    pass


class NotAProjectRootError(PreflightError):
    """Raised when the working directory is not a project root."""

    def __init__(self, root: Path, missing: Sequence[str]) -> None:
        self.root = root
        self.missing = tuple(missing)
        super().__init__(
            f"{root} does not look like the repository root folder "
            f"(missing: {', '.join(self.missing)}). Please run it from the "
            "root folder."
        )


class DirtyTreeError(PreflightError):
    """Raised when artifact-relevant paths have uncommitted changes."""

    def __init__(self, paths: Sequence[str]) -> None:
        self.paths = tuple(paths)
        listing = "\n".join(f"  - {path}" for path in self.paths)
        super().__init__(
            "There are changes in the repository (changed and/or untracked "
            "files), please run the artifact generation with the folder tree "
            f"clean:\n{listing}"
        )


# --- Assembly ---


class AssemblyError(ArtifactBuilderError):
    """Base exception for artifact assembly failures."""

    pass


class CopyFailedError(AssemblyError):
    """Raised when a path cannot be copied into the artifact."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Could not copy {path}: {reason}")


class SymlinkFailedError(AssemblyError):
    """Raised when the docroot symlink cannot be created."""

    def __init__(self, link: str, target: str, reason: str) -> None:
        self.link = link
        self.target = target
        super().__init__(f"Could not create symlink {link} -> {target}: {reason}")


# --- Sync ---


class SyncError(ArtifactBuilderError):
    """Base exception for git synchronization failures."""

    pass


class RepositoryNotConfiguredError(SyncError):
    """Raised when sync runs without a target repository."""

    def __init__(self) -> None:
        super().__init__(
            "No artifact repository configured. Pass --repository or set "
            "'repository' in the configuration file."
        )


class ArtifactMissingError(SyncError):
    """Raised when the artifact directory is absent or empty."""

    def __init__(self, artifact_dir: Path) -> None:
        self.artifact_dir = artifact_dir
        super().__init__(
            f"Artifact does not exist at {artifact_dir}. Run the 'create' "
            "command first."
        )


class GitUnavailableError(SyncError):
    """Raised when the git executable cannot be found."""

    def __init__(self) -> None:
        super().__init__("git executable not found on PATH")


class GitCommandError(SyncError):
    """Raised when a git command fails."""

    def __init__(self, command: str, stderr: str) -> None:
        self.command = command
        self.stderr = stderr
        detail = stderr.strip()
        message = f"git command failed: {command}"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)


class RemoteError(GitCommandError):
    """Base exception for failures talking to the artifact remote."""

    pass


class NetworkError(RemoteError):
    """Raised when the remote cannot be reached."""

    pass


class RemoteAuthError(RemoteError):
    """Raised when the remote rejects our credentials."""

    pass
