"""Git operations service for artifact building.

Thin typed wrappers over the git CLI. Every call passes an explicit argument
list and an explicit working directory; nothing here changes the process cwd.
Local failures raise GitCommandError, failures talking to the remote raise
RemoteAuthError or NetworkError.
"""
from __future__ import annotations

import logging
import os
import re
import shutil
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from drupal_artifact_builder.errors import (
    GitCommandError,
    NetworkError,
    RemoteAuthError,
    RemoteError,
)
from drupal_artifact_builder.runtime.command_runner import (
    CommandEvent,
    CommandResult,
    CommandRunner,
    EventCallback,
    get_command_runner,
)
from drupal_artifact_builder.runtime.timeout_policy import TimeoutDomain

logger = logging.getLogger(__name__)

# Diagnostics git prints when the remote refuses our credentials
AUTH_FAILURE_MARKERS = (
    "permission denied",
    "authentication failed",
    "could not read username",
    "could not read password",
    "access denied",
    "invalid username or password",
    "the requested url returned error: 401",
    "the requested url returned error: 403",
    "host key verification failed",
)

_AUTHOR_PATTERN = re.compile(r"^\s*(?P<name>.*?)\s*<(?P<email>[^>]+)>\s*$")


@dataclass
class GitResult:
    """Result of a git operation."""

    success: bool
    message: str
    output: str = ""


def git_available() -> bool:
    """Check whether a git executable is on PATH."""
    return shutil.which("git") is not None


def parse_author(author: str) -> tuple[str, str] | None:
    """Split ``Name <email>`` into its parts, or None if malformed."""
    match = _AUTHOR_PATTERN.match(author)
    if match is None:
        return None
    return match.group("name"), match.group("email")


def parse_porcelain_paths(output: str) -> list[str]:
    """Extract paths from ``git status --porcelain -z`` output.

    Entries are NUL-terminated: a two-column status code, a space, then the
    path, unquoted. A rename or copy entry is followed by one more entry
    holding the original path, which is skipped.
    """
    paths = []
    entries = iter(output.split("\0"))
    for entry in entries:
        if len(entry) < 4:
            continue
        status, path = entry[:2], entry[3:]
        paths.append(path)
        if "R" in status or "C" in status:
            next(entries, None)
    return paths


def classify_remote_failure(command: str, stderr: str) -> RemoteError:
    """Map a failed remote command onto RemoteAuthError or NetworkError."""
    lowered = stderr.lower()
    if any(marker in lowered for marker in AUTH_FAILURE_MARKERS):
        return RemoteAuthError(command, stderr)
    return NetworkError(command, stderr)


class GitService:
    """Handles git operations in one working directory."""

    def __init__(
        self,
        working_dir: Path,
        *,
        runner: CommandRunner | None = None,
    ) -> None:
        """Initialize git service.

        Args:
            working_dir: Directory to run git commands in. Required.
            runner: Command runner; defaults to the shared instance.
        """
        self.working_dir = working_dir
        self._runner = runner or get_command_runner()

    def _run_git(
        self,
        *args: str,
        domain: TimeoutDomain = TimeoutDomain.GIT_LOCAL,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        on_event: EventCallback | None = None,
    ) -> CommandResult:
        """Run a git command without checking its exit status."""
        return self._runner.run(
            command=["git", *args],
            domain=domain,
            cwd=cwd or self.working_dir,
            env=env,
            on_event=on_event,
        )

    def _run_git_checked(
        self,
        *args: str,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run a local git command, raising GitCommandError on failure."""
        result = self._run_git(*args, cwd=cwd, env=env)
        if not result.ok:
            raise GitCommandError(result.command, _failure_detail(result))
        return result

    def _run_remote(self, *args: str, cwd: Path | None = None) -> CommandResult:
        """Run a git command that talks to a remote."""
        result = self._run_git(
            *args,
            domain=TimeoutDomain.GIT_REMOTE,
            cwd=cwd,
            on_event=_report_progress,
        )
        if not result.ok:
            raise classify_remote_failure(result.command, _failure_detail(result))
        if result.warning_emitted:
            logger.info(
                "%s finished after %.0fs", result.command, result.duration_seconds
            )
        return result

    # --- Source repository queries ---

    def get_current_branch(self) -> str | None:
        """Get the name of the current branch, None when HEAD is detached."""
        result = self._run_git("branch", "--show-current")
        if result.ok:
            return result.stdout.strip() or None
        return None

    def get_head_commit(self) -> str:
        """Get the full hash of the HEAD commit."""
        result = self._run_git_checked("rev-parse", "HEAD")
        return result.stdout.strip()

    def changed_paths(self, paths: Sequence[str]) -> list[str]:
        """List changed or untracked files limited to ``paths``."""
        if not paths:
            return []
        result = self._run_git_checked("status", "--porcelain", "-z", "--", *paths)
        return parse_porcelain_paths(result.stdout)

    # --- Remote operations ---

    def remote_branch_exists(self, repository: str, branch: str) -> bool:
        """Check whether ``branch`` exists on ``repository``."""
        result = self._run_remote("ls-remote", "--heads", repository, branch)
        wanted = f"refs/heads/{branch}"
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) == 2 and parts[1] == wanted:
                return True
        return False

    def clone(
        self,
        repository: str,
        destination: Path,
        *,
        branch: str | None = None,
        depth: int = 1,
    ) -> None:
        """Shallow-clone ``repository`` into ``destination``.

        When ``branch`` is None the remote's default state is cloned.
        """
        args = ["clone", "--depth", str(depth)]
        if branch is not None:
            args.extend(["--branch", branch])
        args.extend([repository, str(destination)])
        self._run_remote(*args, cwd=destination.parent)
        logger.info("Cloned %s into %s", repository, destination.name)

    def push(self, branch: str, remote: str = "origin") -> None:
        """Push ``branch`` to ``remote``."""
        self._run_remote("push", remote, branch)
        logger.info("Pushed %s to %s", branch, remote)

    # --- Working tree operations ---

    def create_branch(self, branch: str) -> None:
        """Create and check out a new local branch."""
        self._run_git_checked("checkout", "-b", branch)
        logger.info("Created branch %s", branch)

    def stage_all(self) -> None:
        """Stage additions, modifications and deletions, respecting .gitignore."""
        self._run_git_checked("add", "--all", ".")

    def force_add(self, path: str) -> None:
        """Stage ``path`` even if it is matched by a .gitignore rule."""
        self._run_git_checked("add", "--force", "--", path)
        logger.debug("Force-added %s", path)

    def has_staged_changes(self) -> bool:
        """Check if there are staged changes ready to commit."""
        result = self._run_git("diff", "--cached", "--quiet")
        if result.timed_out or result.effective_exit_code not in (0, 1):
            raise GitCommandError(result.command, _failure_detail(result))
        return result.effective_exit_code == 1

    def commit(self, message: str, author: str) -> GitResult:
        """Create a commit with the given message and author.

        When git has no committer identity configured, the author is used
        as committer too.

        Args:
            message: Commit message.
            author: Author in ``Name <email>`` form.
        """
        if not self.has_staged_changes():
            return GitResult(True, "Nothing to commit")

        result = self._run_git_checked(
            "commit",
            "-m",
            message,
            f"--author={author}",
            env=self._committer_env(author),
        )
        logger.info("Created commit: %s", message[:50])
        return GitResult(True, "Commit created", result.stdout)

    def _committer_env(self, author: str) -> dict[str, str] | None:
        configured = self._run_git("config", "user.email")
        if configured.ok and configured.stdout.strip():
            return None
        parsed = parse_author(author)
        if parsed is None:
            return None
        name, email = parsed
        env = dict(os.environ)
        env.setdefault("GIT_COMMITTER_NAME", name)
        env.setdefault("GIT_COMMITTER_EMAIL", email)
        return env


def _failure_detail(result: CommandResult) -> str:
    if result.timed_out:
        detail = f"timed out after {result.timeout_seconds:.0f}s"
        if result.signal_sequence:
            detail += f" (sent {', '.join(result.signal_sequence)})"
        return detail
    return result.stderr.strip() or result.stdout.strip()


def _report_progress(event: CommandEvent) -> None:
    if event.event_type == "warning":
        logger.info(
            "Still waiting on %s (gives up after %.0fs)",
            event.command,
            event.timeout_seconds,
        )
    else:
        logger.warning("%s: %s", event.detail, event.command)
