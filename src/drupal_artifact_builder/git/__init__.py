"""Git integration for artifact building.

Key components:
- GitService: Typed wrappers over git commands (status, clone, add, commit, push)
- ArtifactSynchronizer: History transplant and idempotent commit/push
- SyncResult: Outcome of a sync run
"""
from __future__ import annotations

from drupal_artifact_builder.git.service import GitResult, GitService, git_available
from drupal_artifact_builder.git.synchronizer import (
    ArtifactSynchronizer,
    GitSyncState,
    SyncResult,
    sync,
)

__all__ = [
    # Service
    "GitService",
    "GitResult",
    "git_available",
    # Sync
    "ArtifactSynchronizer",
    "GitSyncState",
    "SyncResult",
    "sync",
]
