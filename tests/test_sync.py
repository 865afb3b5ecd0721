"""Tests for pushing an assembled artifact to the artifact repository."""

from __future__ import annotations

import shutil
from pathlib import Path
from types import MappingProxyType

import pytest

from drupal_artifact_builder.artifact import assemble
from drupal_artifact_builder.cli import run
from drupal_artifact_builder.config import ArtifactConfig
from drupal_artifact_builder.errors import (
    ArtifactMissingError,
    BranchNotDetectedError,
    GitUnavailableError,
    NetworkError,
    RepositoryNotConfiguredError,
)
from drupal_artifact_builder.git import synchronizer as sync_module
from drupal_artifact_builder.git.synchronizer import (
    ArtifactSynchronizer,
    assert_artifact_exists,
    force_add_paths,
    sync,
)


def _config(remote: Path, **kwargs) -> ArtifactConfig:
    kwargs.setdefault("source_branch", "develop")
    return ArtifactConfig(repository=str(remote), **kwargs)


def _remote_files(git, remote: Path, branch: str) -> list[str]:
    return git(remote, "ls-tree", "-r", "--name-only", branch).split()


class TestPreconditions:
    def test_repository_required(self, git_project: Path) -> None:
        assemble(ArtifactConfig(), git_project)
        with pytest.raises(RepositoryNotConfiguredError):
            sync(ArtifactConfig(source_branch="develop"), git_project)

    def test_artifact_required(self, git_project: Path, bare_remote: Path) -> None:
        with pytest.raises(ArtifactMissingError):
            sync(_config(bare_remote), git_project)

    def test_artifact_with_only_history_counts_as_missing(self, tmp_path: Path) -> None:
        artifact = tmp_path / "deploy-artifact"
        (artifact / ".git").mkdir(parents=True)
        with pytest.raises(ArtifactMissingError):
            assert_artifact_exists(artifact)

    def test_git_required(
        self,
        git_project: Path,
        bare_remote: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        assemble(ArtifactConfig(), git_project)
        monkeypatch.setattr(sync_module, "git_available", lambda: False)
        with pytest.raises(GitUnavailableError):
            sync(_config(bare_remote), git_project)

    def test_branch_required(self, git_project: Path, bare_remote: Path) -> None:
        assemble(ArtifactConfig(), git_project)
        with pytest.raises(BranchNotDetectedError):
            sync(_config(bare_remote, source_branch=None), git_project)

    def test_preconditions_checked_before_remote(
        self, git_project: Path, tmp_path: Path
    ) -> None:
        config = ArtifactConfig(
            repository=str(tmp_path / "missing.git"), source_branch="develop"
        )
        with pytest.raises(ArtifactMissingError):
            sync(config, git_project)


class TestSync:
    def test_new_branch_on_empty_remote(
        self, git_project: Path, bare_remote: Path, git
    ) -> None:
        assemble(ArtifactConfig(), git_project)
        result = sync(_config(bare_remote), git_project)

        assert result.pushed
        assert result.branch == "develop"
        files = _remote_files(git, bare_remote, "develop")
        assert "web/index.php" in files
        assert "web/hash.txt" in files
        assert "composer.json" in files
        assert ".gitignore" in files
        assert "web/CHANGELOG.txt" not in files

    def test_new_branch_on_seeded_remote(
        self, git_project: Path, seeded_remote: Path, git
    ) -> None:
        assemble(ArtifactConfig(), git_project)
        sync(_config(seeded_remote), git_project)

        files = _remote_files(git, seeded_remote, "develop")
        assert "README.md" not in files
        assert "web/index.php" in files
        assert git(seeded_remote, "rev-list", "--count", "develop").strip() == "2"
        assert _remote_files(git, seeded_remote, "main") == ["README.md"]

    def test_existing_branch_keeps_history(
        self, git_project: Path, bare_remote: Path, git
    ) -> None:
        assemble(ArtifactConfig(), git_project)
        sync(_config(bare_remote), git_project)

        (git_project / "web" / "index.php").write_text("<?php // v2\n")
        git(git_project, "commit", "-am", "Second release")
        assemble(ArtifactConfig(), git_project)
        result = sync(_config(bare_remote), git_project)

        assert result.pushed
        assert git(bare_remote, "rev-list", "--count", "develop").strip() == "2"
        content = git(bare_remote, "show", "develop:web/index.php")
        assert content == "<?php // v2\n"

    def test_second_sync_without_changes(
        self, git_project: Path, bare_remote: Path, git
    ) -> None:
        assemble(ArtifactConfig(), git_project)
        first = sync(_config(bare_remote), git_project)
        second = sync(_config(bare_remote), git_project)

        assert first.pushed
        assert not second.pushed
        assert second.message == "no changes"
        assert git(bare_remote, "rev-list", "--count", "develop").strip() == "1"

    def test_rebuild_without_source_changes_is_noop(
        self, git_project: Path, bare_remote: Path
    ) -> None:
        assemble(ArtifactConfig(), git_project)
        sync(_config(bare_remote), git_project)
        assemble(ArtifactConfig(), git_project)
        assert not sync(_config(bare_remote), git_project).pushed

    def test_hash_file_holds_source_revision(
        self, git_project: Path, bare_remote: Path, git
    ) -> None:
        assemble(ArtifactConfig(), git_project)
        result = sync(_config(bare_remote), git_project)

        head = git(git_project, "rev-parse", "HEAD").strip()
        hash_file = git_project / "deploy-artifact" / "web" / "hash.txt"
        assert result.revision == head
        assert hash_file.read_text() == f"{head}\n"
        assert git(bare_remote, "show", "develop:web/hash.txt") == f"{head}\n"

    def test_branches_map_selects_target(
        self, git_project: Path, bare_remote: Path, git
    ) -> None:
        config = _config(
            bare_remote, branches_map=MappingProxyType({"develop": "staging"})
        )
        assemble(config, git_project)
        result = sync(config, git_project)

        assert result.branch == "staging"
        assert "web/index.php" in _remote_files(git, bare_remote, "staging")

    def test_ignored_entry_points_force_added(
        self, git_project: Path, bare_remote: Path, git
    ) -> None:
        (git_project / "web" / ".gitignore").write_text("index.php\nrobots.txt\n")
        (git_project / "web" / "robots.txt").write_text("User-agent: *\n")
        (git_project / "private").mkdir()
        (git_project / "private" / "dump.sql").write_text("-- seed\n")
        config = _config(bare_remote, include=("private/dump.sql",))

        assemble(config, git_project)
        sync(config, git_project)

        files = _remote_files(git, bare_remote, "develop")
        assert "web/index.php" in files
        assert "web/robots.txt" in files
        assert "private/dump.sql" in files

    def test_scratch_clone_removed(self, git_project: Path, bare_remote: Path) -> None:
        assemble(ArtifactConfig(), git_project)
        sync(_config(bare_remote), git_project)
        assert not (git_project / "deploy-artifact-repository").exists()
        assert (git_project / "deploy-artifact" / ".git").is_dir()

    def test_stale_scratch_clone_replaced(
        self, git_project: Path, bare_remote: Path
    ) -> None:
        stale = git_project / "deploy-artifact-repository"
        stale.mkdir()
        (stale / "leftover").write_text("x\n")
        assemble(ArtifactConfig(), git_project)

        assert sync(_config(bare_remote), git_project).pushed
        assert not stale.exists()

    def test_unreachable_remote(self, git_project: Path, tmp_path: Path) -> None:
        assemble(ArtifactConfig(), git_project)
        with pytest.raises(NetworkError):
            sync(_config(tmp_path / "missing.git"), git_project)
        assert not (git_project / "deploy-artifact-repository").exists()

    def test_cwd_restored(
        self,
        git_project: Path,
        bare_remote: Path,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)
        assemble(ArtifactConfig(), git_project)

        sync(_config(bare_remote), git_project)
        assert Path.cwd() == elsewhere

        with pytest.raises(NetworkError):
            sync(_config(tmp_path / "missing.git"), git_project)
        assert Path.cwd() == elsewhere


class TestSynchronizerSteps:
    def test_check_preconditions_returns_target_branch(
        self, git_project: Path, bare_remote: Path
    ) -> None:
        assemble(ArtifactConfig(), git_project)
        config = _config(
            bare_remote, branches_map=MappingProxyType({"develop": "staging"})
        )
        assert ArtifactSynchronizer(config, git_project).check_preconditions() == (
            "staging"
        )

    def test_force_add_paths_skips_missing_and_symlinks(self, tmp_path: Path) -> None:
        (tmp_path / "web").mkdir()
        (tmp_path / "web" / "index.php").write_text("<?php\n")
        (tmp_path / "web" / "robots.txt").symlink_to("index.php")
        (tmp_path / "patches").mkdir()

        selected = force_add_paths(tmp_path, "web", ("patches", "missing"))

        assert selected == ["web/index.php", "patches"]


def test_end_to_end_release(
    drupal_project: Path, bare_remote: Path, git, snapshot_tree
) -> None:
    """A release from a clean checkout with one extra include."""
    shutil.rmtree(drupal_project / "drush")
    (drupal_project / "composer.lock").unlink()
    (drupal_project / "patches").mkdir()
    (drupal_project / "patches" / "core.patch").write_text("diff\n")
    (drupal_project / ".drupal-artifact.yml").write_text(
        f"repository: {bare_remote}\ninclude:\n  - patches\n"
    )
    git(drupal_project, "init", "-b", "develop")
    git(drupal_project, "add", "--all")
    git(drupal_project, "commit", "-m", "Release")

    assert run(["--workdir", str(drupal_project), "build"]) == 0

    artifact = drupal_project / "deploy-artifact"
    top_level = sorted(path.name for path in artifact.iterdir())
    assert top_level == [
        ".git",
        ".gitignore",
        "composer.json",
        "config",
        "patches",
        "vendor",
        "web",
    ]
    assert not (artifact / "web" / "CHANGELOG.txt").exists()
    assert (artifact / "web" / "index.php").is_file()
    revision = (artifact / "web" / "hash.txt").read_text()
    assert len(revision.strip()) == 40
    assert revision.strip() == git(drupal_project, "rev-parse", "HEAD").strip()

    files = _remote_files(git, bare_remote, "develop")
    assert "patches/core.patch" in files
    assert "web/hash.txt" in files
    assert snapshot_tree(artifact)["web/index.php"] == b"<?php // front controller\n"
