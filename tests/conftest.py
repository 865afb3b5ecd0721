from __future__ import annotations

import shutil
import subprocess
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

GitRunner = Callable[..., str]


def run_git(cwd: Path, *args: str) -> str:
    """Run git in ``cwd`` and return stdout; fail the test on error."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=False,
    )
    assert result.returncode == 0, f"git {' '.join(args)} failed: {result.stderr}"
    return result.stdout


@pytest.fixture(autouse=True)
def isolate_git_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """Keep tests away from the developer's git identity and settings."""
    config_home = tmp_path_factory.mktemp("gitconfig")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(config_home / "config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@test.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@test.com")
    monkeypatch.delenv("GIT_BRANCH", raising=False)
    yield


@pytest.fixture
def git() -> GitRunner:
    return run_git


@pytest.fixture
def drupal_project(tmp_path: Path) -> Path:
    """A minimal composer-managed Drupal codebase, not under version control."""
    root = tmp_path / "site"
    (root / "config" / "sync").mkdir(parents=True)
    (root / "config" / "sync" / "system.site.yml").write_text("name: Demo\n")
    (root / "composer.json").write_text('{"name": "acme/site"}\n')
    (root / "composer.lock").write_text('{"packages": []}\n')
    (root / "vendor" / "acme" / "lib").mkdir(parents=True)
    (root / "vendor" / "autoload.php").write_text("<?php\n")
    (root / "vendor" / "acme" / "lib" / "README.txt").write_text("readme\n")
    (root / "vendor" / "acme" / "lib" / "Lib.php").write_text("<?php class Lib {}\n")
    (root / "web" / "core").mkdir(parents=True)
    (root / "web" / "index.php").write_text("<?php // front controller\n")
    (root / "web" / "CHANGELOG.txt").write_text("Drupal 10.x\n")
    (root / "web" / "core" / "LICENSE.txt").write_text("GPL\n")
    (root / "web" / "core" / "lib.php").write_text("<?php\n")
    (root / "drush").mkdir()
    (root / "drush" / "drush.yml").write_text("options: {}\n")
    (root / ".gitignore").write_text("/deploy-artifact\n/deploy-artifact-repository\n")
    return root


@pytest.fixture
def git_project(drupal_project: Path) -> Path:
    """``drupal_project`` committed to a git repository on branch ``develop``."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    run_git(drupal_project, "init", "-b", "develop")
    run_git(drupal_project, "add", "--all")
    run_git(drupal_project, "commit", "-m", "Initial commit")
    return drupal_project


@pytest.fixture
def bare_remote(tmp_path: Path) -> Path:
    """An empty bare repository standing in for the artifact remote."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    remote = tmp_path / "artifact.git"
    run_git(tmp_path, "init", "--bare", "-b", "main", str(remote))
    return remote


@pytest.fixture
def seeded_remote(tmp_path: Path, bare_remote: Path) -> Path:
    """``bare_remote`` with one commit on ``main`` holding a README."""
    seed = tmp_path / "seed"
    run_git(tmp_path, "clone", str(bare_remote), str(seed))
    (seed / "README.md").write_text("artifact repository\n")
    run_git(seed, "symbolic-ref", "HEAD", "refs/heads/main")
    run_git(seed, "add", "README.md")
    run_git(seed, "commit", "-m", "Seed")
    run_git(seed, "push", "origin", "main")
    shutil.rmtree(seed)
    return bare_remote


def _snapshot_tree(root: Path) -> dict[str, object]:
    """Map each relative path below ``root`` to its bytes or symlink target."""
    snapshot: dict[str, object] = {}
    for path in sorted(root.rglob("*")):
        relative = path.relative_to(root).as_posix()
        if relative == ".git" or relative.startswith(".git/"):
            continue
        if path.is_symlink():
            snapshot[relative] = ("link", str(path.readlink()))
        elif path.is_file():
            snapshot[relative] = path.read_bytes()
        else:
            snapshot[relative] = "dir"
    return snapshot


@pytest.fixture
def snapshot_tree() -> Callable[[Path], dict[str, object]]:
    return _snapshot_tree
