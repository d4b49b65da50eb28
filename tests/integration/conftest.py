"""Fixtures for integration tests."""

import subprocess
from pathlib import Path
from typing import Protocol

import pytest


class CommitFn(Protocol):
    """Protocol for git commit function."""

    def __call__(self, message: str) -> str:
        """Create a commit and return its SHA."""


class WriteFilesFn(Protocol):
    """Protocol for the repository file writer."""

    def __call__(self, *paths: str, content: str = "") -> None:
        """Create files under the repository root."""


def git(repo: Path, *args: str) -> str:
    """Run git in a test repository and return its stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create an initialized git repository."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "--initial-branch=main")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "user.name", "Test")
    return repo


@pytest.fixture
def git_remote(tmp_path: Path, git_repo: Path) -> Path:
    """Create a bare repository registered as the origin remote."""
    remote = tmp_path / "remote.git"
    subprocess.run(
        ["git", "init", "--bare", str(remote)],
        check=True,
        capture_output=True,
    )
    git(git_repo, "remote", "add", "origin", str(remote))
    return remote


@pytest.fixture
def git_commit(git_repo: Path) -> CommitFn:
    """Return a function to create commits in the test repo."""

    def _commit(message: str) -> str:
        git(git_repo, "add", "-A")
        git(git_repo, "commit", "--allow-empty", "-m", message)
        return git(git_repo, "rev-parse", "HEAD")

    return _commit


@pytest.fixture
def write_files(tmp_path: Path) -> WriteFilesFn:
    """Return a function creating files below tmp_path."""

    def _write(*paths: str, content: str = "") -> None:
        for path in paths:
            target = tmp_path / path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)

    return _write
