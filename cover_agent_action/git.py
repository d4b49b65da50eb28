"""Git operations for publishing generated tests on a branch."""

import asyncio
import logging
from pathlib import Path

log = logging.getLogger(__name__)


class GitError(RuntimeError):
    """Raised when a git command fails."""


async def run_git(repo_path: Path, *args: str) -> str:
    """Run a git command in the repository and return its stdout."""
    process = await asyncio.create_subprocess_exec(
        "git",
        *args,
        cwd=repo_path,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()

    if process.returncode != 0:
        raise GitError(f"git {args[0]} failed: {stderr.decode().strip()}")

    return stdout.decode().strip()


async def has_changes(repo_path: Path) -> bool:
    """Check if the working tree has uncommitted or untracked changes."""
    return bool(await run_git(repo_path, "status", "--porcelain"))


async def push_branch(
    repo_path: Path,
    branch: str,
    message: str,
    remote: str = "origin",
) -> None:
    """Commit every change on a new branch and push it to the remote."""
    log.info("Committing generated changes to branch %s", branch)
    await run_git(repo_path, "checkout", "-B", branch)
    await run_git(repo_path, "add", "-A")
    await run_git(repo_path, "commit", "-m", message)
    await run_git(repo_path, "push", "--force", remote, f"HEAD:refs/heads/{branch}")
