"""Pydantic models for GitHub pull request API responses."""

from typing import Literal, TypeAlias

from pydantic import BaseModel

FileStatus: TypeAlias = Literal[
    "added",
    "removed",
    "modified",
    "renamed",
    "copied",
    "changed",
    "unchanged",
]


class PullRequestFile(BaseModel):
    """A file entry from the list pull request files API."""

    filename: str
    status: FileStatus
    additions: int = 0
    deletions: int = 0
    previous_filename: str | None = None


class BranchRef(BaseModel):
    """Head or base reference of a pull request."""

    ref: str
    sha: str


class PullRequest(BaseModel):
    """A pull request from the pulls API."""

    number: int
    title: str
    html_url: str
    state: Literal["open", "closed"]
    head: BranchRef
    base: BranchRef


class IssueComment(BaseModel):
    """A comment created on a pull request conversation."""

    id: int
    body: str
    html_url: str
