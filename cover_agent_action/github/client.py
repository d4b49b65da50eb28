"""GitHub REST API client for pull request operations."""

import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp
from pydantic import TypeAdapter

from cover_agent_action.github.config import GitHubConfig
from cover_agent_action.github.models import (
    IssueComment,
    PullRequest,
    PullRequestFile,
)

log = logging.getLogger(__name__)

PAGE_SIZE = 100

_files_adapter = TypeAdapter(list[PullRequestFile])


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub API answers with an unexpected status."""


@dataclass(frozen=True, kw_only=True)
class GitHubClient:
    """Client for the pull request endpoints of the GitHub REST API."""

    config: GitHubConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: GitHubConfig
    ) -> AsyncGenerator["GitHubClient", None]:
        """Create client with managed session lifecycle."""
        headers = {
            "Authorization": f"Bearer {config.token.get_secret_value()}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
        ) as session:
            yield cls(config=config, session=session)

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.config.owner}/{self.config.repo}"

    async def list_pull_request_files(self, number: int) -> Sequence[PullRequestFile]:
        """List every file changed by a pull request.

        Paginates until a page shorter than the page size is returned.
        """
        url = f"{self._repo_path}/pulls/{number}/files"
        files: list[PullRequestFile] = []
        page = 1

        while True:
            params = {"per_page": str(PAGE_SIZE), "page": str(page)}
            data = await self._get_json(url, params, "list pull request files")
            page_files = _files_adapter.validate_python(data)
            files.extend(page_files)

            if len(page_files) < PAGE_SIZE:
                break

            page += 1

        log.info("Pull request #%d changes %d file(s)", number, len(files))
        return files

    async def get_pull_request(self, number: int) -> PullRequest:
        """Fetch a pull request."""
        data = await self._get_json(
            f"{self._repo_path}/pulls/{number}", None, "get pull request"
        )
        return PullRequest.model_validate(data)

    async def create_issue_comment(self, number: int, body: str) -> IssueComment:
        """Post a comment on the pull request conversation."""
        data = await self._post_json(
            f"{self._repo_path}/issues/{number}/comments",
            {"body": body},
            "create comment",
        )
        return IssueComment.model_validate(data)

    async def create_pull_request(
        self, *, title: str, head: str, base: str, body: str
    ) -> PullRequest:
        """Open a pull request from ``head`` into ``base``."""
        log.info("Creating pull request: head=%s, base=%s", head, base)
        data = await self._post_json(
            f"{self._repo_path}/pulls",
            {"title": title, "head": head, "base": base, "body": body},
            "create pull request",
        )
        return PullRequest.model_validate(data)

    async def _get_json(
        self, url: str, params: dict[str, str] | None, action: str
    ) -> Any:
        async with self.session.get(url, params=params) as response:
            if response.status != 200:
                text = await response.text()
                raise GitHubAPIError(f"Failed to {action}: {response.status} {text}")
            return await response.json()

    async def _post_json(self, url: str, payload: dict[str, str], action: str) -> Any:
        async with self.session.post(url, json=payload) as response:
            if response.status != 201:
                text = await response.text()
                raise GitHubAPIError(f"Failed to {action}: {response.status} {text}")
            return await response.json()
