"""GitHub REST API client module."""

from cover_agent_action.github.client import GitHubAPIError, GitHubClient
from cover_agent_action.github.config import GitHubConfig

__all__ = ["GitHubAPIError", "GitHubClient", "GitHubConfig"]
