"""Configuration for the GitHub REST API client."""

from pydantic import BaseModel, SecretStr


class GitHubConfig(BaseModel):
    """Configuration for the GitHub REST API client."""

    token: SecretStr
    owner: str
    repo: str
    api_base_url: str = "https://api.github.com"
