"""Run configuration for the coverage action."""

import re
import shlex
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr

from cover_agent_action.github.config import GitHubConfig
from cover_agent_action.models.work import AgentSettings, CoverageReportMode
from cover_agent_action.resolvers.factory import ResolutionStrategy

NOT_A_PULL_REQUEST_MESSAGE = (
    "This action can only be run in the context of a pull request."
)
NO_TOKEN_FAIL_MESSAGE = "No github token provided (input: github_token)"
NO_KEY_FAIL_MESSAGE = "No agent API key provided (input: agent_api_key)"
INVALID_REPOSITORY_MESSAGE = "Repository must be in owner/repo format, got '{}'"
NO_RELATED_TESTS_COMMAND_MESSAGE = (
    "The test-runner strategy requires a command (input: related_tests_command)"
)
NO_AGENT_COMMAND_MESSAGE = "No coverage agent command provided (input: agent_command)"

DEFAULT_TEST_COMMAND = "npx jest --coverage"
DEFAULT_COVERAGE_REPORT_PATH = Path("./coverage/cobertura-coverage.xml")
DEFAULT_COVERAGE_TYPE = "cobertura"
DEFAULT_COMMENT_PREFIX = "## Coverage"
DEFAULT_RELATED_TESTS_COMMAND = "npx jest --listTests --findRelatedTests"

PULL_REQUEST_REF = re.compile(r"^refs/pull/(?P<number>\d+)/")


class PreconditionError(Exception):
    """Raised when the run cannot start: wrong context or missing input."""


class ActionConfig(BaseModel):
    """Configuration for one run of the coverage action."""

    github_token: SecretStr
    agent_api_key: SecretStr
    github_ref: str
    repository: str

    test_command: str = DEFAULT_TEST_COMMAND
    coverage_report_path: Path = DEFAULT_COVERAGE_REPORT_PATH
    coverage_report_mode: CoverageReportMode = "shared"
    coverage_type: str = DEFAULT_COVERAGE_TYPE
    desired_coverage: int = Field(default=100, ge=0, le=100)
    max_iterations: int = Field(default=2, ge=1)
    additional_agent_args: str = ""
    comment_prefix: str = DEFAULT_COMMENT_PREFIX

    resolution_strategies: Sequence[ResolutionStrategy] = Field(
        default=(ResolutionStrategy.SIBLING,), min_length=1
    )
    related_tests_command: str = DEFAULT_RELATED_TESTS_COMMAND
    test_directory_ascend_levels: int = Field(default=0, ge=0)
    test_directory_max_depth: int | None = Field(default=None, ge=0)

    max_concurrency: int | None = Field(default=None, ge=1)
    agent_command: str = "cover-agent"
    agent_api_key_env: str = "OPENAI_API_KEY"
    test_command_dir: Path | None = None

    baseline_report_path: Path | None = None
    open_pull_request: bool = False
    workspace: Path = Path(".")
    api_base_url: str = "https://api.github.com"

    def check_preconditions(self) -> int:
        """Validate the run context and return the pull request number.

        Raises:
            PreconditionError: If the ref is not a pull request ref, a
                credential is blank, the repository slug is malformed or
                a required command is empty

        """
        match = PULL_REQUEST_REF.match(self.github_ref)
        if match is None:
            raise PreconditionError(NOT_A_PULL_REQUEST_MESSAGE)

        if not self.github_token.get_secret_value().strip():
            raise PreconditionError(NO_TOKEN_FAIL_MESSAGE)

        if not self.agent_api_key.get_secret_value().strip():
            raise PreconditionError(NO_KEY_FAIL_MESSAGE)

        owner, _, repo = self.repository.partition("/")
        if not owner or not repo or "/" in repo:
            raise PreconditionError(INVALID_REPOSITORY_MESSAGE.format(self.repository))

        if (
            ResolutionStrategy.TEST_RUNNER in self.resolution_strategies
            and not self.related_tests_command_args()
        ):
            raise PreconditionError(NO_RELATED_TESTS_COMMAND_MESSAGE)

        if not self.agent_command_args():
            raise PreconditionError(NO_AGENT_COMMAND_MESSAGE)

        return int(match.group("number"))

    def github_config(self) -> GitHubConfig:
        """Build the GitHub client configuration."""
        owner, _, repo = self.repository.partition("/")
        return GitHubConfig(
            token=self.github_token,
            owner=owner,
            repo=repo,
            api_base_url=self.api_base_url,
        )

    def agent_settings(self) -> AgentSettings:
        """Build the settings shared by every coverage agent invocation."""
        return AgentSettings(
            test_command=self.test_command,
            coverage_report_path=self.coverage_report_path,
            coverage_report_mode=self.coverage_report_mode,
            coverage_type=self.coverage_type,
            desired_coverage=self.desired_coverage,
            max_iterations=self.max_iterations,
            additional_args=self.additional_agent_args,
            test_command_dir=self.test_command_dir,
        )

    def agent_command_args(self) -> Sequence[str]:
        """Split the agent command into its executable and leading arguments."""
        return tuple(shlex.split(self.agent_command))

    def related_tests_command_args(self) -> Sequence[str]:
        """Split the related-tests query into discrete arguments."""
        return tuple(shlex.split(self.related_tests_command))
