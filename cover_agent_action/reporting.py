"""Publish run results to the pull request."""

import logging
from pathlib import Path

from cover_agent_action.git import has_changes, push_branch
from cover_agent_action.github.client import GitHubClient
from cover_agent_action.github.models import IssueComment, PullRequest

log = logging.getLogger(__name__)

FOLLOW_UP_BRANCH_SUFFIX = "-test"


def follow_up_branch(branch: str) -> str:
    """Name of the branch carrying generated tests for ``branch``."""
    return f"{branch}{FOLLOW_UP_BRANCH_SUFFIX}"


def follow_up_title(branch: str) -> str:
    """Title of the follow-up pull request."""
    return f"Test Coverage for {branch}"


def follow_up_body(branch: str) -> str:
    """Body of the follow-up pull request."""
    return (
        "This PR adds the tests generated by the coverage agent "
        f"for the branch: {branch}."
    )


async def post_summary(
    client: GitHubClient, pull_request_number: int, body: str
) -> IssueComment:
    """Post the rendered summary as a pull request comment."""
    comment = await client.create_issue_comment(pull_request_number, body)
    log.info("Posted coverage summary: %s", comment.html_url)
    return comment


async def open_follow_up_pull_request(
    client: GitHubClient,
    repo_path: Path,
    pull_request: PullRequest,
) -> PullRequest | None:
    """Push generated changes and open a pull request for them.

    The new pull request targets the original head branch, so the generated
    tests can be reviewed and merged into it.

    Returns:
        The created pull request, or None when there was nothing to publish

    """
    if not await has_changes(repo_path):
        log.info("No generated changes, skipping follow-up pull request")
        return None

    original = pull_request.head.ref
    branch = follow_up_branch(original)
    await push_branch(repo_path, branch, follow_up_title(original))

    created = await client.create_pull_request(
        title=follow_up_title(original),
        head=branch,
        base=original,
        body=follow_up_body(original),
    )
    log.info("Opened follow-up pull request: %s", created.html_url)
    return created
