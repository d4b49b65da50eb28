"""Detect the files changed by a pull request."""

import logging
from collections.abc import Iterable, Sequence

from cover_agent_action.github.client import GitHubClient
from cover_agent_action.models.association import ChangedFile

log = logging.getLogger(__name__)


async def get_changed_files(
    client: GitHubClient, pull_request_number: int
) -> Sequence[ChangedFile]:
    """Get the normalized list of files changed by a pull request.

    Removed files are skipped since there is nothing left to test.
    """
    files = await client.list_pull_request_files(pull_request_number)
    removed = [file.filename for file in files if file.status == "removed"]
    if removed:
        log.info("Skipping %d removed file(s): %s", len(removed), ", ".join(removed))

    return normalize_changed_files(
        file.filename for file in files if file.status != "removed"
    )


def normalize_changed_files(paths: Iterable[str]) -> Sequence[ChangedFile]:
    """Trim paths, drop blank entries and duplicates, keep first-seen order.

    Args:
        paths: Raw file paths (e.g., ["src/bar.ts", " src/bar.ts", ""])

    Returns:
        Changed files, one per distinct path (e.g., [ChangedFile("src/bar.ts")])

    """
    seen: dict[str, None] = {}
    for path in paths:
        if stripped := path.strip():
            seen.setdefault(stripped, None)
    return tuple(ChangedFile(path=path) for path in seen)
