"""Map changed files to (source file, test file) associations."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from cover_agent_action.models.association import ChangedFile, TestAssociation
from cover_agent_action.resolvers.base import TestResolver

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ResolutionReport:
    """Associations found for a run, with the warnings raised on the way."""

    associations: Sequence[TestAssociation]
    warnings: Sequence[str] = ()


async def resolve_associations(
    changed_files: Sequence[ChangedFile],
    resolver: TestResolver,
) -> ResolutionReport:
    """Resolve every changed file concurrently.

    Args:
        changed_files: Normalized changed files of the pull request
        resolver: Resolver applied to each changed file

    Returns:
        Unique associations in changed-file order, plus resolution warnings

    """
    files = tuple(changed_files)
    log.info("Resolving tests for %d changed file(s)...", len(files))

    resolutions = await asyncio.gather(
        *(resolver.resolve(changed.path) for changed in files)
    )

    associations: dict[TestAssociation, None] = {}
    warnings: list[str] = []
    for resolution in resolutions:
        log.info(
            "Resolved %s -> %s",
            resolution.source_file,
            ", ".join(resolution.test_files) or "no tests",
        )
        for test_file in resolution.test_files:
            association = TestAssociation(
                source_file=resolution.source_file, test_file=test_file
            )
            associations.setdefault(association, None)
        warnings.extend(resolution.warnings)

    return ResolutionReport(associations=tuple(associations), warnings=warnings)
