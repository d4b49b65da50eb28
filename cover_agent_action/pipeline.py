"""Coverage pipeline wiring resolution, dispatch, aggregation and reporting."""

import asyncio
import logging
import shutil
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from cover_agent_action.agent import CoverageAgent
from cover_agent_action.aggregator import CoverageSummary, render_summary, summarize
from cover_agent_action.changes import get_changed_files
from cover_agent_action.config import ActionConfig
from cover_agent_action.dispatcher import WorkDispatcher
from cover_agent_action.github.client import GitHubClient
from cover_agent_action.models.association import ChangedFile
from cover_agent_action.reporting import open_follow_up_pull_request, post_summary
from cover_agent_action.resolution import resolve_associations
from cover_agent_action.resolvers.base import TestResolver
from cover_agent_action.resolvers.factory import build_resolver

log = logging.getLogger(__name__)

PER_ITEM_DELTA_REASON = "coverage reports are written per work item"


@dataclass(frozen=True, kw_only=True)
class PipelineResult:
    """Everything a run produced."""

    pull_request_number: int
    changed_files: Sequence[ChangedFile]
    summary: CoverageSummary
    comment_url: str
    follow_up_url: str | None = None


@dataclass(frozen=True, kw_only=True)
class CoveragePipeline:
    """Runs one pull request through the coverage pipeline."""

    config: ActionConfig
    client: GitHubClient
    resolver: TestResolver
    dispatcher: WorkDispatcher

    @classmethod
    def from_config(cls, config: ActionConfig, client: GitHubClient) -> "CoveragePipeline":
        """Create the pipeline with the resolver and agent the config asks for."""
        resolver = build_resolver(
            config.resolution_strategies,
            config.workspace,
            related_tests_command=config.related_tests_command_args(),
            ascend_levels=config.test_directory_ascend_levels,
            max_depth=config.test_directory_max_depth,
        )
        agent = CoverageAgent(
            command=config.agent_command_args(),
            api_key=config.agent_api_key,
            api_key_env=config.agent_api_key_env,
            cwd=config.workspace,
        )
        return cls(
            config=config,
            client=client,
            resolver=resolver,
            dispatcher=WorkDispatcher(
                agent=agent, max_concurrency=config.max_concurrency
            ),
        )

    async def run(self, pull_request_number: int) -> PipelineResult:
        """Run the pipeline for a pull request whose preconditions were checked.

        Raises:
            GitHubAPIError: If the GitHub API cannot be used
            GitError: If generated changes cannot be pushed

        """
        log.info("Fetching changed files of pull request #%d", pull_request_number)
        changed_files = await get_changed_files(self.client, pull_request_number)

        resolution = await resolve_associations(changed_files, self.resolver)
        log.info("Resolved %d association(s)", len(resolution.associations))

        settings = self.config.agent_settings()
        per_item = settings.coverage_report_mode == "per-item"
        with tempfile.TemporaryDirectory(prefix="cover-agent-action-") as scratch:
            baseline = None if per_item else await self.snapshot_baseline(Path(scratch))
            outcomes = await self.dispatcher.dispatch(
                resolution.associations, settings
            )
            summary = await summarize(
                baseline,
                self.config.workspace / self.config.coverage_report_path,
                outcomes,
                resolution.warnings,
                unavailable_reason=PER_ITEM_DELTA_REASON if per_item else None,
            )

        comment = await post_summary(
            self.client,
            pull_request_number,
            render_summary(summary, self.config.comment_prefix),
        )

        follow_up_url = None
        if self.config.open_pull_request:
            pull_request = await self.client.get_pull_request(pull_request_number)
            follow_up = await open_follow_up_pull_request(
                self.client, self.config.workspace, pull_request
            )
            follow_up_url = follow_up.html_url if follow_up else None

        return PipelineResult(
            pull_request_number=pull_request_number,
            changed_files=changed_files,
            summary=summary,
            comment_url=comment.html_url,
            follow_up_url=follow_up_url,
        )

    async def snapshot_baseline(self, directory: Path) -> Path | None:
        """Return the "before" coverage report for the run.

        A configured baseline is used as is. Otherwise the current coverage
        report is copied into ``directory``, outside the workspace, before
        any agent can rewrite it.
        """
        if self.config.baseline_report_path is not None:
            return self.config.workspace / self.config.baseline_report_path

        report = self.config.workspace / self.config.coverage_report_path
        if not report.is_file():
            log.info("No coverage report at %s to use as baseline", report)
            return None

        snapshot = directory / f"{report.stem}.before{report.suffix}"
        try:
            await asyncio.to_thread(shutil.copyfile, report, snapshot)
        except OSError as exc:
            log.warning("Cannot snapshot coverage report %s: %s", report, exc)
            return None

        log.info("Saved baseline coverage report to %s", snapshot)
        return snapshot
