"""CLI entry point for the pull request coverage action."""

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import aiohttp
from pydantic import ValidationError

from cover_agent_action.aggregator import STATUS_SYMBOLS, CoverageSummary
from cover_agent_action.config import ActionConfig, PreconditionError
from cover_agent_action.git import GitError
from cover_agent_action.github.client import GitHubAPIError, GitHubClient
from cover_agent_action.pipeline import CoveragePipeline, PipelineResult
from cover_agent_action.resolvers.factory import ResolutionStrategy


def log_results_summary(log: logging.Logger, summary: CoverageSummary) -> None:
    """Log a formatted summary of the coverage agent runs."""
    log.info("=" * 80)
    log.info("Coverage Results Summary:")
    log.info("=" * 80)

    for outcome in summary.outcomes:
        symbol = STATUS_SYMBOLS.get(outcome.status, "?")
        log.info(
            "%s %s -> %s: %s (exit code %d)",
            symbol,
            outcome.association.source_file,
            outcome.association.test_file,
            outcome.status,
            outcome.exit_code,
        )
        if not outcome.succeeded and outcome.stderr.strip():
            log.info("  Stderr: %s", outcome.stderr.strip())

    if not summary.delta.available:
        log.info("Coverage delta unavailable: %s", summary.delta.reason)

    for warning in summary.warnings:
        log.info("Warning: %s", warning)


def format_output(result: PipelineResult) -> dict[str, Any]:
    """Format the run result for JSON output."""
    summary = result.summary
    return {
        "pull_request": result.pull_request_number,
        "changed_files": [changed.path for changed in result.changed_files],
        "total": summary.total,
        "passed": len(summary.succeeded),
        "failed": len(summary.failed),
        "results": [
            {
                "source_file": outcome.association.source_file,
                "test_file": outcome.association.test_file,
                "status": outcome.status,
                "exit_code": outcome.exit_code,
            }
            for outcome in summary.outcomes
        ],
        "coverage_delta_available": summary.delta.available,
        "warnings": list(summary.warnings),
        "comment_url": result.comment_url,
        "follow_up_url": result.follow_up_url,
    }


async def run(config: ActionConfig) -> int:
    """Run the coverage pipeline and return exit code."""
    log = logging.getLogger("cover_agent_action")

    try:
        pull_request_number = config.check_preconditions()
    except PreconditionError as exc:
        log.error("%s", exc)
        return 1

    log.info(
        "Running coverage pipeline for %s#%d",
        config.repository,
        pull_request_number,
    )

    try:
        async with GitHubClient.from_config(config.github_config()) as client:
            pipeline = CoveragePipeline.from_config(config, client)
            result = await pipeline.run(pull_request_number)
    except (
        GitHubAPIError,
        GitError,
        aiohttp.ClientError,
        ValidationError,
        OSError,
    ) as exc:
        log.error("Coverage run failed: %s", exc)
        return 1

    log_results_summary(log, result.summary)
    print(json.dumps(format_output(result), indent=2))

    return 1 if result.summary.failed else 0


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Credentials and the GitHub context default to the environment variables
    GitHub Actions provides, so they need not appear on the command line.
    """
    parser = argparse.ArgumentParser(
        description="Raise unit test coverage of the files changed in a pull request"
    )
    parser.add_argument(
        "--github-token",
        default=os.environ.get("GITHUB_TOKEN", ""),
        help="GitHub token (default: $GITHUB_TOKEN)",
    )
    parser.add_argument(
        "--agent-api-key",
        default=os.environ.get("OPENAI_API_KEY", ""),
        help="API key passed to the coverage agent (default: $OPENAI_API_KEY)",
    )
    parser.add_argument(
        "--github-ref",
        default=os.environ.get("GITHUB_REF", ""),
        help="Git ref of the run, must be a pull request ref (default: $GITHUB_REF)",
    )
    parser.add_argument(
        "--repository",
        default=os.environ.get("GITHUB_REPOSITORY", ""),
        help="Repository in owner/repo format (default: $GITHUB_REPOSITORY)",
    )
    parser.add_argument("--test-command", help="Command running tests with coverage")
    parser.add_argument(
        "--coverage-report-path",
        type=Path,
        help="Coverage report the agent reads and writes",
    )
    parser.add_argument(
        "--coverage-report-mode",
        choices=["shared", "per-item"],
        help="Use one report for all work items or one per item",
    )
    parser.add_argument("--coverage-type", help="Coverage report format")
    parser.add_argument(
        "--desired-coverage", type=int, help="Target coverage percentage"
    )
    parser.add_argument(
        "--max-iterations", type=int, help="Maximum agent refinement iterations"
    )
    parser.add_argument(
        "--additional-agent-args",
        help="Extra arguments appended to every agent invocation",
    )
    parser.add_argument("--comment-prefix", help="Heading of the summary comment")
    parser.add_argument(
        "--resolution-strategy",
        dest="resolution_strategies",
        action="append",
        choices=[strategy.value for strategy in ResolutionStrategy],
        help="Test resolution strategy, repeat to combine (default: sibling)",
    )
    parser.add_argument(
        "--related-tests-command",
        help="Test runner query listing the tests related to a file",
    )
    parser.add_argument(
        "--test-directory-ascend-levels",
        type=int,
        help="Ancestor directories searched for test directories",
    )
    parser.add_argument(
        "--test-directory-max-depth",
        type=int,
        help="Subdirectory levels walked below a test directory (default: all)",
    )
    parser.add_argument(
        "--max-concurrency",
        type=int,
        help="Maximum number of agent processes running at once",
    )
    parser.add_argument("--agent-command", help="Coverage agent executable")
    parser.add_argument(
        "--test-command-dir",
        type=Path,
        help="Directory the agent runs the test command in",
    )
    parser.add_argument(
        "--baseline-report-path",
        type=Path,
        help="Coverage report from before the run (default: snapshot)",
    )
    parser.add_argument(
        "--open-pull-request",
        action="store_true",
        default=None,
        help="Open a pull request with the generated tests",
    )
    parser.add_argument("--workspace", type=Path, help="Repository checkout root")
    parser.add_argument("--api-base-url", help="GitHub API base URL")

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ActionConfig:
    """Build the run configuration, leaving unset options to their defaults."""
    return ActionConfig(**{k: v for k, v in vars(args).items() if v is not None})


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = build_config(args)
    except ValidationError as exc:
        logging.getLogger("cover_agent_action").error("Invalid configuration: %s", exc)
        sys.exit(1)

    exit_code = asyncio.run(run(config))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
