"""Work dispatcher fanning coverage agent runs out over associations."""

import asyncio
import contextlib
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from cover_agent_action.agent import CoverageAgent
from cover_agent_action.models.association import TestAssociation
from cover_agent_action.models.result import WorkOutcome
from cover_agent_action.models.work import AgentSettings, WorkItem

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class WorkDispatcher:
    """Runs the coverage agent once per association and collects outcomes.

    Items sharing a coverage report path run one at a time; items with
    distinct paths run concurrently, bounded by ``max_concurrency`` when set.
    """

    agent: CoverageAgent
    max_concurrency: int | None = None

    async def dispatch(
        self,
        associations: Sequence[TestAssociation],
        settings: AgentSettings,
    ) -> Sequence[WorkOutcome]:
        """Run every association and wait for all of them.

        Args:
            associations: Associations to cover, duplicates are dropped
            settings: Settings shared by every agent invocation

        Returns:
            One outcome per unique association

        """
        unique = tuple(dict.fromkeys(associations))
        if not unique:
            log.info("No associations to dispatch")
            return []

        items = [WorkItem.for_association(a, settings) for a in unique]
        semaphore = (
            asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        )
        report_locks = {item.coverage_report_path: asyncio.Lock() for item in items}

        log.info(
            "Dispatching %d work item(s) over %d coverage report path(s)...",
            len(items),
            len(report_locks),
        )
        tasks = [
            self._run_item(item, report_locks[item.coverage_report_path], semaphore)
            for item in items
        ]

        results = await asyncio.gather(*tasks, return_exceptions=True)
        log.info("Coverage agent runs completed")

        return self._process_results(items, results)

    def _process_results(
        self,
        items: Sequence[WorkItem],
        results: Sequence[WorkOutcome | BaseException],
    ) -> Sequence[WorkOutcome]:
        """Pair results with their items, turning exceptions into failures."""
        outcomes: list[WorkOutcome] = []

        for item, result in zip(items, results, strict=True):
            if isinstance(result, WorkOutcome):
                outcome = result
            else:
                log.error(
                    "Coverage agent run failed for %s: %s",
                    item.association.source_file,
                    result,
                    exc_info=result,
                )
                outcome = WorkOutcome(
                    association=item.association,
                    status="failure",
                    exit_code=-1,
                    stderr=str(result) or type(result).__name__,
                )

            log.info(
                "Work item completed: source=%s test=%s status=%s exit_code=%d",
                outcome.association.source_file,
                outcome.association.test_file,
                outcome.status,
                outcome.exit_code,
            )
            outcomes.append(outcome)

        return outcomes

    async def _run_item(
        self,
        item: WorkItem,
        report_lock: asyncio.Lock,
        semaphore: asyncio.Semaphore | None,
    ) -> WorkOutcome:
        """Run one item once its report path and a concurrency slot are free."""
        async with report_lock:
            async with semaphore or contextlib.nullcontext():
                log.info(
                    "Running coverage agent for %s with %s (report=%s)",
                    item.association.source_file,
                    item.association.test_file,
                    item.coverage_report_path,
                )
                return await self.agent.run(item)

