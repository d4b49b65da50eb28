"""Models for the work dispatched to the coverage agent."""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, TypeAlias

from cover_agent_action.models.association import TestAssociation

CoverageReportMode: TypeAlias = Literal["shared", "per-item"]

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]+")


@dataclass(frozen=True, kw_only=True)
class AgentSettings:
    """Run-wide settings shared by every work item."""

    test_command: str
    coverage_report_path: Path
    coverage_type: str
    desired_coverage: int
    max_iterations: int
    coverage_report_mode: CoverageReportMode = "shared"
    additional_args: str = ""
    test_command_dir: Path | None = None

    def report_path_for(self, association: TestAssociation) -> Path:
        """Return the coverage report path an association's agent run uses.

        In shared mode every item targets the configured path. In per-item
        mode the path gets a suffix derived from the association, e.g.
        ``coverage/cobertura.xml`` becomes
        ``coverage/cobertura-src-foo-ts--src-foo-test-ts.xml``.
        """
        if self.coverage_report_mode == "shared":
            return self.coverage_report_path

        path = self.coverage_report_path
        slug = "--".join(
            _UNSAFE_CHARS.sub("-", part).strip("-")
            for part in (association.source_file, association.test_file)
        )
        return path.with_name(f"{path.stem}-{slug}{path.suffix}")


@dataclass(frozen=True, kw_only=True)
class WorkItem:
    """One coverage agent invocation for one association."""

    association: TestAssociation
    settings: AgentSettings
    coverage_report_path: Path

    @classmethod
    def for_association(
        cls, association: TestAssociation, settings: AgentSettings
    ) -> "WorkItem":
        """Build the work item for an association."""
        return cls(
            association=association,
            settings=settings,
            coverage_report_path=settings.report_path_for(association),
        )
