"""Models for coverage agent execution results."""

from dataclasses import dataclass
from typing import Literal, TypeAlias

from cover_agent_action.models.association import TestAssociation

WorkStatus: TypeAlias = Literal["success", "failure"]


@dataclass(frozen=True, kw_only=True)
class WorkOutcome:
    """Result of a single coverage agent invocation."""

    association: TestAssociation
    status: WorkStatus
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        """Whether the agent exited successfully."""
        return self.status == "success"
