"""Aggregate work outcomes and coverage reports into a run summary."""

import asyncio
import difflib
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from cover_agent_action.models.result import WorkOutcome

log = logging.getLogger(__name__)

STATUS_SYMBOLS = {
    "success": "✅",
    "failure": "❌",
}

DEFAULT_MAX_DIFF_LINES = 200
MAX_STDERR_CHARS = 500
MAX_COMMENT_CHARS = 65_000
TRUNCATION_NOTE = "_Summary truncated, see the action log for the full results._"


@dataclass(frozen=True, kw_only=True)
class CoverageDelta:
    """Textual comparison of the before and after coverage reports.

    ``diff`` is None when the comparison is unavailable, with ``reason``
    explaining why.
    """

    before_path: Path | None
    after_path: Path | None
    diff: Sequence[str] | None = None
    truncated: bool = False
    reason: str | None = None

    @property
    def available(self) -> bool:
        """Whether both reports could be read."""
        return self.diff is not None


@dataclass(frozen=True, kw_only=True)
class CoverageSummary:
    """Summary of one run: outcomes, coverage delta and warnings."""

    outcomes: Sequence[WorkOutcome]
    delta: CoverageDelta
    warnings: Sequence[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Number of work items attempted."""
        return len(self.outcomes)

    @property
    def succeeded(self) -> Sequence[WorkOutcome]:
        """Outcomes of the agent runs that exited successfully."""
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> Sequence[WorkOutcome]:
        """Outcomes of the agent runs that failed."""
        return [o for o in self.outcomes if not o.succeeded]


async def read_report(path: Path | None) -> tuple[str | None, str | None]:
    """Read a coverage report, returning (text, None) or (None, reason)."""
    if path is None:
        return None, "not available"
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8"), None
    except (OSError, UnicodeDecodeError) as exc:
        log.warning("Cannot read coverage report %s: %s", path, exc)
        return None, f"unreadable ({exc})"


async def compare_reports(
    before_path: Path | None,
    after_path: Path | None,
    max_lines: int = DEFAULT_MAX_DIFF_LINES,
) -> CoverageDelta:
    """Diff two coverage reports, degrading when either cannot be read."""
    (before, before_error), (after, after_error) = await asyncio.gather(
        read_report(before_path), read_report(after_path)
    )
    if before is None or after is None:
        return CoverageDelta(
            before_path=before_path,
            after_path=after_path,
            reason="; ".join(
                f"{label} report {error}"
                for label, error in (("before", before_error), ("after", after_error))
                if error
            ),
        )

    diff = list(
        difflib.unified_diff(
            before.splitlines(),
            after.splitlines(),
            fromfile=str(before_path),
            tofile=str(after_path),
            lineterm="",
        )
    )
    return CoverageDelta(
        before_path=before_path,
        after_path=after_path,
        diff=diff[:max_lines],
        truncated=len(diff) > max_lines,
    )


async def summarize(
    before_path: Path | None,
    after_path: Path | None,
    outcomes: Sequence[WorkOutcome],
    warnings: Sequence[str] = (),
    max_diff_lines: int = DEFAULT_MAX_DIFF_LINES,
    unavailable_reason: str | None = None,
) -> CoverageSummary:
    """Build the run summary from the outcomes and the two reports.

    With ``unavailable_reason`` set the reports are not compared and the
    delta is reported as unavailable for that reason.
    """
    if unavailable_reason is not None:
        delta = CoverageDelta(
            before_path=before_path, after_path=after_path, reason=unavailable_reason
        )
    else:
        delta = await compare_reports(before_path, after_path, max_diff_lines)
    return CoverageSummary(outcomes=outcomes, delta=delta, warnings=list(warnings))


def render_summary(
    summary: CoverageSummary, prefix: str, max_chars: int = MAX_COMMENT_CHARS
) -> str:
    """Render the summary as the markdown body of a pull request comment.

    Bodies longer than ``max_chars`` are cut at a line boundary and end with
    a truncation note.
    """
    lines = [
        prefix,
        "",
        f"**{summary.total}** work item(s) attempted: "
        f"**{len(summary.succeeded)}** succeeded, "
        f"**{len(summary.failed)}** failed.",
    ]

    if summary.outcomes:
        lines += ["", "| Status | Source file | Test file | Exit code |"]
        lines += ["|---|---|---|---|"]
        for outcome in summary.outcomes:
            lines.append(
                f"| {STATUS_SYMBOLS[outcome.status]} "
                f"| `{outcome.association.source_file}` "
                f"| `{outcome.association.test_file}` "
                f"| {outcome.exit_code} |"
            )

    if summary.failed:
        lines += ["", "### Failures", ""]
        for outcome in summary.failed:
            stderr = " ".join(outcome.stderr.split())[:MAX_STDERR_CHARS]
            lines.append(
                f"- `{outcome.association.source_file}` with "
                f"`{outcome.association.test_file}`: {stderr or 'no output'}"
            )

    lines += ["", "### Coverage delta", ""]
    delta = summary.delta
    if not delta.available:
        lines.append(f"_Coverage delta unavailable: {delta.reason}_")
    elif not delta.diff:
        lines.append("_No change between the coverage reports._")
    else:
        lines += ["```diff", *delta.diff, "```"]
        if delta.truncated:
            lines.append("_Diff truncated._")

    if summary.warnings:
        lines += ["", "### Warnings", ""]
        lines += [f"- {warning}" for warning in summary.warnings]

    body = "\n".join(lines) + "\n"
    if len(body) <= max_chars:
        return body

    log.warning(
        "Summary of %d characters exceeds %d, truncating", len(body), max_chars
    )
    tail = f"\n\n{TRUNCATION_NOTE}\n"
    cut = max(body.rfind("\n", 0, max_chars - len(tail)), 0)
    return body[:cut] + tail
