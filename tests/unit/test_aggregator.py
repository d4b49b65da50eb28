"""Tests for the coverage aggregator."""

from pathlib import Path

import pytest

from cover_agent_action.aggregator import (
    MAX_COMMENT_CHARS,
    TRUNCATION_NOTE,
    CoverageDelta,
    CoverageSummary,
    compare_reports,
    render_summary,
    summarize,
)
from cover_agent_action.models.association import TestAssociation
from cover_agent_action.models.result import WorkOutcome
from cover_agent_action.testing.factories import WorkOutcomeFactory

BEFORE = """<coverage line-rate="0.5">
  <class filename="src/foo.ts" line-rate="0.5"/>
</coverage>
"""

AFTER = """<coverage line-rate="0.9">
  <class filename="src/foo.ts" line-rate="0.9"/>
</coverage>
"""


@pytest.fixture
def reports(tmp_path: Path) -> tuple[Path, Path]:
    """Write a before and an after report."""
    before = tmp_path / "before.xml"
    after = tmp_path / "after.xml"
    before.write_text(BEFORE)
    after.write_text(AFTER)
    return before, after


def failure(source: str, test: str, stderr: str) -> WorkOutcome:
    """Build a failed outcome."""
    return WorkOutcome(
        association=TestAssociation(source_file=source, test_file=test),
        status="failure",
        exit_code=1,
        stderr=stderr,
    )


class TestCompareReports:
    """Tests for compare_reports."""

    async def test_diffs_reports(self, reports: tuple[Path, Path]) -> None:
        """Returns a unified diff between the two reports."""
        delta = await compare_reports(*reports)

        assert delta.available
        assert '-<coverage line-rate="0.5">' in delta.diff
        assert '+<coverage line-rate="0.9">' in delta.diff
        assert not delta.truncated

    async def test_identical_reports_have_empty_diff(self, tmp_path: Path) -> None:
        """Reports no change for identical reports."""
        report = tmp_path / "report.xml"
        report.write_text(BEFORE)

        delta = await compare_reports(report, report)

        assert delta.available
        assert delta.diff == []

    async def test_unavailable_when_after_is_missing(self, tmp_path: Path) -> None:
        """Degrades when the after report cannot be read."""
        before = tmp_path / "before.xml"
        before.write_text(BEFORE)

        delta = await compare_reports(before, tmp_path / "missing.xml")

        assert not delta.available
        assert delta.reason is not None
        assert "after report unreadable" in delta.reason

    async def test_unavailable_without_baseline(self, tmp_path: Path) -> None:
        """Degrades when there is no before report at all."""
        after = tmp_path / "after.xml"
        after.write_text(AFTER)

        delta = await compare_reports(None, after)

        assert not delta.available
        assert delta.reason == "before report not available"

    async def test_unavailable_for_binary_report(self, tmp_path: Path) -> None:
        """Degrades when a report is not text."""
        before = tmp_path / "before.xml"
        before.write_bytes(b"\xff\xfe\x00\x81")

        delta = await compare_reports(before, before)

        assert not delta.available

    async def test_truncates_long_diffs(self, tmp_path: Path) -> None:
        """Caps the diff at the requested number of lines."""
        before = tmp_path / "before.txt"
        after = tmp_path / "after.txt"
        before.write_text("\n".join(f"line {i}" for i in range(100)))
        after.write_text("\n".join(f"changed {i}" for i in range(100)))

        delta = await compare_reports(before, after, max_lines=10)

        assert delta.diff is not None
        assert len(delta.diff) == 10
        assert delta.truncated


class TestSummarize:
    """Tests for summarize."""

    async def test_counts_outcomes(self, reports: tuple[Path, Path]) -> None:
        """Counts attempted, succeeded and failed items."""
        outcomes = [
            *WorkOutcomeFactory.batch(2),
            failure("src/bad.ts", "src/bad.test.ts", "assertion failed"),
        ]

        summary = await summarize(*reports, outcomes)

        assert summary.total == 3
        assert len(summary.succeeded) == 2
        assert len(summary.failed) == 1
        assert summary.failed[0].association.source_file == "src/bad.ts"
        assert summary.delta.available

    async def test_keeps_counts_when_reports_unreadable(self, tmp_path: Path) -> None:
        """Still reports outcome counts without the coverage delta."""
        outcomes = WorkOutcomeFactory.batch(3)

        summary = await summarize(
            tmp_path / "missing-before.xml", tmp_path / "missing-after.xml", outcomes
        )

        assert summary.total == 3
        assert len(summary.succeeded) == 3
        assert not summary.delta.available

    async def test_keeps_warnings(self, reports: tuple[Path, Path]) -> None:
        """Carries resolution warnings into the summary."""
        summary = await summarize(*reports, [], ["Cannot list directory src"])

        assert summary.warnings == ["Cannot list directory src"]

    async def test_skips_comparison_with_reason(
        self, reports: tuple[Path, Path]
    ) -> None:
        """Reports the delta as unavailable without reading the reports."""
        summary = await summarize(
            *reports, [], unavailable_reason="coverage reports are written per work item"
        )

        assert not summary.delta.available
        assert summary.delta.reason == "coverage reports are written per work item"


class TestRenderSummary:
    """Tests for render_summary."""

    def test_starts_with_prefix(self) -> None:
        """Uses the comment prefix as heading."""
        summary = CoverageSummary(
            outcomes=[],
            delta=CoverageDelta(before_path=None, after_path=None, diff=[]),
        )

        body = render_summary(summary, "## Coverage")

        assert body.startswith("## Coverage\n")
        assert "**0** work item(s) attempted" in body

    def test_lists_failures(self) -> None:
        """Names each failed association with its diagnostics."""
        summary = CoverageSummary(
            outcomes=[
                WorkOutcomeFactory.build(
                    association=TestAssociation(
                        source_file="src/ok.ts", test_file="src/ok.test.ts"
                    )
                ),
                failure("src/bad.ts", "src/bad.test.ts", "assertion\nfailed"),
            ],
            delta=CoverageDelta(before_path=None, after_path=None, diff=[]),
        )

        body = render_summary(summary, "## Coverage")

        assert "**2** work item(s) attempted: **1** succeeded, **1** failed." in body
        assert "| ✅ | `src/ok.ts` | `src/ok.test.ts` | 0 |" in body
        assert "| ❌ | `src/bad.ts` | `src/bad.test.ts` | 1 |" in body
        assert "- `src/bad.ts` with `src/bad.test.ts`: assertion failed" in body

    def test_renders_diff(self) -> None:
        """Shows the coverage delta as a diff block."""
        summary = CoverageSummary(
            outcomes=[],
            delta=CoverageDelta(
                before_path=Path("before.xml"),
                after_path=Path("after.xml"),
                diff=["--- before.xml", "+++ after.xml", "-old", "+new"],
            ),
        )

        body = render_summary(summary, "## Coverage")

        assert "```diff\n--- before.xml\n+++ after.xml\n-old\n+new\n```" in body

    def test_flags_unavailable_delta(self) -> None:
        """Says why the coverage delta is missing."""
        summary = CoverageSummary(
            outcomes=[],
            delta=CoverageDelta(
                before_path=None, after_path=None, reason="before report not available"
            ),
        )

        body = render_summary(summary, "## Coverage")

        assert "_Coverage delta unavailable: before report not available_" in body

    def test_lists_warnings(self) -> None:
        """Lists resolution warnings."""
        summary = CoverageSummary(
            outcomes=[],
            delta=CoverageDelta(before_path=None, after_path=None, diff=[]),
            warnings=["Related tests query failed for src/a.ts: exited with code 1"],
        )

        body = render_summary(summary, "## Coverage")

        assert "### Warnings" in body
        assert "- Related tests query failed for src/a.ts" in body

    def test_truncates_long_bodies(self) -> None:
        """Cuts an oversized body at a line boundary and says so."""
        summary = CoverageSummary(
            outcomes=[
                failure(f"src/module{i}.ts", f"src/module{i}.test.ts", "x" * 400)
                for i in range(50)
            ],
            delta=CoverageDelta(before_path=None, after_path=None, diff=[]),
        )

        body = render_summary(summary, "## Coverage", max_chars=2000)

        assert len(body) <= 2000
        assert body.startswith("## Coverage\n")
        assert body.endswith(f"\n\n{TRUNCATION_NOTE}\n")
        assert "| ❌ | `src/module0.ts` | `src/module0.test.ts` | 1 |" in body

    def test_stays_within_comment_limit_for_large_runs(self) -> None:
        """Keeps the default body within the comment size limit."""
        summary = CoverageSummary(
            outcomes=WorkOutcomeFactory.batch(
                3000,
                association=TestAssociation(
                    source_file="src/" + "nested/" * 10 + "component.ts",
                    test_file="src/" + "nested/" * 10 + "component.test.ts",
                ),
            ),
            delta=CoverageDelta(before_path=None, after_path=None, diff=[]),
        )

        body = render_summary(summary, "## Coverage")

        assert len(body) <= MAX_COMMENT_CHARS
        assert TRUNCATION_NOTE in body
