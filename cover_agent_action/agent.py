"""Run the external coverage agent for a work item."""

import asyncio
import logging
import os
import shlex
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import SecretStr

from cover_agent_action.models.result import WorkOutcome
from cover_agent_action.models.work import WorkItem

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class CoverageAgent:
    """Subprocess adapter for the ``cover-agent`` command line.

    Arguments are always passed as a list to the process, so paths and the
    test command are never interpreted by a shell.
    """

    command: Sequence[str] = ("cover-agent",)
    api_key: SecretStr | None = field(default=None, repr=False)
    api_key_env: str = "OPENAI_API_KEY"
    cwd: Path | None = None

    def build_arguments(self, item: WorkItem) -> Sequence[str]:
        """Build the full argument list for a work item."""
        settings = item.settings
        args = [
            *self.command,
            "--source-file-path",
            item.association.source_file,
            "--test-file-path",
            item.association.test_file,
            "--code-coverage-report-path",
            str(item.coverage_report_path),
            "--test-command",
            settings.test_command,
            "--coverage-type",
            settings.coverage_type,
            "--desired-coverage",
            str(settings.desired_coverage),
            "--max-iterations",
            str(settings.max_iterations),
        ]
        if settings.test_command_dir is not None:
            args += ["--test-command-dir", str(settings.test_command_dir)]
        args += shlex.split(settings.additional_args)
        return args

    def environment(self) -> Mapping[str, str]:
        """Return the process environment with the agent credential added."""
        env = dict(os.environ)
        if self.api_key is not None:
            env[self.api_key_env] = self.api_key.get_secret_value()
        return env

    async def run(self, item: WorkItem) -> WorkOutcome:
        """Run the agent and wait for it to exit.

        If the caller is cancelled while the agent runs, the process is left
        to finish so it does not leave a half-written coverage report, and
        the cancellation is re-raised afterwards.

        Raises:
            OSError: If the agent executable cannot be started

        """
        args = self.build_arguments(item)
        log.info("Executing coverage agent: %s", shlex.join(args))

        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=self.cwd,
            env=self.environment(),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        communicate = asyncio.ensure_future(process.communicate())
        try:
            stdout, stderr = await asyncio.shield(communicate)
        except asyncio.CancelledError:
            log.warning(
                "Run cancelled, waiting for coverage agent on %s to exit",
                item.association.source_file,
            )
            await communicate
            raise

        exit_code = process.returncode if process.returncode is not None else -1
        outcome = WorkOutcome(
            association=item.association,
            status="success" if exit_code == 0 else "failure",
            exit_code=exit_code,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )
        if not outcome.succeeded:
            log.error(
                "Coverage agent exited with code %d for %s: %s",
                exit_code,
                item.association.source_file,
                outcome.stderr.strip(),
            )
        return outcome
