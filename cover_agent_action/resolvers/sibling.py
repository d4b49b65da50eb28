"""Resolve tests that sit next to the source file."""

import asyncio
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from cover_agent_action.resolvers.base import Resolution, TestResolver, is_test_file

log = logging.getLogger(__name__)


def list_files(directory: Path) -> Sequence[str]:
    """List the names of the regular files in a directory, sorted."""
    with os.scandir(directory) as entries:
        return sorted(entry.name for entry in entries if entry.is_file())


@dataclass(frozen=True, kw_only=True)
class SiblingResolver(TestResolver):
    """Match test files in the source file's own directory.

    ``src/foo.ts`` resolves to ``src/foo.test.ts`` and ``src/foo.spec.ts``
    but not to ``src/foobar.ts`` or ``src/bar.test.ts``.
    """

    async def find_tests(self, source_file: str) -> Resolution:
        """List the source directory and keep the test files named after it."""
        source = PurePosixPath(source_file)
        directory = self.root / source.parent

        try:
            names = await asyncio.to_thread(list_files, directory)
        except OSError as exc:
            log.warning("Cannot list directory %s: %s", directory, exc)
            return Resolution(
                source_file=source_file,
                warnings=[f"Cannot list directory {source.parent}: {exc.strerror}"],
            )

        test_files = [
            (source.parent / name).as_posix()
            for name in names
            if name != source.name
            and source.stem in PurePosixPath(name).stem
            and is_test_file(name, self.markers)
        ]
        log.debug("Sibling tests for %s: %s", source_file, test_files)
        return Resolution(source_file=source_file, test_files=test_files)
