"""Abstract base class for test resolution strategies."""

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

log = logging.getLogger(__name__)

DEFAULT_TEST_MARKERS: Sequence[str] = ("test", "spec")

_STEM_SEPARATORS = re.compile(r"[._-]")


@dataclass(frozen=True, kw_only=True)
class Resolution:
    """Test files found for one source file.

    Warnings describe recovered failures (unreadable directory, failing test
    runner) so they can be reported alongside the results.
    """

    source_file: str
    test_files: Sequence[str] = ()
    warnings: Sequence[str] = ()


def is_test_file(path: str, markers: Sequence[str] = DEFAULT_TEST_MARKERS) -> bool:
    """Check if a path names a test file by its base name.

    The stem is split on ``.``, ``_`` and ``-`` and a marker must equal one
    of the tokens: ``foo.test.ts`` and ``test_foo.py`` are tests,
    ``latest.ts`` and ``inspector.ts`` are not.
    """
    tokens = _STEM_SEPARATORS.split(PurePosixPath(path).stem.lower())
    return any(marker.lower() in tokens for marker in markers)


def unique_paths(paths: Iterable[str]) -> Sequence[str]:
    """De-duplicate paths by exact equality, keeping first-seen order."""
    return tuple(dict.fromkeys(paths))


@dataclass(frozen=True, kw_only=True)
class TestResolver(ABC):
    """Abstract base for test resolution strategies.

    Source paths are repository-relative and interpreted against ``root``.
    Implementations must not keep mutable state between calls so a single
    resolver can serve many source files concurrently.
    """

    __test__ = False

    root: Path
    markers: Sequence[str] = field(default=DEFAULT_TEST_MARKERS)

    async def resolve(self, source_file: str) -> Resolution:
        """Find the test files related to a source file.

        Test files themselves resolve to nothing. Never raises: an
        unexpected error yields an empty resolution carrying a warning.
        """
        if is_test_file(source_file, self.markers):
            log.debug("Skipping resolution for test file %s", source_file)
            return Resolution(source_file=source_file)

        try:
            return await self.find_tests(source_file)
        except Exception as exc:
            log.warning(
                "%s failed for %s: %s",
                type(self).__name__,
                source_file,
                exc,
                exc_info=exc,
            )
            return Resolution(
                source_file=source_file,
                warnings=[f"{type(self).__name__} failed for {source_file}: {exc}"],
            )

    @abstractmethod
    async def find_tests(self, source_file: str) -> Resolution:
        """Search for the test files of a source file that is not a test.

        Args:
            source_file: Repository-relative path (e.g., "src/foo.ts")

        Returns:
            Resolution with repository-relative test paths

        """
