"""Build a test resolver from the configured strategies."""

from collections.abc import Sequence
from enum import StrEnum
from pathlib import Path

from cover_agent_action.resolvers.base import TestResolver
from cover_agent_action.resolvers.composite import CompositeResolver
from cover_agent_action.resolvers.sibling import SiblingResolver
from cover_agent_action.resolvers.test_directory import TestDirectoryResolver
from cover_agent_action.resolvers.test_runner import TestRunnerResolver


class ResolutionStrategy(StrEnum):
    """Available test resolution strategies."""

    SIBLING = "sibling"
    TEST_DIRECTORY = "test-directory"
    TEST_RUNNER = "test-runner"


def build_resolver(
    strategies: Sequence[ResolutionStrategy],
    root: Path,
    *,
    related_tests_command: Sequence[str] = (),
    ascend_levels: int = 0,
    max_depth: int | None = None,
) -> TestResolver:
    """Create the resolver for the given strategies.

    A single strategy yields its resolver directly, several are wrapped in a
    CompositeResolver that unions their candidates in the given order.

    Raises:
        ValueError: If no strategy is given, or the test-runner strategy is
            requested without a command

    """
    if not strategies:
        raise ValueError("At least one resolution strategy is required")

    resolvers: list[TestResolver] = []
    for strategy in dict.fromkeys(strategies):
        match strategy:
            case ResolutionStrategy.SIBLING:
                resolvers.append(SiblingResolver(root=root))
            case ResolutionStrategy.TEST_DIRECTORY:
                resolvers.append(
                    TestDirectoryResolver(
                        root=root, ascend_levels=ascend_levels, max_depth=max_depth
                    )
                )
            case ResolutionStrategy.TEST_RUNNER:
                if not related_tests_command:
                    raise ValueError("The test-runner strategy requires a command")
                resolvers.append(
                    TestRunnerResolver(root=root, command=related_tests_command)
                )

    if len(resolvers) == 1:
        return resolvers[0]
    return CompositeResolver(root=root, resolvers=resolvers)
