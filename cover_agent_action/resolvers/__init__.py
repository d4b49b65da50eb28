"""Test resolution strategies."""

from cover_agent_action.resolvers.base import (
    Resolution,
    TestResolver,
    is_test_file,
)
from cover_agent_action.resolvers.composite import CompositeResolver
from cover_agent_action.resolvers.factory import ResolutionStrategy, build_resolver
from cover_agent_action.resolvers.sibling import SiblingResolver
from cover_agent_action.resolvers.test_directory import TestDirectoryResolver
from cover_agent_action.resolvers.test_runner import TestRunnerResolver

__all__ = [
    "CompositeResolver",
    "Resolution",
    "ResolutionStrategy",
    "SiblingResolver",
    "TestDirectoryResolver",
    "TestResolver",
    "TestRunnerResolver",
    "build_resolver",
    "is_test_file",
]
