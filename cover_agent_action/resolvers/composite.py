"""Combine several resolution strategies into one resolver."""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from cover_agent_action.resolvers.base import Resolution, TestResolver, unique_paths


@dataclass(frozen=True, kw_only=True)
class CompositeResolver(TestResolver):
    """Union of the candidates of several resolvers, in resolver order."""

    resolvers: Sequence[TestResolver]

    async def find_tests(self, source_file: str) -> Resolution:
        """Run every resolver concurrently and merge their resolutions."""
        resolutions = await asyncio.gather(
            *(resolver.resolve(source_file) for resolver in self.resolvers)
        )
        return Resolution(
            source_file=source_file,
            test_files=unique_paths(
                test_file
                for resolution in resolutions
                for test_file in resolution.test_files
            ),
            warnings=[
                warning
                for resolution in resolutions
                for warning in resolution.warnings
            ],
        )
