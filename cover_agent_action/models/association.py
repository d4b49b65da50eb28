"""Models for changed files and the test files resolved for them."""

from pydantic import Field

from cover_agent_action.models.base import Model


class ChangedFile(Model):
    """A file added or modified by the pull request."""

    path: str = Field(..., description="Repository-relative file path")


class TestAssociation(Model):
    """A (source file, test file) pair discovered by test resolution.

    The pair as a whole is the identity: a test file may be associated with
    several source files and a source file with several test files.
    """

    __test__ = False

    source_file: str = Field(..., description="Repository-relative source path")
    test_file: str = Field(..., description="Repository-relative test path")
