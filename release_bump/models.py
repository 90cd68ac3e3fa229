"""Data models for release-bump.

These Pydantic models represent the values passed between the release
pipeline stages.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class BumpKind(str, Enum):
    """Which component of a version to increment."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"


class VersionBump(BaseModel):
    """Records a version change.

    Attributes:
        old: The version before bumping.
        new: The version after bumping.
    """

    old: str
    new: str


class ReleaseResult(BaseModel):
    """Outcome of a release run.

    Attributes:
        bump: The old and new version.
        tag: Name of the release tag.
        date: Release date (YYYY-MM-DD) written to the changelog.
        changes: Changelog text moved out of the Unreleased section.
        files: Project-relative paths that were rewritten and committed.
        dry_run: True when nothing was written.
    """

    bump: VersionBump
    tag: str
    date: str
    changes: str
    files: list[str] = Field(default_factory=list)
    dry_run: bool = False
