"""Error types raised by release-bump.

Every failure the release flow can hit is a ``ReleaseError`` subclass
tagged with an ``ErrorCode`` and carrying the payload needed to report
it (version, tag, path, operation, wrapped cause).
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_VERSION = "INVALID_VERSION"
    VERSION_EXISTS = "VERSION_EXISTS"
    DIRTY_WORKING_TREE = "DIRTY_WORKING_TREE"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_UPDATE_FAILED = "FILE_UPDATE_FAILED"
    CHANGELOG_EMPTY = "CHANGELOG_EMPTY"
    CHANGELOG_STRUCTURE = "CHANGELOG_STRUCTURE"
    VCS_OPERATION_FAILED = "VCS_OPERATION_FAILED"
    NOT_A_REPOSITORY = "NOT_A_REPOSITORY"
    CONFIG_ERROR = "CONFIG_ERROR"
    RELEASE_FAILED = "RELEASE_FAILED"


class ReleaseError(Exception):
    """Base class for all release-bump errors."""

    code: ErrorCode

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidVersion(ReleaseError):
    code = ErrorCode.INVALID_VERSION

    def __init__(self, version: str) -> None:
        super().__init__(
            f"Invalid version {version!r}. "
            "Expected MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]"
        )
        self.version = version


class VersionAlreadyExists(ReleaseError):
    code = ErrorCode.VERSION_EXISTS

    def __init__(self, version: str, tag: str) -> None:
        super().__init__(
            f"Version {version} already exists (tag {tag}). "
            "Choose a different version or delete the existing tag."
        )
        self.version = version
        self.tag = tag


class DirtyWorkingTree(ReleaseError):
    code = ErrorCode.DIRTY_WORKING_TREE

    def __init__(self) -> None:
        super().__init__(
            "Working tree has uncommitted changes. Commit or stash them first."
        )


class FileNotFound(ReleaseError):
    code = ErrorCode.FILE_NOT_FOUND

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path


class FileUpdateFailed(ReleaseError):
    """A file rewrite failed; the file was restored from its backup."""

    code = ErrorCode.FILE_UPDATE_FAILED

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"Failed to update {path}: {cause}")
        self.path = path
        self.cause = cause


class ChangelogEmpty(ReleaseError):
    code = ErrorCode.CHANGELOG_EMPTY

    def __init__(self, path: str) -> None:
        super().__init__(
            f"The [Unreleased] section of {path} is empty. "
            "Record your changes there before releasing."
        )
        self.path = path


class ChangelogStructureError(ReleaseError):
    """The changelog lacks (or duplicates) its ``## [Unreleased]`` heading."""

    code = ErrorCode.CHANGELOG_STRUCTURE

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class VcsOperationFailed(ReleaseError):
    code = ErrorCode.VCS_OPERATION_FAILED

    def __init__(
        self, operation: str, cause: BaseException, stderr: str = ""
    ) -> None:
        detail = stderr.strip() or str(cause)
        super().__init__(f"Git operation failed: {operation}. Error: {detail}")
        self.operation = operation
        self.cause = cause
        self.stderr = stderr


class NotARepository(ReleaseError):
    code = ErrorCode.NOT_A_REPOSITORY

    def __init__(self, root: str) -> None:
        super().__init__(f"Not a git repository: {root}")
        self.root = root


class ConfigurationError(ReleaseError):
    code = ErrorCode.CONFIG_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(f"Configuration error: {message}")


class ReleaseFailed(ReleaseError):
    """The release flow aborted at ``stage`` after completing ``completed``."""

    code = ErrorCode.RELEASE_FAILED

    def __init__(
        self,
        stage: str,
        completed: list[str],
        cause: ReleaseError,
        hint: str = "",
    ) -> None:
        done = ", ".join(completed) if completed else "none"
        message = f"Release aborted at {stage}: {cause.message}\n  Completed: {done}"
        if hint:
            message += f"\n  {hint}"
        super().__init__(message)
        self.stage = stage
        self.completed = list(completed)
        self.cause = cause
        self.hint = hint
