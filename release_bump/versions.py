"""Version parsing, comparison and bumping utilities.

Versions follow Semantic Versioning: ``MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]``.
Parsing is strict; incomplete versions such as "1.2" or prefixed ones such
as "v1.2.3" are rejected rather than padded or truncated.
"""

from __future__ import annotations

import semver

from .errors import InvalidVersion
from .models import BumpKind

SemanticVersion = semver.Version


def parse_version(version_str: str) -> SemanticVersion:
    """Parse a version string into an immutable SemanticVersion.

    Raises:
        InvalidVersion: If the string is not a complete semantic version.
    """
    if not isinstance(version_str, str) or version_str != version_str.strip():
        raise InvalidVersion(str(version_str))
    try:
        return SemanticVersion.parse(version_str)
    except (ValueError, TypeError) as exc:
        raise InvalidVersion(version_str) from exc


def is_valid_version(version_str: str) -> bool:
    """Return True if ``version_str`` parses as a semantic version."""
    try:
        parse_version(version_str)
    except InvalidVersion:
        return False
    return True


def bump_version(version_str: str, kind: BumpKind | str) -> str:
    """Increment one component and return the new version string.

    Lower components are reset to zero and prerelease/build metadata is
    always dropped.

    Examples:
        "1.9.9", "minor" → "1.10.0"
        "1.2.3-beta.1", "patch" → "1.2.4"
    """
    kind = BumpKind(kind)
    version = parse_version(version_str)
    if kind is BumpKind.MAJOR:
        bumped = version.bump_major()
    elif kind is BumpKind.MINOR:
        bumped = version.bump_minor()
    else:
        bumped = version.bump_patch()
    return format_version(bumped)


def compare_versions(a: str, b: str) -> int:
    """Compare two versions, returning -1, 0 or 1.

    Core components compare numerically. With equal cores a release sorts
    above any prerelease; two prereleases compare identifier by identifier.
    Build metadata never affects the result.
    """
    va = parse_version(a)
    vb = parse_version(b)
    core_a = (va.major, va.minor, va.patch)
    core_b = (vb.major, vb.minor, vb.patch)
    if core_a != core_b:
        return 1 if core_a > core_b else -1
    return _compare_prerelease(va.prerelease, vb.prerelease)


def _compare_prerelease(a: str | None, b: str | None) -> int:
    if a == b:
        return 0
    if a is None:
        return 1
    if b is None:
        return -1

    parts_a = a.split(".")
    parts_b = b.split(".")
    for x, y in zip(parts_a, parts_b):
        if x == y:
            continue
        if x.isdigit() and y.isdigit():
            return 1 if int(x) > int(y) else -1
        return 1 if x > y else -1

    # One is a prefix of the other: the shorter one sorts first
    if len(parts_a) == len(parts_b):
        return 0
    return 1 if len(parts_a) > len(parts_b) else -1


def format_version(version: SemanticVersion) -> str:
    """Render MAJOR.MINOR.PATCH, then -PRERELEASE and +BUILD if present."""
    result = f"{version.major}.{version.minor}.{version.patch}"
    if version.prerelease:
        result += f"-{version.prerelease}"
    if version.build:
        result += f"+{version.build}"
    return result


def is_prerelease(version_str: str) -> bool:
    """True if the version carries a prerelease tag (build alone does not count)."""
    return parse_version(version_str).prerelease is not None


def main_version(version_str: str) -> str:
    """Return only the MAJOR.MINOR.PATCH part of a version."""
    version = parse_version(version_str)
    return f"{version.major}.{version.minor}.{version.patch}"
