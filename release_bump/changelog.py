"""Changelog text algorithms.

A changelog is a sequence of sections headed ``## [<version>] - <date>``,
with a single ``## [Unreleased]`` bucket on top holding pending entries.
Sections are usually separated by a ``---`` horizontal rule.

These functions work on text only; reading and writing files (and the
backup protocol around it) lives in ``release_bump.files``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import ChangelogEmpty, ChangelogStructureError

UNRELEASED_HEADING = "## [Unreleased]"

# An optional " - <date>" suffix is tolerated after the heading
_UNRELEASED_RE = re.compile(
    r"^## \[Unreleased\](?:[ \t]+-[^\r\n]*)?[ \t\r]*$", re.MULTILINE
)
_SECTION_RE = re.compile(r"^## ")
_RULE_RE = re.compile(r"^---[ \t]*$")


@dataclass(frozen=True)
class UnreleasedSection:
    """Location of the Unreleased section within a changelog.

    Attributes:
        heading_end: Offset just past the heading line (including its newline).
        body_end: Offset where the body stops (next heading, rule, or EOF).
        rule_end: Offset past the closing ``---`` line if the body ended at
            one, otherwise equal to ``body_end``.
        body: Body text with surrounding blank lines removed.
    """

    heading_end: int
    body_end: int
    rule_end: int
    body: str


def find_unreleased(text: str, path: str = "CHANGELOG.md") -> UnreleasedSection:
    """Locate the single Unreleased section.

    Raises:
        ChangelogStructureError: If the heading is missing or appears twice.
    """
    matches = list(_UNRELEASED_RE.finditer(text))
    if not matches:
        raise ChangelogStructureError(path, f"no {UNRELEASED_HEADING} section found")
    if len(matches) > 1:
        raise ChangelogStructureError(
            path, f"{UNRELEASED_HEADING} appears {len(matches)} times"
        )

    heading = matches[0]
    heading_end = heading.end()
    if text.startswith("\n", heading_end):
        heading_end += 1

    offset = heading_end
    body_end = rule_end = len(text)
    for line in text[heading_end:].splitlines(keepends=True):
        if _SECTION_RE.match(line):
            body_end = rule_end = offset
            break
        if _RULE_RE.match(line.rstrip("\r\n")):
            body_end = offset
            rule_end = offset + len(line)
            break
        offset += len(line)

    return UnreleasedSection(
        heading_end=heading_end,
        body_end=body_end,
        rule_end=rule_end,
        body=_trim_blank_lines(text[heading_end:body_end]),
    )


def extract_unreleased(text: str, path: str = "CHANGELOG.md") -> str:
    """Return the pending entries recorded under ``## [Unreleased]``.

    Raises:
        ChangelogStructureError: If the Unreleased heading is missing.
        ChangelogEmpty: If the section has no content.
    """
    body = find_unreleased(text, path).body
    if not body.strip():
        raise ChangelogEmpty(path)
    return body


def insert_release(
    text: str, version: str, date: str, changes: str, path: str = "CHANGELOG.md"
) -> str:
    """Move pending entries into a new ``## [version] - date`` section.

    The Unreleased heading stays on top with an empty body, followed by a
    rule, the new release section, another rule, and then the older
    release history untouched. New lines use the document's line ending.
    """
    section = find_unreleased(text, path)
    head = text[: section.heading_end].rstrip("\r\n")
    tail = text[section.rule_end :].lstrip("\r\n")
    newline = "\r\n" if "\r\n" in text else "\n"

    entry = (
        f"\n\n---\n\n## [{version}] - {date}\n\n{_trim_blank_lines(changes)}\n\n---\n"
    ).replace("\n", newline)
    if tail:
        return f"{head}{entry}{newline}{tail}"
    return f"{head}{entry}"


def _trim_blank_lines(text: str) -> str:
    lines = text.splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines)
