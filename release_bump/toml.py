"""pyproject.toml accessors.

Documents are tomlkit objects, so a version rewrite keeps the comments and
layout of the rest of the file. The project version lives in [project] and
release-bump options in [tool.release-bump].
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit

TOOL_NAME = "release-bump"


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Returns a TOMLDocument that preserves formatting when modified and saved.
    """
    return tomlkit.parse(path.read_text(encoding="utf-8"))


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract [project].name, or ``fallback`` if it is not specified."""
    return str(doc.get("project", {}).get("name", fallback))


def get_project_version(doc: tomlkit.TOMLDocument) -> str | None:
    """Extract [project].version, or None if it is missing."""
    version = doc.get("project", {}).get("version")
    return str(version) if version is not None else None


def set_project_version(doc: tomlkit.TOMLDocument, version: str) -> None:
    """Set [project].version in place.

    Raises:
        KeyError: If the document has no [project] table.
    """
    doc["project"]["version"] = version


def get_tool_config(doc: tomlkit.TOMLDocument) -> dict[str, Any] | None:
    """Return the [tool.release-bump] table as plain Python values.

    Returns None when the table is absent so callers can fall back to
    other config sources.
    """
    table = doc.get("tool", {}).get(TOOL_NAME)
    if table is None:
        return None
    return table.unwrap() if hasattr(table, "unwrap") else dict(table)
