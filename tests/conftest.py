"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

CHANGELOG = """\
# Changelog

## [Unreleased]

### Added
- New feature

---

## [1.2.0] - 2023-11-15

### Fixed
- Bug fix
"""

PACKAGE_JSON = {
    "name": "demo-app",
    "version": "1.2.0",
    "description": "Demo project",
    "scripts": {"test": "pytest"},
}


@pytest.fixture
def changelog_text() -> str:
    return CHANGELOG


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Create a project root with package.json, CHANGELOG.md and README.md."""
    (tmp_path / "package.json").write_text(
        json.dumps(PACKAGE_JSON, indent=2) + "\n", encoding="utf-8"
    )
    (tmp_path / "CHANGELOG.md").write_text(CHANGELOG, encoding="utf-8")
    (tmp_path / "README.md").write_text(
        "# Demo\n\nInstall v1.2.0 of the demo (version 1.2.0).\n", encoding="utf-8"
    )
    return tmp_path


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    content = """\
# Project metadata
[project]
name = "test-package"
version = "1.0.0"  # bumped by release-bump
dependencies = ["click>=8.0"]

[tool.release-bump]
version-files = ["pyproject.toml"]
tag-prefix = "release-"
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content, encoding="utf-8")
    return pyproject
