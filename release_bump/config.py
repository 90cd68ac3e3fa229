"""Run-time options for the release flow.

Options are read from ``[tool.release-bump]`` in the project's
pyproject.toml, or from ``.versionrc.json`` when that table is absent.
Keys may be written with hyphens (``tag-prefix``) or underscores.

Example:
    [tool.release-bump]
    version-files = ["package.json"]
    docs = ["README.md", "docs/install.md"]
    tag-prefix = "v"
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError
from .toml import get_tool_config, load_pyproject

RC_FILE = ".versionrc.json"


class ReleaseConfig(BaseModel):
    """Options controlling which files are rewritten and how git is driven.

    Attributes:
        version_files: Structured files holding the version. The first one
            is where the current version is read from.
        changelog: Changelog with the ``## [Unreleased]`` section.
        docs: Files whose version references are updated if they exist.
        tag_prefix: Prepended to the version to form the tag name.
        commit_message: Commit message template, ``{version}`` is substituted.
        tag_message: Annotated tag message template.
        require_clean_working_tree: Refuse to run with uncommitted changes.
        remote: Remote to push commits and tags to.
        push: Push the release commit and tag after creating them.
    """

    model_config = ConfigDict(
        alias_generator=lambda name: name.replace("_", "-"),
        populate_by_name=True,
        extra="forbid",
    )

    version_files: list[str] = Field(default_factory=lambda: ["package.json"], min_length=1)
    changelog: str = "CHANGELOG.md"
    docs: list[str] = Field(default_factory=lambda: ["README.md"])
    tag_prefix: str = "v"
    commit_message: str = "chore(release): bump version to {version}"
    tag_message: str = "Release {version}"
    require_clean_working_tree: bool = True
    remote: str = "origin"
    push: bool = True

    @field_validator("commit_message", "tag_message")
    @classmethod
    def _check_template(cls, value: str) -> str:
        try:
            value.format(version="0.0.0")
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"invalid template {value!r}: only {{version}} is supported") from exc
        return value

    def render_commit_message(self, version: str) -> str:
        return self.commit_message.format(version=version)

    def render_tag_message(self, version: str) -> str:
        return self.tag_message.format(version=version)


def build_config(raw: dict[str, Any]) -> ReleaseConfig:
    """Validate a raw options mapping.

    Raises:
        ConfigurationError: On unknown keys or values of the wrong type.
    """
    try:
        return ReleaseConfig.model_validate(raw)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(problems) from exc


def load_config(root: Path) -> ReleaseConfig:
    """Load options for the project at ``root``, falling back to defaults."""
    raw: dict[str, Any] | None = None

    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        try:
            raw = get_tool_config(load_pyproject(pyproject))
        except ValueError as exc:
            raise ConfigurationError(f"cannot parse {pyproject.name}: {exc}") from exc

    rc_file = root / RC_FILE
    if raw is None and rc_file.is_file():
        try:
            raw = json.loads(rc_file.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise ConfigurationError(f"cannot parse {RC_FILE}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigurationError(f"{RC_FILE} must contain a JSON object")

    return build_config(raw or {})
