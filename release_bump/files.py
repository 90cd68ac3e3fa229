"""Safe file mutation: backup, rewrite, restore on failure.

Every rewrite goes through ``FileMutator.mutate``: the target is copied to
``<path>.backup`` first, the new content is computed and written, and if
anything raises the backup is copied back and removed before the error
propagates. On success the backup is left in place so the caller can
roll back or clean up the whole batch once the release step is done.
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
from collections.abc import Callable, Iterable
from pathlib import Path

import tomlkit

from .changelog import extract_unreleased, insert_release
from .errors import ConfigurationError, FileNotFound, FileUpdateFailed, ReleaseError
from .toml import get_project_name, get_project_version, set_project_version

log = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup"


def read_text(path: Path) -> str:
    # newline="" keeps CRLF line endings intact through a rewrite
    with path.open(encoding="utf-8", newline="") as f:
        return f.read()


def write_text(path: Path, content: str) -> None:
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(content)


def backup_path(path: Path) -> Path:
    """Return the sibling backup location for ``path``."""
    return path.with_name(path.name + BACKUP_SUFFIX)


def set_json_version(text: str, version: str) -> str:
    """Set the top-level "version" key of a JSON document.

    Other keys keep their order; output uses 2-space indentation and ends
    with a newline.
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("top-level JSON value is not an object")
    data["version"] = version
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def set_toml_version(text: str, version: str) -> str:
    """Set [project].version of a pyproject.toml, preserving formatting."""
    doc = tomlkit.parse(text)
    set_project_version(doc, version)
    return tomlkit.dumps(doc)


def version_reference_pattern(old_version: str) -> re.Pattern[str]:
    """Match references to ``old_version`` in prose.

    Recognized shapes: ``1.2.0``, ``v1.2.0``, ``version 1.2.0`` (any case)
    and ``版本 1.2.0``. The prefix is captured so the replacement keeps it.
    Digits or dotted digits directly around the version block a match, so
    neither ``11.2.0`` nor ``1.2.0.1`` is a reference to ``1.2.0``. A
    sentence-ending period is not a version component.
    """
    return re.compile(
        rf"(?P<prefix>(?i:version )|版本 |v)?(?<![\d.]){re.escape(old_version)}(?!\.?\d)"
    )


def replace_version_references(text: str, old_version: str, new_version: str) -> str:
    pattern = version_reference_pattern(old_version)
    return pattern.sub(lambda m: f"{m.group('prefix') or ''}{new_version}", text)


class FileMutator:
    """Read-modify-write on project files with a guaranteed recovery path.

    Args:
        root: Project root; relative paths are resolved against it.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        # Targets whose backup is currently on disk, in creation order
        self.backups: list[Path] = []

    def resolve(self, path: str | Path) -> Path:
        """Join ``path`` to the root with ``.`` and ``..`` segments collapsed."""
        return Path(os.path.normpath(self.root / path))

    def display(self, path: Path) -> str:
        try:
            return str(path.relative_to(self.root))
        except ValueError:
            return str(path)

    # -- backup protocol -------------------------------------------------

    def create_backup(self, path: Path) -> Path | None:
        """Copy ``path`` to its backup sibling. Returns None if it does not exist."""
        if not path.exists():
            return None
        backup = backup_path(path)
        if path in self.backups and backup.exists():
            # The live backup already holds the content from before the batch
            log.debug("keeping existing backup %s", backup)
            return backup
        shutil.copyfile(path, backup)
        if path not in self.backups:
            self.backups.append(path)
        log.debug("backed up %s -> %s", path, backup)
        return backup

    def restore_backup(self, path: Path) -> bool:
        """Copy the backup over ``path`` and delete it.

        Returns False if there was no backup to restore.
        """
        backup = backup_path(path)
        if not backup.exists():
            return False
        shutil.copyfile(backup, path)
        backup.unlink()
        if path in self.backups:
            self.backups.remove(path)
        log.debug("restored %s from %s", path, backup)
        return True

    def delete_backup(self, path: str | Path, *, strict: bool = False) -> None:
        """Remove the backup of one file.

        Raises:
            FileNotFound: If ``strict`` and no backup exists.
        """
        target = self.resolve(path)
        backup = backup_path(target)
        if not backup.exists():
            if strict:
                raise FileNotFound(self.display(backup))
            return
        backup.unlink()
        if target in self.backups:
            self.backups.remove(target)

    def delete_all_backups(self, paths: Iterable[str | Path]) -> None:
        """Remove the backups of every listed file; missing ones are ignored."""
        for path in paths:
            self.delete_backup(path)

    def cleanup(self) -> None:
        """Remove every backup this mutator created."""
        self.delete_all_backups(list(self.backups))

    def rollback(self) -> list[str]:
        """Restore every file this mutator backed up, newest first.

        Returns the project-relative paths that were restored.
        """
        restored: list[str] = []
        for path in reversed(list(self.backups)):
            if self.restore_backup(path):
                restored.append(self.display(path))
        return restored

    def mutate(self, path: str | Path, transform: Callable[[str], str]) -> None:
        """Rewrite a file with ``transform`` applied to its content.

        On any failure the file is restored byte-for-byte to its content
        before this call. Release errors raised by ``transform`` propagate
        as they are; any other exception is wrapped in FileUpdateFailed.

        A file already rewritten earlier in the batch keeps its first backup,
        so ``rollback`` still returns it to the state before the batch.
        """
        target = self.resolve(path)
        # Content to put back if this call fails while an older backup is live
        previous: bytes | None = None
        try:
            if target in self.backups:
                previous = target.read_bytes()
            else:
                self.create_backup(target)
        except OSError as exc:
            if target not in self.backups:
                backup_path(target).unlink(missing_ok=True)
            raise FileUpdateFailed(self.display(target), exc) from exc

        try:
            write_text(target, transform(read_text(target)))
        except ReleaseError:
            self._undo(target, previous)
            raise
        except Exception as exc:
            self._undo(target, previous)
            raise FileUpdateFailed(self.display(target), exc) from exc

    def _undo(self, target: Path, previous: bytes | None) -> None:
        if previous is None:
            self.restore_backup(target)
        else:
            target.write_bytes(previous)

    # -- structured version files ----------------------------------------

    def _require(self, path: str | Path) -> Path:
        target = self.resolve(path)
        if not target.is_file():
            raise FileNotFound(self.display(target))
        return target

    def _load_structured(self, target: Path) -> dict:
        text = read_text(target)
        try:
            if target.suffix == ".toml":
                return tomlkit.parse(text)
            data = json.loads(text)
        except ValueError as exc:
            raise ConfigurationError(
                f"cannot parse {self.display(target)}: {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"{self.display(target)} is not a JSON object")
        return data

    def read_version(self, path: str | Path) -> str:
        """Read the current version string from a JSON or TOML version file."""
        target = self._require(path)
        data = self._load_structured(target)
        if target.suffix == ".toml":
            version = get_project_version(data)
        else:
            version = data.get("version")
        if not isinstance(version, str):
            raise ConfigurationError(f"{self.display(target)} has no version field")
        return version

    def read_project_name(self, path: str | Path) -> str | None:
        target = self._require(path)
        data = self._load_structured(target)
        if target.suffix == ".toml":
            return get_project_name(data, "") or None
        name = data.get("name")
        return name if isinstance(name, str) else None

    def update_version_file(self, path: str | Path, new_version: str) -> None:
        """Set the version field of a JSON or TOML version file.

        Raises:
            FileNotFound: If the file does not exist.
            FileUpdateFailed: If parsing or writing fails (file restored).
        """
        target = self._require(path)
        setter = set_toml_version if target.suffix == ".toml" else set_json_version
        self.mutate(target, lambda text: setter(text, new_version))

    # -- changelog --------------------------------------------------------

    def extract_unreleased_changes(self, path: str | Path) -> str:
        """Return the pending Unreleased entries of a changelog (read-only).

        Raises:
            FileNotFound: If the changelog does not exist.
            ChangelogStructureError: If there is no single Unreleased heading.
            ChangelogEmpty: If nothing is recorded under Unreleased.
        """
        target = self._require(path)
        return extract_unreleased(read_text(target), self.display(target))

    def update_changelog(
        self, path: str | Path, version: str, date: str, changes: str
    ) -> None:
        """Move the Unreleased entries into a new dated release section."""
        target = self._require(path)
        name = self.display(target)
        self.mutate(
            target, lambda text: insert_release(text, version, date, changes, name)
        )

    # -- documentation ----------------------------------------------------

    def update_doc_versions(
        self, old_version: str, new_version: str, files: Iterable[str | Path]
    ) -> list[str]:
        """Replace references to ``old_version`` in each listed file.

        Missing files are skipped. Returns the paths that were rewritten.
        """
        updated: list[str] = []
        for file in files:
            target = self.resolve(file)
            if not target.is_file():
                log.debug("skipping missing doc file %s", target)
                continue
            self.mutate(
                target,
                lambda text: replace_version_references(text, old_version, new_version),
            )
            updated.append(self.display(target))
        return updated
