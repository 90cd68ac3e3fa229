"""Tests for release_bump.files."""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from unittest.mock import patch

import pytest

from release_bump.errors import (
    ChangelogEmpty,
    ChangelogStructureError,
    ConfigurationError,
    FileNotFound,
    FileUpdateFailed,
)
from release_bump.files import (
    FileMutator,
    backup_path,
    replace_version_references,
    set_json_version,
)


def _backups(root: Path) -> list[Path]:
    return sorted(root.rglob("*.backup"))


class TestMutate:
    def test_success_leaves_backup(self, tmp_path: Path) -> None:
        target = tmp_path / "notes.txt"
        target.write_text("old\n", encoding="utf-8")
        mutator = FileMutator(tmp_path)

        mutator.mutate("notes.txt", str.upper)

        assert target.read_text(encoding="utf-8") == "OLD\n"
        assert backup_path(target).read_text(encoding="utf-8") == "old\n"
        assert mutator.backups == [target]

    def test_transform_error_restores_and_wraps(self, tmp_path: Path) -> None:
        target = tmp_path / "notes.txt"
        target.write_bytes(b"keep me\n")
        mutator = FileMutator(tmp_path)

        def explode(text: str) -> str:
            raise ValueError("boom")

        with pytest.raises(FileUpdateFailed) as excinfo:
            mutator.mutate("notes.txt", explode)

        assert excinfo.value.path == "notes.txt"
        assert isinstance(excinfo.value.cause, ValueError)
        assert target.read_bytes() == b"keep me\n"
        assert _backups(tmp_path) == []
        assert mutator.backups == []

    def test_release_errors_are_not_wrapped(self, tmp_path: Path) -> None:
        (tmp_path / "CHANGELOG.md").write_text("# Changelog\n", encoding="utf-8")
        mutator = FileMutator(tmp_path)

        with pytest.raises(ChangelogStructureError):
            mutator.update_changelog("CHANGELOG.md", "1.0.0", "2024-01-01", "- x")

        assert (tmp_path / "CHANGELOG.md").read_text(encoding="utf-8") == "# Changelog\n"
        assert _backups(tmp_path) == []

    def test_failed_backup_is_reported(self, tmp_path: Path) -> None:
        target = tmp_path / "notes.txt"
        target.write_text("old\n", encoding="utf-8")
        mutator = FileMutator(tmp_path)

        with patch("release_bump.files.shutil.copyfile", side_effect=OSError("no space")):
            with pytest.raises(FileUpdateFailed):
                mutator.mutate("notes.txt", str.upper)

        assert target.read_text(encoding="utf-8") == "old\n"


class TestUpdateVersionFile:
    def test_updates_json_version(self, project: Path) -> None:
        FileMutator(project).update_version_file("package.json", "1.3.0")

        text = (project / "package.json").read_text(encoding="utf-8")
        data = json.loads(text)
        assert data["version"] == "1.3.0"
        assert list(data) == ["name", "version", "description", "scripts"]
        assert data["scripts"] == {"test": "pytest"}
        assert '  "version": "1.3.0"' in text
        assert text.endswith("}\n")

    def test_creates_backup_first(self, project: Path) -> None:
        original = (project / "package.json").read_text(encoding="utf-8")

        FileMutator(project).update_version_file("package.json", "1.3.0")

        backup = backup_path(project / "package.json")
        assert backup.read_text(encoding="utf-8") == original

    def test_failed_write_restores_original(self, project: Path) -> None:
        target = project / "package.json"
        original = target.read_bytes()
        backup = backup_path(target)

        def partial_write(path: Path, content: str) -> None:
            path.write_text(content[:10], encoding="utf-8")
            raise OSError("disk full")

        with (
            patch("release_bump.files.write_text", side_effect=partial_write),
            patch("release_bump.files.shutil.copyfile", wraps=shutil.copyfile) as copy,
        ):
            with pytest.raises(FileUpdateFailed) as excinfo:
                FileMutator(project).update_version_file("package.json", "1.3.0")

        assert isinstance(excinfo.value.cause, OSError)
        copy.assert_any_call(target, backup)
        copy.assert_any_call(backup, target)
        assert target.read_bytes() == original
        assert not backup.exists()

    def test_invalid_json_restores(self, tmp_path: Path) -> None:
        target = tmp_path / "package.json"
        target.write_text("{not json", encoding="utf-8")

        with pytest.raises(FileUpdateFailed):
            FileMutator(tmp_path).update_version_file("package.json", "1.3.0")

        assert target.read_text(encoding="utf-8") == "{not json"
        assert _backups(tmp_path) == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFound) as excinfo:
            FileMutator(tmp_path).update_version_file("package.json", "1.3.0")
        assert excinfo.value.path == "package.json"

    def test_updates_pyproject_preserving_comments(self, tmp_pyproject: Path) -> None:
        FileMutator(tmp_pyproject.parent).update_version_file("pyproject.toml", "1.1.0")

        text = tmp_pyproject.read_text(encoding="utf-8")
        assert 'version = "1.1.0"' in text
        assert "# Project metadata" in text
        assert 'dependencies = ["click>=8.0"]' in text

    def test_set_json_version_rejects_non_object(self) -> None:
        with pytest.raises(ValueError):
            set_json_version("[1, 2]", "1.0.0")


class TestReadVersion:
    def test_json(self, project: Path) -> None:
        mutator = FileMutator(project)
        assert mutator.read_version("package.json") == "1.2.0"
        assert mutator.read_project_name("package.json") == "demo-app"

    def test_toml(self, tmp_pyproject: Path) -> None:
        mutator = FileMutator(tmp_pyproject.parent)
        assert mutator.read_version("pyproject.toml") == "1.0.0"
        assert mutator.read_project_name("pyproject.toml") == "test-package"

    def test_missing_version_key(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text('{"name": "x"}\n', encoding="utf-8")
        with pytest.raises(ConfigurationError):
            FileMutator(tmp_path).read_version("package.json")

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFound):
            FileMutator(tmp_path).read_version("package.json")


class TestChangelog:
    def test_extract(self, project: Path) -> None:
        changes = FileMutator(project).extract_unreleased_changes("CHANGELOG.md")
        assert changes == "### Added\n- New feature"

    def test_extract_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFound):
            FileMutator(tmp_path).extract_unreleased_changes("CHANGELOG.md")

    def test_extract_empty(self, tmp_path: Path) -> None:
        (tmp_path / "CHANGELOG.md").write_text("## [Unreleased]\n", encoding="utf-8")
        with pytest.raises(ChangelogEmpty):
            FileMutator(tmp_path).extract_unreleased_changes("CHANGELOG.md")

    def test_update(self, project: Path) -> None:
        mutator = FileMutator(project)
        mutator.update_changelog(
            "CHANGELOG.md", "1.3.0", "2023-11-16", "### Added\n- New feature"
        )

        text = (project / "CHANGELOG.md").read_text(encoding="utf-8")
        assert "## [Unreleased]" in text
        assert text.index("## [1.3.0] - 2023-11-16") < text.index("## [1.2.0]")
        assert backup_path(project / "CHANGELOG.md").exists()

    def test_update_keeps_crlf_history(self, tmp_path: Path) -> None:
        target = tmp_path / "CHANGELOG.md"
        target.write_bytes(
            b"## [Unreleased]\r\n\r\n- Pending\r\n\r\n---\r\n\r\n"
            b"## [1.0.0] - 2024-01-01\r\n\r\n- Init\r\n"
        )

        FileMutator(tmp_path).update_changelog(
            "CHANGELOG.md", "1.1.0", "2024-02-01", "- Pending"
        )

        assert target.read_bytes() == (
            b"## [Unreleased]\r\n\r\n---\r\n\r\n"
            b"## [1.1.0] - 2024-02-01\r\n\r\n- Pending\r\n\r\n---\r\n\r\n"
            b"## [1.0.0] - 2024-01-01\r\n\r\n- Init\r\n"
        )

    def test_update_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFound):
            FileMutator(tmp_path).update_changelog("CHANGELOG.md", "1.0.0", "2024-01-01", "x")


class TestDocVersions:
    def test_replaces_all_reference_shapes(self, tmp_path: Path) -> None:
        readme = tmp_path / "README.md"
        readme.write_text(
            "Install v1.2.0\n"
            "Current version 1.2.0\n"
            "Version 1.2.0 notes\n"
            "当前版本 1.2.0\n"
            "plain 1.2.0.\n",
            encoding="utf-8",
        )

        updated = FileMutator(tmp_path).update_doc_versions("1.2.0", "1.3.0", ["README.md"])

        text = readme.read_text(encoding="utf-8")
        assert updated == ["README.md"]
        assert text == (
            "Install v1.3.0\n"
            "Current version 1.3.0\n"
            "Version 1.3.0 notes\n"
            "当前版本 1.3.0\n"
            "plain 1.3.0.\n"
        )
        assert "1.2.0" not in text

    def test_leaves_other_versions_alone(self) -> None:
        text = "uses 11.2.0 and 1.2.01 and 0.1.2.0 but also 1.2.0"
        assert replace_version_references(text, "1.2.0", "1.3.0") == (
            "uses 11.2.0 and 1.2.01 and 0.1.2.0 but also 1.3.0"
        )

    def test_dotted_suffix_is_not_a_reference(self) -> None:
        text = "schema 1.2.0.1 differs from 1.2.0."
        assert replace_version_references(text, "1.2.0", "1.3.0") == (
            "schema 1.2.0.1 differs from 1.3.0."
        )

    def test_keeps_crlf_line_endings(self, tmp_path: Path) -> None:
        readme = tmp_path / "README.md"
        readme.write_bytes(b"# Demo\r\nInstall v1.2.0\r\nunrelated line\r\n")

        FileMutator(tmp_path).update_doc_versions("1.2.0", "1.3.0", ["README.md"])

        assert readme.read_bytes() == (
            b"# Demo\r\nInstall v1.3.0\r\nunrelated line\r\n"
        )

    def test_missing_files_are_skipped(self, tmp_path: Path) -> None:
        updated = FileMutator(tmp_path).update_doc_versions(
            "1.2.0", "1.3.0", ["README.md", "docs/missing.md"]
        )
        assert updated == []
        assert _backups(tmp_path) == []


class TestBatchBackups:
    def test_rollback_restores_every_file(self, project: Path) -> None:
        package = (project / "package.json").read_bytes()
        changelog = (project / "CHANGELOG.md").read_bytes()
        mutator = FileMutator(project)
        mutator.update_version_file("package.json", "1.3.0")
        mutator.update_changelog("CHANGELOG.md", "1.3.0", "2024-01-01", "- x")

        restored = mutator.rollback()

        assert restored == ["CHANGELOG.md", "package.json"]
        assert (project / "package.json").read_bytes() == package
        assert (project / "CHANGELOG.md").read_bytes() == changelog
        assert _backups(project) == []

    def test_second_rewrite_keeps_first_backup(self, project: Path) -> None:
        changelog = (project / "CHANGELOG.md").read_bytes()
        mutator = FileMutator(project)
        mutator.update_changelog("CHANGELOG.md", "1.3.0", "2024-01-01", "- x")
        mutator.update_doc_versions("1.2.0", "1.3.0", ["./CHANGELOG.md"])

        assert backup_path(project / "CHANGELOG.md").read_bytes() == changelog
        assert mutator.backups == [project / "CHANGELOG.md"]

        assert mutator.rollback() == ["CHANGELOG.md"]
        assert (project / "CHANGELOG.md").read_bytes() == changelog
        assert _backups(project) == []

    def test_failed_second_rewrite_keeps_batch_recoverable(
        self, project: Path
    ) -> None:
        target = project / "CHANGELOG.md"
        original = target.read_bytes()
        mutator = FileMutator(project)
        mutator.update_changelog("CHANGELOG.md", "1.3.0", "2024-01-01", "- x")
        released = target.read_bytes()

        def fail(text: str) -> str:
            raise ValueError("boom")

        with pytest.raises(FileUpdateFailed):
            mutator.mutate("docs/../CHANGELOG.md", fail)

        # The failed call undoes only itself; the batch backup stays live
        assert target.read_bytes() == released
        assert backup_path(target).read_bytes() == original

        assert mutator.rollback() == ["CHANGELOG.md"]
        assert target.read_bytes() == original

    def test_cleanup_removes_backups(self, project: Path) -> None:
        mutator = FileMutator(project)
        mutator.update_version_file("package.json", "1.3.0")
        mutator.update_doc_versions("1.2.0", "1.3.0", ["README.md"])

        mutator.cleanup()

        assert _backups(project) == []
        assert mutator.backups == []
        assert json.loads((project / "package.json").read_text())["version"] == "1.3.0"

    def test_delete_all_backups_ignores_missing(self, project: Path) -> None:
        mutator = FileMutator(project)
        mutator.update_version_file("package.json", "1.3.0")

        mutator.delete_all_backups(["package.json", "README.md", "nope.md"])

        assert _backups(project) == []

    def test_delete_backup_strict(self, tmp_path: Path) -> None:
        mutator = FileMutator(tmp_path)
        mutator.delete_backup("README.md")
        with pytest.raises(FileNotFound):
            mutator.delete_backup("README.md", strict=True)
