"""Release pipeline: verify → bump → rewrite → commit → tag → push.

This module orchestrates a release:
1. Verify the project is a git repository with a clean working tree
2. Read the current version and compute the next one
3. Extract the pending entries from the changelog's Unreleased section
4. Rewrite version files, the changelog and documentation references
5. Commit the rewritten files and create an annotated tag
6. Push the branch and the tag

Stages run strictly in order and the first failure aborts the run. File
rewrites are backed up, so a failure while rewriting restores every file
of the batch. Once the commit exists, later failures are reported with the
stages that completed so the operator can finish or undo them by hand.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date
from enum import Enum
from pathlib import Path

from .config import ReleaseConfig
from .errors import NotARepository, ReleaseError, ReleaseFailed, VersionAlreadyExists
from .files import FileMutator
from .models import BumpKind, ReleaseResult, VersionBump
from .shell import step
from .vcs import GitRepo
from .versions import bump_version


class Stage(str, Enum):
    VERIFY_REPO = "VerifyRepo"
    VERIFY_CLEAN = "VerifyClean"
    READ_CURRENT_VERSION = "ReadCurrentVersion"
    COMPUTE_NEXT_VERSION = "ComputeNextVersion"
    EXTRACT_PENDING_CHANGES = "ExtractPendingChanges"
    REWRITE_VERSION_FILE = "RewriteVersionFile"
    REWRITE_CHANGELOG = "RewriteChangelog"
    REWRITE_DOCS = "RewriteDocs"
    COMMIT = "Commit"
    TAG = "Tag"
    PUSH_COMMITS = "PushCommits"
    PUSH_TAG = "PushTag"


STAGE_TITLES = {
    Stage.VERIFY_REPO: "Checking git repository",
    Stage.VERIFY_CLEAN: "Checking working tree",
    Stage.READ_CURRENT_VERSION: "Reading current version",
    Stage.COMPUTE_NEXT_VERSION: "Computing next version",
    Stage.EXTRACT_PENDING_CHANGES: "Extracting unreleased changes",
    Stage.REWRITE_VERSION_FILE: "Updating version files",
    Stage.REWRITE_CHANGELOG: "Updating changelog",
    Stage.REWRITE_DOCS: "Updating documentation",
    Stage.COMMIT: "Committing release",
    Stage.TAG: "Tagging release",
    Stage.PUSH_COMMITS: "Pushing commits",
    Stage.PUSH_TAG: "Pushing tag",
}

REWRITE_STAGES = frozenset(
    {Stage.REWRITE_VERSION_FILE, Stage.REWRITE_CHANGELOG, Stage.REWRITE_DOCS}
)


class ReleasePipeline:
    """Runs one release flow against a project root.

    Args:
        root: Project root holding the version files and the git checkout.
        config: Run-time options.
        repo: Git wrapper; built from ``config`` if omitted.
        mutator: File mutator; built for ``root`` if omitted.
        today: Returns the release date written to the changelog.
    """

    def __init__(
        self,
        root: Path,
        config: ReleaseConfig,
        *,
        repo: GitRepo | None = None,
        mutator: FileMutator | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.root = Path(root)
        self.config = config
        self.repo = repo or GitRepo(
            self.root, tag_prefix=config.tag_prefix, remote=config.remote
        )
        self.mutator = mutator or FileMutator(self.root)
        self.today = today
        self.completed: list[Stage] = []
        self.tag: str | None = None

    @contextmanager
    def _stage(self, stage: Stage) -> Iterator[None]:
        step(STAGE_TITLES[stage])
        try:
            yield
        except ReleaseError as exc:
            hint = self._recover(stage)
            raise ReleaseFailed(
                stage.value, [s.value for s in self.completed], exc, hint
            ) from exc
        self.completed.append(stage)

    def _recover(self, failed: Stage) -> str:
        """Roll back a failed rewrite and describe what the operator must do."""
        if failed in REWRITE_STAGES:
            restored = self.mutator.rollback()
            if restored:
                return "Restored from backup: " + ", ".join(restored)
            return "No files were changed."
        if Stage.TAG in self.completed:
            return (
                f"The release commit and tag {self.tag} exist locally only. "
                f"Push them with 'git push {self.config.remote} HEAD {self.tag}', "
                f"or undo with 'git tag -d {self.tag}' and 'git reset --hard HEAD~1'."
            )
        if Stage.COMMIT in self.completed:
            return (
                "The release commit exists locally but is not tagged. "
                "Tag it manually, or undo it with 'git reset --hard HEAD~1'."
            )
        if Stage.REWRITE_VERSION_FILE in self.completed:
            return (
                "Files were rewritten but not committed; originals are kept "
                "next to them as *.backup."
            )
        return ""

    def run(self, kind: BumpKind | str, *, dry_run: bool = False) -> ReleaseResult:
        """Execute the release flow.

        Args:
            kind: Which version component to bump.
            dry_run: Stop after extracting the changes; write nothing.

        Raises:
            ReleaseFailed: Wrapping the error of the first failing stage.
        """
        config = self.config
        kind = BumpKind(kind)

        with self._stage(Stage.VERIFY_REPO):
            if not self.repo.is_repository():
                raise NotARepository(str(self.root))

        if config.require_clean_working_tree:
            with self._stage(Stage.VERIFY_CLEAN):
                self.repo.ensure_clean_working_tree()
                print("  Working tree clean")

        with self._stage(Stage.READ_CURRENT_VERSION):
            current = self.mutator.read_version(config.version_files[0])
            print(f"  {current} ({config.version_files[0]})")

        with self._stage(Stage.COMPUTE_NEXT_VERSION):
            new = bump_version(current, kind)
            self.tag = self.repo.tag_name(new)
            # Refuse before touching any file rather than failing at the tag stage
            if self.repo.tag_exists(self.tag):
                raise VersionAlreadyExists(new, self.tag)
            print(f"  {current} → {new} ({kind.value})")

        with self._stage(Stage.EXTRACT_PENDING_CHANGES):
            changes = self.mutator.extract_unreleased_changes(config.changelog)
            print(f"  {len(changes.splitlines())} lines from {config.changelog}")

        bump = VersionBump(old=current, new=new)
        release_date = self.today().isoformat()

        if dry_run:
            print(f"\nDry run: would release {new} as {self.tag} on {release_date}")
            return ReleaseResult(
                bump=bump, tag=self.tag, date=release_date, changes=changes, dry_run=True
            )

        files: list[str] = []
        with self._stage(Stage.REWRITE_VERSION_FILE):
            for path in config.version_files:
                self.mutator.update_version_file(path, new)
                files.append(path)
                print(f"  {path}: {current} → {new}")

        with self._stage(Stage.REWRITE_CHANGELOG):
            self.mutator.update_changelog(config.changelog, new, release_date, changes)
            files.append(config.changelog)
            print(f"  {config.changelog}: [{new}] - {release_date}")

        with self._stage(Stage.REWRITE_DOCS):
            rewritten = {self.mutator.resolve(path) for path in files}
            docs = [
                doc for doc in config.docs if self.mutator.resolve(doc) not in rewritten
            ]
            updated = self.mutator.update_doc_versions(current, new, docs)
            for path in updated:
                if path not in files:
                    files.append(path)
                    print(f"  {path}")
            if not updated:
                print("  No documentation files found")

        with self._stage(Stage.COMMIT):
            self.repo.commit(config.render_commit_message(new), files)
            self.mutator.cleanup()
            print(f"  Committed {len(files)} files")

        with self._stage(Stage.TAG):
            self.repo.create_tag(new, config.render_tag_message(new))
            print(f"  {self.tag}")

        if config.push:
            with self._stage(Stage.PUSH_COMMITS):
                self.repo.push_commits()
            with self._stage(Stage.PUSH_TAG):
                self.repo.push_tag(self.tag)
        else:
            print(f"\nSkipping push; run 'git push {config.remote} HEAD {self.tag}' later.")

        print(f"\n{'=' * 60}\nReleased {current} → {new}\n{'=' * 60}")
        return ReleaseResult(bump=bump, tag=self.tag, date=release_date, changes=changes, files=files)


def run_release(
    kind: BumpKind | str,
    *,
    root: Path,
    config: ReleaseConfig,
    dry_run: bool = False,
) -> ReleaseResult:
    """Execute the full release flow for the project at ``root``."""
    return ReleasePipeline(root, config).run(kind, dry_run=dry_run)
