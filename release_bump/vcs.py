"""Git operations for the release flow.

Each method shells out to git and translates any failure into
VcsOperationFailed naming the operation. Repository state (cleanliness,
tags, branch) is queried live on every call and never cached.
"""

from __future__ import annotations

import subprocess
from collections.abc import Iterable
from pathlib import Path

from .errors import DirtyWorkingTree, VcsOperationFailed, VersionAlreadyExists
from .shell import git


class GitRepo:
    """Release-oriented view of a local git repository.

    Args:
        root: Repository working directory.
        tag_prefix: Prepended to versions to form tag names ("v" → "v1.2.3").
        remote: Remote that commits and tags are pushed to.
    """

    def __init__(self, root: Path, tag_prefix: str = "v", remote: str = "origin") -> None:
        self.root = Path(root)
        self.tag_prefix = tag_prefix
        self.remote = remote

    def _git(self, operation: str, *args: str) -> str:
        try:
            return git(*args, cwd=self.root)
        except subprocess.CalledProcessError as exc:
            raise VcsOperationFailed(operation, exc, exc.stderr or "") from exc
        except OSError as exc:
            raise VcsOperationFailed(operation, exc) from exc

    def tag_name(self, version: str) -> str:
        return f"{self.tag_prefix}{version}"

    def is_repository(self) -> bool:
        """Return True if ``root`` is inside a git repository. Never raises."""
        try:
            git("rev-parse", "--git-dir", cwd=self.root)
        except (subprocess.CalledProcessError, OSError):
            return False
        return True

    def is_working_tree_clean(self) -> bool:
        """True if ``git status`` reports no modified or untracked files."""
        status = self._git("check working tree status", "status", "--porcelain")
        return not status.splitlines()

    def ensure_clean_working_tree(self) -> None:
        """Raises DirtyWorkingTree if there are uncommitted changes."""
        if not self.is_working_tree_clean():
            raise DirtyWorkingTree()

    def tag_exists(self, tag: str) -> bool:
        tags = self._git("list tags", "tag", "--list")
        return tag in tags.splitlines()

    def create_tag(self, version: str, message: str) -> str:
        """Create an annotated tag for ``version`` and return its name.

        Raises:
            VersionAlreadyExists: If the tag is already present. The tag is
                not attempted in that case.
        """
        tag = self.tag_name(version)
        if self.tag_exists(tag):
            raise VersionAlreadyExists(version, tag)
        self._git(f"create tag {tag}", "tag", "-a", tag, "-m", message)
        return tag

    def push_tag(self, tag: str) -> None:
        self._git(f"push tag {tag}", "push", self.remote, tag)

    def delete_local_tag(self, tag: str) -> None:
        """Delete a local tag; does nothing if it does not exist."""
        if self.tag_exists(tag):
            self._git(f"delete tag {tag}", "tag", "-d", tag)

    def commit(self, message: str, files: Iterable[str]) -> None:
        """Stage each file and commit them with ``message``."""
        for file in files:
            self._git(f"stage {file}", "add", "--", file)

        # Check if there are actually changes to commit
        staged = self._git("check staged changes", "diff", "--cached", "--name-only")
        if not staged:
            raise VcsOperationFailed("commit", RuntimeError("nothing to commit"))
        self._git("commit", "commit", "-m", message)

    def get_current_branch(self) -> str:
        return self._git("get current branch", "rev-parse", "--abbrev-ref", "HEAD")

    def get_latest_tag(self) -> str | None:
        """Return the most recent reachable tag, or None if there is none."""
        try:
            tag = git("describe", "--tags", "--abbrev=0", cwd=self.root)
        except (subprocess.CalledProcessError, OSError):
            # git describe fails when no tag is reachable
            return None
        return tag or None

    def push_commits(self) -> None:
        """Push the current branch to the remote by name."""
        branch = self.get_current_branch()
        self._git(f"push {branch}", "push", self.remote, branch)
