"""Shell and git utilities.

Provides a simple wrapper around subprocess calls for git operations,
plus output formatting helpers.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

log = logging.getLogger(__name__)


def git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--porcelain").
        cwd: Directory to run git in; defaults to the current directory.
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., tag lookup).

    Returns:
        Stripped stdout from the git command.

    Raises:
        subprocess.CalledProcessError: On non-zero exit when ``check`` is set.
        OSError: If git cannot be executed.
    """
    log.debug("git %s (cwd=%s)", " ".join(args), cwd or ".")
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate the stages of the release flow in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")
