"""Shell, git and npm utilities.

Provides simple wrappers around subprocess calls for running git and npm
commands, plus output formatting helpers.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

from .errors import CommandError


def _capture(
    cmd: list[str], *, cwd: Path | None = None, check: bool = True
) -> str:
    try:
        result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise CommandError(cmd, 127, stderr=str(exc)) from exc
    if check and result.returncode != 0:
        raise CommandError(cmd, result.returncode, result.stdout, result.stderr)
    return result.stdout.strip()


def git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--short").
        cwd: Directory to run in; defaults to the current directory.
        check: If True (default), raise CommandError on non-zero exit. Set to
               False for commands that may legitimately fail (e.g., tag lookup).

    Returns:
        Stripped stdout from the git command.
    """
    return _capture(["git", *args], cwd=cwd, check=check)


def npm(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run an npm command and return stdout.

    Same contract as git(): stripped stdout, CommandError on failure unless
    check is False.
    """
    return _capture(["npm", *args], cwd=cwd, check=check)


def run(*args: str, cwd: Path | None = None, check: bool = True) -> subprocess.CompletedProcess[bytes]:
    """Run an arbitrary shell command.

    Unlike git(), this doesn't capture output - it streams directly to
    the terminal so users can see publish progress, etc.

    Args:
        *args: Command and arguments (e.g., "rush", "custom-publish").
        check: If True (default), raise CommandError on non-zero exit.

    Returns:
        CompletedProcess with returncode for checking success.
    """
    try:
        result = subprocess.run(args, cwd=cwd)
    except FileNotFoundError as exc:
        raise CommandError(list(args), 127, stderr=str(exc)) from exc
    if check and result.returncode != 0:
        raise CommandError(list(args), result.returncode)
    return result


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of the release workflow in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def error(msg: str) -> None:
    """Print a high-severity message to stderr without exiting."""
    print(f"ERROR: {msg}", file=sys.stderr)
