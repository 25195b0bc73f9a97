"""Commit, tag and push a package release.

Tags follow the pattern {package-name}-v{version}. Re-running a release for
the same version replaces the existing tag locally and on the remote.
Nothing is rolled back on failure: a commit or tag created before the
failing step stays in place.
"""

from __future__ import annotations

from pathlib import Path

from .errors import CommandError, GitOperationFailed, NoRemoteBranch
from .shell import git


def tag_name(package_name: str, version: str) -> str:
    return f"{package_name}-v{version}"


def _git_step(step: str, *args: str, root: Path) -> str:
    """Run one git command of the sequence, naming the step on failure."""
    try:
        return git(*args, cwd=root)
    except CommandError as exc:
        raise GitOperationFailed(step, exc.output) from exc


def current_branch(root: Path) -> str:
    return _git_step("current-branch", "rev-parse", "--abbrev-ref", "HEAD", root=root)


def ensure_upstream(branch: str, root: Path, remote: str = "origin") -> bool:
    """Make sure the branch tracks a remote branch.

    Returns:
        True if tracking was configured here, meaning the branch must also
        be pushed with --set-upstream.

    Raises:
        NoRemoteBranch: If {remote}/{branch} doesn't exist.
    """
    try:
        git("rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}", cwd=root)
        return False
    except CommandError:
        pass

    remote_head = _git_step("remote-branch", "ls-remote", "--heads", remote, branch, root=root)
    if not remote_head:
        raise NoRemoteBranch(
            f"Remote branch '{remote}/{branch}' does not exist, cannot set upstream."
        )

    _git_step("set-upstream", "fetch", remote, branch, root=root)
    _git_step("set-upstream", "branch", f"--set-upstream-to={remote}/{branch}", root=root)
    print(f"  upstream set to {remote}/{branch}")
    return True


def commit_all(message: str, root: Path) -> bool:
    """Stage everything and commit. Returns False if there was nothing to commit."""
    _git_step("stage", "add", "--all", root=root)
    staged = _git_step("stage", "diff", "--cached", "--name-only", root=root)
    if not staged:
        print("  Nothing to commit")
        return False
    _git_step("commit", "commit", "-m", message, root=root)
    return True


def replace_tag(tag: str, root: Path, remote: str = "origin") -> bool:
    """Delete an existing tag locally and on the remote.

    A tag that doesn't exist (locally or remotely) is not an error.

    Returns:
        True if a local tag was deleted.
    """
    if not git("tag", "--list", tag, cwd=root, check=False):
        return False

    _git_step("tag-delete", "tag", "-d", tag, root=root)
    try:
        git("push", remote, f":refs/tags/{tag}", cwd=root)
    except CommandError:
        print(f"  {tag} not on {remote}, nothing to delete")
    print(f"  Replaced existing tag {tag}")
    return True


def tag_and_push(
    package_name: str, new_version: str, root: Path, remote: str = "origin"
) -> str:
    """Commit pending changes, tag the release and push branch and tag.

    Args:
        package_name: Registry name of the package.
        new_version: Version being released.
        root: Repository root to run git in.
        remote: Remote to push to.

    Returns:
        The tag that was created.

    Raises:
        NoRemoteBranch: If the branch can't be given an upstream. No commit or
            tag is created in that case.
        GitOperationFailed: If any git step fails.
    """
    branch = current_branch(root)
    needs_upstream_push = ensure_upstream(branch, root, remote)

    tag = tag_name(package_name, new_version)
    commit_all(f"chore(release): {tag}", root)

    replace_tag(tag, root, remote)
    _git_step("tag-create", "tag", tag, root=root)

    _git_step("push", "push", root=root)
    if needs_upstream_push:
        _git_step("push-upstream", "push", "--set-upstream", remote, branch, root=root)
    _git_step("push-tag", "push", remote, tag, root=root)

    print(f"  Tagged {tag}")
    return tag
