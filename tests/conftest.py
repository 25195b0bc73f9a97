"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from mono_publish import session
from mono_publish.config import ReleaseConfig
from mono_publish.errors import CommandError

OLD_REGISTRY = "https://npm.internal.example.com/"


class FakeGit:
    """Stand-in for shell.git that answers like a small repository.

    Every call is recorded in `calls` as the tuple of git arguments.
    """

    def __init__(
        self,
        branch: str = "main",
        upstream: bool = True,
        remote_branch: bool = True,
        tags: set[str] | None = None,
        remote_tags: set[str] | None = None,
        staged: str = "projects/pkg/package.json",
        fail_on: tuple[str, ...] | None = None,
    ):
        self.branch = branch
        self.upstream = upstream
        self.remote_branch = remote_branch
        self.tags = set(tags or ())
        self.remote_tags = set(remote_tags or ())
        self.staged = staged
        self.fail_on = fail_on
        self.calls: list[tuple[str, ...]] = []

    def _fail(self, args: tuple[str, ...], check: bool, msg: str) -> str:
        if check:
            raise CommandError(["git", *args], 1, stderr=msg)
        return ""

    def __call__(self, *args: str, cwd: Path | None = None, check: bool = True) -> str:
        self.calls.append(args)
        if self.fail_on and args[: len(self.fail_on)] == self.fail_on:
            return self._fail(args, check, f"fatal: {' '.join(args)} failed")

        if args == ("rev-parse", "--abbrev-ref", "HEAD"):
            return self.branch
        if "@{u}" in args:
            if self.upstream:
                return f"origin/{self.branch}"
            return self._fail(args, check, "fatal: no upstream configured")
        if args[0] == "ls-remote":
            return f"abc123\trefs/heads/{self.branch}" if self.remote_branch else ""
        if args[:2] == ("tag", "--list"):
            return args[2] if args[2] in self.tags else ""
        if args[:2] == ("tag", "-d"):
            self.tags.discard(args[2])
            return ""
        if args[0] == "tag":
            self.tags.add(args[1])
            return ""
        if args[0] == "push" and args[-1].startswith(":refs/tags/"):
            name = args[-1].removeprefix(":refs/tags/")
            if name not in self.remote_tags:
                return self._fail(args, check, "error: unable to delete: remote ref does not exist")
            self.remote_tags.discard(name)
            return ""
        if args[:2] == ("diff", "--cached"):
            return self.staged
        return ""

    def called(self, *prefix: str) -> bool:
        return any(c[: len(prefix)] == prefix for c in self.calls)


class FakeNpmConfig:
    """Stand-in for npm's registry setting, shared like the real one."""

    def __init__(self, registry: str = OLD_REGISTRY):
        self.registry = registry
        self.fail_get = False
        self.fail_set_to: str | None = None
        self.sets: list[str] = []

    def get(self) -> str:
        if self.fail_get:
            raise CommandError(["npm", "config", "get", "registry"], 1, stderr="EACCES")
        return self.registry

    def set(self, url: str) -> None:
        self.sets.append(url)
        if self.fail_set_to == url:
            raise CommandError(["npm", "config", "set", "registry", url], 1, stderr="EACCES")
        self.registry = url


@pytest.fixture(autouse=True)
def _no_active_session():
    """Each test starts without an outstanding registry session."""
    session._active = None
    yield
    session._active = None


@pytest.fixture
def npm_config():
    """Patch the registry endpoint getter/setter with an in-memory setting."""
    fake = FakeNpmConfig()
    with (
        patch("mono_publish.session.get_endpoint", side_effect=fake.get),
        patch("mono_publish.session.set_endpoint", side_effect=fake.set),
    ):
        yield fake


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A repository root with an empty projects/ directory."""
    (tmp_path / "projects").mkdir()
    return tmp_path


@pytest.fixture
def make_package(repo: Path):
    """Create projects/<dirname>/package.json and return its directory."""

    def _make(dirname: str, name: str | None = None, version: str = "0.0.0") -> Path:
        pkg_dir = repo / "projects" / dirname
        pkg_dir.mkdir()
        manifest = {"name": name or dirname, "version": version, "private": False}
        (pkg_dir / "package.json").write_text(json.dumps(manifest, indent=2) + "\n")
        return pkg_dir

    return _make


@pytest.fixture
def config(repo: Path) -> ReleaseConfig:
    return ReleaseConfig(root=repo, registry="https://registry.npmjs.org/")
