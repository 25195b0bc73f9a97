"""Error types raised by the release workflow.

Every failure the workflow can report derives from ReleaseError so callers
(the CLI, batch mode) can catch one type and still tell the kinds apart.
"""

from __future__ import annotations


class ReleaseError(Exception):
    """Base class for all release failures."""


class CommandError(ReleaseError):
    """An external command (git, npm, ...) exited non-zero."""

    def __init__(self, cmd: list[str], returncode: int, stdout: str = "", stderr: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"`{' '.join(cmd)}` exited with {returncode}: {self.output}")

    @property
    def output(self) -> str:
        """Best available diagnostic text, stderr preferred."""
        return (self.stderr or self.stdout).strip()


class ConfigError(ReleaseError):
    """mono-publish.toml is unreadable or has invalid values."""


class MalformedVersion(ReleaseError):
    """A version string doesn't match major.minor.patch[-label[.number]]."""


class UnsupportedBumpKind(ReleaseError):
    """The requested bump kind is not one we know how to apply."""


class VersionAlreadyPublished(ReleaseError):
    """The planned version is the one already published as latest."""


class ManifestIOError(ReleaseError):
    """A package.json could not be read or written."""


class RegistryConfigError(ReleaseError):
    """Reading or writing the configured registry endpoint failed."""


class NoSessionToRestore(ReleaseError):
    """release() was called but no previous endpoint was ever captured."""


class SessionAlreadyActive(ReleaseError):
    """A registry session is already outstanding in this process."""


class AuthenticationFailed(ReleaseError):
    """No registry identity could be verified or obtained."""


class PublishFailed(ReleaseError):
    """The registry client rejected the publish."""


class NoRemoteBranch(ReleaseError):
    """The current branch has no upstream and no same-named remote branch."""


class GitOperationFailed(ReleaseError):
    """A step of the tag-and-push sequence failed.

    Attributes:
        step: Short name of the failing step (e.g. "commit", "push-tag").
        message: Output of the underlying git command.
    """

    def __init__(self, step: str, message: str):
        self.step = step
        self.message = message
        super().__init__(f"git {step} failed: {message}")
