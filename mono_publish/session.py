"""Scoped ownership of npm's configured registry endpoint.

The registry URL lives in npm's user config, which is shared by every
process on the machine. A release borrows it: acquire() records the
current value and switches to the release registry, release() puts the
recorded value back. Only one session may be outstanding per process.
"""

from __future__ import annotations

from pydantic import BaseModel

from .errors import CommandError, NoSessionToRestore, RegistryConfigError, SessionAlreadyActive
from .registry import get_endpoint, set_endpoint
from .shell import error

_active: RegistrySession | None = None


class RegistrySession(BaseModel):
    """A borrowed registry endpoint.

    Attributes:
        previous_endpoint: Registry configured before acquire(); restored by
            release().
        target_endpoint: Registry the session switched to.
        pending: True until release() has been attempted.
    """

    previous_endpoint: str | None = None
    target_endpoint: str
    pending: bool = False


def active_session() -> RegistrySession | None:
    return _active


def acquire(target_endpoint: str) -> RegistrySession:
    """Switch npm to target_endpoint, remembering the current registry.

    Raises:
        SessionAlreadyActive: If another session has not been released.
        RegistryConfigError: If the current registry can't be read or the
            new one can't be written. No session exists in that case.
    """
    global _active
    if _active is not None:
        raise SessionAlreadyActive(
            f"Registry session for {_active.target_endpoint} is still outstanding"
        )

    try:
        previous = get_endpoint()
    except CommandError as exc:
        raise RegistryConfigError(f"Could not read npm registry: {exc.output}") from exc
    try:
        set_endpoint(target_endpoint)
    except CommandError as exc:
        raise RegistryConfigError(
            f"Could not set npm registry to {target_endpoint}: {exc.output}"
        ) from exc

    _active = RegistrySession(
        previous_endpoint=previous, target_endpoint=target_endpoint, pending=True
    )
    print(f"  registry: {previous} → {target_endpoint}")
    return _active


def release(session: RegistrySession | None) -> None:
    """Restore the registry recorded by acquire().

    A session can be released once. If the restore write fails the session
    stays registered as active, so later acquisitions are refused instead of
    recording the wrong registry as the one to return to.

    Raises:
        NoSessionToRestore: If nothing was captured or the session was
            already released.
        RegistryConfigError: If the restore write fails.
    """
    global _active
    if session is None or not session.previous_endpoint or not session.pending:
        raise NoSessionToRestore("No previous npm registry recorded; nothing to restore")

    session.pending = False
    try:
        set_endpoint(session.previous_endpoint)
    except CommandError as exc:
        msg = (
            f"Failed to restore npm registry to {session.previous_endpoint}; "
            f"it is still set to {session.target_endpoint}. "
            f"Run: npm config set registry {session.previous_endpoint}"
        )
        error(msg)
        raise RegistryConfigError(f"{msg} ({exc.output})") from exc

    if _active is session:
        _active = None
    print(f"  registry restored: {session.previous_endpoint}")
