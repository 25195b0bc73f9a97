"""Publish a package directory to the configured registry."""

from __future__ import annotations

from pathlib import Path

from .errors import CommandError, PublishFailed
from .registry import publish


def publish_package(directory: Path) -> str:
    """Run the registry publish for one package.

    Never retried; a failure is reported to the caller as PublishFailed.
    """
    try:
        output = publish(directory)
    except CommandError as exc:
        raise PublishFailed(exc.output or str(exc)) from exc
    if output:
        print(f"  {output}")
    return output
