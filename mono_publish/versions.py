"""Version parsing and bumping utilities.

Versions are major.minor.patch with an optional -label.number prerelease
suffix. Bumps increment only the named component: "minor" on 1.2.3 gives
1.3.3, not 1.3.0. The pre* kinds follow npm and reset lower components.
"""

from __future__ import annotations

import re

import semver

from .errors import (
    CommandError,
    MalformedVersion,
    UnsupportedBumpKind,
    VersionAlreadyPublished,
)
from .models import BUMP_KINDS, BumpRequest, LatestVersion, Version
from .registry import view_version

DEFAULT_FIRST_VERSION = "1.0.0"
DEFAULT_PRERELEASE_LABEL = "beta"

_VERSION_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)(?:-([^.]+)(?:\.(\d+))?)?", re.ASCII)
EXPLICIT_VERSION_RE = re.compile(r"\d+\.\d+\.\d+(-\w+\.\d+)?", re.ASCII)


def normalize_version(version_str: str) -> str:
    """Strip whitespace and a leading "v" (registry output, tag names)."""
    return version_str.strip().removeprefix("v")


def parse_version(version_str: str) -> Version:
    """Parse a version string into a Version.

    Examples:
        "1.2.3" → Version(1, 2, 3)
        "1.2.3-rc" → Version(1, 2, 3, "rc", 0)
        "1.2.3-beta.4" → Version(1, 2, 3, "beta", 4)

    Raises:
        MalformedVersion: If the string is not major.minor.patch[-label[.number]].
    """
    m = _VERSION_RE.fullmatch(version_str)
    if m is None:
        raise MalformedVersion(f"Not a valid version: {version_str!r}")
    major, minor, patch, label, number = m.groups()
    return Version(
        major=int(major),
        minor=int(minor),
        patch=int(patch),
        prerelease_label=label,
        prerelease_number=int(number) if number else 0,
    )


def is_prerelease(version_str: str) -> bool:
    return "-" in version_str


def validate_explicit(value: str | None) -> str:
    """Check a caller-supplied version against the accepted grammar."""
    if value is None or EXPLICIT_VERSION_RE.fullmatch(value) is None:
        raise MalformedVersion(
            f"Version must look like 1.2.3 or 1.2.3-label.N, got: {value!r}"
        )
    return value


def bump(current: Version, request: BumpRequest) -> str:
    """Compute the next version string for a bump request.

    Examples (current = 1.2.3):
        major → "2.2.3", minor → "1.3.3", patch → "1.2.4"
        prepatch → "1.2.4-0", preminor → "1.3.0-0", premajor → "2.0.0-0"
        prerelease → "1.2.3-beta.0" (and 1.2.3-beta.0 → "1.2.3-beta.1")

    Raises:
        MalformedVersion: For an explicit value outside the grammar.
        UnsupportedBumpKind: For any kind not listed above.
    """
    kind = request.kind
    major, minor, patch = current.major, current.minor, current.patch

    if kind == "major":
        return f"{major + 1}.{minor}.{patch}"
    if kind == "minor":
        return f"{major}.{minor + 1}.{patch}"
    if kind == "patch":
        return f"{major}.{minor}.{patch + 1}"
    if kind == "prepatch":
        return f"{major}.{minor}.{patch + 1}-0"
    if kind == "preminor":
        return f"{major}.{minor + 1}.0-0"
    if kind == "premajor":
        return f"{major + 1}.0.0-0"
    if kind == "prerelease":
        if current.prerelease_label is not None:
            label = current.prerelease_label or DEFAULT_PRERELEASE_LABEL
            return f"{current.core}-{label}.{current.prerelease_number + 1}"
        return f"{current.core}-{DEFAULT_PRERELEASE_LABEL}.0"
    if kind == "explicit":
        return validate_explicit(request.value)
    raise UnsupportedBumpKind(f"Unsupported bump kind: {kind!r}")


def preview_bumps(current: Version) -> dict[str, str]:
    """Map every non-explicit bump kind to the version it would produce."""
    return {
        kind: bump(current, BumpRequest(kind=kind)) for kind in BUMP_KINDS if kind != "explicit"
    }


def ensure_unpublished(new_version: str, latest_version: str) -> None:
    """Refuse to release the version that is already the latest published one.

    Lower versions, such as a 1.4.1 backport after 2.0.0, are allowed.
    Only applies when both strings are valid semver; explicit versions with
    leading zeros and the like are left for the registry to judge.

    Raises:
        VersionAlreadyPublished: If new_version equals latest_version.
    """
    if not (semver.Version.is_valid(new_version) and semver.Version.is_valid(latest_version)):
        return
    if semver.Version.parse(new_version).compare(latest_version) == 0:
        raise VersionAlreadyPublished(f"{new_version} is already published as the latest version")


def resolve_latest(package_name: str, registry: str | None = None) -> LatestVersion:
    """Query the registry for the latest published version.

    A failed query is not an error: the package is treated as never
    published and released as 1.0.0. The reason field records whether the
    registry reported the package missing or could not be queried at all.
    """
    try:
        output = view_version(package_name, registry=registry)
    except CommandError as exc:
        reason = "not_found" if "404" in exc.output else "unreachable"
        print(f"  {package_name}: latest version lookup failed ({reason}): {exc.output}")
        return LatestVersion(version=DEFAULT_FIRST_VERSION, first_publish=True, reason=reason)

    latest = normalize_version(output)
    if not latest:
        return LatestVersion(
            version=DEFAULT_FIRST_VERSION, first_publish=True, reason="not_found"
        )
    return LatestVersion(version=latest, first_publish=False)
