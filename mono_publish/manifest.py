"""package.json reading and writing.

Only the "version" field is ever rewritten; every other key keeps its value
and position.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .errors import ManifestIOError
from .models import PackageInfo

MANIFEST_NAME = "package.json"


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestIOError(f"Cannot read {path}: {exc}") from exc


def _parse(path: Path, text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestIOError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestIOError(f"{path} does not contain a JSON object")
    return data


def load_manifest(path: Path) -> dict[str, Any]:
    """Load a package.json as a dict, preserving key order."""
    return _parse(path, _read_text(path))


def read_manifest(path: Path) -> PackageInfo:
    """Read name, directory and version from a package.json.

    Falls back to the directory name when "name" is missing.
    """
    data = load_manifest(path)
    return PackageInfo(
        name=data.get("name") or path.parent.name,
        path=str(path.parent),
        version=data.get("version") or "0.0.0",
    )


def write_version(path: Path, new_version: str) -> None:
    """Set "version" in a package.json, written with two-space indentation."""
    text = _read_text(path)
    data = _parse(path, text)
    data["version"] = new_version
    trailing = "\n" if text.endswith("\n") else ""
    try:
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + trailing, encoding="utf-8")
    except OSError as exc:
        raise ManifestIOError(f"Cannot write {path}: {exc}") from exc
    print(f"  version set to {new_version} in {path}")
