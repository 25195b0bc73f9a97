"""Release configuration.

Settings come from an optional mono-publish.toml at the repository root,
read with tomlkit. Keys may be written with hyphens or underscores:

    registry = "https://registry.npmjs.org/"
    projects-dir = "projects"
    remote = "origin"
    aggregate-command = ["rush", "custom-publish", "--include-all"]
"""

from __future__ import annotations

from pathlib import Path

import tomlkit
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tomlkit.exceptions import TOMLKitError

from .errors import ConfigError

CONFIG_FILE = "mono-publish.toml"
DEFAULT_REGISTRY = "https://registry.npmjs.org/"


class ReleaseConfig(BaseModel):
    """Where and how packages are released.

    Attributes:
        root: Repository root; git runs here and projects_dir is relative to it.
        registry: Registry endpoint used while publishing.
        projects_dir: Directory whose subdirectories hold one package each.
        remote: Git remote that receives commits and tags.
        aggregate_command: Command run once after a batch release.
    """

    # A misspelled key must not fall back to the public registry.
    model_config = ConfigDict(extra="forbid")

    root: Path = Field(default_factory=Path.cwd)
    registry: str = DEFAULT_REGISTRY
    projects_dir: str = "projects"
    remote: str = "origin"
    aggregate_command: list[str] = Field(
        default_factory=lambda: ["rush", "custom-publish", "--include-all"]
    )

    @property
    def projects_path(self) -> Path:
        return self.root / self.projects_dir


def load_config(root: Path, **overrides: object) -> ReleaseConfig:
    """Build the config for a repository.

    Values from mono-publish.toml override the defaults; keyword overrides
    (typically CLI options) override the file. None overrides are ignored.

    Raises:
        ConfigError: If the file can't be parsed or holds invalid values.
    """
    values: dict[str, object] = {}
    path = root / CONFIG_FILE
    if path.exists():
        try:
            doc = tomlkit.parse(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, TOMLKitError) as exc:
            raise ConfigError(f"Cannot read {path}: {exc}") from exc
        values.update({key.replace("-", "_"): value for key, value in doc.unwrap().items()})

    values.update({key: value for key, value in overrides.items() if value is not None})
    values["root"] = root
    try:
        return ReleaseConfig(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}:\n{exc}") from exc
