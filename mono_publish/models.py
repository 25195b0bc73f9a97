"""Data models for mono-publish.

These Pydantic models represent the core data structures passed between
the version resolver, the release workflow and the CLI.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr

BUMP_KINDS = ("major", "minor", "patch", "prepatch", "preminor", "premajor", "prerelease", "explicit")


class Version(BaseModel):
    """A parsed major.minor.patch[-label[.number]] version.

    Attributes:
        prerelease_label: Text after the "-", up to the first ".". None for
            stable versions.
        prerelease_number: Numeric suffix of the prerelease; 0 when the label
            carries no number. Always 0 for stable versions.
    """

    model_config = ConfigDict(frozen=True)

    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    patch: int = Field(ge=0)
    prerelease_label: str | None = None
    prerelease_number: int = Field(default=0, ge=0)

    @property
    def core(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def __str__(self) -> str:
        if self.prerelease_label is None:
            return self.core
        return f"{self.core}-{self.prerelease_label}.{self.prerelease_number}"


class BumpRequest(BaseModel):
    """A caller's decision about how to compute the next version.

    `kind` is kept as a plain string so unknown kinds reach the resolver and
    fail there with UnsupportedBumpKind. `value` is only used for "explicit".
    """

    kind: str
    value: str | None = None


class PackageInfo(BaseModel):
    """A package in the source tree, as declared by its package.json.

    Attributes:
        name: Registry identifier (package.json "name").
        path: Directory containing package.json.
        version: Version currently written in the manifest.
    """

    name: str
    path: str
    version: str = "0.0.0"


class LatestVersion(BaseModel):
    """Answer to "what is the latest published version of this package?".

    `reason` keeps the cause visible even though "not_found" and
    "unreachable" are both handled as a first publish.
    """

    version: str
    first_publish: bool
    reason: Literal["published", "not_found", "unreachable"] = "published"


class ReleasePlan(BaseModel):
    """The resolved next version for one package."""

    package: PackageInfo
    new_version: str
    is_first_publish: bool


class Credentials(BaseModel):
    """Registry login details collected from the operator."""

    username: str
    password: SecretStr
    email: str


class ReleaseOutcome(BaseModel):
    """Result of running the release workflow for one package.

    Attributes:
        stage: Last stage reached; for failures, the stage that failed.
    """

    name: str
    ok: bool
    stage: str
    plan: ReleasePlan | None = None
    error: str | None = None


class BatchReport(BaseModel):
    """Results of releasing every package, plus the aggregate publish.

    aggregate_ok is None when the aggregate step was skipped.
    """

    outcomes: list[ReleaseOutcome] = Field(default_factory=list)
    aggregate_ok: bool | None = None

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes) and self.aggregate_ok is not False
