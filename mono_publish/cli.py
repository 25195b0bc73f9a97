"""CLI entry point for mono-publish."""

from __future__ import annotations

from pathlib import Path

import click

from mono_publish.config import load_config
from mono_publish.errors import MalformedVersion, ReleaseError
from mono_publish.models import (
    BUMP_KINDS,
    BumpRequest,
    Credentials,
    LatestVersion,
    PackageInfo,
    ReleaseOutcome,
)
from mono_publish.pipeline import discover_packages, release_all, release_package
from mono_publish.versions import (
    is_prerelease,
    parse_version,
    preview_bumps,
    validate_explicit,
)


def _explicit_version(value: str) -> str:
    try:
        return validate_explicit(value)
    except MalformedVersion as exc:
        raise click.BadParameter(str(exc)) from exc


def _check_version_option(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> str | None:
    return _explicit_version(value) if value is not None else None


def _bump_chooser(bump_kind: str | None, explicit_version: str | None):
    """Return a callback deciding the bump for each package.

    Options given on the command line apply to every package; anything
    missing is asked for interactively.
    """

    def choose(package: PackageInfo, latest: LatestVersion) -> BumpRequest:
        if explicit_version:
            return BumpRequest(kind="explicit", value=explicit_version)

        kind = bump_kind
        if kind is None:
            suffix = " (prerelease)" if is_prerelease(latest.version) else ""
            click.echo(f"\n{package.name} is at {latest.version}{suffix}")
            for name, preview in preview_bumps(parse_version(latest.version)).items():
                click.echo(f"  {name:<10} → {preview}")
            kind = click.prompt(
                "Release type",
                type=click.Choice(BUMP_KINDS),
                default="patch",
                show_choices=False,
            )
        if kind == "explicit":
            value = click.prompt("Version", value_proc=_explicit_version)
            return BumpRequest(kind="explicit", value=value)
        return BumpRequest(kind=kind)

    return choose


def _ask_credentials() -> Credentials:
    click.echo("Not logged in to the registry.")
    return Credentials(
        username=click.prompt("Username"),
        password=click.prompt("Password", hide_input=True),
        email=click.prompt("Email"),
    )


def _describe(outcome: ReleaseOutcome) -> str:
    if outcome.ok:
        return f"✓ {outcome.name} {outcome.plan.new_version}"
    return f"✗ {outcome.name} ({outcome.stage}): {outcome.error}"


@click.group()
@click.version_option(package_name="mono-publish")
def cli() -> None:
    """Version, tag and publish the packages of a monorepo."""


@cli.command("list")
@click.option("--projects-dir", default=None, help="Directory holding the packages.")
def list_packages(projects_dir: str | None) -> None:
    """List the packages that can be released."""
    try:
        config = load_config(Path.cwd(), projects_dir=projects_dir)
        discover_packages(config)
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.argument("package", required=False)
@click.option("--all", "all_packages", is_flag=True, help="Release every package.")
@click.option(
    "--bump",
    "bump_kind",
    type=click.Choice(BUMP_KINDS),
    default=None,
    help="How to bump the version. Asked for each package if omitted.",
)
@click.option(
    "--version",
    "explicit_version",
    default=None,
    callback=_check_version_option,
    help="Release exactly this version (e.g. 1.2.3 or 1.2.3-rc.1).",
)
@click.option("--registry", default=None, help="Registry to publish to.")
@click.option("--projects-dir", default=None, help="Directory holding the packages.")
@click.option("--remote", default=None, help="Git remote to push to.")
@click.option(
    "--skip-aggregate", is_flag=True, help="Don't run the aggregate publish after --all."
)
def release(
    package: str | None,
    all_packages: bool,
    bump_kind: str | None,
    explicit_version: str | None,
    registry: str | None,
    projects_dir: str | None,
    remote: str | None,
    skip_aggregate: bool,
) -> None:
    """Bump, tag and publish PACKAGE (or every package with --all)."""
    try:
        config = load_config(
            Path.cwd(), registry=registry, projects_dir=projects_dir, remote=remote
        )
        choose_bump = _bump_chooser(bump_kind, explicit_version)

        if not all_packages:
            packages = discover_packages(config)
            if not package:
                package = click.prompt(
                    "Package to release", type=click.Choice(["all", *packages])
                )
                all_packages = package == "all"

        if all_packages:
            report = release_all(
                config, choose_bump, _ask_credentials, aggregate=not skip_aggregate
            )
            click.echo()
            for outcome in report.outcomes:
                click.echo(_describe(outcome))
            if report.aggregate_ok is False:
                click.echo("✗ aggregate publish")
            if not report.ok:
                raise click.ClickException("Some packages were not released.")
            return

        if package not in packages:
            raise click.ClickException(
                f"Unknown package {package!r}. Known: {', '.join(packages)}"
            )
        outcome = release_package(packages[package], config, choose_bump, _ask_credentials)
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo()
    click.echo(_describe(outcome))
    if not outcome.ok:
        raise click.ClickException(f"Release of {outcome.name} failed.")
