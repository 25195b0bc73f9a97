"""Release workflow: resolve → persist → tag → publish, one package at a time.

For each package the workflow:
1. Resolves the next version from the latest published one
2. Writes it into the package's package.json
3. Commits, tags {name}-v{version} and pushes branch and tag
4. Switches npm to the release registry
5. Makes sure npm is logged in, logging in if needed
6. Publishes the package
7. Restores the previous registry

Once step 4 succeeds, step 7 is attempted on every exit path, including
failures in steps 5 and 6. Packages are released strictly one after the
other because the registry setting is shared by the whole machine.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from pathlib import Path

from .config import ReleaseConfig
from .errors import (
    AuthenticationFailed,
    CommandError,
    ConfigError,
    ReleaseError,
    SessionAlreadyActive,
)
from .manifest import MANIFEST_NAME, read_manifest, write_version
from .models import (
    BatchReport,
    BumpRequest,
    Credentials,
    LatestVersion,
    PackageInfo,
    ReleaseOutcome,
    ReleasePlan,
)
from .publisher import publish_package
from .registry import login, whoami
from .session import RegistrySession, acquire, active_session, release
from .shell import error, run, step
from .tagger import tag_and_push
from .versions import (
    DEFAULT_FIRST_VERSION,
    bump,
    ensure_unpublished,
    parse_version,
    resolve_latest,
)

ChooseBump = Callable[[PackageInfo, LatestVersion], BumpRequest]
AskCredentials = Callable[[], Credentials]


class Stage(str, Enum):
    """Workflow states, in the order a successful release passes through them."""

    RESOLVING = "resolving"
    PERSISTING = "persisting"
    TAGGING = "tagging"
    SESSION_ACQUIRED = "session-acquired"
    IDENTITY_VERIFIED = "identity-verified"
    PUBLISHING = "publishing"
    SESSION_RELEASED = "session-released"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STAGES = frozenset({Stage.DONE, Stage.FAILED})


def discover_packages(config: ReleaseConfig) -> dict[str, PackageInfo]:
    """Find every package under the projects directory.

    A package is a direct subdirectory containing a package.json.

    Returns:
        Map of package name to PackageInfo, in directory order.
    """
    step("Discovering packages")

    projects = config.projects_path
    if not projects.is_dir():
        raise ConfigError(f"Projects directory not found: {projects}")

    packages: dict[str, PackageInfo] = {}
    for d in sorted(p for p in projects.iterdir() if p.is_dir()):
        manifest = d / MANIFEST_NAME
        if manifest.exists():
            info = read_manifest(manifest)
            if info.name in packages:
                raise ConfigError(
                    f"Package name {info.name!r} is declared by both "
                    f"{packages[info.name].path} and {info.path}"
                )
            packages[info.name] = info
            print(f"  {info.name} {info.version} ({d.relative_to(config.root)})")

    if not packages:
        raise ConfigError(f"No packages with a {MANIFEST_NAME} found in {projects}")
    return packages


class ReleaseWorkflow:
    """State machine releasing a single package.

    Each handler performs the work of its stage and returns the next stage.
    A ReleaseError from any handler moves the workflow to FAILED, releasing
    the registry session first if one is held.
    """

    def __init__(
        self,
        package: PackageInfo,
        config: ReleaseConfig,
        choose_bump: ChooseBump,
        ask_credentials: AskCredentials | None = None,
    ):
        self.package = package
        self.config = config
        self.choose_bump = choose_bump
        self.ask_credentials = ask_credentials
        self.stage = Stage.RESOLVING
        self.plan: ReleasePlan | None = None
        self.session: RegistrySession | None = None
        self._handlers: dict[Stage, Callable[[], Stage]] = {
            Stage.RESOLVING: self._resolve,
            Stage.PERSISTING: self._persist,
            Stage.TAGGING: self._tag,
            Stage.SESSION_ACQUIRED: self._acquire_session,
            Stage.IDENTITY_VERIFIED: self._verify_identity,
            Stage.PUBLISHING: self._publish,
            Stage.SESSION_RELEASED: self._release_session,
        }

    def run(self) -> ReleaseOutcome:
        step(f"Releasing {self.package.name}")
        while self.stage not in TERMINAL_STAGES:
            try:
                self.stage = self._handlers[self.stage]()
            except ReleaseError as exc:
                return self._fail(exc)
            except BaseException:
                self._release_if_pending()
                raise

        print(f"  {self.package.name} {self.plan.new_version} released")
        return ReleaseOutcome(
            name=self.package.name, ok=True, stage=self.stage.value, plan=self.plan
        )

    def _resolve(self) -> Stage:
        name = self.package.name
        held = active_session()
        if held is not None:
            # Fail before touching the manifest or git, not at acquisition.
            raise SessionAlreadyActive(
                f"npm registry is still set to {held.target_endpoint} by an earlier release"
            )

        latest = resolve_latest(name, registry=self.config.registry)
        if latest.first_publish:
            if latest.reason == "unreachable":
                print(f"  Warning: could not reach the registry; releasing {name} as new")
            print(f"  {name}: first publish")
            new_version = DEFAULT_FIRST_VERSION
        else:
            request = self.choose_bump(self.package, latest)
            new_version = bump(parse_version(latest.version), request)
            ensure_unpublished(new_version, latest.version)
            print(f"  {name}: {latest.version} → {new_version}")

        self.plan = ReleasePlan(
            package=self.package,
            new_version=new_version,
            is_first_publish=latest.first_publish,
        )
        return Stage.PERSISTING

    def _persist(self) -> Stage:
        write_version(Path(self.package.path) / MANIFEST_NAME, self.plan.new_version)
        return Stage.TAGGING

    def _tag(self) -> Stage:
        tag_and_push(
            self.package.name,
            self.plan.new_version,
            self.config.root,
            self.config.remote,
        )
        return Stage.SESSION_ACQUIRED

    def _acquire_session(self) -> Stage:
        self.session = acquire(self.config.registry)
        return Stage.IDENTITY_VERIFIED

    def _verify_identity(self) -> Stage:
        user = whoami()
        if user is None:
            if self.ask_credentials is None:
                raise AuthenticationFailed(f"Not logged in to {self.config.registry}")
            creds = self.ask_credentials()
            login(
                creds.username,
                creds.password.get_secret_value(),
                creds.email,
                self.config.registry,
            )
            user = whoami()
            if user is None:
                raise AuthenticationFailed(
                    f"Logged in as {creds.username} but npm still reports no identity"
                )
        print(f"  Logged in as {user}")
        return Stage.PUBLISHING

    def _publish(self) -> Stage:
        step(f"Publishing {self.package.name}@{self.plan.new_version}")
        publish_package(Path(self.package.path))
        return Stage.SESSION_RELEASED

    def _release_session(self) -> Stage:
        release(self.session)
        return Stage.DONE

    def _release_if_pending(self) -> str | None:
        """Release a held session, returning the failure message if that fails."""
        if self.session is None or not self.session.pending:
            return None
        try:
            release(self.session)
        except ReleaseError as exc:
            return str(exc)
        return None

    def _fail(self, exc: ReleaseError) -> ReleaseOutcome:
        failed = self.stage
        message = str(exc)
        error(f"{self.package.name}: {failed.value} failed: {message}")

        release_error = self._release_if_pending()
        if release_error:
            message = f"{message}; registry restore also failed: {release_error}"

        self.stage = Stage.FAILED
        return ReleaseOutcome(
            name=self.package.name,
            ok=False,
            stage=failed.value,
            plan=self.plan,
            error=message,
        )


def release_package(
    package: PackageInfo,
    config: ReleaseConfig,
    choose_bump: ChooseBump,
    ask_credentials: AskCredentials | None = None,
) -> ReleaseOutcome:
    """Run the full release workflow for one package."""
    return ReleaseWorkflow(package, config, choose_bump, ask_credentials).run()


def run_aggregate_publish(config: ReleaseConfig) -> bool:
    """Run the tree-wide publish command, streaming its output."""
    step(f"Running {' '.join(config.aggregate_command)}")
    try:
        result = run(*config.aggregate_command, cwd=config.root, check=False)
    except CommandError as exc:
        error(str(exc))
        return False
    if result.returncode != 0:
        error(f"Aggregate publish exited with {result.returncode}")
        return False
    return True


def release_all(
    config: ReleaseConfig,
    choose_bump: ChooseBump,
    ask_credentials: AskCredentials | None = None,
    *,
    aggregate: bool = True,
) -> BatchReport:
    """Release every discovered package in turn, then run the aggregate publish.

    A failing package is recorded and the loop moves on. The aggregate
    publish only runs when every package succeeded.
    """
    packages = discover_packages(config)
    report = BatchReport()
    for info in packages.values():
        report.outcomes.append(release_package(info, config, choose_bump, ask_credentials))

    failed = [o.name for o in report.outcomes if not o.ok]
    if failed:
        step(f"Skipping aggregate publish, failed: {', '.join(failed)}")
    elif aggregate:
        report.aggregate_ok = run_aggregate_publish(config)

    return report
