"""npm registry client operations.

Thin wrappers around the npm CLI. Every function raises CommandError when
npm exits non-zero; components above this layer turn that into their own
error types.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote, urlsplit

import requests

from .errors import AuthenticationFailed, CommandError
from .shell import npm

LOGIN_TIMEOUT_SECONDS = 30


def _registry_args(registry: str | None) -> list[str]:
    return ["--registry", registry] if registry else []


def view_version(package_name: str, registry: str | None = None) -> str:
    """Return the latest published version of a package (npm view)."""
    return npm("view", package_name, "version", *_registry_args(registry))


def get_endpoint() -> str:
    """Return the registry URL npm is currently configured to use."""
    return npm("config", "get", "registry")


def set_endpoint(url: str) -> None:
    """Point npm's user config at a different registry."""
    npm("config", "set", "registry", url)


def whoami(registry: str | None = None) -> str | None:
    """Return the authenticated username, or None if not logged in."""
    try:
        return npm("whoami", *_registry_args(registry)) or None
    except CommandError:
        return None


def auth_token_key(registry: str) -> str:
    """npm config key holding the auth token for a registry.

    "https://registry.npmjs.org/" → "//registry.npmjs.org/:_authToken"
    """
    parts = urlsplit(registry)
    path = parts.path if parts.path.endswith("/") else parts.path + "/"
    return f"//{parts.netloc}{path}:_authToken"


def login(username: str, password: str, email: str, registry: str) -> str:
    """Log in through the registry's user API and store the token for npm.

    Uses the same CouchDB-style endpoint `npm login` talks to, so no
    interactive process has to be driven.

    Returns:
        The username that was logged in.

    Raises:
        AuthenticationFailed: If the registry rejects the credentials or
            returns no token.
    """
    url = f"{registry.rstrip('/')}/-/user/org.couchdb.user:{quote(username, safe='')}"
    payload = {
        "_id": f"org.couchdb.user:{username}",
        "name": username,
        "password": password,
        "email": email,
        "type": "user",
        "roles": [],
    }
    try:
        response = requests.put(url, json=payload, timeout=LOGIN_TIMEOUT_SECONDS)
        response.raise_for_status()
        token = response.json().get("token")
    except (requests.exceptions.RequestException, ValueError) as exc:
        raise AuthenticationFailed(f"Login to {registry} as {username} failed: {exc}") from exc
    if not token:
        raise AuthenticationFailed(f"Registry {registry} returned no token for {username}")

    try:
        npm("config", "set", auth_token_key(registry), token)
    except CommandError as exc:
        raise AuthenticationFailed(f"Could not store auth token: {exc.output}") from exc
    return username


def publish(directory: Path, registry: str | None = None) -> str:
    """Run `npm publish` inside a package directory and return its output."""
    return npm("publish", *_registry_args(registry), cwd=directory)
