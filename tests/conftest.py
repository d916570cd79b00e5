"""Test configuration and fixtures."""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest
from nacl import public

from github_env_manager.config import EnvManagerSettings
from github_env_manager.crypto import EnvironmentPublicKey, SealedSecret
from github_env_manager.errors import GatewayError
from github_env_manager.github.client import (
    EnvironmentInfo,
    RepositoryInfo,
    SecretInfo,
    VariableInfo,
)

_TS = datetime(2025, 1, 1, tzinfo=UTC)


@dataclass
class FakeEnvironment:
    variables: dict[str, str] = field(default_factory=dict)
    # Sealed ciphertext as submitted; the fake can open it with `private_key`.
    secrets: dict[str, str] = field(default_factory=dict)
    private_key: public.PrivateKey = field(default_factory=public.PrivateKey.generate)
    key_id: str = "key-1"

    def open_secret(self, name: str) -> str:
        box = public.SealedBox(self.private_key)
        return box.decrypt(base64.b64decode(self.secrets[name])).decode("utf-8")


class FakeGitHub:
    """In-memory stand-in for :class:`GitHubClient` with GitHub's status-code behaviour."""

    def __init__(self) -> None:
        self.repos: dict[tuple[str, str], dict[str, FakeEnvironment]] = {}
        self.writes: list[tuple[str, ...]] = []
        self.public_key_fetches: list[tuple[str, str, str]] = []
        self.closed = False
        # Called before each write with (operation, environment, name); may raise.
        self.before_write: Callable[[str, str, str], None] | None = None

    def add_repo(self, owner: str, repo: str) -> dict[str, FakeEnvironment]:
        return self.repos.setdefault((owner, repo), {})

    def add_environment(
        self,
        owner: str,
        repo: str,
        name: str,
        *,
        variables: dict[str, str] | None = None,
        secrets: list[str] | None = None,
    ) -> FakeEnvironment:
        env = FakeEnvironment(variables=dict(variables or {}))
        for secret in secrets or []:
            env.secrets[secret] = "opaque"
        self.add_repo(owner, repo)[name] = env
        return env

    def _repo(self, owner: str, repo: str) -> dict[str, FakeEnvironment]:
        try:
            return self.repos[(owner, repo)]
        except KeyError:
            raise GatewayError(status_code=404, message="Not Found") from None

    def _env(self, owner: str, repo: str, environment: str) -> FakeEnvironment:
        try:
            return self._repo(owner, repo)[environment]
        except KeyError:
            raise GatewayError(status_code=404, message="Not Found") from None

    def _record(self, operation: str, owner: str, repo: str, environment: str, name: str) -> None:
        if self.before_write is not None:
            self.before_write(operation, environment, name)
        self.writes.append((operation, owner, repo, environment, name))

    def get_authenticated_login(self) -> str:
        return "octocat"

    def list_repositories(self) -> list[RepositoryInfo]:
        return [
            RepositoryInfo(
                id=i,
                name=repo,
                owner=owner,
                full_name=f"{owner}/{repo}",
                description=None,
                html_url=f"https://github.com/{owner}/{repo}",
                private=False,
            )
            for i, (owner, repo) in enumerate(sorted(self.repos), start=1)
        ]

    def get_repository(self, *, owner: str, repo: str) -> RepositoryInfo:
        self._repo(owner, repo)
        for info in self.list_repositories():
            if info.full_name == f"{owner}/{repo}":
                return info
        raise GatewayError(status_code=404, message="Not Found")

    def list_environments(self, *, owner: str, repo: str) -> list[EnvironmentInfo]:
        return [
            EnvironmentInfo(
                name=name,
                url=f"https://api.github.com/repos/{owner}/{repo}/environments/{name}",
                html_url=f"https://github.com/{owner}/{repo}/deployments/activity_log?environments_filter={name}",
                created_at=_TS,
                updated_at=_TS,
            )
            for name in self._repo(owner, repo)
        ]

    def create_or_update_environment(self, *, owner: str, repo: str, name: str) -> EnvironmentInfo:
        envs = self._repo(owner, repo)
        self._record("put_environment", owner, repo, name, name)
        envs.setdefault(name, FakeEnvironment())
        return next(e for e in self.list_environments(owner=owner, repo=repo) if e.name == name)

    def delete_environment(self, *, owner: str, repo: str, name: str) -> None:
        envs = self._repo(owner, repo)
        if name not in envs:
            raise GatewayError(status_code=404, message="Not Found")
        self._record("delete_environment", owner, repo, name, name)
        del envs[name]

    def list_variables(self, *, owner: str, repo: str, environment: str) -> list[VariableInfo]:
        env = self._env(owner, repo, environment)
        return [
            VariableInfo(name=name, value=value, created_at=_TS, updated_at=_TS)
            for name, value in env.variables.items()
        ]

    def create_variable(
        self, *, owner: str, repo: str, environment: str, name: str, value: str
    ) -> None:
        env = self._env(owner, repo, environment)
        if name in env.variables:
            raise GatewayError(status_code=409, message="Already exists")
        self._record("create_variable", owner, repo, environment, name)
        env.variables[name] = value

    def update_variable(
        self, *, owner: str, repo: str, environment: str, name: str, value: str
    ) -> None:
        env = self._env(owner, repo, environment)
        if name not in env.variables:
            raise GatewayError(status_code=404, message="Not Found")
        self._record("update_variable", owner, repo, environment, name)
        env.variables[name] = value

    def delete_variable(self, *, owner: str, repo: str, environment: str, name: str) -> None:
        env = self._env(owner, repo, environment)
        if name not in env.variables:
            raise GatewayError(status_code=404, message="Not Found")
        self._record("delete_variable", owner, repo, environment, name)
        del env.variables[name]

    def list_secrets(self, *, owner: str, repo: str, environment: str) -> list[SecretInfo]:
        env = self._env(owner, repo, environment)
        return [SecretInfo(name=name, created_at=_TS, updated_at=_TS) for name in env.secrets]

    def get_environment_public_key(
        self, *, owner: str, repo: str, environment: str
    ) -> EnvironmentPublicKey:
        env = self._env(owner, repo, environment)
        self.public_key_fetches.append((owner, repo, environment))
        key = base64.b64encode(bytes(env.private_key.public_key)).decode("utf-8")
        return EnvironmentPublicKey(key_id=env.key_id, key=key)

    def put_environment_secret(
        self, *, owner: str, repo: str, environment: str, name: str, sealed: SealedSecret
    ) -> bool:
        env = self._env(owner, repo, environment)
        if sealed.key_id != env.key_id:
            raise GatewayError(status_code=422, message="Bad key_id")
        self._record("put_secret", owner, repo, environment, name)
        created = name not in env.secrets
        env.secrets[name] = sealed.encrypted_value
        return created

    def delete_secret(self, *, owner: str, repo: str, environment: str, name: str) -> None:
        env = self._env(owner, repo, environment)
        if name not in env.secrets:
            raise GatewayError(status_code=404, message="Not Found")
        self._record("delete_secret", owner, repo, environment, name)
        del env.secrets[name]

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def root_logging() -> Iterator[None]:
    """Run every test with all package log calls enabled, then restore root logging.

    `configure_logging` replaces the root handlers and level; without the restore that state
    would leak into whichever test runs next.
    """
    root = logging.getLogger()
    saved_level = root.level
    saved_handlers = list(root.handlers)
    quieted = {name: logging.getLogger(name).level for name in ("github", "urllib3")}
    root.setLevel(logging.DEBUG)
    try:
        yield
    finally:
        for handler in list(root.handlers):
            if handler not in saved_handlers:
                root.removeHandler(handler)
        for handler in saved_handlers:
            if handler not in root.handlers:
                root.addHandler(handler)
        root.setLevel(saved_level)
        for name, level in quieted.items():
            logging.getLogger(name).setLevel(level)


@pytest.fixture
def fake_github() -> FakeGitHub:
    """Provide an in-memory GitHub with one repository, `acme/app`."""
    fake = FakeGitHub()
    fake.add_repo("acme", "app")
    return fake


@pytest.fixture
def keypair() -> public.PrivateKey:
    """Provide a throwaway sealed-box keypair."""
    return public.PrivateKey.generate()


@pytest.fixture
def environment_public_key(keypair: public.PrivateKey) -> EnvironmentPublicKey:
    return EnvironmentPublicKey(
        key_id="568250167242549743",
        key=base64.b64encode(bytes(keypair.public_key)).decode("utf-8"),
    )


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> EnvManagerSettings:
    """Provide settings isolated from the developer's environment and `.env`."""
    for var in (
        "GITHUB_BASE_URL",
        "ENV_MANAGER_GITHUB_TOKEN",
        "LOG_LEVEL",
        "ENV_MANAGER_PAGE_SIZE",
        "ENV_MANAGER_SECRET_PLACEHOLDER_PREFIX",
        "ENV_MANAGER_REQUEST_TIMEOUT_SECONDS",
        "ENV_MANAGER_CORS_ORIGINS",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return EnvManagerSettings()
