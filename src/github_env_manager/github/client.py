"""GitHub API client wrapper.

Wraps a `requests` session for the environment/variable/secret REST endpoints and PyGithub
for user and repository reads, so services never build URLs or parse raw payloads.

One client is built per credential (see :func:`create_client`); nothing here is shared
between callers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from urllib.parse import quote

import requests
from github import Auth, Github, GithubException
from github.Repository import Repository

from github_env_manager.crypto import EnvironmentPublicKey, SealedSecret
from github_env_manager.errors import GatewayError, Unauthenticated

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.github.com"
DEFAULT_PAGE_SIZE = 100

# The environment variables endpoint caps `per_page` at 30.
_VARIABLES_MAX_PAGE_SIZE = 30


@dataclass(frozen=True, slots=True)
class RepositoryInfo:
    """Minimal repository metadata."""

    id: int
    name: str
    owner: str
    full_name: str
    description: str | None
    html_url: str
    private: bool


@dataclass(frozen=True, slots=True)
class EnvironmentInfo:
    name: str
    url: str
    html_url: str
    created_at: datetime | None
    updated_at: datetime | None


@dataclass(frozen=True, slots=True)
class VariableInfo:
    name: str
    value: str
    created_at: datetime | None
    updated_at: datetime | None


@dataclass(frozen=True, slots=True)
class SecretInfo:
    """Secret metadata. GitHub never returns the value."""

    name: str
    created_at: datetime | None
    updated_at: datetime | None


def _parse_datetime(value: object) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    # GitHub returns timestamps like "2025-01-01T00:00:00Z".
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _str_field(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _error_message(resp: requests.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text.strip() or resp.reason or f"HTTP {resp.status_code}"
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return resp.reason or f"HTTP {resp.status_code}"


def _github_exception_message(exc: GithubException) -> str:
    data = exc.data
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return str(exc)


class GitHubClient:
    """Per-credential wrapper around the GitHub REST API."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        github_api: Github | None = None,
    ) -> None:
        if not token or not token.strip():
            raise Unauthenticated()
        if page_size <= 0:
            raise ValueError("page_size must be a positive integer")

        self._token = token.strip()
        self._rest_base_url = base_url.rstrip("/")
        self._page_size = page_size
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {self._token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "github-env-manager",
            }
        )
        self._github = github_api

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    @property
    def page_size(self) -> int:
        return self._page_size

    def _github_api(self) -> Github:
        if self._github is None:
            self._github = Github(
                auth=Auth.Token(self._token),
                base_url=self._rest_base_url,
                per_page=self._page_size,
                timeout=int(self._timeout),
            )
        return self._github

    def _repo_url(self, *, owner: str, repo: str, path: str = "") -> str:
        owner_part = quote(owner.strip(), safe="")
        repo_part = quote(repo.strip().rstrip("/"), safe="")
        base = f"{self._rest_base_url}/repos/{owner_part}/{repo_part}"
        path = path.strip("/")
        if not path:
            return base
        return f"{base}/{path}"

    def _environment_url(self, *, owner: str, repo: str, environment: str, suffix: str = "") -> str:
        env = quote(environment, safe="")
        suffix = suffix.strip("/")
        path = f"environments/{env}/{suffix}" if suffix else f"environments/{env}"
        return self._repo_url(owner=owner, repo=repo, path=path)

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        resp = self._session.request(method, url, timeout=self._timeout, **kwargs)
        if not resp.ok:
            message = _error_message(resp)
            logger.debug(
                "GitHub API request failed",
                extra={"method": method, "url": url, "status_code": resp.status_code},
            )
            raise GatewayError(
                status_code=resp.status_code,
                message=message,
                method=method,
                url=url,
            )
        return resp

    def _get_paginated_items(
        self, url: str, *, key: str, page_size: int | None = None
    ) -> list[dict[str, Any]]:
        """Fetch every page of a list endpoint that wraps its items under `key`.

        Stops when a page returns fewer than `page_size` items (or none at all).
        """

        per_page = page_size or self._page_size
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            resp = self._request("GET", url, params={"per_page": per_page, "page": page})
            payload = resp.json()
            raw = payload.get(key) if isinstance(payload, dict) else None
            if not isinstance(raw, list) or not raw:
                break

            items.extend(item for item in raw if isinstance(item, dict))
            if len(raw) < per_page:
                break
            page += 1
        return items

    def get_authenticated_login(self) -> str:
        try:
            return self._github_api().get_user().login
        except GithubException as e:
            raise GatewayError(status_code=e.status, message=_github_exception_message(e)) from e

    @staticmethod
    def _to_repository_info(repo: Repository) -> RepositoryInfo:
        return RepositoryInfo(
            id=repo.id,
            name=repo.name,
            owner=repo.owner.login,
            full_name=repo.full_name,
            description=repo.description,
            html_url=repo.html_url,
            private=bool(repo.private),
        )

    def list_repositories(self) -> list[RepositoryInfo]:
        logger.debug("Listing repositories for authenticated user")
        try:
            repos = self._github_api().get_user().get_repos(sort="updated")
            return [self._to_repository_info(r) for r in repos]
        except GithubException as e:
            raise GatewayError(status_code=e.status, message=_github_exception_message(e)) from e

    def get_repository(self, *, owner: str, repo: str) -> RepositoryInfo:
        try:
            found = self._github_api().get_repo(f"{owner.strip()}/{repo.strip()}")
            return self._to_repository_info(found)
        except GithubException as e:
            raise GatewayError(status_code=e.status, message=_github_exception_message(e)) from e

    @staticmethod
    def _to_environment_info(data: dict[str, Any]) -> EnvironmentInfo:
        return EnvironmentInfo(
            name=_str_field(data, "name"),
            url=_str_field(data, "url"),
            html_url=_str_field(data, "html_url"),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
        )

    def list_environments(self, *, owner: str, repo: str) -> list[EnvironmentInfo]:
        url = self._repo_url(owner=owner, repo=repo, path="environments")
        items = self._get_paginated_items(url, key="environments")
        logger.debug(
            "Listed environments",
            extra={"repo": f"{owner}/{repo}", "count": len(items)},
        )
        return [self._to_environment_info(item) for item in items]

    def create_or_update_environment(self, *, owner: str, repo: str, name: str) -> EnvironmentInfo:
        if not name.strip():
            raise ValueError("environment name is required")
        url = self._environment_url(owner=owner, repo=repo, environment=name)
        resp = self._request("PUT", url, json={})
        logger.info("Environment upserted", extra={"repo": f"{owner}/{repo}", "environment": name})
        data = resp.json() if resp.content else {}
        return self._to_environment_info(data if isinstance(data, dict) else {})

    def delete_environment(self, *, owner: str, repo: str, name: str) -> None:
        url = self._environment_url(owner=owner, repo=repo, environment=name)
        self._request("DELETE", url)
        logger.info("Environment deleted", extra={"repo": f"{owner}/{repo}", "environment": name})

    @staticmethod
    def _to_variable_info(data: dict[str, Any]) -> VariableInfo:
        return VariableInfo(
            name=_str_field(data, "name"),
            value=_str_field(data, "value"),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
        )

    def list_variables(self, *, owner: str, repo: str, environment: str) -> list[VariableInfo]:
        url = self._environment_url(
            owner=owner, repo=repo, environment=environment, suffix="variables"
        )
        items = self._get_paginated_items(
            url,
            key="variables",
            page_size=min(self._page_size, _VARIABLES_MAX_PAGE_SIZE),
        )
        return [self._to_variable_info(item) for item in items]

    def create_variable(
        self, *, owner: str, repo: str, environment: str, name: str, value: str
    ) -> None:
        url = self._environment_url(
            owner=owner, repo=repo, environment=environment, suffix="variables"
        )
        self._request("POST", url, json={"name": name, "value": value})
        logger.info(
            "Variable created",
            extra={"repo": f"{owner}/{repo}", "environment": environment, "variable": name},
        )

    def update_variable(
        self, *, owner: str, repo: str, environment: str, name: str, value: str
    ) -> None:
        url = self._environment_url(
            owner=owner, repo=repo, environment=environment, suffix=f"variables/{quote(name, safe='')}"
        )
        self._request("PATCH", url, json={"name": name, "value": value})
        logger.info(
            "Variable updated",
            extra={"repo": f"{owner}/{repo}", "environment": environment, "variable": name},
        )

    def delete_variable(self, *, owner: str, repo: str, environment: str, name: str) -> None:
        url = self._environment_url(
            owner=owner, repo=repo, environment=environment, suffix=f"variables/{quote(name, safe='')}"
        )
        self._request("DELETE", url)
        logger.info(
            "Variable deleted",
            extra={"repo": f"{owner}/{repo}", "environment": environment, "variable": name},
        )

    def list_secrets(self, *, owner: str, repo: str, environment: str) -> list[SecretInfo]:
        url = self._environment_url(owner=owner, repo=repo, environment=environment, suffix="secrets")
        items = self._get_paginated_items(url, key="secrets")
        return [
            SecretInfo(
                name=_str_field(item, "name"),
                created_at=_parse_datetime(item.get("created_at")),
                updated_at=_parse_datetime(item.get("updated_at")),
            )
            for item in items
        ]

    def get_environment_public_key(
        self, *, owner: str, repo: str, environment: str
    ) -> EnvironmentPublicKey:
        url = self._environment_url(
            owner=owner, repo=repo, environment=environment, suffix="secrets/public-key"
        )
        data: dict[str, Any] = self._request("GET", url).json()
        key_id = data.get("key_id")
        key = data.get("key")
        if not isinstance(key_id, str) or not key_id.strip():
            raise ValueError("Unexpected public key response: missing key_id")
        if not isinstance(key, str) or not key.strip():
            raise ValueError("Unexpected public key response: missing key")
        return EnvironmentPublicKey(key_id=key_id, key=key)

    def put_environment_secret(
        self,
        *,
        owner: str,
        repo: str,
        environment: str,
        name: str,
        sealed: SealedSecret,
    ) -> bool:
        """Create or update a secret from an already sealed value.

        Returns:
            True if GitHub created the secret, False if it replaced an existing one.
        """

        url = self._environment_url(
            owner=owner, repo=repo, environment=environment, suffix=f"secrets/{quote(name, safe='')}"
        )
        resp = self._request(
            "PUT",
            url,
            json={"encrypted_value": sealed.encrypted_value, "key_id": sealed.key_id},
        )
        created = resp.status_code == 201
        logger.info(
            "Secret written",
            extra={
                "repo": f"{owner}/{repo}",
                "environment": environment,
                "secret": name,
                "secret_created": created,
            },
        )
        return created

    def delete_secret(self, *, owner: str, repo: str, environment: str, name: str) -> None:
        url = self._environment_url(
            owner=owner, repo=repo, environment=environment, suffix=f"secrets/{quote(name, safe='')}"
        )
        self._request("DELETE", url)
        logger.info(
            "Secret deleted",
            extra={"repo": f"{owner}/{repo}", "environment": environment, "secret": name},
        )

    def close(self) -> None:
        self._session.close()
        if self._github is not None:
            self._github.close()


def create_client(
    token: str | None,
    *,
    base_url: str = DEFAULT_BASE_URL,
    page_size: int = DEFAULT_PAGE_SIZE,
    timeout: float = 30.0,
) -> GitHubClient:
    """Build a fresh client for a single credential.

    Raises:
        Unauthenticated: If no token is given. No request is made in that case.
    """

    if token is None or not token.strip():
        raise Unauthenticated()
    return GitHubClient(token=token, base_url=base_url, page_size=page_size, timeout=timeout)
