"""Environment secret CRUD.

Secrets are write-only upstream: listing and `get` return metadata, and every write seals
the value against a public key fetched immediately beforehand. Keys can rotate, so a key is
never kept around between standalone writes.
"""

from __future__ import annotations

import logging

from github_env_manager.crypto import seal_secret
from github_env_manager.errors import EnvironmentNotFound, GatewayError, SecretNotFound
from github_env_manager.github.client import GitHubClient, SecretInfo

logger = logging.getLogger(__name__)


class SecretService:
    def __init__(self, *, github: GitHubClient) -> None:
        self._github = github

    def list_all(self, owner: str, repo: str, environment: str) -> list[SecretInfo]:
        try:
            return self._github.list_secrets(owner=owner, repo=repo, environment=environment)
        except GatewayError as e:
            if e.is_not_found:
                raise EnvironmentNotFound(owner, repo, environment) from e
            raise

    def get(self, owner: str, repo: str, environment: str, name: str) -> SecretInfo:
        for secret in self.list_all(owner, repo, environment):
            if secret.name == name:
                return secret
        raise SecretNotFound(owner, repo, environment, name)

    def _write(self, owner: str, repo: str, environment: str, name: str, value: str) -> None:
        public_key = self._github.get_environment_public_key(
            owner=owner, repo=repo, environment=environment
        )
        sealed = seal_secret(value, public_key)
        self._github.put_environment_secret(
            owner=owner, repo=repo, environment=environment, name=name, sealed=sealed
        )

    def create(self, owner: str, repo: str, environment: str, name: str, value: str) -> SecretInfo:
        if not name.strip():
            raise ValueError("Secret name is required")
        try:
            self._write(owner, repo, environment, name, value)
        except GatewayError as e:
            if e.is_not_found:
                raise EnvironmentNotFound(owner, repo, environment) from e
            raise
        return self.get(owner, repo, environment, name)

    def update(self, owner: str, repo: str, environment: str, name: str, value: str) -> SecretInfo:
        """Replace a secret's value.

        The upstream write is an upsert, so the secret must be known to exist first; otherwise an
        update would silently create it.
        """

        self.get(owner, repo, environment, name)
        try:
            self._write(owner, repo, environment, name, value)
        except GatewayError as e:
            if e.is_not_found:
                raise SecretNotFound(owner, repo, environment, name) from e
            raise
        return self.get(owner, repo, environment, name)

    def delete(self, owner: str, repo: str, environment: str, name: str) -> None:
        try:
            self._github.delete_secret(owner=owner, repo=repo, environment=environment, name=name)
        except GatewayError as e:
            if e.is_not_found:
                raise SecretNotFound(owner, repo, environment, name) from e
            raise
        logger.debug(
            "Secret removed",
            extra={"repo": f"{owner}/{repo}", "environment": environment, "secret": name},
        )
