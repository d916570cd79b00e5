"""Deployment environment CRUD."""

from __future__ import annotations

import logging

from github_env_manager.errors import EnvironmentNotFound, GatewayError, RepositoryNotFound
from github_env_manager.github.client import EnvironmentInfo, GitHubClient

logger = logging.getLogger(__name__)


class EnvironmentService:
    def __init__(self, *, github: GitHubClient) -> None:
        self._github = github

    def list_all(self, owner: str, repo: str) -> list[EnvironmentInfo]:
        try:
            return self._github.list_environments(owner=owner, repo=repo)
        except GatewayError as e:
            if e.is_not_found:
                raise RepositoryNotFound(owner, repo) from e
            raise

    def get(self, owner: str, repo: str, name: str) -> EnvironmentInfo:
        for environment in self.list_all(owner, repo):
            if environment.name == name:
                return environment
        raise EnvironmentNotFound(owner, repo, name)

    def create(self, owner: str, repo: str, name: str) -> EnvironmentInfo:
        """Create (or touch) an environment, then read it back from the listing."""

        if not name.strip():
            raise ValueError("Environment name is required")
        try:
            self._github.create_or_update_environment(owner=owner, repo=repo, name=name)
        except GatewayError as e:
            if e.is_not_found:
                raise RepositoryNotFound(owner, repo) from e
            raise
        return self.get(owner, repo, name)

    def delete(self, owner: str, repo: str, name: str) -> None:
        try:
            self._github.delete_environment(owner=owner, repo=repo, name=name)
        except GatewayError as e:
            if e.is_not_found:
                raise EnvironmentNotFound(owner, repo, name) from e
            raise
