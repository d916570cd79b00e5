"""Environment variable CRUD."""

from __future__ import annotations

from github_env_manager.errors import EnvironmentNotFound, GatewayError, VariableNotFound
from github_env_manager.github.client import GitHubClient, VariableInfo


class VariableService:
    def __init__(self, *, github: GitHubClient) -> None:
        self._github = github

    def list_all(self, owner: str, repo: str, environment: str) -> list[VariableInfo]:
        try:
            return self._github.list_variables(owner=owner, repo=repo, environment=environment)
        except GatewayError as e:
            if e.is_not_found:
                raise EnvironmentNotFound(owner, repo, environment) from e
            raise

    def get(self, owner: str, repo: str, environment: str, name: str) -> VariableInfo:
        for variable in self.list_all(owner, repo, environment):
            if variable.name == name:
                return variable
        raise VariableNotFound(owner, repo, environment, name)

    def create(
        self, owner: str, repo: str, environment: str, name: str, value: str
    ) -> VariableInfo:
        try:
            self._github.create_variable(
                owner=owner, repo=repo, environment=environment, name=name, value=value
            )
        except GatewayError as e:
            if e.is_not_found:
                raise EnvironmentNotFound(owner, repo, environment) from e
            raise
        return self.get(owner, repo, environment, name)

    def update(
        self, owner: str, repo: str, environment: str, name: str, value: str
    ) -> VariableInfo:
        try:
            self._github.update_variable(
                owner=owner, repo=repo, environment=environment, name=name, value=value
            )
        except GatewayError as e:
            if e.is_not_found:
                raise VariableNotFound(owner, repo, environment, name) from e
            raise
        return self.get(owner, repo, environment, name)

    def delete(self, owner: str, repo: str, environment: str, name: str) -> None:
        try:
            self._github.delete_variable(owner=owner, repo=repo, environment=environment, name=name)
        except GatewayError as e:
            if e.is_not_found:
                raise VariableNotFound(owner, repo, environment, name) from e
            raise
