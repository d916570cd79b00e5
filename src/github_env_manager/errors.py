"""Domain errors raised by the gateway client and services.

The HTTP layer maps these onto status codes; the CLI prints their message and exits non-zero.
"""

from __future__ import annotations

from dataclasses import dataclass


class EnvManagerError(Exception):
    """Base class for all errors raised by this package."""


class Unauthenticated(EnvManagerError):
    """Raised when an operation is attempted without a GitHub token."""

    def __init__(self, message: str = "GitHub token is required") -> None:
        super().__init__(message)


class NotFound(EnvManagerError):
    """Base class for entities missing upstream."""


class RepositoryNotFound(NotFound):
    def __init__(self, owner: str, repo: str) -> None:
        self.owner = owner
        self.repo = repo
        super().__init__(f"Repository {owner}/{repo} not found")


class EnvironmentNotFound(NotFound):
    def __init__(self, owner: str, repo: str, environment: str) -> None:
        self.owner = owner
        self.repo = repo
        self.environment = environment
        super().__init__(f"Environment {environment} not found in repository {owner}/{repo}")


class VariableNotFound(NotFound):
    def __init__(self, owner: str, repo: str, environment: str, name: str) -> None:
        self.owner = owner
        self.repo = repo
        self.environment = environment
        self.name = name
        super().__init__(
            f"Variable {name} not found in environment {environment} of repository {owner}/{repo}"
        )


class SecretNotFound(NotFound):
    def __init__(self, owner: str, repo: str, environment: str, name: str) -> None:
        self.owner = owner
        self.repo = repo
        self.environment = environment
        self.name = name
        super().__init__(
            f"Secret {name} not found in environment {environment} of repository {owner}/{repo}"
        )


@dataclass(slots=True)
class EmptySource(EnvManagerError):
    """Raised when a copy is requested from an environment holding nothing of that kind."""

    kind: str
    owner: str
    repo: str
    environment: str

    def __str__(self) -> str:
        return f"No {self.kind} found in source environment {self.environment} of {self.owner}/{self.repo}"


@dataclass(slots=True)
class NamesNotFound(EnvManagerError):
    """Raised when an explicit name filter references entries absent from the source."""

    kind: str
    missing: tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"{self.kind.capitalize()} not found in source environment: {', '.join(self.missing)}"


@dataclass(slots=True)
class GatewayError(EnvManagerError):
    """A non-success response from the GitHub REST API."""

    status_code: int
    message: str
    method: str = ""
    url: str = ""

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_conflict(self) -> bool:
        # GitHub reports "already exists" on create as 409, older deployments as 422.
        return self.status_code in {409, 422}

    def __str__(self) -> str:
        return f"GitHub API error (HTTP {self.status_code}): {self.message}"
