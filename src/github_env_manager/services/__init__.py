"""Entity services and copy workflows over a per-request :class:`GitHubClient`."""

from github_env_manager.services.copy import (
    BulkDeleteResult,
    CopyItemResult,
    CopyOrchestrator,
    placeholder_value,
)
from github_env_manager.services.environments import EnvironmentService
from github_env_manager.services.repositories import (
    RepositoryService,
    authenticated_login,
    validate_token,
)
from github_env_manager.services.secrets import SecretService
from github_env_manager.services.variables import VariableService

__all__ = [
    "BulkDeleteResult",
    "CopyItemResult",
    "CopyOrchestrator",
    "EnvironmentService",
    "RepositoryService",
    "SecretService",
    "VariableService",
    "authenticated_login",
    "placeholder_value",
    "validate_token",
]
