"""Repository reads and token validation."""

from __future__ import annotations

import logging

from github_env_manager.errors import GatewayError, RepositoryNotFound
from github_env_manager.github.client import GitHubClient, RepositoryInfo

logger = logging.getLogger(__name__)


class RepositoryService:
    def __init__(self, *, github: GitHubClient) -> None:
        self._github = github

    def list_all(self) -> list[RepositoryInfo]:
        """Repositories visible to the token, most recently updated first."""

        return self._github.list_repositories()

    def get(self, owner: str, repo: str) -> RepositoryInfo:
        try:
            return self._github.get_repository(owner=owner, repo=repo)
        except GatewayError as e:
            if e.is_not_found:
                raise RepositoryNotFound(owner, repo) from e
            raise


def authenticated_login(github: GitHubClient) -> str | None:
    """Return the login the client's token belongs to, or None if GitHub rejects the token.

    Only authentication failures (401/403) count as rejection; anything else propagates.
    """

    try:
        login = github.get_authenticated_login()
    except GatewayError as e:
        if e.status_code in {401, 403}:
            logger.info("Token rejected by GitHub", extra={"status_code": e.status_code})
            return None
        raise
    logger.debug("Token validated", extra={"login": login})
    return login or None


def validate_token(github: GitHubClient) -> bool:
    return authenticated_login(github) is not None
