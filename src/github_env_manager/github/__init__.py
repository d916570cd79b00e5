"""GitHub REST API access."""

from github_env_manager.github.client import GitHubClient, create_client

__all__ = ["GitHubClient", "create_client"]
