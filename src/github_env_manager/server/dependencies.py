"""Request-scoped dependencies: credential extraction and the per-request GitHub client."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, Header, HTTPException, Request

from github_env_manager.config import EnvManagerSettings
from github_env_manager.errors import Unauthenticated
from github_env_manager.github.client import GitHubClient, create_client


def get_settings(request: Request) -> EnvManagerSettings:
    settings = getattr(request.app.state, "settings", None)
    if not isinstance(settings, EnvManagerSettings):
        # This should never happen for the real app, but keeps the API fail-fast.
        raise HTTPException(status_code=500, detail="Server settings not configured")
    return settings


def github_token(
    authorization: str | None = Header(default=None),
    x_github_token: str | None = Header(default=None),
) -> str:
    """Read the caller's token from `Authorization: Bearer ...` or `X-GitHub-Token`."""

    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer ") :].strip()
        if token:
            return token
    if x_github_token and x_github_token.strip():
        return x_github_token.strip()
    raise Unauthenticated()


def github_client(
    token: str = Depends(github_token),
    settings: EnvManagerSettings = Depends(get_settings),
) -> Iterator[GitHubClient]:
    client = create_client(
        token,
        base_url=settings.github_base_url,
        page_size=settings.page_size,
        timeout=settings.request_timeout_seconds,
    )
    try:
        yield client
    finally:
        client.close()
