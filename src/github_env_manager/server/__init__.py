"""FastAPI server adapter for github-env-manager.

This module exposes a REST API over the services in `github_env_manager.services`.

Design intent:
- Keep GitHub logic in `github_env_manager.services` / `github_env_manager.github`
- Keep server-specific concerns (routing, CORS, credential extraction, error mapping) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from github_env_manager.server.app import create_app
