"""Configuration for the REST server and CLI.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

The server never reads a GitHub token from its own environment: every request carries its
own credential. `ENV_MANAGER_GITHUB_TOKEN` exists only as a CLI convenience.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvManagerSettings(BaseSettings):
    """Settings shared by the server and the CLI.

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `EnvManagerSettings(_env_file=path_to_env)`.
    """

    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )

    github_token: str = Field(
        default="",
        validation_alias="ENV_MANAGER_GITHUB_TOKEN",
        description="Fallback token for the CLI. Ignored by the server.",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    page_size: int = Field(
        default=100,
        validation_alias="ENV_MANAGER_PAGE_SIZE",
        description="Items requested per page when listing environments and secrets.",
        ge=1,
        le=100,
    )

    request_timeout_seconds: float = Field(
        default=30.0,
        validation_alias="ENV_MANAGER_REQUEST_TIMEOUT_SECONDS",
        description="Timeout (seconds) for each GitHub API call.",
        gt=0,
    )

    secret_placeholder_prefix: str = Field(
        default="placeholder-for-",
        validation_alias="ENV_MANAGER_SECRET_PLACEHOLDER_PREFIX",
        description=(
            "Prefix of the value written for a copied secret when the caller does not supply "
            "one. GitHub never returns secret values, so copies cannot carry the original."
        ),
        min_length=1,
    )

    # Dev-friendly CORS for a local dashboard. Override via ENV_MANAGER_CORS_ORIGINS=...
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:3001",
        validation_alias="ENV_MANAGER_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
