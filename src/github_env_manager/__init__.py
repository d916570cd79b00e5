"""GitHub Environment Manager.

Manage GitHub deployment environments and their Actions variables and secrets:

- list repositories and environments
- create, delete, bulk-delete and clone environments
- CRUD for environment variables and sealed secrets
- copy variables/secrets between environments and repositories
"""

__version__ = "0.1.0"

from github_env_manager.config import EnvManagerSettings

__all__ = ["__version__", "EnvManagerSettings"]
