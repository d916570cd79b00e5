"""CLI entrypoint.

Every subcommand builds one client from `--token` (or `ENV_MANAGER_GITHUB_TOKEN`) and runs a
single service call against it; `serve` starts the REST API instead.
"""

from __future__ import annotations

import argparse
import logging
import sys

import requests
from pydantic import ValidationError

from github_env_manager import __version__
from github_env_manager.config import EnvManagerSettings
from github_env_manager.errors import EnvManagerError
from github_env_manager.github.client import GitHubClient, create_client
from github_env_manager.logging import configure_logging
from github_env_manager.services import (
    CopyOrchestrator,
    EnvironmentService,
    RepositoryService,
    SecretService,
    VariableService,
    authenticated_login,
)

logger = logging.getLogger(__name__)


def _parse_names(value: str | None) -> list[str] | None:
    if value is None:
        return None
    names = [p.strip() for p in value.split(",") if p.strip()]
    return names or None


def _parse_assignments(values: list[str] | None) -> dict[str, str]:
    assignments: dict[str, str] = {}
    for item in values or []:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Expected NAME=VALUE, got {item!r}")
        assignments[name.strip()] = value
    return assignments


def _split_repository(value: str) -> tuple[str, str]:
    owner, sep, repo = value.strip().strip("/").partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise argparse.ArgumentTypeError("repository must be in the form 'owner/repo'")
    return owner, repo


def _add_repo(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--repo",
        "--repository",
        dest="repository",
        type=_split_repository,
        required=True,
        help="Repository in the form 'owner/repo'",
    )


def _add_env(parser: argparse.ArgumentParser, *, flag: str = "--env", help_text: str) -> None:
    parser.add_argument(flag, dest=flag.lstrip("-").replace("-", "_"), required=True, help=help_text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="github-env-manager",
        description="Manage GitHub deployment environments, variables and secrets",
    )
    parser.add_argument(
        "--version", action="version", version=f"github-env-manager {__version__}"
    )
    parser.add_argument(
        "--token",
        default=None,
        help="GitHub token (defaults to ENV_MANAGER_GITHUB_TOKEN)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("whoami", help="Check that the token is accepted by GitHub")
    subparsers.add_parser("repos", help="List repositories visible to the token")

    envs = subparsers.add_parser("envs", help="List environments of a repository")
    _add_repo(envs)

    create_env = subparsers.add_parser("create-env", help="Create an environment")
    _add_repo(create_env)
    create_env.add_argument("--name", required=True, help="Environment name")

    delete_envs = subparsers.add_parser(
        "delete-envs", help="Delete one or more environments, reporting each result"
    )
    _add_repo(delete_envs)
    delete_envs.add_argument("names", nargs="+", help="Environment names")

    clone_env = subparsers.add_parser(
        "clone-env", help="Create an environment and copy another environment's variables into it"
    )
    _add_repo(clone_env)
    _add_env(clone_env, flag="--source-env", help_text="Environment to clone")
    _add_env(clone_env, flag="--target-env", help_text="Environment to create")

    variables = subparsers.add_parser("vars", help="List variables of an environment")
    _add_repo(variables)
    _add_env(variables, help_text="Environment name")

    set_var = subparsers.add_parser("set-var", help="Create or update a variable")
    _add_repo(set_var)
    _add_env(set_var, help_text="Environment name")
    set_var.add_argument("--name", required=True, help="Variable name")
    set_var.add_argument("--value", required=True, help="Variable value")

    delete_var = subparsers.add_parser("delete-var", help="Delete a variable")
    _add_repo(delete_var)
    _add_env(delete_var, help_text="Environment name")
    delete_var.add_argument("--name", required=True, help="Variable name")

    copy_vars = subparsers.add_parser(
        "copy-vars", help="Copy variables to another environment of the same repository"
    )
    _add_repo(copy_vars)
    _add_env(copy_vars, flag="--source-env", help_text="Source environment")
    _add_env(copy_vars, flag="--target-env", help_text="Target environment")
    copy_vars.add_argument(
        "--names", default=None, help="Comma-separated variable names (default: all)"
    )

    copy_vars_repo = subparsers.add_parser(
        "copy-vars-to-repo", help="Copy variables to an environment of another repository"
    )
    _add_repo(copy_vars_repo)
    _add_env(copy_vars_repo, flag="--source-env", help_text="Source environment")
    copy_vars_repo.add_argument(
        "--target-repo",
        type=_split_repository,
        required=True,
        help="Target repository in the form 'owner/repo'",
    )
    _add_env(copy_vars_repo, flag="--target-env", help_text="Target environment")
    copy_vars_repo.add_argument(
        "--names", default=None, help="Comma-separated variable names (default: all)"
    )

    secrets = subparsers.add_parser("secrets", help="List secrets of an environment (names only)")
    _add_repo(secrets)
    _add_env(secrets, help_text="Environment name")

    set_secret = subparsers.add_parser("set-secret", help="Create or update a secret")
    _add_repo(set_secret)
    _add_env(set_secret, help_text="Environment name")
    set_secret.add_argument("--name", required=True, help="Secret name")
    set_secret.add_argument("--value", required=True, help="Secret value")

    delete_secret = subparsers.add_parser("delete-secret", help="Delete a secret")
    _add_repo(delete_secret)
    _add_env(delete_secret, help_text="Environment name")
    delete_secret.add_argument("--name", required=True, help="Secret name")

    copy_secrets = subparsers.add_parser(
        "copy-secrets",
        help=(
            "Replicate secret names to another environment. Values cannot be read from GitHub: "
            "pass --value NAME=VALUE to set real values, others get a placeholder"
        ),
    )
    _add_repo(copy_secrets)
    _add_env(copy_secrets, flag="--source-env", help_text="Source environment")
    _add_env(copy_secrets, flag="--target-env", help_text="Target environment")
    copy_secrets.add_argument(
        "--names", default=None, help="Comma-separated secret names (default: all)"
    )
    copy_secrets.add_argument(
        "--value",
        dest="values",
        action="append",
        default=None,
        metavar="NAME=VALUE",
        help="Real value for a copied secret (repeatable)",
    )

    serve = subparsers.add_parser("serve", help="Run the REST API")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve.add_argument("--port", type=int, default=3001, help="Bind port")

    return parser


def _serve(host: str, port: int, settings: EnvManagerSettings) -> int:
    import uvicorn

    from github_env_manager.server.app import create_app

    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)
    return 0


def _run(args: argparse.Namespace, github: GitHubClient, settings: EnvManagerSettings) -> int:
    command = args.command

    if command == "whoami":
        login = authenticated_login(github)
        if login is not None:
            print(f"Authenticated as {login}")
            return 0
        print("Token rejected by GitHub", file=sys.stderr)
        return 1

    if command == "repos":
        for repo in RepositoryService(github=github).list_all():
            visibility = "private" if repo.private else "public"
            print(f"{repo.full_name}\t{visibility}")
        return 0

    owner, repo = args.repository

    if command == "envs":
        for environment in EnvironmentService(github=github).list_all(owner, repo):
            print(environment.name)
        return 0

    if command == "create-env":
        created = EnvironmentService(github=github).create(owner, repo, args.name)
        print(f"Created environment {created.name}")
        return 0

    orchestrator = CopyOrchestrator(
        github=github, placeholder_prefix=settings.secret_placeholder_prefix
    )

    if command == "delete-envs":
        results = orchestrator.bulk_delete_environments(owner, repo, args.names)
        for result in results:
            if result.success:
                print(f"deleted\t{result.name}")
            else:
                print(f"failed\t{result.name}\t{result.error}")
        return 0 if all(r.success for r in results) else 1

    if command == "clone-env":
        created = orchestrator.clone_environment(owner, repo, args.source_env, args.target_env)
        print(f"Cloned {args.source_env} into {created.name}")
        return 0

    if command == "vars":
        for variable in VariableService(github=github).list_all(owner, repo, args.env):
            print(f"{variable.name}={variable.value}")
        return 0

    if command == "set-var":
        service = VariableService(github=github)
        existing = {v.name for v in service.list_all(owner, repo, args.env)}
        if args.name in existing:
            service.update(owner, repo, args.env, args.name, args.value)
            print(f"Updated variable {args.name}")
        else:
            service.create(owner, repo, args.env, args.name, args.value)
            print(f"Created variable {args.name}")
        return 0

    if command == "delete-var":
        VariableService(github=github).delete(owner, repo, args.env, args.name)
        print(f"Deleted variable {args.name}")
        return 0

    if command == "copy-vars":
        results = orchestrator.copy_variables(
            owner, repo, args.source_env, args.target_env, _parse_names(args.names)
        )
        for result in results:
            print(f"{result.action}\t{result.name}")
        return 0

    if command == "copy-vars-to-repo":
        target_owner, target_repo = args.target_repo
        results = orchestrator.copy_variables_to_repository(
            owner,
            repo,
            args.source_env,
            target_owner,
            target_repo,
            args.target_env,
            _parse_names(args.names),
        )
        if not results:
            print("Nothing to copy")
        for result in results:
            print(f"{result.action}\t{result.name}")
        return 0

    if command == "secrets":
        for secret in SecretService(github=github).list_all(owner, repo, args.env):
            print(secret.name)
        return 0

    if command == "set-secret":
        service = SecretService(github=github)
        existing = {s.name for s in service.list_all(owner, repo, args.env)}
        if args.name in existing:
            service.update(owner, repo, args.env, args.name, args.value)
            print(f"Updated secret {args.name}")
        else:
            service.create(owner, repo, args.env, args.name, args.value)
            print(f"Created secret {args.name}")
        return 0

    if command == "delete-secret":
        SecretService(github=github).delete(owner, repo, args.env, args.name)
        print(f"Deleted secret {args.name}")
        return 0

    if command == "copy-secrets":
        results = orchestrator.copy_secrets(
            owner,
            repo,
            args.source_env,
            args.target_env,
            _parse_names(args.names),
            _parse_assignments(args.values),
        )
        for result in results:
            suffix = "\t(placeholder value)" if result.placeholder else ""
            print(f"{result.action}\t{result.name}{suffix}")
        if any(r.placeholder for r in results):
            print(
                "Secret values cannot be read from GitHub; placeholder values must be replaced.",
                file=sys.stderr,
            )
        return 0

    raise ValueError(f"Unknown command: {command}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = EnvManagerSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    if args.command == "serve":
        return _serve(args.host, args.port, settings)

    try:
        github = create_client(
            args.token or settings.github_token,
            base_url=settings.github_base_url,
            page_size=settings.page_size,
            timeout=settings.request_timeout_seconds,
        )
    except EnvManagerError as e:
        print(f"{e} (pass --token or set ENV_MANAGER_GITHUB_TOKEN)", file=sys.stderr)
        return 2

    try:
        return _run(args, github, settings)
    except (EnvManagerError, ValueError, requests.RequestException) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        github.close()


if __name__ == "__main__":
    raise SystemExit(main())
