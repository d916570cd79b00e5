#!/usr/bin/env python3
"""Programmatic environment promotion example.

This demonstrates using the services directly:

* load settings from `.env`
* copy every variable from one environment to another
* replicate secret names, supplying real values where known

The token is read from `ENV_MANAGER_GITHUB_TOKEN`; repository and environments are arguments.
"""

from __future__ import annotations

import argparse
from typing import Sequence

from github_env_manager.config import EnvManagerSettings
from github_env_manager.errors import EmptySource
from github_env_manager.github import create_client
from github_env_manager.logging import configure_logging
from github_env_manager.services import CopyOrchestrator


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Promote variables and secrets between environments.")
    parser.add_argument("--repo", required=True, help='Repository in the form "owner/repo"')
    parser.add_argument("--source", required=True, help="Source environment")
    parser.add_argument("--target", required=True, help="Target environment")
    parser.add_argument(
        "--secret",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Real value for a secret (optional, repeatable)",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    owner, _, repo = args.repo.partition("/")
    values = dict(item.split("=", 1) for item in args.secret)

    settings = EnvManagerSettings()
    configure_logging(settings.log_level)

    with create_client(settings.github_token, base_url=settings.github_base_url) as github:
        orchestrator = CopyOrchestrator(
            github=github, placeholder_prefix=settings.secret_placeholder_prefix
        )

        try:
            for result in orchestrator.copy_variables(owner, repo, args.source, args.target):
                print(f"variable {result.name}: {result.action}")
        except EmptySource as exc:
            print(str(exc))

        try:
            secrets = orchestrator.copy_secrets(owner, repo, args.source, args.target, values=values)
        except EmptySource as exc:
            print(str(exc))
            return 0

    for result in secrets:
        note = " (placeholder, set the real value)" if result.placeholder else ""
        print(f"secret {result.name}: {result.action}{note}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
