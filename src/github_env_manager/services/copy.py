"""Multi-step copy and bulk workflows.

Every batch runs sequentially in input order against a single client. The failure policy
differs by workflow and is kept as-is for existing callers:

- copies (`copy_variables`, `copy_secrets`, `copy_variables_to_repository`) abort on the
  first failing item and propagate its error; items written before it stay written.
- `bulk_delete_environments` never raises for a single item and reports one result per
  requested name instead.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Literal, Protocol, TypeVar

from github_env_manager.crypto import seal_secret
from github_env_manager.errors import (
    EmptySource,
    EnvironmentNotFound,
    GatewayError,
    NamesNotFound,
    NotFound,
)
from github_env_manager.github.client import EnvironmentInfo, GitHubClient, VariableInfo
from github_env_manager.services.environments import EnvironmentService
from github_env_manager.services.secrets import SecretService
from github_env_manager.services.variables import VariableService

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER_PREFIX = "placeholder-for-"

CopyAction = Literal["created", "updated"]


@dataclass(frozen=True, slots=True)
class CopyItemResult:
    """Outcome of copying one variable or secret."""

    name: str
    action: CopyAction
    # Secrets only: True when the target received a placeholder instead of a real value.
    placeholder: bool = False


@dataclass(frozen=True, slots=True)
class BulkDeleteResult:
    name: str
    success: bool
    error: str | None = None


class _Named(Protocol):
    @property
    def name(self) -> str: ...


_T = TypeVar("_T", bound=_Named)


def placeholder_value(name: str, prefix: str = DEFAULT_PLACEHOLDER_PREFIX) -> str:
    """Deterministic stand-in value for a secret whose real value cannot be read."""

    return f"{prefix}{name}"


def _dedupe(names: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            ordered.append(name)
    return ordered


def select_by_name(kind: str, source: Sequence[_T], names: Sequence[str] | None) -> list[_T]:
    """Pick the entries to copy.

    No names (None or empty) selects everything. Otherwise every requested name must be
    present, or :class:`NamesNotFound` lists all that are not.
    """

    if not names:
        return list(source)

    wanted = _dedupe(names)
    available = {item.name for item in source}
    missing = [name for name in wanted if name not in available]
    if missing:
        raise NamesNotFound(kind=kind, missing=tuple(missing))

    wanted_set = set(wanted)
    return [item for item in source if item.name in wanted_set]


class CopyOrchestrator:
    """Copy variables/secrets between environments and bulk-manage environments."""

    def __init__(
        self,
        *,
        github: GitHubClient,
        placeholder_prefix: str = DEFAULT_PLACEHOLDER_PREFIX,
    ) -> None:
        self._github = github
        self._placeholder_prefix = placeholder_prefix
        self._environments = EnvironmentService(github=github)
        self._variables = VariableService(github=github)
        self._secrets = SecretService(github=github)

    def _upsert_variable(
        self, *, owner: str, repo: str, environment: str, variable: VariableInfo
    ) -> CopyItemResult:
        try:
            self._github.create_variable(
                owner=owner,
                repo=repo,
                environment=environment,
                name=variable.name,
                value=variable.value,
            )
            return CopyItemResult(name=variable.name, action="created")
        except GatewayError as e:
            if e.is_not_found:
                raise EnvironmentNotFound(owner, repo, environment) from e
            if not e.is_conflict:
                raise

        # Already present at the target.
        self._github.update_variable(
            owner=owner,
            repo=repo,
            environment=environment,
            name=variable.name,
            value=variable.value,
        )
        return CopyItemResult(name=variable.name, action="updated")

    def _copy_variable_batch(
        self,
        variables: Sequence[VariableInfo],
        *,
        target_owner: str,
        target_repo: str,
        target_env: str,
    ) -> list[CopyItemResult]:
        results: list[CopyItemResult] = []
        for variable in variables:
            results.append(
                self._upsert_variable(
                    owner=target_owner,
                    repo=target_repo,
                    environment=target_env,
                    variable=variable,
                )
            )
        logger.info(
            "Variables copied",
            extra={
                "target_repo": f"{target_owner}/{target_repo}",
                "target_environment": target_env,
                "created_count": sum(1 for r in results if r.action == "created"),
                "updated_count": sum(1 for r in results if r.action == "updated"),
            },
        )
        return results

    def copy_variables(
        self,
        owner: str,
        repo: str,
        source_env: str,
        target_env: str,
        names: Sequence[str] | None = None,
    ) -> list[CopyItemResult]:
        """Copy variables between two environments of the same repository.

        Raises:
            EmptySource: The source environment has no variables.
            NamesNotFound: `names` references variables absent from the source.
        """

        source = self._variables.list_all(owner, repo, source_env)
        if not source:
            raise EmptySource(kind="variables", owner=owner, repo=repo, environment=source_env)

        selected = select_by_name("variables", source, names)
        return self._copy_variable_batch(
            selected, target_owner=owner, target_repo=repo, target_env=target_env
        )

    def copy_variables_to_repository(
        self,
        source_owner: str,
        source_repo: str,
        source_env: str,
        target_owner: str,
        target_repo: str,
        target_env: str,
        names: Sequence[str] | None = None,
    ) -> list[CopyItemResult]:
        """Copy variables into an environment of another repository.

        Unlike :meth:`copy_variables`, an empty source is a no-op and requested names that the
        source lacks are skipped (and logged) rather than rejected.
        """

        source = self._variables.list_all(source_owner, source_repo, source_env)
        if names:
            wanted = _dedupe(names)
            available = {v.name for v in source}
            skipped = [name for name in wanted if name not in available]
            if skipped:
                logger.warning(
                    "Requested variables missing from source; skipping",
                    extra={
                        "source_repo": f"{source_owner}/{source_repo}",
                        "source_environment": source_env,
                        "skipped": skipped,
                    },
                )
            wanted_set = set(wanted)
            source = [v for v in source if v.name in wanted_set]

        if not source:
            logger.info(
                "Nothing to copy",
                extra={
                    "source_repo": f"{source_owner}/{source_repo}",
                    "source_environment": source_env,
                },
            )
            return []

        return self._copy_variable_batch(
            source, target_owner=target_owner, target_repo=target_repo, target_env=target_env
        )

    def copy_secrets(
        self,
        owner: str,
        repo: str,
        source_env: str,
        target_env: str,
        names: Sequence[str] | None = None,
        values: Mapping[str, str] | None = None,
    ) -> list[CopyItemResult]:
        """Replicate secret names from one environment to another.

        GitHub never returns secret values, so a secret is written with the value supplied in
        `values` when there is one and with :func:`placeholder_value` otherwise. The target
        public key is fetched once and reused for the whole batch.

        Raises:
            EmptySource: The source environment has no secrets.
            NamesNotFound: `names` or `values` reference secrets not being copied.
        """

        source = self._secrets.list_all(owner, repo, source_env)
        if not source:
            raise EmptySource(kind="secrets", owner=owner, repo=repo, environment=source_env)

        selected = select_by_name("secrets", source, names)
        supplied = dict(values or {})
        selected_names = {s.name for s in selected}
        unknown = [name for name in supplied if name not in selected_names]
        if unknown:
            raise NamesNotFound(kind="secrets", missing=tuple(unknown))

        try:
            public_key = self._github.get_environment_public_key(
                owner=owner, repo=repo, environment=target_env
            )
        except GatewayError as e:
            if e.is_not_found:
                raise EnvironmentNotFound(owner, repo, target_env) from e
            raise

        results: list[CopyItemResult] = []
        for secret in selected:
            value = supplied.get(secret.name)
            placeholder = value is None
            sealed = seal_secret(
                placeholder_value(secret.name, self._placeholder_prefix) if value is None else value,
                public_key,
            )
            created = self._github.put_environment_secret(
                owner=owner,
                repo=repo,
                environment=target_env,
                name=secret.name,
                sealed=sealed,
            )
            results.append(
                CopyItemResult(
                    name=secret.name,
                    action="created" if created else "updated",
                    placeholder=placeholder,
                )
            )

        placeholders = [r.name for r in results if r.placeholder]
        if placeholders:
            logger.warning(
                "Secrets copied with placeholder values; set real values at the target",
                extra={
                    "repo": f"{owner}/{repo}",
                    "target_environment": target_env,
                    "secrets": placeholders,
                },
            )
        return results

    def bulk_delete_environments(
        self, owner: str, repo: str, names: Sequence[str]
    ) -> list[BulkDeleteResult]:
        """Delete each named environment, collecting one result per name in input order."""

        if not names:
            raise ValueError("At least one environment name is required")

        results: list[BulkDeleteResult] = []
        for name in names:
            try:
                self._environments.delete(owner, repo, name)
            except NotFound as e:
                results.append(BulkDeleteResult(name=name, success=False, error=str(e)))
            except GatewayError as e:
                results.append(BulkDeleteResult(name=name, success=False, error=e.message))
            except Exception as e:
                # Transport failures and anything unexpected are reported for this item only.
                logger.exception(
                    "Environment delete failed",
                    extra={"repo": f"{owner}/{repo}", "environment": name},
                )
                results.append(BulkDeleteResult(name=name, success=False, error=str(e)))
            else:
                results.append(BulkDeleteResult(name=name, success=True))

        logger.info(
            "Bulk environment delete finished",
            extra={
                "repo": f"{owner}/{repo}",
                "requested": len(results),
                "failed": sum(1 for r in results if not r.success),
            },
        )
        return results

    def clone_environment(
        self, owner: str, repo: str, source_env: str, target_env: str
    ) -> EnvironmentInfo:
        """Create `target_env` and copy every variable of `source_env` into it.

        Secrets are not cloned. A source without variables yields an empty target environment.
        """

        if source_env == target_env:
            raise ValueError("Target environment must differ from the source environment")

        self._environments.get(owner, repo, source_env)
        target = self._environments.create(owner, repo, target_env)
        try:
            self.copy_variables(owner, repo, source_env, target_env)
        except EmptySource:
            logger.info(
                "Source environment has no variables; cloned environment left empty",
                extra={"repo": f"{owner}/{repo}", "source_environment": source_env},
            )
        return target
