"""REST routes for repositories, environments, variables and secrets.

All routes are mounted under `/api`. Handlers only marshal: each builds the service it needs
over the request's own client.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from github_env_manager import __version__
from github_env_manager.config import EnvManagerSettings
from github_env_manager.github.client import GitHubClient
from github_env_manager.server.dependencies import get_settings, github_client
from github_env_manager.server.models import (
    ApiEnvironment,
    ApiRepository,
    ApiSecret,
    ApiVariable,
    BulkDeleteEnvironmentsRequest,
    BulkDeleteItem,
    BulkDeleteResponse,
    CloneEnvironmentRequest,
    CopyItem,
    CopySecretsRequest,
    CopySecretsResponse,
    CopyVariablesRequest,
    CopyVariablesResponse,
    CreateEnvironmentRequest,
    CreateSecretRequest,
    CreateVariableRequest,
    CrossRepoVariableCopyRequest,
    UpdateSecretRequest,
    UpdateVariableRequest,
)
from github_env_manager.services import (
    CopyOrchestrator,
    EnvironmentService,
    RepositoryService,
    SecretService,
    VariableService,
    validate_token,
)

router = APIRouter()

_ENVIRONMENTS = "/repositories/{owner}/{repo}/environments"
_ENVIRONMENT = _ENVIRONMENTS + "/{environment}"


def _orchestrator(github: GitHubClient, settings: EnvManagerSettings) -> CopyOrchestrator:
    return CopyOrchestrator(github=github, placeholder_prefix=settings.secret_placeholder_prefix)


@router.get("/health")
def health() -> dict[str, object]:
    return {"status": "ok", "version": __version__}


@router.get("/auth/validate")
def auth_validate(github: GitHubClient = Depends(github_client)) -> dict[str, bool]:
    return {"valid": validate_token(github)}


@router.get("/repositories", response_model=list[ApiRepository])
def list_repositories(github: GitHubClient = Depends(github_client)) -> list[ApiRepository]:
    return [ApiRepository.from_info(r) for r in RepositoryService(github=github).list_all()]


@router.get("/repositories/{owner}/{repo}", response_model=ApiRepository)
def get_repository(
    owner: str, repo: str, github: GitHubClient = Depends(github_client)
) -> ApiRepository:
    return ApiRepository.from_info(RepositoryService(github=github).get(owner, repo))


@router.get(_ENVIRONMENTS, response_model=list[ApiEnvironment])
def list_environments(
    owner: str, repo: str, github: GitHubClient = Depends(github_client)
) -> list[ApiEnvironment]:
    environments = EnvironmentService(github=github).list_all(owner, repo)
    return [ApiEnvironment.model_validate(e) for e in environments]


@router.post(_ENVIRONMENTS, response_model=ApiEnvironment, status_code=201)
def create_environment(
    owner: str,
    repo: str,
    body: CreateEnvironmentRequest,
    github: GitHubClient = Depends(github_client),
) -> ApiEnvironment:
    created = EnvironmentService(github=github).create(owner, repo, body.name)
    return ApiEnvironment.model_validate(created)


@router.post(_ENVIRONMENTS + "/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_environments(
    owner: str,
    repo: str,
    body: BulkDeleteEnvironmentsRequest,
    github: GitHubClient = Depends(github_client),
    settings: EnvManagerSettings = Depends(get_settings),
) -> BulkDeleteResponse:
    results = _orchestrator(github, settings).bulk_delete_environments(
        owner, repo, body.environmentNames
    )
    return BulkDeleteResponse(results=[BulkDeleteItem.model_validate(r) for r in results])


@router.get(_ENVIRONMENT, response_model=ApiEnvironment)
def get_environment(
    owner: str, repo: str, environment: str, github: GitHubClient = Depends(github_client)
) -> ApiEnvironment:
    found = EnvironmentService(github=github).get(owner, repo, environment)
    return ApiEnvironment.model_validate(found)


@router.delete(_ENVIRONMENT, status_code=204)
def delete_environment(
    owner: str, repo: str, environment: str, github: GitHubClient = Depends(github_client)
) -> None:
    EnvironmentService(github=github).delete(owner, repo, environment)


@router.post(_ENVIRONMENT + "/clone", response_model=ApiEnvironment, status_code=201)
def clone_environment(
    owner: str,
    repo: str,
    environment: str,
    body: CloneEnvironmentRequest,
    github: GitHubClient = Depends(github_client),
    settings: EnvManagerSettings = Depends(get_settings),
) -> ApiEnvironment:
    created = _orchestrator(github, settings).clone_environment(
        owner, repo, environment, body.targetEnvironment
    )
    return ApiEnvironment.model_validate(created)


@router.get(_ENVIRONMENT + "/variables", response_model=list[ApiVariable])
def list_variables(
    owner: str, repo: str, environment: str, github: GitHubClient = Depends(github_client)
) -> list[ApiVariable]:
    variables = VariableService(github=github).list_all(owner, repo, environment)
    return [ApiVariable.model_validate(v) for v in variables]


@router.post(_ENVIRONMENT + "/variables", response_model=ApiVariable, status_code=201)
def create_variable(
    owner: str,
    repo: str,
    environment: str,
    body: CreateVariableRequest,
    github: GitHubClient = Depends(github_client),
) -> ApiVariable:
    created = VariableService(github=github).create(owner, repo, environment, body.name, body.value)
    return ApiVariable.model_validate(created)


@router.post(_ENVIRONMENT + "/variables/copy", response_model=CopyVariablesResponse)
def copy_variables(
    owner: str,
    repo: str,
    environment: str,
    body: CopyVariablesRequest,
    github: GitHubClient = Depends(github_client),
    settings: EnvManagerSettings = Depends(get_settings),
) -> CopyVariablesResponse:
    results = _orchestrator(github, settings).copy_variables(
        owner, repo, environment, body.targetEnvironment, body.variables
    )
    return CopyVariablesResponse(results=[CopyItem.model_validate(r) for r in results])


@router.post(_ENVIRONMENT + "/variables/copy-to-repo", response_model=CopyVariablesResponse)
def copy_variables_to_repo(
    owner: str,
    repo: str,
    environment: str,
    body: CrossRepoVariableCopyRequest,
    github: GitHubClient = Depends(github_client),
    settings: EnvManagerSettings = Depends(get_settings),
) -> CopyVariablesResponse:
    results = _orchestrator(github, settings).copy_variables_to_repository(
        owner,
        repo,
        environment,
        body.targetOwner,
        body.targetRepo,
        body.targetEnvironment,
        body.variables,
    )
    return CopyVariablesResponse(results=[CopyItem.model_validate(r) for r in results])


@router.get(_ENVIRONMENT + "/variables/{name}", response_model=ApiVariable)
def get_variable(
    owner: str,
    repo: str,
    environment: str,
    name: str,
    github: GitHubClient = Depends(github_client),
) -> ApiVariable:
    return ApiVariable.model_validate(VariableService(github=github).get(owner, repo, environment, name))


@router.put(_ENVIRONMENT + "/variables/{name}", response_model=ApiVariable)
def update_variable(
    owner: str,
    repo: str,
    environment: str,
    name: str,
    body: UpdateVariableRequest,
    github: GitHubClient = Depends(github_client),
) -> ApiVariable:
    updated = VariableService(github=github).update(owner, repo, environment, name, body.value)
    return ApiVariable.model_validate(updated)


@router.delete(_ENVIRONMENT + "/variables/{name}", status_code=204)
def delete_variable(
    owner: str,
    repo: str,
    environment: str,
    name: str,
    github: GitHubClient = Depends(github_client),
) -> None:
    VariableService(github=github).delete(owner, repo, environment, name)


@router.get(_ENVIRONMENT + "/secrets", response_model=list[ApiSecret])
def list_secrets(
    owner: str, repo: str, environment: str, github: GitHubClient = Depends(github_client)
) -> list[ApiSecret]:
    secrets = SecretService(github=github).list_all(owner, repo, environment)
    return [ApiSecret.model_validate(s) for s in secrets]


@router.post(_ENVIRONMENT + "/secrets", response_model=ApiSecret, status_code=201)
def create_secret(
    owner: str,
    repo: str,
    environment: str,
    body: CreateSecretRequest,
    github: GitHubClient = Depends(github_client),
) -> ApiSecret:
    created = SecretService(github=github).create(owner, repo, environment, body.name, body.value)
    return ApiSecret.model_validate(created)


@router.post(_ENVIRONMENT + "/secrets/copy", response_model=CopySecretsResponse)
def copy_secrets(
    owner: str,
    repo: str,
    environment: str,
    body: CopySecretsRequest,
    github: GitHubClient = Depends(github_client),
    settings: EnvManagerSettings = Depends(get_settings),
) -> CopySecretsResponse:
    results = _orchestrator(github, settings).copy_secrets(
        owner, repo, environment, body.targetEnvironment, body.secrets, body.values
    )
    placeholders = [r.name for r in results if r.placeholder]
    warning = None
    if placeholders:
        warning = (
            "Secret values cannot be read from GitHub. These secrets were created with "
            f"placeholder values and must be set at the target: {', '.join(placeholders)}"
        )
    return CopySecretsResponse(
        results=[CopyItem.model_validate(r) for r in results],
        warning=warning,
    )


@router.get(_ENVIRONMENT + "/secrets/{name}", response_model=ApiSecret)
def get_secret(
    owner: str,
    repo: str,
    environment: str,
    name: str,
    github: GitHubClient = Depends(github_client),
) -> ApiSecret:
    return ApiSecret.model_validate(SecretService(github=github).get(owner, repo, environment, name))


@router.put(_ENVIRONMENT + "/secrets/{name}", response_model=ApiSecret)
def update_secret(
    owner: str,
    repo: str,
    environment: str,
    name: str,
    body: UpdateSecretRequest,
    github: GitHubClient = Depends(github_client),
) -> ApiSecret:
    updated = SecretService(github=github).update(owner, repo, environment, name, body.value)
    return ApiSecret.model_validate(updated)


@router.delete(_ENVIRONMENT + "/secrets/{name}", status_code=204)
def delete_secret(
    owner: str,
    repo: str,
    environment: str,
    name: str,
    github: GitHubClient = Depends(github_client),
) -> None:
    SecretService(github=github).delete(owner, repo, environment, name)
