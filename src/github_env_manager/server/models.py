"""Pydantic models for the REST server."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from github_env_manager.github.client import RepositoryInfo


class RepositoryOwner(BaseModel):
    login: str


class ApiRepository(BaseModel):
    id: int
    name: str
    owner: RepositoryOwner
    full_name: str
    description: str | None = None
    html_url: str
    private: bool

    @classmethod
    def from_info(cls, info: RepositoryInfo) -> ApiRepository:
        return cls(
            id=info.id,
            name=info.name,
            owner=RepositoryOwner(login=info.owner),
            full_name=info.full_name,
            description=info.description,
            html_url=info.html_url,
            private=info.private,
        )


class ApiEnvironment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    url: str
    html_url: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ApiVariable(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    value: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ApiSecret(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CreateEnvironmentRequest(BaseModel):
    name: str = Field(min_length=1)


class CloneEnvironmentRequest(BaseModel):
    targetEnvironment: str = Field(min_length=1)


class BulkDeleteEnvironmentsRequest(BaseModel):
    environmentNames: list[str] = Field(min_length=1)


class BulkDeleteItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    success: bool
    error: str | None = None


class BulkDeleteResponse(BaseModel):
    results: list[BulkDeleteItem]


class CreateVariableRequest(BaseModel):
    name: str = Field(min_length=1)
    value: str = Field(min_length=1)


class UpdateVariableRequest(BaseModel):
    value: str = Field(min_length=1)


class CreateSecretRequest(BaseModel):
    name: str = Field(min_length=1)
    value: str = Field(min_length=1)


class UpdateSecretRequest(BaseModel):
    value: str = Field(min_length=1)


class CopyVariablesRequest(BaseModel):
    targetEnvironment: str = Field(min_length=1)
    variables: list[str] | None = Field(
        default=None, description="Variable names to copy (empty or omitted copies all)."
    )


class CrossRepoVariableCopyRequest(BaseModel):
    targetOwner: str = Field(min_length=1)
    targetRepo: str = Field(min_length=1)
    targetEnvironment: str = Field(min_length=1)
    variables: list[str] | None = Field(
        default=None, description="Variable names to copy (empty or omitted copies all)."
    )


class CopySecretsRequest(BaseModel):
    targetEnvironment: str = Field(min_length=1)
    secrets: list[str] | None = Field(
        default=None, description="Secret names to copy (empty or omitted copies all)."
    )
    values: dict[str, str] | None = Field(
        default=None,
        description=(
            "Optional real values keyed by secret name. Secrets without an entry are written "
            "with a placeholder value because GitHub never returns secret values."
        ),
    )


class CopyItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    action: str
    placeholder: bool = False


class CopyVariablesResponse(BaseModel):
    results: list[CopyItem]


class CopySecretsResponse(BaseModel):
    results: list[CopyItem]
    warning: str | None = None
