from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from fastapi.testclient import TestClient

import github_env_manager.server.dependencies as dependencies
from github_env_manager.config import EnvManagerSettings
from github_env_manager.errors import GatewayError
from github_env_manager.server.app import create_app

if TYPE_CHECKING:
    from conftest import FakeGitHub

AUTH = {"Authorization": "Bearer ghp_test"}
ENVS = "/api/repositories/acme/app/environments"


@pytest.fixture
def tokens_seen() -> list[str]:
    return []


@pytest.fixture
def client(
    monkeypatch: pytest.MonkeyPatch,
    settings: EnvManagerSettings,
    fake_github: FakeGitHub,
    tokens_seen: list[str],
) -> TestClient:
    def fake_create_client(token: str, **_kwargs: Any) -> FakeGitHub:
        tokens_seen.append(token)
        return fake_github

    monkeypatch.setattr(dependencies, "create_client", fake_create_client)
    return TestClient(create_app(settings))


def test_health_needs_no_token(client: TestClient) -> None:
    health = client.get("/api/health").json()

    assert health["status"] == "ok"
    assert "version" in health


def test_requests_without_token_are_rejected(client: TestClient, tokens_seen: list[str]) -> None:
    resp = client.get("/api/repositories")

    assert resp.status_code == 401
    assert resp.json()["detail"] == "GitHub token is required"
    assert tokens_seen == []


def test_token_can_be_sent_as_header(
    client: TestClient, fake_github: FakeGitHub, tokens_seen: list[str]
) -> None:
    resp = client.get("/api/repositories", headers={"X-GitHub-Token": "ghp_other"})

    assert resp.status_code == 200
    assert resp.json()[0]["owner"] == {"login": "acme"}
    assert tokens_seen == ["ghp_other"]
    assert fake_github.closed


def test_auth_validate(client: TestClient) -> None:
    assert client.get("/api/auth/validate", headers=AUTH).json() == {"valid": True}


def test_environment_routes(client: TestClient, fake_github: FakeGitHub) -> None:
    created = client.post(ENVS, json={"name": "staging"}, headers=AUTH)
    assert created.status_code == 201
    assert created.json()["name"] == "staging"

    listed = client.get(ENVS, headers=AUTH).json()
    assert [e["name"] for e in listed] == ["staging"]

    assert client.get(f"{ENVS}/staging", headers=AUTH).status_code == 200
    assert client.delete(f"{ENVS}/staging", headers=AUTH).status_code == 204

    missing = client.get(f"{ENVS}/staging", headers=AUTH)
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Environment staging not found in repository acme/app"


def test_missing_repository_is_404(client: TestClient) -> None:
    resp = client.get("/api/repositories/acme/nope/environments", headers=AUTH)

    assert resp.status_code == 404


def test_bulk_delete_returns_per_item_results(client: TestClient, fake_github: FakeGitHub) -> None:
    fake_github.add_environment("acme", "app", "x")
    fake_github.add_environment("acme", "app", "z")

    resp = client.post(
        f"{ENVS}/bulk-delete", json={"environmentNames": ["x", "y", "z"]}, headers=AUTH
    )

    assert resp.status_code == 200
    results = resp.json()["results"]
    assert [(r["name"], r["success"]) for r in results] == [("x", True), ("y", False), ("z", True)]
    assert results[1]["error"]


def test_bulk_delete_rejects_empty_list(client: TestClient) -> None:
    resp = client.post(f"{ENVS}/bulk-delete", json={"environmentNames": []}, headers=AUTH)

    assert resp.status_code == 422


def test_variable_routes(client: TestClient, fake_github: FakeGitHub) -> None:
    fake_github.add_environment("acme", "app", "prod")
    base = f"{ENVS}/prod/variables"

    assert client.post(base, json={"name": "A", "value": "1"}, headers=AUTH).status_code == 201
    assert client.put(f"{base}/A", json={"value": "2"}, headers=AUTH).json()["value"] == "2"
    assert client.get(f"{base}/A", headers=AUTH).json()["name"] == "A"
    assert client.delete(f"{base}/A", headers=AUTH).status_code == 204
    assert client.get(f"{base}/A", headers=AUTH).status_code == 404


def test_copy_variables_route(client: TestClient, fake_github: FakeGitHub) -> None:
    fake_github.add_environment("acme", "app", "dev", variables={"A": "1"})
    fake_github.add_environment("acme", "app", "prod")

    resp = client.post(
        f"{ENVS}/dev/variables/copy", json={"targetEnvironment": "prod"}, headers=AUTH
    )

    assert resp.status_code == 200
    assert resp.json()["results"] == [{"name": "A", "action": "created", "placeholder": False}]


def test_copy_variables_error_mapping(client: TestClient, fake_github: FakeGitHub) -> None:
    fake_github.add_environment("acme", "app", "dev", variables={"A": "1"})
    fake_github.add_environment("acme", "app", "empty")
    fake_github.add_environment("acme", "app", "prod")

    unknown = client.post(
        f"{ENVS}/dev/variables/copy",
        json={"targetEnvironment": "prod", "variables": ["A", "B"]},
        headers=AUTH,
    )
    empty = client.post(
        f"{ENVS}/empty/variables/copy", json={"targetEnvironment": "prod"}, headers=AUTH
    )

    assert unknown.status_code == 404
    assert unknown.json()["missing"] == ["B"]
    assert empty.status_code == 400


def test_copy_variables_to_repo_route(client: TestClient, fake_github: FakeGitHub) -> None:
    fake_github.add_environment("acme", "app", "dev", variables={"A": "1"})
    target = fake_github.add_environment("other", "svc", "prod")

    resp = client.post(
        f"{ENVS}/dev/variables/copy-to-repo",
        json={"targetOwner": "other", "targetRepo": "svc", "targetEnvironment": "prod"},
        headers=AUTH,
    )

    assert resp.status_code == 200
    assert target.variables == {"A": "1"}


def test_secret_routes_never_return_values(client: TestClient, fake_github: FakeGitHub) -> None:
    env = fake_github.add_environment("acme", "app", "prod")
    base = f"{ENVS}/prod/secrets"

    created = client.post(base, json={"name": "TOKEN", "value": "s3cr3t"}, headers=AUTH)

    assert created.status_code == 201
    assert "value" not in created.json()
    assert env.open_secret("TOKEN") == "s3cr3t"
    assert client.put(f"{base}/MISSING", json={"value": "x"}, headers=AUTH).status_code == 404
    assert client.delete(f"{base}/TOKEN", headers=AUTH).status_code == 204


def test_copy_secrets_route_warns_about_placeholders(
    client: TestClient, fake_github: FakeGitHub
) -> None:
    fake_github.add_environment("acme", "app", "dev", secrets=["A", "B"])
    prod = fake_github.add_environment("acme", "app", "prod")

    resp = client.post(
        f"{ENVS}/dev/secrets/copy",
        json={"targetEnvironment": "prod", "values": {"A": "real"}},
        headers=AUTH,
    )

    body = resp.json()
    assert resp.status_code == 200
    assert [(r["name"], r["placeholder"]) for r in body["results"]] == [("A", False), ("B", True)]
    assert body["warning"].endswith(": B")
    assert prod.open_secret("A") == "real"


def test_clone_route(client: TestClient, fake_github: FakeGitHub) -> None:
    fake_github.add_environment("acme", "app", "dev", variables={"A": "1"})

    resp = client.post(f"{ENVS}/dev/clone", json={"targetEnvironment": "qa"}, headers=AUTH)

    assert resp.status_code == 201
    assert fake_github.repos[("acme", "app")]["qa"].variables == {"A": "1"}


def test_upstream_errors_are_mapped(client: TestClient, fake_github: FakeGitHub) -> None:
    fake_github.add_environment("acme", "app", "prod")

    def fail(_op: str, env: str, _name: str) -> None:
        raise GatewayError(status_code=503 if env == "prod" else 403, message="upstream says no")

    fake_github.before_write = fail

    server_error = client.post(
        f"{ENVS}/prod/variables", json={"name": "A", "value": "1"}, headers=AUTH
    )
    forbidden = client.post(ENVS, json={"name": "other"}, headers=AUTH)

    assert server_error.status_code == 502
    assert server_error.json() == {"detail": "upstream says no", "upstreamStatus": 503}
    assert forbidden.status_code == 403
