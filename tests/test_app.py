from __future__ import annotations

import asyncio
import json
import logging

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from userdata.app import app
from userdata.core.config import Config
from userdata.core.middleware import global_exception_handler


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


def test_root_lists_endpoints(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["endpoints"]["user_stats"] == "/users/stats"


def test_health_check(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["response_time_ms"] >= 0
    assert response.headers["X-Request-ID"]


def test_create_user_sanitizes_and_applies_defaults(client: TestClient) -> None:
    response = client.post("/users", json={
        "username": "  <alice_1>  ",
        "email": "alice@example.com",
        "isAdmin": True,
        "preferences": {"theme": "dark", "__proto__": {"polluted": True}},
    })
    assert response.status_code == 200
    user = response.json()
    assert user["username"] == "alice_1"
    assert user["email"] == "alice@example.com"
    assert user["role"] == "user"
    assert user["active"] is True
    assert user["preferences"] == {"theme": "dark", "notifications": True, "language": "en"}
    assert user["createdAt"].endswith("Z")
    assert "isAdmin" not in user
    assert "polluted" not in response.text


def test_create_user_requires_fields(client: TestClient) -> None:
    response = client.post("/users", json={"username": "alice_1"})
    assert response.status_code == 400
    assert "email" in response.json()["detail"]


def test_create_user_rejects_non_object(client: TestClient) -> None:
    assert client.post("/users", json=["alice_1"]).status_code == 400
    assert client.post("/users").status_code == 400


def test_create_user_rejects_bad_username(client: TestClient) -> None:
    response = client.post("/users", json={"username": "bad name!", "email": "a@example.com"})
    assert response.status_code == 400
    assert "username" in response.json()["detail"]


def test_create_user_rejects_email_emptied_by_sanitizing(client: TestClient) -> None:
    response = client.post("/users", json={"username": "alice_1", "email": "<>"})
    assert response.status_code == 400


def test_format_user(client: TestClient) -> None:
    response = client.post("/users/format", json={"id": 1, "username": "bob", "profile": {"x": 1}})
    assert response.json() == {"id": 1, "username": "bob"}


def test_user_stats(client: TestClient) -> None:
    response = client.post("/users/stats", json=[
        {"email": "a@example.com", "createdAt": "2020-01-01T00:00:00.000Z"},
        {"email": "b@example.com", "createdAt": "2021-01-01T00:00:00.000Z"},
        {"email": "broken"},
    ])
    assert response.status_code == 200
    stats = response.json()
    assert stats["total"] == 3
    assert stats["active"] + stats["inactive"] == 3
    assert stats["newest"]["email"] == "b@example.com"
    assert stats["oldest"]["email"] == "a@example.com"
    assert stats["byDomain"] == {"example.com": 2, "unknown": 1}


def test_user_stats_requires_array(client: TestClient) -> None:
    assert client.post("/users/stats", json={"users": []}).status_code == 400


def test_import_users(client: TestClient) -> None:
    response = client.post("/users/import", json=[
        {"id": 1, "name": "A", "email": "a@x.com", "metadata": {"extra": "drop-me", "createdBy": "crm"}},
        {"id": 2, "name": "B", "password": "hunter2"},
    ])
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert [r["id"] for r in body["records"]] == [1, 2]
    assert body["records"][0]["metadata"] == {"createdBy": "crm"}
    assert "password" not in body["records"][1]


def test_import_users_requires_array(client: TestClient) -> None:
    assert client.post("/users/import", json={"id": 1}).status_code == 400


def test_random_users(client: TestClient) -> None:
    response = client.get("/users/random", params={"count": 3})
    assert response.status_code == 200
    users = response.json()
    assert len(users) == 3
    assert all("@" in user["email"] for user in users)


def test_random_users_limits_count(client: TestClient) -> None:
    assert client.get("/users/random", params={"count": 0}).status_code == 422
    assert client.get("/users/random", params={"count": 100000}).status_code == 422


def test_create_user_ignores_server_owned_fields(client: TestClient) -> None:
    response = client.post("/users", json={
        "username": "mallory",
        "email": "m@x.com",
        "role": "admin",
        "active": False,
        "id": 1,
        "updatedAt": "2099-01-01",
        "createdAt": "2000-01-01T00:00:00.000Z",
        "metadata": {"loginCount": 1000, "createdBy": "mallory"},
    })
    assert response.status_code == 200
    user = response.json()
    assert user["role"] == "user"
    assert user["active"] is True
    assert "id" not in user
    assert "updatedAt" not in user
    assert user["createdAt"] != "2000-01-01T00:00:00.000Z"
    assert user["metadata"] == {"lastLogin": None, "loginCount": 0, "createdBy": "system"}


def test_request_id_is_shared_with_handler_logs(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="userdata.app")
    response = client.post(
        "/users",
        json={"username": "alice_1", "email": "alice@example.com"},
        headers={"X-Request-ID": "signup-42"},
    )
    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "signup-42"
    assert "[signup-42] Built user alice_1" in caplog.text


def test_request_id_replaces_unsafe_header(client: TestClient) -> None:
    response = client.get("/health", headers={"X-Request-ID": "bad id!"})
    request_id = response.headers["X-Request-ID"]
    assert request_id != "bad id!"
    assert len(request_id) == 16


def test_global_exception_handler_reports_request_id(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Config, "CORS_ALLOWED_ORIGINS", "http://localhost:3000")
    request = Request({
        "type": "http",
        "method": "GET",
        "path": "/boom",
        "query_string": b"",
        "headers": [(b"origin", b"http://localhost:3000"), (b"x-request-id", b"err-1")],
    })

    response = asyncio.run(global_exception_handler(request, RuntimeError("boom")))

    assert response.status_code == 500
    assert json.loads(response.body) == {"detail": "Internal server error", "request_id": "err-1"}
    assert response.headers["X-Request-ID"] == "err-1"
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
