"""Tests for the standalone Yakoa proxy service."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from MODRED.core.exceptions import YakoaError
from MODRED.microservices import yakoa_proxy


@pytest.fixture
def yakoa(monkeypatch):
    mock = MagicMock()
    monkeypatch.setattr(yakoa_proxy, "yakoa_client", mock)
    return mock


@pytest.fixture
def client(yakoa):
    return TestClient(yakoa_proxy.app)


def test_health(client):
    assert client.get("/api/health").json() == {
        "status": "ok",
        "message": "Yakoa proxy server is running",
    }


def test_register_forwards_body(client, yakoa):
    yakoa.proxy_register.return_value = {
        "success": True,
        "token_id": "x:1",
        "registration_status": "registered",
        "details": "IP asset successfully registered with Yakoa",
    }

    response = client.post("/api/yakoa/register", json={"id": "x:1", "media": []})

    assert response.status_code == 200
    assert response.json()["token_id"] == "x:1"
    yakoa.proxy_register.assert_called_once_with({"id": "x:1", "media": []})


def test_upstream_error_status_relayed(client, yakoa):
    yakoa.proxy_register.side_effect = YakoaError(
        "Yakoa API error: 400", status_code=400, response={"detail": "invalid id"}
    )

    response = client.post("/api/yakoa/register", json={"id": "bad"})

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Yakoa API error: 400",
        "details": {"detail": "invalid id"},
    }


def test_network_error_is_500(client, yakoa):
    yakoa.proxy_register.side_effect = YakoaError("Yakoa API unreachable: timeout")

    response = client.post("/api/yakoa/register", json={"id": "x:1"})

    assert response.status_code == 500
    assert response.json()["error"] == "Internal server error"


def test_get_on_register_not_allowed(client):
    response = client.get("/api/yakoa/register")

    assert response.status_code == 405
    assert response.json() == {"error": "Method not allowed"}


def test_preflight_allows_api_key_header(client):
    response = client.options(
        "/api/yakoa/register",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "X-API-KEY",
        },
    )

    assert response.status_code == 200
    assert "x-api-key" in response.headers["access-control-allow-headers"].lower()
