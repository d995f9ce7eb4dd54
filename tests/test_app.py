import pytest

from scira_proxy.app import create_app, main
from scira_proxy.config import Config


@pytest.fixture
def client():
    config = Config(user_ids=["user-1"], api_key="placeholder", models=["gpt-4.1-mini"])
    return create_app(config).test_client()


def test_models_with_auth(client):
    resp = client.get("/v1/models", headers={"Authorization": "Bearer placeholder"})
    assert resp.status_code == 200
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    ids = [entry["id"] for entry in resp.get_json()["data"]]
    assert ids[-1] == "gpt-4.1-mini"


def test_models_without_auth(client):
    resp = client.get("/v1/models")
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Missing or invalid Authorization header"}


def test_chat_rejects_wrong_key(client):
    resp = client.post(
        "/v1/chat/completions", json={}, headers={"Authorization": "Bearer token"}
    )
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Invalid API key"}


def test_preflight(client):
    resp = client.open(
        "/v1/chat/completions",
        method="OPTIONS",
        headers={"Authorization": "Bearer placeholder"},
    )
    assert resp.status_code == 204
    assert resp.headers["Access-Control-Allow-Methods"] == "POST, GET, OPTIONS, PUT, DELETE"


def test_models_route_rejects_post(client):
    resp = client.post("/v1/models", headers={"Authorization": "Bearer placeholder"})
    assert resp.status_code == 405


def test_main_exits_without_user_ids(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("USERIDS", raising=False)
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 1


def test_main_exits_on_bad_port(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("USERIDS", "user-1")
    monkeypatch.setenv("PORT", "not-a-port")
    monkeypatch.delenv("RETRY", raising=False)
    monkeypatch.delenv("CHAT_DELETE", raising=False)
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 1