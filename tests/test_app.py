# tests/test_app.py

import logging

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from todoapp import app as app_module
from todoapp.app import create_app
from todoapp.config import Settings, get_settings
from todoapp.utils.logger import setup_logging

from .helpers import API, make_settings


def test_health(client):
    response = client.get(f"{API}/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "ok"
    assert body["data"]["version"] == "2.0.0"
    assert body["data"]["database"] == "ok"
    assert body["data"]["timestamp"].endswith("+00:00")
    assert response.headers["X-Request-ID"]


def test_health_reports_unavailable_database(tmp_path):
    missing = tmp_path / "missing" / "todo.db"
    app = create_app(make_settings(tmp_path, DATABASE_URL=f"sqlite+aiosqlite:///{missing}"))

    with TestClient(app) as client:
        response = client.get(f"{API}/health")

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "ok"
    assert response.json()["data"]["database"] == "unavailable"


def test_root(client):
    response = client.get("/")

    assert response.json()["data"] == {"message": "Todo API Server", "version": "2.0.0", "status": "running"}


def test_unknown_route(client):
    response = client.get(f"{API}/nope")

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": {"code": "NOT_FOUND", "message": f"Route GET {API}/nope not found"},
    }


def test_docs_hidden_without_debug(client):
    assert client.get("/api/docs").status_code == 404


@pytest.mark.parametrize("origin", ["http://localhost:5173", "https://todo.example.com"])
def test_cors_allows_configured_origins_with_credentials(client, origin):
    response = client.options(
        f"{API}/tasks",
        headers={"Origin": origin, "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == origin
    assert response.headers["access-control-allow-credentials"] == "true"


def test_cors_ignores_other_origins(client):
    response = client.get(f"{API}/health", headers={"Origin": "https://evil.example.com"})

    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers


def test_unhandled_error_is_generic_500(tmp_path):
    app = create_app(make_settings(tmp_path))

    @app.get("/explode")
    async def explode():
        raise RuntimeError("secret internals")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/explode")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": {"code": "INTERNAL_ERROR", "message": "Internal server error"},
    }
    assert "secret internals" not in response.text


def test_settings_require_auth_secret(monkeypatch):
    monkeypatch.delenv("AUTH_SECRET", raising=False)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_settings_parse_origin_list_from_env(monkeypatch):
    monkeypatch.setenv("AUTH_SECRET", "env-secret")
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("CORS_ORIGIN", "http://a.test")

    settings = Settings(_env_file=None)

    assert settings.ALLOWED_ORIGINS == ["http://a.test", "http://b.test"]
    assert settings.cors_origins == ["http://a.test", "http://b.test"]


def test_production_forces_secure_cookies(tmp_path):
    settings = make_settings(tmp_path, ENVIRONMENT="production", DEBUG=True)

    assert settings.DEBUG is False
    assert settings.secure_cookies is True


def test_main_refuses_to_start_without_secret(monkeypatch, tmp_path, capsys):
    monkeypatch.delenv("AUTH_SECRET", raising=False)
    monkeypatch.chdir(tmp_path)
    started = []
    monkeypatch.setattr(app_module, "run_server", lambda **kwargs: started.append(kwargs))
    get_settings.cache_clear()
    try:
        assert app_module.main([]) == 1
    finally:
        get_settings.cache_clear()

    assert started == []
    assert "AUTH_SECRET" in capsys.readouterr().err


def test_main_starts_server_with_cli_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("AUTH_SECRET", "env-secret")
    monkeypatch.chdir(tmp_path)
    started = []
    monkeypatch.setattr(app_module, "run_server", lambda **kwargs: started.append(kwargs))
    get_settings.cache_clear()
    try:
        assert app_module.main(["--port", "8080"]) == 0
    finally:
        get_settings.cache_clear()

    assert started == [{"host": None, "port": 8080, "reload": False}]


def test_setup_logging_writes_file_without_duplicate_handlers(tmp_path):
    settings = make_settings(tmp_path, LOGS_DIR=tmp_path / "logs")

    setup_logging(settings)
    root = setup_logging(settings)
    logging.getLogger("todoapp.test").info("hello")

    ours = [handler for handler in root.handlers if getattr(handler, "_todoapp", False)]
    assert len(ours) == 2
    for handler in ours:
        handler.flush()
    assert "hello" in (tmp_path / "logs" / "todoapp.log").read_text(encoding="utf-8")
