# tests/helpers.py

from pathlib import Path
from typing import Dict, Optional

from fastapi.testclient import TestClient

from todoapp.config import Settings
from todoapp.core.models import User

API = "/api/v1"
COOKIE_NAME = "todo_session"


def make_settings(tmp_path: Path, **overrides) -> Settings:
    """Изолированные настройки: временная SQLite БД, без .env"""
    values = dict(
        AUTH_SECRET="test-secret",
        ENVIRONMENT="testing",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        PASSWORD_HASH_ITERATIONS=1000,
        ALLOWED_ORIGINS=["http://localhost:5173"],
        CORS_ORIGIN="https://todo.example.com",
        LOGS_DIR=None,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def signup(client: TestClient, email: str, password: str = "password123", name: Optional[str] = None) -> Dict[str, str]:
    """Регистрирует пользователя и возвращает заголовки с его сессией.

    Cookie jar клиента очищается, чтобы личность задавалась только
    явными заголовками и тесты могли переключаться между пользователями.
    """
    payload = {"email": email, "password": password}
    if name:
        payload["name"] = name
    response = client.post(f"{API}/auth/register", json=payload)
    assert response.status_code == 201, response.text
    cookie = response.cookies.get(COOKIE_NAME)
    assert cookie
    client.cookies.clear()
    return {"Cookie": f"{COOKIE_NAME}={cookie}"}


def create_task(client: TestClient, headers: Dict[str, str], **fields) -> dict:
    fields.setdefault("title", "Buy milk")
    response = client.post(f"{API}/tasks", json=fields, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def add_user(session, email: str) -> User:
    user = User(email=email, password_hash="x")
    session.add(user)
    await session.commit()
    return user
