# tests/conftest.py

from pathlib import Path
from typing import Dict

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from todoapp.app import create_app
from todoapp.config import Settings
from todoapp.core.database import Database

from .helpers import make_settings, signup


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture()
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    # Контекстный менеджер запускает lifespan (подключение к БД)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def alice(client: TestClient) -> Dict[str, str]:
    return signup(client, "alice@example.com", name="Alice")


@pytest.fixture()
def bob(client: TestClient) -> Dict[str, str]:
    return signup(client, "bob@example.com", name="Bob")


@pytest_asyncio.fixture()
async def db(settings: Settings):
    """Подключенная БД для тестов сервисов без HTTP слоя"""
    database = Database(settings)
    assert await database.connect()
    yield database
    await database.dispose()


@pytest_asyncio.fixture()
async def session(db: Database):
    async with db.session() as db_session:
        yield db_session
