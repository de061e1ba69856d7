#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Todo App - Database
Процессный объект подключения к БД: engine + фабрика сессий

Жизненный цикл:
    connect()  - вызывается один раз при старте приложения (lifespan)
    session()  - новая AsyncSession на каждый запрос
    dispose()  - вызывается при остановке приложения

Экземпляр хранится в app.state.db и передается обработчикам через
зависимость get_database(), а не через глобальную переменную модуля.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from todoapp.config import Settings
from todoapp.core.models import Base

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class DatabaseError(Exception):
    """Базовое исключение для ошибок базы данных"""
    pass

class DatabaseConnectionError(DatabaseError):
    """Ошибка подключения к базе данных"""
    pass


def _unicode_lower(value):
    return value.lower() if value is not None else None


def _register_sqlite_functions(dbapi_connection, connection_record) -> None:
    # Встроенный lower() в SQLite понимает только ASCII
    dbapi_connection.create_function("lower", 1, _unicode_lower)


class Database:
    """Подключение к базе данных (один экземпляр на процесс)"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.url = settings.DATABASE_URL
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise DatabaseConnectionError("Database is not connected")
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.url).get_backend_name() == "sqlite"

    def _engine_options(self) -> dict:
        options = {"echo": self.settings.DEBUG, "pool_pre_ping": True}
        # У SQLite свой пул, параметры размера пула к нему не применимы
        if not self.is_sqlite:
            options["pool_size"] = self.settings.DB_POOL_SIZE
            options["max_overflow"] = self.settings.DB_MAX_OVERFLOW
        return options

    async def connect(self) -> bool:
        """Создание engine, таблиц и проверка соединения.

        Возвращает False, если БД недоступна: сервер все равно стартует,
        а операции с данными будут завершаться ошибкой 500.
        """
        if self._engine is None:
            logger.info("🔄 Инициализация базы данных...")
            self._engine = create_async_engine(self.url, **self._engine_options())
            self._session_factory = async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            if self.is_sqlite:
                event.listen(self._engine.sync_engine, "connect", _register_sqlite_functions)

        try:
            async with self._engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                await conn.run_sync(Base.metadata.create_all)
        except Exception as e:
            logger.error(f"❌ Database connection failed: {e}")
            return False

        logger.info("✅ База данных инициализирована")
        return True

    async def ping(self) -> bool:
        """Проверка доступности БД"""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"⚠️ БД не отвечает: {e}")
            return False

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Сессия на один запрос; при ошибке транзакция откатывается"""
        if self._session_factory is None:
            raise DatabaseConnectionError("Database is not connected")

        async with self._session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def dispose(self) -> None:
        """Закрытие пула соединений при остановке"""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("✅ Соединения с БД закрыты")
