#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Todo App - Configuration
Настройки API сервера, загружаемые из окружения и .env

Версия: 2.0.0
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Настройки Todo API"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===== ОСНОВНЫЕ НАСТРОЙКИ =====

    APP_NAME: str = Field(default="Todo API Server", description="Название приложения")

    VERSION: str = Field(default="2.0.0", description="Версия API")

    ENVIRONMENT: str = Field(
        default="development",
        description="Среда выполнения (development/production/testing/staging)"
    )

    DEBUG: bool = Field(default=False, description="Режим отладки")

    # ===== СЕТЕВЫЕ НАСТРОЙКИ =====

    HOST: str = Field(default="0.0.0.0", description="Хост для запуска сервера")

    PORT: int = Field(default=3000, description="Порт для запуска сервера")

    API_V1_PREFIX: str = Field(default="/api/v1", description="Префикс API версии 1")

    # ===== CORS НАСТРОЙКИ =====

    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default=["http://localhost:5173"],
        description="Разрешенные источники для CORS (через запятую)"
    )

    CORS_ORIGIN: Optional[str] = Field(
        default=None,
        description="Дополнительный источник, добавляемый к списку"
    )

    # ===== СЕССИИ =====

    AUTH_SECRET: str = Field(..., min_length=1, description="Секрет для подписи сессионных cookie")

    SESSION_MAX_AGE: int = Field(default=2592000, description="Время жизни сессии в секундах (30 дней)")

    SESSION_COOKIE_NAME: str = Field(default="todo_session", description="Имя сессионной cookie")

    PASSWORD_HASH_ITERATIONS: int = Field(default=260000, description="Количество итераций PBKDF2")

    # ===== БАЗА ДАННЫХ =====

    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./todo.db",
        description="URL базы данных для SQLAlchemy (async драйвер)"
    )

    DB_POOL_SIZE: int = Field(default=5, description="Размер пула соединений БД")

    DB_MAX_OVERFLOW: int = Field(default=10, description="Максимальное количество дополнительных соединений")

    # ===== ЛОГИРОВАНИЕ =====

    LOG_LEVEL: str = Field(default="INFO", description="Уровень логирования")

    LOG_FORMAT: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Формат логов"
    )

    LOG_DATE_FORMAT: str = Field(default="%Y-%m-%d %H:%M:%S", description="Формат даты в логах")

    LOGS_DIR: Optional[Path] = Field(default=None, description="Директория логов (None - только консоль)")

    # ===== ВАЛИДАТОРЫ =====

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Валидация среды выполнения"""
        allowed_envs = ["development", "production", "testing", "staging"]
        if v.lower() not in allowed_envs:
            raise ValueError(f"ENVIRONMENT must be one of {allowed_envs}")
        return v.lower()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Валидация уровня логирования"""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return v

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def validate_origins(cls, v):
        """Валидация CORS origins"""
        if isinstance(v, str):
            # Если передана строка, разделяем по запятой
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Валидация настроек для продакшена"""
        if self.ENVIRONMENT == "production":
            self.DEBUG = False
        return self

    # ===== МЕТОДЫ КОНФИГУРАЦИИ =====

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cors_origins(self) -> List[str]:
        """Итоговый список разрешенных источников (без дубликатов)"""
        origins = list(self.ALLOWED_ORIGINS)
        if self.CORS_ORIGIN and self.CORS_ORIGIN not in origins:
            origins.append(self.CORS_ORIGIN)
        return origins

    @property
    def secure_cookies(self) -> bool:
        return self.is_production


@lru_cache()
def get_settings() -> Settings:
    """Получить настройки (кэшированные)"""
    return Settings()
