#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Todo App - Dependencies
Провайдеры зависимостей FastAPI: настройки, БД, сервисы, авторизация
"""

import logging
from typing import AsyncIterator, Optional

from fastapi import Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from todoapp.config import Settings
from todoapp.core.auth_service import AuthService
from todoapp.core.database import Database
from todoapp.core.models import User
from todoapp.core.task_service import TaskService
from todoapp.errors import ApiError

logger = logging.getLogger(__name__)

# ===== ПРОВАЙДЕРЫ ЗАВИСИМОСТЕЙ =====

def get_app_settings(request: Request) -> Settings:
    """Настройки, с которыми было создано приложение"""
    return request.app.state.settings

def get_database(request: Request) -> Database:
    """Процессный объект БД (создается в lifespan)"""
    return request.app.state.db

async def get_db_session(db: Database = Depends(get_database)) -> AsyncIterator[AsyncSession]:
    """Сессия базы данных на время запроса"""
    async with db.session() as session:
        yield session

def get_task_service(session: AsyncSession = Depends(get_db_session)) -> TaskService:
    return TaskService(session)

def get_auth_service(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> AuthService:
    return AuthService(session, settings)

# ===== АВТОРИЗАЦИЯ =====

def get_session_cookie(request: Request, settings: Settings = Depends(get_app_settings)) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)

async def get_current_user(
    cookie_value: Optional[str] = Depends(get_session_cookie),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[User]:
    """Текущий пользователь по сессионной cookie (None без сессии)"""
    try:
        return await auth_service.get_user_for_cookie(cookie_value)
    except Exception as e:
        logger.error(f"❌ Ошибка проверки сессии: {e}", exc_info=True)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "AUTH_CHECK_FAILED", "Failed to verify session")

async def require_auth(current_user: Optional[User] = Depends(get_current_user)) -> User:
    """Требовать авторизации"""
    if current_user is None:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED", "Authentication required")
    return current_user
