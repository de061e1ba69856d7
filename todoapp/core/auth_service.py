#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Todo App - Session Authentication
Регистрация, вход и серверные сессии с подписанной httpOnly cookie

Формат cookie: "<session_id>.<hmac-sha256(session_id, AUTH_SECRET)>"
"""

import hashlib
import hmac
import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from todoapp.config import Settings
from todoapp.core.models import Session, User, as_utc, now_utc

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class AuthError(Exception):
    """Базовая ошибка аутентификации"""
    pass

class EmailAlreadyRegistered(AuthError):
    pass

class InvalidCredentials(AuthError):
    pass

# ===== ПАРОЛИ =====

HASH_ALGORITHM = "pbkdf2_sha256"

def hash_password(password: str, iterations: int) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), iterations)
    return f"{HASH_ALGORITHM}${iterations}${salt}${digest.hex()}"

def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, expected = encoded.split("$")
    except ValueError:
        return False
    if algorithm != HASH_ALGORITHM:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)

# ===== ПОДПИСЬ COOKIE =====

def _signature(value: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), value.encode("utf-8"), hashlib.sha256).hexdigest()

def sign_session_id(session_id: str, secret: str) -> str:
    return f"{session_id}.{_signature(session_id, secret)}"

def unsign_session_id(cookie_value: str, secret: str) -> Optional[str]:
    """ID сессии из cookie или None, если подпись не сходится"""
    session_id, sep, signature = cookie_value.rpartition(".")
    if not sep or not session_id:
        return None
    if not hmac.compare_digest(_signature(session_id, secret), signature):
        return None
    return session_id


class AuthService:
    """Пользователи и сессии поверх AsyncSession"""

    def __init__(self, session: AsyncSession, settings: Settings):
        self.session = session
        self.settings = settings

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def register(self, email: str, password: str, name: Optional[str] = None) -> User:
        if await self.get_user_by_email(email) is not None:
            raise EmailAlreadyRegistered(email)

        user = User(
            email=email,
            name=name,
            password_hash=hash_password(password, self.settings.PASSWORD_HASH_ITERATIONS),
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError:
            # Параллельная регистрация того же email
            await self.session.rollback()
            raise EmailAlreadyRegistered(email)

        logger.info(f"👤 Зарегистрирован пользователь {user.id}")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        user = await self.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentials(email)
        return user

    async def create_session(self, user: User) -> str:
        """Создать сессию и вернуть подписанное значение cookie"""
        record = Session(
            id=secrets.token_urlsafe(32),
            user_id=user.id,
            expires_at=now_utc() + timedelta(seconds=self.settings.SESSION_MAX_AGE),
        )
        self.session.add(record)
        await self.session.commit()

        logger.info(f"🔑 Открыта сессия для пользователя {user.id}")
        return sign_session_id(record.id, self.settings.AUTH_SECRET)

    async def get_user_for_cookie(self, cookie_value: Optional[str]) -> Optional[User]:
        """Пользователь по cookie; просроченная сессия удаляется"""
        if not cookie_value:
            return None

        session_id = unsign_session_id(cookie_value, self.settings.AUTH_SECRET)
        if session_id is None:
            return None

        record = await self.session.get(Session, session_id)
        if record is None:
            return None

        if as_utc(record.expires_at) <= now_utc():
            await self.session.delete(record)
            await self.session.commit()
            logger.info(f"⌛ Сессия пользователя {record.user_id} истекла")
            return None

        return await self.session.get(User, record.user_id)

    async def destroy_session(self, cookie_value: Optional[str]) -> None:
        if not cookie_value:
            return

        session_id = unsign_session_id(cookie_value, self.settings.AUTH_SECRET)
        if session_id is None:
            return

        await self.session.execute(delete(Session).where(Session.id == session_id))
        await self.session.commit()
