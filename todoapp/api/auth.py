import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Response, status

from todoapp.config import Settings
from todoapp.core.auth_service import AuthService, EmailAlreadyRegistered, InvalidCredentials
from todoapp.core.models import User
from todoapp.dependencies import (
    get_app_settings,
    get_auth_service,
    get_session_cookie,
    require_auth,
)
from todoapp.errors import ApiError
from todoapp.shared.schemas import LoginRequest, RegisterRequest, success_response, to_user_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, value: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=value,
        max_age=settings.SESSION_MAX_AGE,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="none" if settings.secure_cookies else "lax",
        path="/",
    )


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=Dict[str, Any])
async def register(
    data: RegisterRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Регистрация нового пользователя (сразу открывает сессию)
    """
    try:
        user = await auth_service.register(data.email, data.password, data.name)
        cookie_value = await auth_service.create_session(user)
    except EmailAlreadyRegistered:
        raise ApiError(status.HTTP_409_CONFLICT, "EMAIL_EXISTS", "Email is already registered")
    except Exception as e:
        logger.error(f"Register error: {e}", exc_info=True)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "REGISTER_FAILED", "Failed to register")

    _set_session_cookie(response, cookie_value, settings)
    return success_response({"user": to_user_response(user)})


@router.post("/login", response_model=Dict[str, Any])
async def login(
    data: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    try:
        user = await auth_service.authenticate(data.email, data.password)
        cookie_value = await auth_service.create_session(user)
    except InvalidCredentials:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "INVALID_CREDENTIALS", "Invalid email or password")
    except Exception as e:
        logger.error(f"Login error: {e}", exc_info=True)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "LOGIN_FAILED", "Failed to log in")

    _set_session_cookie(response, cookie_value, settings)
    return success_response({"user": to_user_response(user)})


@router.post("/logout", response_model=Dict[str, Any])
async def logout(
    response: Response,
    cookie_value: Optional[str] = Depends(get_session_cookie),
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Завершить сессию на сервере и удалить cookie
    """
    try:
        await auth_service.destroy_session(cookie_value)
    except Exception as e:
        logger.error(f"Logout error: {e}", exc_info=True)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "LOGOUT_FAILED", "Failed to log out")

    response.delete_cookie(
        settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.secure_cookies,
        samesite="none" if settings.secure_cookies else "lax",
    )
    return success_response({"loggedOut": True})


@router.get("/me", response_model=Dict[str, Any])
async def me(user: User = Depends(require_auth)):
    return success_response({"user": to_user_response(user)})
