"""
HTTP клиент для эндпоинтов /auth.

Cookie сессии хранится в cookie jar httpx.AsyncClient, поэтому после
login()/register() последующие вызовы идут уже с сессией.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class User(BaseModel):
    """Снимок пользователя текущей сессии"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str
    email: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthApiError(Exception):
    """Ошибка запроса к API авторизации"""

    def __init__(self, code: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.status_code = status_code


class AuthApiClient:
    def __init__(
        self,
        base_url: str = "http://localhost:3000/api/v1",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> "AuthApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise AuthApiError("NETWORK_ERROR", str(e)) from e

        try:
            body = response.json()
        except ValueError:
            raise AuthApiError("INVALID_RESPONSE", "Response is not JSON", response.status_code)

        if response.is_error or not body.get("success"):
            error = body.get("error") or {}
            raise AuthApiError(
                error.get("code", "REQUEST_FAILED"),
                error.get("message", f"HTTP {response.status_code}"),
                response.status_code,
            )
        return body.get("data") or {}

    async def get_current_user(self) -> User:
        """Пользователь текущей сессии; без валидной cookie - AuthApiError"""
        data = await self._request("GET", "/auth/me")
        return User.model_validate(data["user"])

    async def login(self, email: str, password: str) -> User:
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        return User.model_validate(data["user"])

    async def register(self, email: str, password: str, name: Optional[str] = None) -> User:
        payload = {"email": email, "password": password}
        if name is not None:
            payload["name"] = name
        data = await self._request("POST", "/auth/register", json=payload)
        return User.model_validate(data["user"])

    async def logout(self) -> None:
        await self._request("POST", "/auth/logout")
