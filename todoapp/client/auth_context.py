"""
Состояние авторизации на клиенте.

Три состояния заданы явно (Unknown / Authenticated / Anonymous), поэтому
комбинация "идет загрузка, но пользователь уже есть" невозможна.

    Unknown --mount()--> Authenticated(user) | Anonymous
    * --login(user)--> Authenticated(user)
    * --logout()--> Anonymous
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Union

from todoapp.client.auth_api import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Unknown:
    """Проверка сессии еще не завершена"""
    status: str = "unknown"


@dataclass(frozen=True)
class Authenticated:
    user: User
    status: str = "authenticated"


@dataclass(frozen=True)
class Anonymous:
    status: str = "anonymous"


AuthState = Union[Unknown, Authenticated, Anonymous]

Listener = Callable[[AuthState], None]


class AuthProvider:
    """Контейнер состояния авторизации для UI.

    get_current_user - асинхронный запрос "кто я"; любая ошибка трактуется
    как отсутствие сессии. logout() меняет только локальное состояние,
    завершение сессии на сервере (AuthApiClient.logout) вызывается отдельно.
    """

    def __init__(self, get_current_user: Callable[[], Awaitable[User]]):
        self._get_current_user = get_current_user
        self._state: AuthState = Unknown()
        self._listeners: List[Listener] = []
        self._mounted = False

    # ===== СОСТОЯНИЕ =====

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def user(self) -> Optional[User]:
        if isinstance(self._state, Authenticated):
            return self._state.user
        return None

    @property
    def is_loading(self) -> bool:
        return isinstance(self._state, Unknown)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Подписка на смену состояния; возвращает функцию отписки"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: AuthState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    # ===== ПЕРЕХОДЫ =====

    async def mount(self) -> None:
        """Однократная проверка существующей сессии"""
        if self._mounted:
            return
        self._mounted = True

        logger.debug("[AuthProvider] Checking for existing session...")
        try:
            user = await self._get_current_user()
        except Exception as e:
            logger.debug(f"[AuthProvider] No valid session found: {e}")
            next_state: AuthState = Anonymous()
        else:
            logger.debug(f"[AuthProvider] Session found, user: {user.email}")
            next_state = Authenticated(user)

        # login()/logout() во время проверки важнее ее результата
        if isinstance(self._state, Unknown):
            self._set_state(next_state)

    def login(self, user: User) -> None:
        logger.info(f"[AuthProvider] User logged in: {user.email}")
        self._set_state(Authenticated(user))

    def logout(self) -> None:
        logger.info("[AuthProvider] User logged out")
        self._set_state(Anonymous())
