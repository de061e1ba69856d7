from .auth_api import AuthApiClient, AuthApiError, User
from .auth_context import Anonymous, Authenticated, AuthProvider, AuthState, Unknown

__all__ = [
    # HTTP клиент
    'AuthApiClient',
    'AuthApiError',
    'User',

    # Состояние авторизации
    'AuthProvider',
    'AuthState',
    'Unknown',
    'Authenticated',
    'Anonymous',
]
