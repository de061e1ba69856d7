# tests/test_auth_context.py

import asyncio
import json

import httpx
import pytest

from todoapp.client import (
    Anonymous,
    AuthApiClient,
    AuthApiError,
    Authenticated,
    AuthProvider,
    Unknown,
    User,
)

ALICE = User(id="u-1", email="alice@example.com", name="Alice")
BOB = User(id="u-2", email="bob@example.com")


class FakeAuthApi:
    """Управляемый ответ на запрос "кто я" """

    def __init__(self):
        self.calls = 0
        self.response: asyncio.Future = asyncio.get_running_loop().create_future()

    async def get_current_user(self) -> User:
        self.calls += 1
        return await self.response


def test_initial_state_is_loading():
    provider = AuthProvider(lambda: None)

    assert provider.state == Unknown()
    assert provider.is_loading is True
    assert provider.user is None
    assert provider.is_authenticated is False


@pytest.mark.asyncio
async def test_mount_with_existing_session():
    api = FakeAuthApi()
    provider = AuthProvider(api.get_current_user)
    api.response.set_result(ALICE)

    await provider.mount()

    assert provider.state == Authenticated(ALICE)
    assert provider.user == ALICE
    assert provider.is_loading is False
    assert provider.is_authenticated is True


@pytest.mark.asyncio
async def test_mount_failure_means_anonymous():
    api = FakeAuthApi()
    provider = AuthProvider(api.get_current_user)
    api.response.set_exception(AuthApiError("UNAUTHORIZED", "Authentication required", 401))

    await provider.mount()

    assert provider.state == Anonymous()
    assert provider.is_loading is False
    assert provider.user is None


@pytest.mark.asyncio
async def test_mount_runs_only_once():
    api = FakeAuthApi()
    provider = AuthProvider(api.get_current_user)
    api.response.set_result(ALICE)

    await provider.mount()
    provider.logout()
    await provider.mount()

    assert api.calls == 1
    assert provider.state == Anonymous()


@pytest.mark.asyncio
async def test_login_during_mount_wins_over_stale_result():
    api = FakeAuthApi()
    provider = AuthProvider(api.get_current_user)

    pending = asyncio.create_task(provider.mount())
    await asyncio.sleep(0)
    provider.login(BOB)
    api.response.set_exception(AuthApiError("UNAUTHORIZED", "Authentication required", 401))
    await pending

    assert provider.state == Authenticated(BOB)


@pytest.mark.asyncio
async def test_logout_during_mount_wins_over_stale_result():
    api = FakeAuthApi()
    provider = AuthProvider(api.get_current_user)

    pending = asyncio.create_task(provider.mount())
    await asyncio.sleep(0)
    provider.logout()
    api.response.set_result(ALICE)
    await pending

    assert provider.state == Anonymous()


def test_login_logout_and_subscribers():
    provider = AuthProvider(lambda: None)
    seen = []
    unsubscribe = provider.subscribe(seen.append)

    provider.login(ALICE)
    provider.logout()
    unsubscribe()
    provider.login(BOB)

    assert seen == [Authenticated(ALICE), Anonymous()]
    assert provider.user == BOB
    unsubscribe()


# ===== HTTP КЛИЕНТ =====

def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://api.test/api/v1")


@pytest.mark.asyncio
async def test_client_parses_current_user():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/auth/me"
        return httpx.Response(200, json={
            "success": True,
            "data": {"user": {"id": "u-1", "email": "alice@example.com", "name": None,
                              "createdAt": "2026-01-02T03:04:05+00:00"}},
        })

    async with _mock_client(handler) as http:
        user = await AuthApiClient(client=http).get_current_user()

    assert user.id == "u-1"
    assert user.created_at.year == 2026


@pytest.mark.asyncio
async def test_client_raises_envelope_error_code():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={
            "success": False,
            "error": {"code": "INVALID_CREDENTIALS", "message": "Invalid email or password"},
        })

    async with _mock_client(handler) as http:
        with pytest.raises(AuthApiError) as exc_info:
            await AuthApiClient(client=http).login("alice@example.com", "wrong-password")

    assert exc_info.value.code == "INVALID_CREDENTIALS"
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_client_sends_register_payload_and_maps_network_errors():
    payloads = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/auth/register"):
            payloads.append(json.loads(request.content))
            return httpx.Response(201, json={
                "success": True,
                "data": {"user": {"id": "u-3", "email": "carol@example.com", "name": "Carol"}},
            })
        raise httpx.ConnectError("connection refused", request=request)

    async with _mock_client(handler) as http:
        client = AuthApiClient(client=http)
        user = await client.register("carol@example.com", "password123", "Carol")
        with pytest.raises(AuthApiError) as exc_info:
            await client.logout()

    assert payloads == [{"email": "carol@example.com", "password": "password123", "name": "Carol"}]
    assert user.name == "Carol"
    assert exc_info.value.code == "NETWORK_ERROR"


@pytest.mark.asyncio
async def test_provider_over_http_client():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={
            "success": False,
            "error": {"code": "UNAUTHORIZED", "message": "Authentication required"},
        })

    async with _mock_client(handler) as http:
        provider = AuthProvider(AuthApiClient(client=http).get_current_user)
        await provider.mount()

    assert provider.state == Anonymous()
