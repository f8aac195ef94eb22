"""Auth endpoint and session resolution tests."""

import pytest
from httpx import AsyncClient
from supabase import AuthApiError, AuthRetryableError

from homehq.modules.auth.schemas import AuthStatus
from homehq.modules.auth.service import AuthService
from tests.conftest import auth_headers, join_family, new_user


def test_resolve_without_token(store):
    assert AuthService(store).resolve(None).status == AuthStatus.UNAUTHENTICATED


def test_resolve_with_rejected_token(store):
    assert AuthService(store).resolve("not-a-token").status == AuthStatus.UNAUTHENTICATED


def test_resolve_without_family(store):
    user = new_user(store)
    ctx = AuthService(store).resolve(user.token)
    assert ctx.status == AuthStatus.NO_FAMILY
    assert ctx.user_id == user.id
    assert ctx.family_id is None


def test_resolve_reads_family_and_role_from_profile(store, family):
    ctx = AuthService(store).resolve(family.token)
    assert ctx.status == AuthStatus.OK
    assert ctx.family_id == family.family_id
    assert ctx.is_admin

    member = join_family(store, family.family_id)
    assert not AuthService(store).resolve(member.token).is_admin


def test_resolve_propagates_unexpected_failures(store, monkeypatch):
    def broken(jwt=None):
        raise ConnectionError("connection refused")

    monkeypatch.setattr(store.auth, "get_user", broken)
    with pytest.raises(ConnectionError):
        AuthService(store).resolve("some-token")


@pytest.mark.parametrize("failure", [
    RuntimeError("502 Bad Gateway: invalid response from upstream"),
    AuthRetryableError("Invalid token refresh attempt timed out", 0),
    AuthApiError("invalid JWT: upstream unavailable", 500, None),
])
def test_resolve_only_treats_auth_rejections_as_unauthenticated(store, monkeypatch, failure):
    def failing(jwt=None):
        raise failure

    monkeypatch.setattr(store.auth, "get_user", failing)
    with pytest.raises(type(failure)):
        AuthService(store).resolve("some-token")


@pytest.mark.parametrize("status", [401, 403])
def test_resolve_with_token_rejected_by_status(store, monkeypatch, status):
    def rejecting(jwt=None):
        raise AuthApiError("session expired", status, "session_expired")

    monkeypatch.setattr(store.auth, "get_user", rejecting)
    assert AuthService(store).resolve("some-token").status == AuthStatus.UNAUTHENTICATED


@pytest.mark.asyncio
async def test_auth_outage_is_an_internal_error(client: AsyncClient, store, monkeypatch):
    def failing(jwt=None):
        raise RuntimeError("502 Bad Gateway: invalid token endpoint response")

    monkeypatch.setattr(store.auth, "get_user", failing)
    response = await client.get("/api/v1/families/me", headers=auth_headers("some-token"))
    assert response.status_code == 500
    assert response.json()["error"]["code"] == "INTERNAL_ERROR"


@pytest.mark.asyncio
async def test_register_login_me(client: AsyncClient):
    response = await client.post("/api/v1/auth/register", json={
        "email": "casey@example.com",
        "password": "secret123",
        "full_name": "Casey",
    })
    assert response.status_code == 201
    user_id = response.json()["data"]["user_id"]

    response = await client.post("/api/v1/auth/login", json={
        "email": "casey@example.com",
        "password": "secret123",
    })
    assert response.status_code == 200
    token = response.json()["data"]["access_token"]

    response = await client.get("/api/v1/auth/me", headers=auth_headers(token))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == user_id
    assert data["status"] == "no_family"
    assert data["user_metadata"] == {"full_name": "Casey"}


@pytest.mark.asyncio
async def test_register_twice_conflicts(client: AsyncClient):
    payload = {"email": "dup@example.com", "password": "secret123"}
    await client.post("/api/v1/auth/register", json=payload)
    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


@pytest.mark.asyncio
async def test_register_short_password(client: AsyncClient):
    response = await client.post("/api/v1/auth/register", json={"email": "short@example.com", "password": "123"})
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Password must be at least 6 characters"


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, store):
    user = new_user(store)
    response = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "wrong-one"})
    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": {"code": "UNAUTHORIZED", "message": "Invalid email or password"},
    }


@pytest.mark.asyncio
async def test_me_without_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_in_family(client: AsyncClient, family):
    response = await client.get("/api/v1/auth/me", headers=auth_headers(family.token))
    data = response.json()["data"]
    assert data["status"] == "ok"
    assert data["family_id"] == family.family_id
    assert data["role"] == "admin"
    assert data["display_name"] == "Alex"


@pytest.mark.asyncio
async def test_logout(client: AsyncClient, family):
    response = await client.post("/api/v1/auth/logout", headers=auth_headers(family.token))
    assert response.status_code == 200
    assert response.json()["data"] == {"message": "Logged out successfully"}
