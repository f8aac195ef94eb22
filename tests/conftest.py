"""Shared test fixtures."""

import os
import uuid
from collections.abc import AsyncGenerator
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("DATABASE_BACKEND", "memory")
os.environ.setdefault("ENVIRONMENT", "development")

from homehq.config.settings import Settings  # noqa: E402
from homehq.database.memory_client import InMemorySupabase  # noqa: E402
from homehq.main import create_app  # noqa: E402
from homehq.modules.families import actions as family_actions  # noqa: E402


def _uid() -> str:
    return uuid.uuid4().hex[:8]


@pytest.fixture
def store() -> InMemorySupabase:
    """Fresh in-memory database and auth for every test."""
    return InMemorySupabase()


@pytest.fixture
def app(store: InMemorySupabase):
    return create_app(settings=Settings(database_backend="memory"), gateway=store)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client for the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def new_user(store: InMemorySupabase, name: str = "user") -> SimpleNamespace:
    """An account without a family."""
    email = f"{name.lower()}-{_uid()}@example.com"
    user_id, token = store.auth.add_user(email)
    return SimpleNamespace(id=user_id, token=token, email=email, family_id=None)


def new_family(store: InMemorySupabase, admin_name: str = "Alex", family_name: str = "Smith") -> SimpleNamespace:
    """A family created through the real handler, with its admin account."""
    admin = new_user(store, admin_name)
    result = family_actions.create_family(store, admin.token, {"name": family_name, "display_name": admin_name})
    assert result.is_ok, result
    admin.family_id = result.data.id
    return admin


def join_family(store: InMemorySupabase, family_id: str, name: str = "Sam", role: str = "member") -> SimpleNamespace:
    """Another account added to an existing family."""
    user = new_user(store, name)
    store.table("profiles").insert({
        "id": user.id,
        "family_id": family_id,
        "role": role,
        "display_name": name,
    }).execute()
    user.family_id = family_id
    return user


@pytest.fixture
def family(store: InMemorySupabase) -> SimpleNamespace:
    return new_family(store)


@pytest.fixture
def other_family(store: InMemorySupabase) -> SimpleNamespace:
    return new_family(store, admin_name="Jordan", family_name="Jones")
