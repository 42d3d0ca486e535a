import os
import uuid

import pytest
from httpx import ASGITransport, AsyncClient

# IMPORTANT:
# Set env vars BEFORE importing parentplanner.main (pydantic settings load at import time)
os.environ["ENV"] = "test"
os.environ["STORE_BACKEND"] = "sql"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("JWT_SECRET", "dev-test-secret")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:5173")
os.environ.setdefault("FRONTEND_URL", "http://localhost:5173")

from parentplanner.main import app as fastapi_app  # noqa: E402
from parentplanner.api.deps import get_store  # noqa: E402
from parentplanner.stores.sql import SqlDocumentStore  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def store(tmp_path):
    s = SqlDocumentStore(f"sqlite+aiosqlite:///{tmp_path / 'documents.db'}", env="test")
    await s.init()
    await s.create_schema()
    yield s
    await s.drop_schema()
    await s.close()


@pytest.fixture
async def client(store):
    """
    Overrides get_store so every route sees the per-test store; the ASGI
    transport does not run the app lifespan.
    """

    fastapi_app.dependency_overrides[get_store] = lambda: store

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    fastapi_app.dependency_overrides.pop(get_store, None)


# --- Small helpers ---

def _unique(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


@pytest.fixture
def unique_str():
    return _unique


@pytest.fixture
def user_factory(unique_str):
    async def _create(
        client: AsyncClient,
        *,
        email: str | None = None,
        child_nickname: str | None = None,
        password: str = "SuperSecret123",
        invite_code: str | None = None,
    ):
        email = email or f"{unique_str('parent')}@example.com"
        child_nickname = child_nickname or unique_str("kid")
        body = {
            "email": email,
            "child_nickname": child_nickname,
            "password": password,
        }
        if invite_code is not None:
            body["invite_code"] = invite_code

        client.cookies.clear()
        r = await client.post("/auth/register", json=body)
        assert r.status_code == 201, r.text
        data = r.json()
        assert "id" in data
        return {
            "id": data["id"],
            "email": email,
            "child_nickname": child_nickname,
            "password": password,
            "token": client.cookies.get("access_token"),
            "invitation_accepted": data.get("invitation_accepted"),
        }

    return _create


@pytest.fixture
def login_helper():
    async def _login(client: AsyncClient, *, email: str, password: str):
        client.cookies.clear()
        r = await client.post("/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        token = client.cookies.get("access_token")
        assert token, "Login did not set access_token cookie"
        return token

    return _login


@pytest.fixture
def set_auth_cookie():
    def _set(client: AsyncClient, token: str | None):
        client.cookies.clear()
        if token:
            client.cookies.set("access_token", token)

    return _set


@pytest.fixture
def befriend(set_auth_cookie):
    async def _befriend(client: AsyncClient, *, token_a: str, token_b: str, email_b: str) -> str:
        set_auth_cookie(client, token_a)
        r = await client.post("/friends/invite", json={"email": email_b})
        assert r.status_code == 201, r.text
        code = r.json()["code"]

        set_auth_cookie(client, token_b)
        r = await client.post("/friends/accept", json={"code": code})
        assert r.status_code == 200, r.text
        return code

    return _befriend
