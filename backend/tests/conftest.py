"""
Pytest configuration and fixtures.

The app runs against a throwaway SQLite file; tables are created before and
dropped after every test.
"""
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="inventory-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ.setdefault("AUTH_SECRET", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient

from db.database import Base, async_session_maker, engine
from main import app

ADMIN = {
    "email": "admin@example.com",
    "password": "admin123456",
    "username": "admin",
    "full_name": "Admin User",
}


@pytest.fixture(autouse=True)
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
async def db_session():
    async with async_session_maker() as session:
        yield session


async def login(client, username: str, password: str) -> dict:
    """Log in and return the Authorization header."""
    resp = await client.post("/auth/jwt/login", data={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


async def create_user(client, admin_headers: dict, username: str, password: str = "user123456", **extra) -> dict:
    payload = {"email": f"{username}@example.com", "password": password, "username": username}
    payload.update(extra)
    resp = await client.post("/admin/users/", json=payload, headers=admin_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def create_warehouse(client, headers: dict, name: str, **extra) -> dict:
    resp = await client.post("/warehouses/", json={"name": name, **extra}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def create_item(client, headers: dict, code: str, name: str, quantity: int = 10, price: float = 1.0, **params) -> dict:
    resp = await client.post(
        "/inventory/items",
        json={"code": code, "name": name, "quantity": quantity, "price": price},
        params=params or None,
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
async def admin_headers(client):
    resp = await client.post("/setup/admin", json=ADMIN)
    assert resp.status_code == 200, resp.text
    return await login(client, ADMIN["username"], ADMIN["password"])


@pytest.fixture
async def warehouse(client, admin_headers):
    """The admin's first warehouse, which is also their selection."""
    return await create_warehouse(client, admin_headers, "Main Warehouse")
