"""Shared test fixtures.

The database URL has to be in the environment before anything under
``src.storefront`` is imported, because the engine is created at import time.
"""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["MENU_CACHE_ENABLED"] = "false"
os.environ["COOKIE_SECURE"] = "false"
os.environ["JWT_SECRET"] = "test-secret"

import httpx  # noqa: E402
import pytest_asyncio  # noqa: E402

from src.storefront.app import app  # noqa: E402
from src.storefront.crud.admin_users import create_admin  # noqa: E402
from src.storefront.utils.database import AsyncSessionLocal, drop_models, init_models  # noqa: E402

CSRF_TOKEN = "test-csrf-token"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "s3cret-pass"


@pytest_asyncio.fixture
async def db_tables():
    """Fresh tables for every test."""
    await init_models()
    yield
    await drop_models()


@pytest_asyncio.fixture
async def db(db_tables):
    async with AsyncSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_tables):
    """Anonymous client that already carries the CSRF double-submit pair."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        c.cookies.set("XSRF-TOKEN", CSRF_TOKEN)
        c.headers["X-CSRF-Token"] = CSRF_TOKEN
        yield c


@pytest_asyncio.fixture
async def admin_user(db):
    return await create_admin(db, email=ADMIN_EMAIL, password=ADMIN_PASSWORD, name="Shop Admin")


@pytest_asyncio.fixture
async def admin_client(client, admin_user):
    """Client logged in through the real login endpoint (admin-token cookie)."""
    resp = await client.post(
        "/api/admin/auth/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
    )
    assert resp.status_code == 200, resp.text
    return client
