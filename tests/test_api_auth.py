"""Tests for admin authentication endpoints and gating."""

import pytest

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "s3cret-pass"


class TestLogin:
    """Tests for POST /api/admin/auth/login."""

    @pytest.mark.asyncio
    async def test__valid_credentials__sets_cookie(self, client, admin_user) -> None:
        resp = await client.post(
            "/api/admin/auth/login",
            json={"email": ADMIN_EMAIL.upper(), "password": ADMIN_PASSWORD},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["user"]["email"] == ADMIN_EMAIL
        assert "admin-token" in resp.cookies

    @pytest.mark.asyncio
    async def test__wrong_password__returns_401(self, client, admin_user) -> None:
        resp = await client.post(
            "/api/admin/auth/login",
            json={"email": ADMIN_EMAIL, "password": "nope"},
        )

        assert resp.status_code == 401
        assert resp.json() == {
            "success": False,
            "error": "Invalid credentials",
            "error_type": "HTTPException",
            "status_code": 401,
        }

    @pytest.mark.asyncio
    async def test__missing_csrf_header__returns_403(self, client, admin_user) -> None:
        resp = await client.post(
            "/api/admin/auth/login",
            json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
            headers={"X-CSRF-Token": "something-else"},
        )

        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test__malformed_body__returns_422_with_details(self, client) -> None:
        resp = await client.post("/api/admin/auth/login", json={"email": "not-an-email"})

        assert resp.status_code == 422
        data = resp.json()
        assert data["success"] is False
        assert data["error"] == "Validation failed"
        assert data["details"]


class TestSession:
    """Tests for /me, logout and admin gating."""

    @pytest.mark.asyncio
    async def test__me_without_cookie__returns_401(self, client) -> None:
        resp = await client.get("/api/admin/auth/me")

        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test__me_with_cookie__returns_user(self, admin_client) -> None:
        resp = await admin_client.get("/api/admin/auth/me")

        assert resp.status_code == 200
        assert resp.json()["user"]["name"] == "Shop Admin"

    @pytest.mark.asyncio
    async def test__admin_api_requires_login(self, client) -> None:
        resp = await client.get("/api/admin/menus")

        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test__garbage_token__returns_401(self, client) -> None:
        resp = await client.get("/api/admin/menus", headers={"Authorization": "Bearer not-a-jwt"})

        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test__logout_clears_cookie(self, admin_client) -> None:
        resp = await admin_client.post("/api/admin/auth/logout")

        assert resp.status_code == 200
        assert (await admin_client.get("/api/admin/auth/me")).status_code == 401
