"""
Tests for authentication endpoints.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.integration
class TestRegister:
    async def test_register_starts_progression(self, register) -> None:
        body = await register(name="Priya", email="priya@example.com")

        user = body["user"]
        assert body["token_type"] == "bearer"
        assert body["expires_in"] > 0
        assert user["email"] == "priya@example.com"
        assert (user["tokens"], user["xp"], user["level"], user["streak"]) == (100, 0, 1, 1)
        assert user["badges"] == []
        assert user["completed_activities"] == []
        assert user["avatar"].startswith("https://api.dicebear.com/7.x/avataaars/svg?seed=Priya")
        assert "password_hash" not in user

    async def test_duplicate_email(self, client: AsyncClient, register) -> None:
        await register(email="same@example.com")

        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Other", "email": "SAME@example.com", "password": "password123"},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_EMAIL"

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "A", "email": "a@example.com", "password": "password123"},
            {"name": "Valid Name", "email": "not-an-email", "password": "password123"},
            {"name": "Valid Name", "email": "a@example.com", "password": "short"},
        ],
    )
    async def test_invalid_payload(self, client: AsyncClient, payload: dict) -> None:
        response = await client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 422


@pytest.mark.integration
class TestLogin:
    async def test_login(self, client: AsyncClient, register) -> None:
        await register(email="login@example.com", password="secret-pass")

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "login@example.com", "password": "secret-pass"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["access_token"]
        # Same-day login keeps the streak
        assert body["user"]["streak"] == 1

    async def test_wrong_password(self, client: AsyncClient, register) -> None:
        await register(email="login@example.com", password="secret-pass")

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "login@example.com", "password": "wrong-pass"},
        )

        assert response.status_code == 401

    async def test_unknown_email(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": "whatever"},
        )
        assert response.status_code == 401


@pytest.mark.integration
class TestSessions:
    async def test_me(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.get("/api/v1/auth/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["tokens"] == 100

    async def test_me_requires_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/auth/me")
        assert response.status_code in (401, 403)

    async def test_me_rejects_bad_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    async def test_logout_revokes_token(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post("/api/v1/auth/logout", headers=auth_headers)
        assert response.status_code == 200

        response = await client.get("/api/v1/auth/me", headers=auth_headers)
        assert response.status_code == 401

    async def test_refresh_rotates_token(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post("/api/v1/auth/refresh", headers=auth_headers)
        assert response.status_code == 200
        new_headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

        assert (await client.get("/api/v1/auth/me", headers=auth_headers)).status_code == 401
        assert (await client.get("/api/v1/auth/me", headers=new_headers)).status_code == 200
