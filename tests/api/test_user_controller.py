"""
API tests for the operator authentication endpoints.
"""

import jwt
import pytest

from tests.factories import UserFactory, persist


class TestAuthController:
    """Login and current-user endpoints."""

    @pytest.mark.asyncio
    async def test_me(self, authenticated_client, test_user):
        response = await authenticated_client.get("/api/auth/me")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(test_user.id)
        assert data["email"] == "operator@example.com"

    @pytest.mark.asyncio
    async def test_me_requires_token(self, client):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_provisions_operator(self, client):
        token = jwt.encode(
            {"sub": "clerk_login_user", "email": "login@example.com"},
            "test-secret",
            algorithm="HS256",
        )

        first = await client.post("/api/auth/login", json={"token": token})
        second = await client.post("/api/auth/login", json={"token": token})

        assert first.status_code == 200
        assert first.json()["message"] == "Login successful"
        assert first.json()["user"]["clerk_user_id"] == "clerk_login_user"
        assert first.json()["user"]["id"] == second.json()["user"]["id"]

    @pytest.mark.asyncio
    async def test_login_with_garbage_token(self, client):
        response = await client.post("/api/auth/login", json={"token": "garbage"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_records_login_time(self, client):
        token = jwt.encode({"sub": "clerk_stamp"}, "test-secret", algorithm="HS256")

        response = await client.post("/api/auth/login", json={"token": token})

        assert response.status_code == 200
        assert response.json()["user"]["last_login_at"] is not None

    @pytest.mark.asyncio
    async def test_login_inactive_operator(self, client, test_db):
        await persist(test_db, UserFactory.build(clerk_user_id="clerk_off", is_active=False))
        token = jwt.encode({"sub": "clerk_off"}, "test-secret", algorithm="HS256")

        response = await client.post("/api/auth/login", json={"token": token})

        assert response.status_code == 403
