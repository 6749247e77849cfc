"""
Unit tests for authentication dependencies and token verification.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from app.core.dependencies import get_current_user, validate_token
from app.core.security import ClerkAuthenticator
from tests.factories import UserFactory, persist


def make_token(**claims) -> str:
    return jwt.encode(claims, "test-secret", algorithm="HS256")


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestClerkAuthenticator:
    """Token decoding."""

    @pytest.mark.asyncio
    async def test_unverified_decode_without_jwks(self):
        authenticator = ClerkAuthenticator()
        authenticator._jwks_client = None

        payload = await authenticator.verify_token(make_token(sub="clerk_1", email="a@b.c"))

        assert payload["sub"] == "clerk_1"
        assert payload["email"] == "a@b.c"

    @pytest.mark.asyncio
    async def test_garbage_token_is_401(self):
        authenticator = ClerkAuthenticator()
        authenticator._jwks_client = None

        with pytest.raises(HTTPException) as exc_info:
            await authenticator.verify_token("not-a-jwt")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_jwks_lookup_failure_is_401(self):
        authenticator = ClerkAuthenticator(jwks_url="https://clerk.example.com/.well-known/jwks.json")
        authenticator._jwks_client = MagicMock()
        authenticator._jwks_client.get_signing_key_from_jwt.side_effect = jwt.PyJWKClientError(
            "Unable to find a signing key"
        )

        with pytest.raises(HTTPException) as exc_info:
            await authenticator.verify_token(make_token(sub="clerk_1"))

        assert exc_info.value.status_code == 401


class TestValidateToken:
    """The bearer-token dependency."""

    @pytest.mark.asyncio
    async def test_returns_payload(self):
        with patch(
            "app.core.dependencies.auth.verify_token",
            AsyncMock(return_value={"sub": "clerk_1"}),
        ):
            payload = await validate_token(bearer("token"))

        assert payload == {"sub": "clerk_1"}

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        with pytest.raises(HTTPException) as exc_info:
            await validate_token(None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    @pytest.mark.asyncio
    async def test_empty_credentials(self):
        with pytest.raises(HTTPException) as exc_info:
            await validate_token(bearer(""))

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_unexpected_error_is_401(self):
        with patch(
            "app.core.dependencies.auth.verify_token",
            AsyncMock(side_effect=RuntimeError("boom")),
        ):
            with pytest.raises(HTTPException) as exc_info:
                await validate_token(bearer("token"))

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Authentication failed"


class TestGetCurrentUser:
    """Resolving the operator from token claims."""

    @pytest.mark.asyncio
    async def test_provisions_user_on_first_use(self, test_db):
        request = SimpleNamespace(state=SimpleNamespace())

        user = await get_current_user(request, {"sub": "clerk_first", "email": "op@example.com"}, test_db)

        assert user.clerk_user_id == "clerk_first"
        assert request.state.user_id == user.id

    @pytest.mark.asyncio
    async def test_missing_sub(self, test_db):
        request = SimpleNamespace(state=SimpleNamespace())

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(request, {}, test_db)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_inactive_user_forbidden(self, test_db):
        (user,) = await persist(test_db, UserFactory.build(is_active=False))
        request = SimpleNamespace(state=SimpleNamespace())

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(request, {"sub": user.clerk_user_id}, test_db)

        assert exc_info.value.status_code == 403
