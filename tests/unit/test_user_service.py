"""
Unit tests for operator provisioning.
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from app.domains.user.service import UserService, profile_from_claims
from tests.factories import UserFactory, persist


@pytest.mark.parametrize(
    "claims, expected",
    [
        ({"email": "a@example.com", "username": "ann"}, {"email": "a@example.com", "username": "ann"}),
        (
            {"primary_email": "b@example.com", "preferred_username": "bob"},
            {"email": "b@example.com", "username": "bob"},
        ),
        ({"email": "", "sub": "clerk_1"}, {"email": None, "username": None}),
    ],
)
def test_profile_from_claims(claims, expected):
    assert profile_from_claims(claims) == expected


class TestUserService:
    """Test cases for operator provisioning."""

    @pytest.mark.asyncio
    async def test_lookups(self, test_db):
        (user,) = await persist(test_db, UserFactory.build())
        service = UserService(test_db)

        assert (await service.find_by_clerk_id(user.clerk_user_id)).id == user.id
        assert (await service.find_by_id(user.id)).clerk_user_id == user.clerk_user_id
        assert await service.find_by_clerk_id("clerk_missing") is None
        assert await service.find_by_id(uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_resolve_provisions_once(self, test_db):
        service = UserService(test_db)
        claims = {"sub": "clerk_new", "email": "new@example.com", "username": "newbie"}

        created = await service.resolve("clerk_new", claims)
        again = await service.resolve("clerk_new", claims)

        assert created.id == again.id
        assert created.email == "new@example.com"
        assert created.username == "newbie"
        assert created.is_active is True
        assert created.last_login_at is None

    @pytest.mark.asyncio
    async def test_record_login_sets_timestamp(self, test_db):
        (user,) = await persist(test_db, UserFactory.build())

        updated = await UserService(test_db).record_login(user)

        assert updated.last_login_at is not None

    @pytest.mark.asyncio
    async def test_resolve_recovers_from_concurrent_insert(self, test_db):
        (existing,) = await persist(test_db, UserFactory.build(clerk_user_id="clerk_race"))
        service = UserService(test_db)

        # The first lookup misses, as it would for a request racing another
        with patch.object(
            service,
            "find_by_clerk_id",
            AsyncMock(side_effect=[None, existing]),
        ), patch.object(
            service,
            "provision",
            AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("unique"))),
        ):
            user = await service.resolve("clerk_race", {})

        assert user is existing

    @pytest.mark.asyncio
    async def test_resolve_reraises_when_user_still_missing(self, test_db):
        service = UserService(test_db)

        with patch.object(
            service, "find_by_clerk_id", AsyncMock(return_value=None)
        ), patch.object(
            service,
            "provision",
            AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("unique"))),
        ):
            with pytest.raises(IntegrityError):
                await service.resolve("clerk_ghost", {})
