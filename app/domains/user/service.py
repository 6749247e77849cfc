# app/domains/user/service.py
import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models import User, utcnow

logger = logging.getLogger(__name__)


def profile_from_claims(claims: dict[str, Any]) -> dict[str, Optional[str]]:
    """Pick the operator's email and username out of Clerk token claims.

    Session tokens only carry these when the Clerk instance adds them as
    custom claims, under either the short or the OIDC-style names.
    """
    email = claims.get("email") or claims.get("primary_email")
    username = claims.get("username") or claims.get("preferred_username")
    return {"email": email or None, "username": username or None}


class UserService:
    """Operator lookup and provisioning."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_clerk_id(self, clerk_user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.clerk_user_id == clerk_user_id))
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def provision(self, clerk_user_id: str, claims: dict[str, Any]) -> User:
        """Insert a local operator row for a Clerk subject."""
        user = User(clerk_user_id=clerk_user_id, **profile_from_claims(claims))
        self.db.add(user)
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        await self.db.refresh(user)
        return user

    async def resolve(self, clerk_user_id: str, claims: dict[str, Any]) -> User:
        """Return the operator for a token subject, provisioning one on first sight."""
        user = await self.find_by_clerk_id(clerk_user_id)
        if user:
            return user

        try:
            user = await self.provision(clerk_user_id, claims)
        except IntegrityError:
            # Two first requests from the same operator raced on the unique subject
            user = await self.find_by_clerk_id(clerk_user_id)
            if user is None:
                raise
        else:
            logger.info(f"👤 Provisioned operator {user.id} for {clerk_user_id}")
        return user

    async def record_login(self, user: User) -> User:
        user.last_login_at = utcnow()
        await self.db.commit()
        await self.db.refresh(user)
        return user
