# app/core/dependencies.py
"""FastAPI dependencies for the operator API.

Browser-facing routes (subscribe, unsubscribe, click) take no credentials;
everything else resolves a Clerk bearer token to a local ``User``.
"""

import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import ClerkAuthenticator
from app.database import get_db
from app.domains.user.service import UserService
from app.exceptions.base import ServiceUnavailableError
from models import User

logger = logging.getLogger(__name__)

# Missing credentials are answered with 401 below rather than HTTPBearer's default
bearer = HTTPBearer(auto_error=False)
auth = ClerkAuthenticator()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def validate_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> dict:
    """Decode the operator's Clerk bearer token.

    Returns:
        dict: Token claims

    Raises:
        HTTPException: 401 when the token is missing, malformed or rejected
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Authentication token is required")

    try:
        payload = await auth.verify_token(credentials.credentials)
    except HTTPException as e:
        raise _unauthorized(e.detail) from e
    except Exception as e:
        logger.error("Token validation error: %s", str(e))
        raise _unauthorized("Authentication failed") from e

    if not payload:
        raise _unauthorized("Invalid authentication token")
    return payload


async def get_current_user(
    request: Request,
    payload: dict = Depends(validate_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the operator behind the token, provisioning a local user on first use.

    Raises:
        HTTPException: 401 without a subject claim, 403 for a deactivated operator
        ServiceUnavailableError: the user store could not be reached
    """
    clerk_user_id = payload.get("sub")
    if not clerk_user_id:
        raise _unauthorized("Invalid token payload - missing user ID")

    try:
        user = await UserService(db).resolve(clerk_user_id, payload)
    except SQLAlchemyError as e:
        logger.error("User lookup failed for %s: %s", clerk_user_id, str(e))
        raise ServiceUnavailableError("Authentication service error") from e

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")

    # Picked up by request logging
    request.state.user_id = user.id
    request.state.clerk_user_id = clerk_user_id
    return user
