"""Operator sign-in endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import auth, get_current_user
from app.database import get_db
from app.domains.user.service import UserService
from app.schemas.user import AuthResponse, UserLoginRequest, UserResponse
from models import User

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/login", response_model=AuthResponse)
async def login(login_data: UserLoginRequest, db: AsyncSession = Depends(get_db)):
    """Exchange a Clerk token for the local operator record.

    The record is provisioned on first login and its login time refreshed.
    """
    claims = await auth.verify_token(login_data.token)
    clerk_user_id = claims.get("sub")
    if not clerk_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

    service = UserService(db)
    user = await service.resolve(clerk_user_id, claims)
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")

    user = await service.record_login(user)
    return AuthResponse(user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)
