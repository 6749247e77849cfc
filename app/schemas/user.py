"""Operator schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import BaseModelSchema, BaseSchema


class UserLoginRequest(BaseSchema):
    token: str = Field(..., min_length=1, description="Clerk session JWT")


class UserResponse(BaseModelSchema):
    clerk_user_id: str
    email: Optional[str] = None
    username: Optional[str] = None
    is_active: bool
    last_login_at: Optional[datetime] = None


class AuthResponse(BaseSchema):
    """Returned by the login endpoint."""

    user: UserResponse
    message: str = "Login successful"
