"""
Operator accounts.

Operators sign in through Clerk; a local row is provisioned from the token
claims the first time a token is seen and is referenced as the creator of
campaigns and templates.
"""

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class User(BaseModel):
    """
    An operator of the campaign manager.

    :ivar clerk_user_id: Subject claim of the operator's Clerk token.
    :ivar email: Primary email taken from the token, if present.
    :ivar is_active: Deactivated operators are refused with 403.
    :ivar last_login_at: Set by the explicit login endpoint.
    """

    __tablename__ = "users"

    clerk_user_id = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True)
    username = Column(String(100))
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime)

    campaigns = relationship("Campaign", back_populates="creator")
    templates = relationship("Template", back_populates="creator")
