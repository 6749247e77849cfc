"""
Template model for reusable notification content.
"""

from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .base import GUID, BaseModel


class Template(BaseModel):
    """
    A reusable content blueprint.

    Templates are copied into a campaign's own columns when the campaign is
    created; campaigns never read a template live.
    """

    __tablename__ = "templates"

    name = Column(String(255), nullable=False)
    title = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    icon = Column(Text)
    badge = Column(Text)
    image = Column(Text)
    url = Column(Text)

    created_by = Column(GUID(), ForeignKey("users.id", ondelete="SET NULL"))

    creator = relationship("User", back_populates="templates")
