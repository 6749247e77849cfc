"""
Subscriber model for storing web push endpoints.

This module defines the Subscriber model which holds one browser-issued push
subscription: the opaque endpoint URL, the encryption keys needed to encrypt
payloads for it, and the metadata used for targeting.
"""

from sqlalchemy import JSON, Column, DateTime, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel, utcnow


class SubscriberStatus:
    ACTIVE = "active"
    UNSUBSCRIBED = "unsubscribed"

    ALL = (ACTIVE, UNSUBSCRIBED)


class Subscriber(BaseModel):
    """
    Represents one installed push target.

    :ivar endpoint: Push service endpoint URL. Globally unique identity.
    :type endpoint: str
    :ivar p256dh_key: Subscriber public key for payload encryption (p256dh).
    :type p256dh_key: str
    :ivar auth_key: Authentication secret for the subscription.
    :type auth_key: str
    :ivar browser: Browser classification reported at subscribe time.
    :type browser: str
    :ivar device: Device classification (Desktop, Mobile, Tablet).
    :type device: str
    :ivar status: Lifecycle status, ``active`` or ``unsubscribed``.
    :type status: str
    :ivar segments: Free-form segment labels used for targeting.
    :type segments: list[str]
    :ivar last_active: Last time the subscriber interacted with a notification.
    :type last_active: datetime
    """

    __tablename__ = "subscribers"

    endpoint = Column(Text, nullable=False, unique=True)
    p256dh_key = Column(String(255), nullable=False)
    auth_key = Column(String(255), nullable=False)

    browser = Column(String(50), index=True)
    device = Column(String(50))
    status = Column(String(20), default=SubscriberStatus.ACTIVE, nullable=False, index=True)
    segments = Column(JSON, default=list, nullable=False)
    last_active = Column(DateTime, default=utcnow)

    deliveries = relationship("DeliveryRecord", back_populates="subscriber", cascade="all, delete-orphan")

    @property
    def is_active(self) -> bool:
        return self.status == SubscriberStatus.ACTIVE

    def to_subscription_info(self) -> dict:
        """Return subscription info in the shape pywebpush expects."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh_key, "auth": self.auth_key},
        }
