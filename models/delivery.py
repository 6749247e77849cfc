"""
Delivery record model.

One row per subscriber per campaign send attempt. The row is written once at
send time; afterwards only the click flag may change, from false to true, once.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import GUID, BaseModel, utcnow


class DeliveryStatus:
    SENT = "sent"
    FAILED = "failed"


class DeliveryRecord(BaseModel):
    """
    Outcome of delivering one campaign to one subscriber.

    :ivar campaign_id: Campaign that was delivered.
    :ivar subscriber_id: Subscriber the delivery was attempted for.
    :ivar status: ``sent`` or ``failed``.
    :ivar failure_reason: Delivery outcome kind for failed attempts.
    :ivar clicked: Whether the notification was clicked.
    :ivar clicked_at: When the click was recorded.
    """

    __tablename__ = "deliveries"
    __table_args__ = (
        UniqueConstraint("campaign_id", "subscriber_id", name="uq_delivery_campaign_subscriber"),
    )

    campaign_id = Column(
        GUID(), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subscriber_id = Column(
        GUID(), ForeignKey("subscribers.id", ondelete="CASCADE"), nullable=False, index=True
    )

    status = Column(String(20), nullable=False)
    failure_reason = Column(String(50))
    clicked = Column(Boolean, default=False, nullable=False)
    sent_at = Column(DateTime, default=utcnow)
    clicked_at = Column(DateTime)

    campaign = relationship("Campaign", back_populates="deliveries")
    subscriber = relationship("Subscriber", back_populates="deliveries")
