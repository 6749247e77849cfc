"""
Campaign model for notification broadcasts.

A campaign is one notification definition (content plus targeting) together
with the aggregate outcome of delivering it. After creation only the campaign
lifecycle service mutates ``status`` and the ``total_*`` counters, and it does
so with store-level atomic statements.
"""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import GUID, BaseModel


class CampaignStatus:
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"

    ALL = (DRAFT, SCHEDULED, SENDING, SENT, FAILED)
    SENDABLE = (DRAFT, SCHEDULED)
    EDITABLE = (DRAFT, SCHEDULED)
    TERMINAL = (SENT, FAILED)


class Campaign(BaseModel):
    """
    Represents a notification campaign.

    :ivar title: Notification title.
    :type title: str
    :ivar body: Notification body text.
    :type body: str
    :ivar icon: Optional icon URL.
    :ivar badge: Optional badge URL.
    :ivar image: Optional large image URL.
    :ivar url: Optional action URL opened on click.
    :ivar target_segments: Segment labels; empty means everyone.
    :type target_segments: list[str]
    :ivar target_browsers: Browser names; empty means every browser.
    :type target_browsers: list[str]
    :ivar status: draft, scheduled, sending, sent or failed.
    :type status: str
    :ivar total_sent: Successful deliveries.
    :ivar total_failed: Failed deliveries.
    :ivar total_clicked: Click-throughs reported by notifications.
    """

    __tablename__ = "campaigns"

    title = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    icon = Column(Text)
    badge = Column(Text)
    image = Column(Text)
    url = Column(Text)

    target_segments = Column(JSON, default=list, nullable=False)
    target_browsers = Column(JSON, default=list, nullable=False)

    status = Column(String(20), default=CampaignStatus.DRAFT, nullable=False, index=True)
    scheduled_at = Column(DateTime)
    sent_at = Column(DateTime)

    total_sent = Column(Integer, default=0, nullable=False)
    total_failed = Column(Integer, default=0, nullable=False)
    total_clicked = Column(Integer, default=0, nullable=False)

    created_by = Column(GUID(), ForeignKey("users.id", ondelete="SET NULL"))
    template_id = Column(GUID(), ForeignKey("templates.id", ondelete="SET NULL"))
    source_feed_id = Column(GUID(), ForeignKey("rss_feeds.id", ondelete="SET NULL"))

    # Relationships
    creator = relationship("User", back_populates="campaigns")
    deliveries = relationship(
        "DeliveryRecord", back_populates="campaign", cascade="all, delete-orphan"
    )
