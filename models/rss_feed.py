"""
RSS feed source model.

Feeds are polled on a schedule. ``last_fetched`` records every poll attempt;
``last_item_date`` and ``last_item_link`` mark the newest item already seen so
that repeated polls do not re-announce the same content.
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .base import GUID, BaseModel


class RssFeed(BaseModel):
    """
    Represents a polled RSS or Atom source.

    :ivar name: Display name, also the fallback notification body.
    :ivar url: Feed document URL. Unique.
    :ivar enabled: Whether the poller fetches this feed.
    :ivar auto_send: Whether new items trigger a campaign.
    :ivar template_id: Template supplying campaign content defaults.
    :ivar target_segments: Segments targeted by auto-sent campaigns.
    :ivar last_fetched: Time of the last poll attempt, successful or not.
    :ivar last_item_date: Publish date of the newest item seen.
    :ivar last_item_link: Link of the newest item seen.
    """

    __tablename__ = "rss_feeds"

    name = Column(String(255), nullable=False)
    url = Column(Text, nullable=False, unique=True)
    enabled = Column(Boolean, default=True, nullable=False)
    auto_send = Column(Boolean, default=False, nullable=False)

    template_id = Column(GUID(), ForeignKey("templates.id", ondelete="SET NULL"))
    target_segments = Column(JSON, default=list, nullable=False)

    last_fetched = Column(DateTime)
    last_item_date = Column(DateTime)
    last_item_link = Column(Text)

    template = relationship("Template", lazy="joined")
