"""
Models package initialization.
"""

from .base import Base, BaseModel, as_naive_utc, utcnow
from .campaign import Campaign, CampaignStatus
from .delivery import DeliveryRecord, DeliveryStatus
from .rss_feed import RssFeed
from .subscriber import Subscriber, SubscriberStatus
from .template import Template
from .user import User

__all__ = [
    "Base",
    "BaseModel",
    "utcnow",
    "as_naive_utc",
    "User",
    "Subscriber",
    "SubscriberStatus",
    "Campaign",
    "CampaignStatus",
    "DeliveryRecord",
    "DeliveryStatus",
    "Template",
    "RssFeed",
]
