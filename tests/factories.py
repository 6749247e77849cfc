"""
Test data factories for generating test objects.

Factories build unsaved model instances; ``persist`` writes them through an
async session.
"""

import uuid

import factory

from models import Campaign, CampaignStatus, RssFeed, Subscriber, SubscriberStatus, Template, User


class UserFactory(factory.Factory):
    """Factory for creating User test instances."""

    class Meta:
        model = User

    clerk_user_id = factory.LazyFunction(lambda: f"clerk_user_{uuid.uuid4()}")
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    username = factory.Sequence(lambda n: f"operator{n}")
    is_active = True


class SubscriberFactory(factory.Factory):
    """Factory for creating Subscriber test instances."""

    class Meta:
        model = Subscriber

    endpoint = factory.Sequence(lambda n: f"https://fcm.googleapis.com/fcm/send/subscriber-{n}")
    p256dh_key = factory.Faker("sha256")
    auth_key = factory.Faker("md5")
    browser = "Chrome"
    device = "Desktop"
    status = SubscriberStatus.ACTIVE
    segments = factory.LazyFunction(list)


class TemplateFactory(factory.Factory):
    """Factory for creating Template test instances."""

    class Meta:
        model = Template

    name = factory.Sequence(lambda n: f"Template {n}")
    title = factory.Faker("sentence", nb_words=5)
    body = factory.Faker("text", max_nb_chars=200)
    icon = "https://cdn.example.com/icon.png"
    badge = "https://cdn.example.com/badge.png"
    image = None
    url = "https://example.com/landing"


class CampaignFactory(factory.Factory):
    """Factory for creating Campaign test instances."""

    class Meta:
        model = Campaign

    title = factory.Faker("sentence", nb_words=5)
    body = factory.Faker("text", max_nb_chars=200)
    icon = None
    badge = None
    image = None
    url = "https://example.com/promo"
    target_segments = factory.LazyFunction(list)
    target_browsers = factory.LazyFunction(list)
    status = CampaignStatus.DRAFT
    total_sent = 0
    total_failed = 0
    total_clicked = 0


class RssFeedFactory(factory.Factory):
    """Factory for creating RssFeed test instances."""

    class Meta:
        model = RssFeed

    name = factory.Sequence(lambda n: f"Feed {n}")
    url = factory.Sequence(lambda n: f"https://news.example.com/feed-{n}.xml")
    enabled = True
    auto_send = False
    target_segments = factory.LazyFunction(list)


async def persist(db, *instances):
    """Add, commit and refresh model instances; returns them in order."""
    db.add_all(instances)
    await db.commit()
    for instance in instances:
        await db.refresh(instance)
    return list(instances)
