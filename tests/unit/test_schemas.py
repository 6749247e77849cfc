"""
Unit tests for request and response schemas.
"""

import json
import uuid

import pytest
from pydantic import ValidationError

from app.schemas.campaign import CampaignCreate, CampaignUpdate, NotificationPayload
from app.schemas.rss_feed import RssFeedCreate, RssFeedUpdate
from app.schemas.subscriber import SubscriberCreate, SubscriberSegmentsUpdate
from app.schemas.template import TemplateCreate

ENDPOINT = "https://fcm.googleapis.com/fcm/send/abc123"


class TestSubscriberCreate:
    """Subscription handshake parsing."""

    def test_flat_shape(self):
        data = SubscriberCreate(endpoint=ENDPOINT, p256dh="key", auth="secret")

        assert (data.p256dh, data.auth) == ("key", "secret")

    def test_push_subscription_json_shape(self):
        data = SubscriberCreate.model_validate(
            {
                "endpoint": ENDPOINT,
                "expirationTime": None,
                "keys": {"p256dh": "key", "auth": "secret"},
                "browser": "Firefox",
            }
        )

        assert data.endpoint == ENDPOINT
        assert (data.p256dh, data.auth) == ("key", "secret")
        assert data.browser == "Firefox"

    def test_endpoint_is_trimmed(self):
        data = SubscriberCreate(endpoint=f"  {ENDPOINT} ", p256dh="key", auth="secret")

        assert data.endpoint == ENDPOINT

    @pytest.mark.parametrize("endpoint", ["http://push.example.com/x", "not-a-url"])
    def test_endpoint_must_be_https(self, endpoint):
        with pytest.raises(ValidationError):
            SubscriberCreate(endpoint=endpoint, p256dh="key", auth="secret")

    def test_keys_required(self):
        with pytest.raises(ValidationError):
            SubscriberCreate.model_validate({"endpoint": ENDPOINT, "keys": {"p256dh": "key"}})


def test_segments_are_cleaned():
    update = SubscriberSegmentsUpdate(segments=[" news ", "vip", "news", ""])

    assert update.segments == ["news", "vip"]


class TestCampaignSchemas:
    """Campaign create and update validation."""

    def test_content_required_without_template(self):
        with pytest.raises(ValidationError) as exc_info:
            CampaignCreate(title="Only a title")
        assert "template_id" in str(exc_info.value)

    def test_template_alone_is_enough(self):
        data = CampaignCreate(template_id=uuid.uuid4())

        assert data.title is None
        assert data.target_segments == []

    def test_targeting_labels_cleaned(self):
        data = CampaignCreate(
            title="Hi",
            body="There",
            target_segments=["vip", " vip "],
            target_browsers=["Chrome", ""],
        )

        assert data.target_segments == ["vip"]
        assert data.target_browsers == ["Chrome"]

    def test_update_keeps_unset_fields_unset(self):
        update = CampaignUpdate(title="New title")

        assert update.model_dump(exclude_unset=True) == {"title": "New title"}

    def test_title_length_limit(self):
        with pytest.raises(ValidationError):
            CampaignCreate(title="x" * 256, body="body")


class TestNotificationPayload:
    """Service worker payload serialization."""

    def test_camel_case_campaign_id_and_no_nulls(self):
        payload = NotificationPayload(
            title="Hello", body="World", url="https://example.com", campaign_id="abc"
        )

        body = json.loads(payload.model_dump_json(by_alias=True, exclude_none=True))

        assert body == {
            "title": "Hello",
            "body": "World",
            "url": "https://example.com",
            "campaignId": "abc",
        }

    def test_accepts_alias(self):
        payload = NotificationPayload.model_validate(
            {"title": "Hello", "body": "World", "campaignId": "abc"}
        )

        assert payload.campaign_id == "abc"


class TestFeedAndTemplateSchemas:
    """Feed and template validation."""

    def test_feed_url_must_be_http(self):
        with pytest.raises(ValidationError):
            RssFeedCreate(name="News", url="ftp://news.example.com/rss")

    def test_feed_defaults(self):
        data = RssFeedCreate(name=" News ", url="https://news.example.com/rss")

        assert data.name == "News"
        assert data.enabled is True
        assert data.auto_send is False

    def test_feed_update_cleans_segments(self):
        assert RssFeedUpdate(target_segments=["a", "a", " b"]).target_segments == ["a", "b"]
        assert RssFeedUpdate(enabled=False).target_segments is None

    def test_template_blank_fields_rejected(self):
        with pytest.raises(ValidationError):
            TemplateCreate(name="Welcome", title="   ", body="Body")
