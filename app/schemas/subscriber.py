"""Subscriber schemas for request/response serialization."""

from datetime import datetime

from pydantic import Field, field_validator, model_validator

from .base import BaseModelSchema, BaseSchema, LabelListMixin


class SubscriberCreate(BaseSchema):
    """Subscription handshake sent by the browser.

    Accepts the flat shape ``{endpoint, p256dh, auth}`` as well as the
    ``PushSubscription.toJSON()`` shape ``{endpoint, keys: {p256dh, auth}}``.
    """

    endpoint: str = Field(..., min_length=1)
    p256dh: str = Field(..., min_length=1, max_length=255)
    auth: str = Field(..., min_length=1, max_length=255)
    browser: str | None = Field(None, max_length=50)
    device: str | None = Field(None, max_length=50)

    @model_validator(mode="before")
    @classmethod
    def flatten_keys(cls, data):
        if isinstance(data, dict) and isinstance(data.get("keys"), dict):
            data = {**data}
            keys = data.pop("keys")
            data.setdefault("p256dh", keys.get("p256dh"))
            data.setdefault("auth", keys.get("auth"))
        return data

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith("https://"):
            raise ValueError("Push endpoint must be an https URL")
        return v


class SubscriberUnsubscribe(BaseSchema):
    """Unsubscribe request identified by endpoint."""

    endpoint: str = Field(..., min_length=1)


class SubscriberSegmentsUpdate(LabelListMixin):
    """Replace a subscriber's segment labels."""

    segments: list[str] = Field(default_factory=list)

    @field_validator("segments", mode="after")
    @classmethod
    def validate_segments(cls, v: list[str]) -> list[str]:
        return cls.clean_labels(v)


class SubscriberResponse(BaseModelSchema):
    """Schema for subscriber response. Encryption keys are never returned."""

    endpoint: str
    browser: str | None = None
    device: str | None = None
    status: str
    segments: list[str] = []
    last_active: datetime | None = None


class SubscriberFilter(BaseSchema):
    """Schema for filtering subscribers."""

    browser: str | None = None
    status: str | None = None
    segment: str | None = None
    search: str | None = None


class SubscriberListResponse(BaseSchema):
    """Schema for subscriber list response."""

    subscribers: list[SubscriberResponse]
    total: int
    page: int
    size: int
    has_next: bool
    has_prev: bool
