"""Campaign schemas for request/response serialization."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import ConfigDict, Field, field_validator, model_validator

from .base import BaseModelSchema, BaseSchema, TargetingMixin


class CampaignContent(BaseSchema):
    """Notification content fields shared by create and update."""

    title: str | None = Field(None, min_length=1, max_length=255)
    body: str | None = Field(None, min_length=1, max_length=1000)
    icon: str | None = None
    badge: str | None = None
    image: str | None = None
    url: str | None = None


class CampaignCreate(CampaignContent, TargetingMixin):
    """Schema for creating a campaign.

    When ``template_id`` is given the template's content is copied into the
    campaign; any content field sent explicitly overrides the template's.
    """

    target_browsers: list[str] = Field(default_factory=list)
    scheduled_at: datetime | None = None
    template_id: UUID | None = None

    @field_validator("target_browsers", mode="after")
    @classmethod
    def validate_target_browsers(cls, v: list[str]) -> list[str]:
        return cls.clean_labels(v)

    @model_validator(mode="after")
    def require_content(self):
        if self.template_id is None and not (self.title and self.body):
            raise ValueError("title and body are required unless template_id is given")
        return self


class CampaignUpdate(CampaignContent):
    """Schema for updating a draft or scheduled campaign."""

    target_segments: list[str] | None = None
    target_browsers: list[str] | None = None
    scheduled_at: datetime | None = None

    @field_validator("target_segments", "target_browsers", mode="after")
    @classmethod
    def validate_labels(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return TargetingMixin.clean_labels(v)


class CampaignResponse(BaseModelSchema):
    """Schema for campaign response."""

    title: str
    body: str
    icon: str | None = None
    badge: str | None = None
    image: str | None = None
    url: str | None = None
    target_segments: list[str] = []
    target_browsers: list[str] = []
    status: str
    scheduled_at: datetime | None = None
    sent_at: datetime | None = None
    total_sent: int = 0
    total_failed: int = 0
    total_clicked: int = 0
    created_by: UUID | None = None
    template_id: UUID | None = None
    source_feed_id: UUID | None = None


class CampaignFilter(BaseSchema):
    """Schema for filtering campaigns."""

    status: str | None = None


class CampaignListResponse(BaseSchema):
    """Schema for campaign list response."""

    campaigns: list[CampaignResponse]
    total: int
    page: int
    size: int
    has_next: bool
    has_prev: bool


class DeliveryRecordResponse(BaseModelSchema):
    """Schema for one delivery record."""

    campaign_id: UUID
    subscriber_id: UUID
    status: str
    failure_reason: str | None = None
    clicked: bool
    sent_at: datetime | None = None
    clicked_at: datetime | None = None


class SendResultResponse(BaseSchema):
    """Definitive tally returned by a campaign send."""

    campaign_id: UUID
    status: str
    sent: int
    failed: int
    aborted: bool = False


class ClickReport(BaseSchema):
    """Optional body of a click callback from the service worker."""

    endpoint: str | None = None


class NotificationPayload(BaseSchema):
    """JSON body delivered to the browser's service worker."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    body: str
    icon: str | None = None
    badge: str | None = None
    image: str | None = None
    url: str | None = None
    campaign_id: str = Field(..., alias="campaignId")

    def to_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
