"""RSS feed schemas for request/response serialization."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, HttpUrl, field_validator

from .base import BaseModelSchema, BaseSchema, TargetingMixin


class RssFeedCreate(TargetingMixin):
    """Schema for registering a feed source."""

    name: str = Field(..., min_length=1, max_length=255)
    url: HttpUrl
    enabled: bool = True
    auto_send: bool = False
    template_id: UUID | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Feed name cannot be empty or only whitespace")
        return v


class RssFeedUpdate(BaseSchema):
    """Schema for updating a feed source; toggles are the common case."""

    name: str | None = Field(None, min_length=1, max_length=255)
    enabled: bool | None = None
    auto_send: bool | None = None
    template_id: UUID | None = None
    target_segments: list[str] | None = None

    @field_validator("target_segments", mode="after")
    @classmethod
    def validate_target_segments(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return TargetingMixin.clean_labels(v)


class RssFeedResponse(BaseModelSchema):
    """Schema for feed response."""

    name: str
    url: str
    enabled: bool
    auto_send: bool
    template_id: UUID | None = None
    target_segments: list[str] = []
    last_fetched: datetime | None = None
    last_item_date: datetime | None = None
    last_item_link: str | None = None
