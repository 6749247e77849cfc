"""Base schemas for the application."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BaseSchema(BaseModel):
    """Base schema class with common configuration."""
    model_config = ConfigDict(from_attributes=True)


class BaseModelSchema(BaseSchema):
    """Base schema for database models."""
    id: UUID
    created_at: datetime
    updated_at: datetime


class ResponseSchema(BaseSchema):
    """Standard API response schema."""
    status: str
    message: Optional[str] = None
    data: Optional[dict] = None


class LabelListMixin(BaseSchema):
    """Normalizes free-form label lists: trimmed, de-duplicated, order kept."""

    @staticmethod
    def clean_labels(values: list[str] | None) -> list[str]:
        cleaned: list[str] = []
        for value in values or []:
            label = value.strip()
            if label and label not in cleaned:
                cleaned.append(label)
        return cleaned


class TargetingMixin(LabelListMixin):
    """Segment and browser targeting shared by campaigns and feeds."""

    target_segments: list[str] = Field(default_factory=list)

    @field_validator("target_segments", mode="after")
    @classmethod
    def validate_target_segments(cls, v: list[str]) -> list[str]:
        return cls.clean_labels(v)
