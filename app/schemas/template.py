"""Template schemas for request/response serialization."""

from uuid import UUID

from pydantic import Field, field_validator

from .base import BaseModelSchema, BaseSchema


class TemplateBase(BaseSchema):
    """Base template schema with common fields."""

    name: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=255)
    body: str = Field(..., min_length=1, max_length=1000)
    icon: str | None = None
    badge: str | None = None
    image: str | None = None
    url: str | None = None

    @field_validator("name", "title", "body")
    @classmethod
    def validate_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be empty or only whitespace")
        return v


class TemplateCreate(TemplateBase):
    """Schema for creating a template."""


class TemplateResponse(TemplateBase, BaseModelSchema):
    """Schema for template response."""

    created_by: UUID | None = None
