"""Subscriber API controller with FastAPI endpoints."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.dependencies import get_db, validate_token
from app.domains.subscriber.service import SubscriberService
from app.exceptions.push import PushNotConfiguredError
from app.schemas.base import ResponseSchema
from app.schemas.subscriber import (
    SubscriberCreate,
    SubscriberFilter,
    SubscriberListResponse,
    SubscriberResponse,
    SubscriberSegmentsUpdate,
    SubscriberUnsubscribe,
)
from app.shared.pagination import PaginationParams


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/subscribers",
    tags=["subscribers"],
    dependencies=[Depends(validate_token)],
)

# Browsers subscribe and unsubscribe without credentials
public_router = APIRouter(tags=["subscribers"])


@public_router.get("/api/vapid-public-key")
async def get_vapid_public_key():
    """Public VAPID key the browser needs to create a push subscription."""
    if not settings.vapid_public_key:
        raise PushNotConfiguredError()
    return {"publicKey": settings.vapid_public_key}


@public_router.post("/api/subscribers", response_model=ResponseSchema)
async def subscribe(
    response: Response,
    subscriber_data: SubscriberCreate,
    db: AsyncSession = Depends(get_db),
):
    """Register a push subscription. Repeat subscriptions return the existing record."""

    service = SubscriberService(db)
    subscriber, created = await service.subscribe(subscriber_data)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK

    return ResponseSchema(
        status="success",
        message="Subscribed successfully" if created else "Already subscribed",
        data=SubscriberResponse.model_validate(subscriber).model_dump(mode="json"),
    )


@public_router.post("/api/subscribers/unsubscribe", response_model=ResponseSchema)
async def unsubscribe(
    unsubscribe_data: SubscriberUnsubscribe,
    db: AsyncSession = Depends(get_db),
):
    """Unsubscribe by endpoint. Succeeds even when the endpoint is unknown."""

    service = SubscriberService(db)
    await service.unsubscribe(unsubscribe_data.endpoint)

    return ResponseSchema(status="success", message="Unsubscribed successfully", data=None)


@router.get("/", response_model=SubscriberListResponse)
async def get_subscribers(
    browser: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    segment: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Get paginated list of subscribers with optional filters."""

    filters = SubscriberFilter(browser=browser, status=status, segment=segment, search=search)
    pagination = PaginationParams(page=page, size=size)

    service = SubscriberService(db)
    result = await service.get_subscribers_list(filters=filters, pagination=pagination)

    return SubscriberListResponse(
        subscribers=[SubscriberResponse.model_validate(s) for s in result["items"]],
        total=result["total"],
        page=result["page"],
        size=result["size"],
        has_next=result["has_next"],
        has_prev=result["has_prev"],
    )


@router.put("/{subscriber_id}/segments", response_model=ResponseSchema)
async def update_subscriber_segments(
    subscriber_id: UUID = Path(..., description="Subscriber ID"),
    segments_data: SubscriberSegmentsUpdate = Body(...),
    db: AsyncSession = Depends(get_db),
):
    """Replace a subscriber's segment labels."""

    service = SubscriberService(db)
    subscriber = await service.update_segments(subscriber_id, segments_data.segments)

    return ResponseSchema(
        status="success",
        message="Subscriber segments updated successfully",
        data=SubscriberResponse.model_validate(subscriber).model_dump(mode="json"),
    )


@router.delete("/{subscriber_id}", response_model=ResponseSchema)
async def delete_subscriber(
    subscriber_id: UUID = Path(..., description="Subscriber ID"),
    db: AsyncSession = Depends(get_db),
):
    """Delete a subscriber."""

    service = SubscriberService(db)
    await service.delete_subscriber(subscriber_id)

    return ResponseSchema(status="success", message="Subscriber deleted successfully", data=None)
