"""RSS feed source API controller."""

from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, validate_token
from app.domains.rss_feed.service import RssFeedService
from app.schemas.base import ResponseSchema
from app.schemas.rss_feed import RssFeedCreate, RssFeedResponse, RssFeedUpdate
from app.shared.pagination import PaginationParams, page_envelope


router = APIRouter(
    prefix="/api/rss-feeds",
    tags=["rss-feeds"],
    dependencies=[Depends(validate_token)],
)


@router.post("/", response_model=ResponseSchema, status_code=201)
async def create_feed(
    feed_data: RssFeedCreate,
    db: AsyncSession = Depends(get_db),
):
    """Register a new feed source."""

    service = RssFeedService(db)
    feed = await service.create_feed(feed_data)

    return ResponseSchema(
        status="success",
        message="RSS feed created successfully",
        data=RssFeedResponse.model_validate(feed).model_dump(mode="json"),
    )


@router.get("/", response_model=ResponseSchema)
async def get_feeds(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Get paginated list of feed sources."""

    service = RssFeedService(db)
    result = await service.get_feeds_list(PaginationParams(page=page, size=size))

    return ResponseSchema(
        status="success",
        message="RSS feeds retrieved successfully",
        data=page_envelope(result, "feeds", RssFeedResponse),
    )


@router.patch("/{feed_id}", response_model=ResponseSchema)
async def update_feed(
    feed_id: UUID = Path(..., description="Feed ID"),
    feed_data: RssFeedUpdate = Body(...),
    db: AsyncSession = Depends(get_db),
):
    """Update a feed source, typically its enabled or auto-send toggle."""

    service = RssFeedService(db)
    feed = await service.update_feed(feed_id, feed_data)

    return ResponseSchema(
        status="success",
        message="RSS feed updated successfully",
        data=RssFeedResponse.model_validate(feed).model_dump(mode="json"),
    )


@router.delete("/{feed_id}", response_model=ResponseSchema)
async def delete_feed(
    feed_id: UUID = Path(..., description="Feed ID"),
    db: AsyncSession = Depends(get_db),
):
    """Delete a feed source."""

    service = RssFeedService(db)
    await service.delete_feed(feed_id)

    return ResponseSchema(status="success", message="RSS feed deleted successfully", data=None)
