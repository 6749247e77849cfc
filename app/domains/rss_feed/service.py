"""RSS feed source service layer."""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.exceptions.base import ValidationError
from app.exceptions.campaign import TemplateNotFoundError
from app.exceptions.feed import DuplicateFeedError, FeedNotFoundError
from app.schemas.rss_feed import RssFeedCreate, RssFeedUpdate
from app.shared.pagination import PaginationParams, paginate
from models.rss_feed import RssFeed
from models.template import Template


logger = logging.getLogger(__name__)


class RssFeedService:
    """Service class for RSS feed sources."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_feed(self, feed_data: RssFeedCreate) -> RssFeed:
        """Register a feed source. Feed URLs are unique."""

        if feed_data.template_id is not None:
            await self._ensure_template(feed_data.template_id)

        feed = RssFeed(
            name=feed_data.name,
            url=str(feed_data.url),
            enabled=feed_data.enabled,
            auto_send=feed_data.auto_send,
            template_id=feed_data.template_id,
            target_segments=feed_data.target_segments,
        )

        try:
            self.db.add(feed)
            await self.db.commit()
            await self.db.refresh(feed)
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateFeedError()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to create feed: {str(e)}")

        logger.info(f"📰 Registered feed {feed.name} ({feed.url})")
        return feed

    async def get_feed(self, feed_id: UUID) -> Optional[RssFeed]:
        """Get a feed source by ID."""
        result = await self.db.execute(select(RssFeed).where(RssFeed.id == feed_id))
        return result.unique().scalar_one_or_none()

    async def get_feeds_list(self, pagination: Optional[PaginationParams] = None) -> Dict[str, Any]:
        """Get paginated list of feed sources."""
        stmt = select(RssFeed).order_by(desc(RssFeed.created_at))
        return await paginate(self.db, stmt, pagination or PaginationParams())

    async def get_enabled_feeds(self) -> list[RssFeed]:
        """All feeds the poller should fetch."""
        result = await self.db.execute(
            select(RssFeed)
            .where(RssFeed.enabled.is_(True))
            .order_by(RssFeed.created_at.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.unique().scalars().all())

    async def update_feed(self, feed_id: UUID, feed_data: RssFeedUpdate) -> RssFeed:
        """Update name, toggles, template or targeting of a feed."""

        feed = await self.get_feed(feed_id)
        if not feed:
            raise FeedNotFoundError()

        update_data = feed_data.model_dump(exclude_unset=True)
        if update_data.get("template_id") is not None:
            await self._ensure_template(update_data["template_id"])

        for field, value in update_data.items():
            if field in ("name", "enabled", "auto_send", "target_segments") and value is None:
                continue
            setattr(feed, field, value)

        try:
            await self.db.commit()
            await self.db.refresh(feed)
            return feed
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to update feed: {str(e)}")

    async def delete_feed(self, feed_id: UUID) -> bool:
        """Delete a feed source."""

        feed = await self.get_feed(feed_id)
        if not feed:
            raise FeedNotFoundError()

        try:
            await self.db.delete(feed)
            await self.db.commit()
            return True
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to delete feed: {str(e)}")

    async def _ensure_template(self, template_id: UUID) -> None:
        result = await self.db.execute(select(Template.id).where(Template.id == template_id))
        if result.scalar_one_or_none() is None:
            raise TemplateNotFoundError()
