"""Subscriber service layer with business logic."""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import String, and_, cast, desc, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.exceptions.base import ValidationError
from app.exceptions.subscriber import SubscriberNotFoundError
from app.schemas.subscriber import SubscriberCreate, SubscriberFilter
from app.shared.pagination import PaginationParams, paginate
from models.base import utcnow
from models.subscriber import Subscriber, SubscriberStatus


logger = logging.getLogger(__name__)


class SubscriberService:
    """Service class for subscriber business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def subscribe(self, subscriber_data: SubscriberCreate) -> tuple[Subscriber, bool]:
        """Register a push subscription, resolving repeats to the existing record.

        Returns:
            The subscriber and whether it was newly created
        """
        existing = await self.get_subscriber_by_endpoint(subscriber_data.endpoint)
        if existing:
            return existing, False

        subscriber = Subscriber(
            endpoint=subscriber_data.endpoint,
            p256dh_key=subscriber_data.p256dh,
            auth_key=subscriber_data.auth,
            browser=subscriber_data.browser,
            device=subscriber_data.device,
            status=SubscriberStatus.ACTIVE,
            segments=[],
            last_active=utcnow(),
        )

        try:
            self.db.add(subscriber)
            await self.db.commit()
            await self.db.refresh(subscriber)
        except IntegrityError:
            # Lost a race with a concurrent subscribe for the same endpoint
            await self.db.rollback()
            existing = await self.get_subscriber_by_endpoint(subscriber_data.endpoint)
            if existing is None:
                raise
            return existing, False
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to create subscriber: {str(e)}")

        logger.info(f"🔔 New subscriber {subscriber.id} ({subscriber.browser or 'unknown'})")
        return subscriber, True

    async def unsubscribe(self, endpoint: str) -> bool:
        """Mark the subscriber behind an endpoint unsubscribed. Unknown endpoints are ignored."""
        try:
            result = await self.db.execute(
                update(Subscriber)
                .where(
                    and_(
                        Subscriber.endpoint == endpoint,
                        Subscriber.status == SubscriberStatus.ACTIVE,
                    )
                )
                .values(status=SubscriberStatus.UNSUBSCRIBED)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return result.rowcount == 1

    async def get_subscriber(self, subscriber_id: UUID) -> Optional[Subscriber]:
        """Get a subscriber by ID."""
        result = await self.db.execute(
            select(Subscriber)
            .where(Subscriber.id == subscriber_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_subscriber_by_endpoint(self, endpoint: str) -> Optional[Subscriber]:
        """Get a subscriber by push endpoint."""
        result = await self.db.execute(select(Subscriber).where(Subscriber.endpoint == endpoint))
        return result.scalar_one_or_none()

    async def get_subscribers_list(
        self,
        filters: Optional[SubscriberFilter] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> Dict[str, Any]:
        """Get paginated list of subscribers with optional filters."""

        stmt = select(Subscriber).execution_options(populate_existing=True)

        if filters:
            if filters.browser:
                stmt = stmt.where(Subscriber.browser == filters.browser)
            if filters.status:
                stmt = stmt.where(Subscriber.status == filters.status)
            if filters.segment:
                # JSON arrays serialize as '["a", "b"]' on both SQLite and PostgreSQL
                stmt = stmt.where(cast(Subscriber.segments, String).like(f'%"{filters.segment}"%'))
            if filters.search:
                search_term = f"%{filters.search}%"
                stmt = stmt.where(
                    or_(
                        Subscriber.endpoint.ilike(search_term),
                        Subscriber.browser.ilike(search_term),
                        Subscriber.device.ilike(search_term),
                    )
                )

        stmt = stmt.order_by(desc(Subscriber.created_at))
        return await paginate(self.db, stmt, pagination or PaginationParams())

    async def update_segments(self, subscriber_id: UUID, segments: list[str]) -> Subscriber:
        """Replace the segment labels of a subscriber."""

        subscriber = await self.get_subscriber(subscriber_id)
        if not subscriber:
            raise SubscriberNotFoundError()

        try:
            subscriber.segments = list(segments)
            await self.db.commit()
            await self.db.refresh(subscriber)
            return subscriber
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to update subscriber: {str(e)}")

    async def delete_subscriber(self, subscriber_id: UUID) -> bool:
        """Delete a subscriber and its delivery records."""

        subscriber = await self.get_subscriber(subscriber_id)
        if not subscriber:
            raise SubscriberNotFoundError()

        try:
            await self.db.delete(subscriber)
            await self.db.commit()
            return True
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to delete subscriber: {str(e)}")
