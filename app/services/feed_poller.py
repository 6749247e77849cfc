"""Feed poller.

One tick fetches every enabled feed, records the attempt, detects items newer
than the stored marker and, for auto-send feeds, sends a single campaign built
from the newest new item. Every write is a store-level conditional update, so
running the same tick twice sends nothing the second time.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domains.campaign.service import CampaignService, SendResult
from app.domains.rss_feed.service import RssFeedService
from app.exceptions.base import BaseAppException
from app.exceptions.campaign import TemplateNotFoundError
from app.exceptions.feed import FeedError
from app.schemas.campaign import CampaignCreate
from app.services.push_transport import PushTransport
from app.services.rss_reader import FeedItem, RssReader, rss_reader
from models.base import utcnow
from models.rss_feed import RssFeed


logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 255
BODY_MAX_LENGTH = 1000


@dataclass
class FeedPollResult:
    """Outcome of polling one feed."""

    feed_id: UUID
    new_items: list[FeedItem] = field(default_factory=list)
    campaign: Optional[SendResult] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class TickSummary:
    """Counts for one scheduled tick."""

    feeds_checked: int = 0
    feeds_failed: int = 0
    campaigns_sent: int = 0
    results: list[FeedPollResult] = field(default_factory=list)


def select_new_items(
    items: list[FeedItem],
    last_item_date: Optional[datetime],
    last_item_link: Optional[str],
) -> list[FeedItem]:
    """Items newer than the stored marker, newest first.

    Dated items are compared against ``last_item_date``; a feed without dates
    degrades to "the top item's link differs from the last seen link". With no
    marker at all every item is new.
    """
    if not items:
        return []
    if last_item_date is None and last_item_link is None:
        return list(items)

    if last_item_date is not None and any(item.published for item in items):
        return [item for item in items if item.published and item.published > last_item_date]

    top = items[0]
    if top.link and top.link != last_item_link:
        return [top]
    return []


def _truncate(value: Optional[str], limit: int) -> Optional[str]:
    if value is None or len(value) <= limit:
        return value
    return value[: limit - 1].rstrip() + "…"


def _item_campaign(
    feed_name: str, template_id: Optional[UUID], target_segments: list[str], item: FeedItem
) -> CampaignCreate:
    return CampaignCreate(
        title=_truncate(item.title or feed_name, TITLE_MAX_LENGTH),
        # With a template the body comes from the template
        body=None if template_id else _truncate(item.summary or feed_name, BODY_MAX_LENGTH),
        url=item.link,
        template_id=template_id,
        target_segments=target_segments,
    )


class FeedPoller:
    """Runs feed poll ticks against one database session."""

    def __init__(
        self,
        db: AsyncSession,
        reader: Optional[RssReader] = None,
        transport: Optional[PushTransport] = None,
    ):
        self.db = db
        self.reader = reader or rss_reader
        self.campaigns = CampaignService(db, transport=transport)

    async def run_tick(self) -> TickSummary:
        """Poll every enabled feed once. One feed's failure never stops the others."""
        summary = TickSummary()

        try:
            feeds = await RssFeedService(self.db).get_enabled_feeds()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"❌ Could not list enabled feeds: {str(e)}")
            return summary

        logger.info(f"📰 Feed tick started: {len(feeds)} enabled feeds")

        for feed in feeds:
            summary.feeds_checked += 1
            try:
                result = await self.poll_feed(feed)
            except SQLAlchemyError:
                # Storage is down for everyone; the next tick starts over
                await self.db.rollback()
                logger.exception(f"❌ Feed tick aborted by storage error at feed {feed.id}")
                summary.feeds_failed += 1
                break

            summary.results.append(result)
            if result.failed:
                summary.feeds_failed += 1
            if result.campaign is not None:
                summary.campaigns_sent += 1

        logger.info(
            f"📊 Feed tick complete: {summary.feeds_checked} checked, "
            f"{summary.feeds_failed} failed, {summary.campaigns_sent} campaigns sent"
        )
        return summary

    async def poll_feed(self, feed: RssFeed) -> FeedPollResult:
        """Fetch one feed, advance its marker and auto-send if configured.

        Raises:
            SQLAlchemyError: storage failed
        """
        feed_id = feed.id
        feed_name = feed.name
        auto_send = feed.auto_send
        template_id = feed.template_id
        target_segments = list(feed.target_segments or [])
        last_item_date = feed.last_item_date
        last_item_link = feed.last_item_link

        result = FeedPollResult(feed_id=feed_id)

        try:
            items = await self.reader.fetch(feed.url)
        except FeedError as e:
            logger.warning(f"⚠️ Feed {feed_name} ({e.url}) failed: {e.message}")
            result.error = e.message
            items = []

        await self._touch(feed_id)
        if result.failed:
            return result

        new_items = select_new_items(items, last_item_date, last_item_link)
        if not new_items:
            logger.debug(f"Feed {feed_name}: no new items")
            return result

        result.new_items = new_items
        newest = new_items[0]
        if not await self._advance_marker(feed_id, newest):
            logger.info(f"Feed {feed_name}: marker already advanced by another tick")
            return result

        logger.info(f"🆕 Feed {feed_name}: {len(new_items)} new items, newest {newest.title!r}")

        if auto_send:
            result.campaign = await self._auto_send(
                feed_id, feed_name, template_id, target_segments, newest
            )
        return result

    async def _touch(self, feed_id: UUID) -> None:
        try:
            await self.db.execute(
                update(RssFeed)
                .where(RssFeed.id == feed_id)
                .values(last_fetched=utcnow())
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def _advance_marker(self, feed_id: UUID, newest: FeedItem) -> bool:
        """Move the last-seen marker forward; only one concurrent tick can win."""
        stmt = update(RssFeed).where(RssFeed.id == feed_id)
        if newest.published is not None:
            stmt = stmt.where(
                or_(RssFeed.last_item_date.is_(None), RssFeed.last_item_date < newest.published)
            ).values(last_item_date=newest.published, last_item_link=newest.link)
        else:
            stmt = stmt.where(
                or_(RssFeed.last_item_link.is_(None), RssFeed.last_item_link != newest.link)
            ).values(last_item_link=newest.link)

        try:
            result = await self.db.execute(stmt.execution_options(synchronize_session=False))
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return result.rowcount == 1

    async def _auto_send(
        self,
        feed_id: UUID,
        feed_name: str,
        template_id: Optional[UUID],
        target_segments: list[str],
        item: FeedItem,
    ) -> Optional[SendResult]:
        """Create and send one campaign for the newest item. Failures are logged, not raised."""
        try:
            try:
                campaign = await self.campaigns.create_campaign(
                    _item_campaign(feed_name, template_id, target_segments, item),
                    user_id=None,
                    source_feed_id=feed_id,
                )
            except TemplateNotFoundError:
                # The marker has already moved past this item; send it without the template
                logger.warning(f"⚠️ Template {template_id} of feed {feed_name} is gone, using item content")
                campaign = await self.campaigns.create_campaign(
                    _item_campaign(feed_name, None, target_segments, item),
                    user_id=None,
                    source_feed_id=feed_id,
                )
            send_result = await self.campaigns.send_campaign(campaign.id)
        except BaseAppException as e:
            logger.error(f"❌ Auto-send for feed {feed_name} failed: {e.message}")
            return None

        logger.info(
            f"📣 Auto-sent campaign {send_result.campaign_id} for feed {feed_name}: "
            f"{send_result.sent} sent, {send_result.failed} failed"
        )
        return send_result
