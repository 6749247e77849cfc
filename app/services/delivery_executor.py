"""Delivery batch executor.

Fans one campaign out to its eligible subscribers. Each subscriber gets exactly
one attempt; per-subscriber failures are recorded as data and never raised.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.services.push_transport import (
    DeliveryOutcome,
    DeliveryResult,
    PushTransport,
    SubscriptionInfo,
    push_transport,
)
from models.campaign import Campaign
from models.delivery import DeliveryRecord, DeliveryStatus
from models.subscriber import Subscriber, SubscriberStatus


logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of one batch execution."""

    sent: int = 0
    failed: int = 0
    aborted: bool = False
    records: list[DeliveryRecord] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.records)


def matches_targeting(subscriber: Subscriber, campaign: Campaign) -> bool:
    """Whether a subscriber falls inside a campaign's segment and browser filters.

    Empty filters match everyone.
    """
    target_browsers = campaign.target_browsers or []
    if target_browsers and subscriber.browser not in target_browsers:
        return False

    target_segments = set(campaign.target_segments or [])
    if target_segments and not target_segments.intersection(subscriber.segments or []):
        return False

    return True


class DeliveryBatchExecutor:
    """Delivers a campaign payload to a set of subscribers with bounded concurrency."""

    def __init__(
        self,
        db: AsyncSession,
        transport: PushTransport | None = None,
        max_concurrency: int | None = None,
    ):
        """Initialize the executor.

        Args:
            db: Async database session; all writes go through it serially
            transport: Push transport adapter (defaults to the shared instance)
            max_concurrency: Deliveries in flight at once
        """
        self.db = db
        self.transport = transport or push_transport
        self.max_concurrency = max_concurrency or settings.push_max_concurrency

    async def eligible_subscribers(self, campaign: Campaign) -> list[Subscriber]:
        """Active subscribers matching the campaign's targeting filters."""
        query = select(Subscriber).where(Subscriber.status == SubscriberStatus.ACTIVE)
        if campaign.target_browsers:
            query = query.where(Subscriber.browser.in_(campaign.target_browsers))
        query = query.order_by(Subscriber.created_at.asc())

        result = await self.db.execute(query)
        # Segment overlap on a JSON column is not portable SQL; filter here
        subscribers = [s for s in result.scalars().all() if matches_targeting(s, campaign)]

        logger.info(f"Campaign {campaign.id}: {len(subscribers)} eligible subscribers")
        return subscribers

    async def execute(
        self,
        campaign: Campaign,
        subscribers: list[Subscriber],
        payload: bytes,
    ) -> BatchResult:
        """Attempt delivery to every subscriber once.

        Args:
            campaign: Campaign being delivered
            subscribers: Eligible subscribers; duplicates are attempted once
            payload: Serialized notification payload

        Returns:
            BatchResult with counts tallied from persisted delivery records

        Raises:
            SQLAlchemyError: storage failed; remaining attempts are abandoned
        """
        campaign_id = campaign.id
        semaphore = asyncio.Semaphore(self.max_concurrency)
        write_lock = asyncio.Lock()
        abort = asyncio.Event()
        result = BatchResult()

        targets: dict[UUID, Subscriber] = {}
        for subscriber in subscribers:
            targets.setdefault(subscriber.id, subscriber)

        async def attempt(subscriber_id: UUID, info: SubscriptionInfo) -> None:
            async with semaphore:
                if abort.is_set():
                    return
                delivery = await self.transport.deliver(info, payload)

            if delivery.is_fatal:
                abort.set()

            async with write_lock:
                try:
                    record = await self._persist_attempt(campaign_id, subscriber_id, delivery)
                except SQLAlchemyError:
                    abort.set()
                    raise
                result.records.append(record)

        logger.info(f"📨 Delivering campaign {campaign_id} to {len(targets)} subscribers")

        outcomes = await asyncio.gather(
            *(
                attempt(subscriber_id, SubscriptionInfo.from_subscriber(subscriber))
                for subscriber_id, subscriber in targets.items()
            ),
            return_exceptions=True,
        )
        errors = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        if errors:
            logger.error(
                f"❌ Campaign {campaign_id} batch aborted by storage error: {str(errors[0])}"
            )
            raise errors[0]

        result.aborted = abort.is_set()
        result.sent, result.failed = await self.tally(campaign_id)

        logger.info(
            f"📊 Campaign {campaign_id} batch complete: {result.sent} sent, "
            f"{result.failed} failed, aborted={result.aborted}"
        )
        return result

    async def tally(self, campaign_id: UUID) -> tuple[int, int]:
        """Count sent and failed delivery records for a campaign."""
        query = (
            select(DeliveryRecord.status, func.count(DeliveryRecord.id))
            .where(DeliveryRecord.campaign_id == campaign_id)
            .group_by(DeliveryRecord.status)
        )
        rows = (await self.db.execute(query)).all()
        counts: dict[str, Any] = {status: count for status, count in rows}
        return counts.get(DeliveryStatus.SENT, 0), counts.get(DeliveryStatus.FAILED, 0)

    async def _persist_attempt(
        self, campaign_id: UUID, subscriber_id: UUID, delivery: DeliveryResult
    ) -> DeliveryRecord:
        """Write the delivery record and its counter increment in one commit."""
        status = DeliveryStatus.SENT if delivery.ok else DeliveryStatus.FAILED
        record = DeliveryRecord(
            campaign_id=campaign_id,
            subscriber_id=subscriber_id,
            status=status,
            failure_reason=None if delivery.ok else delivery.outcome.value,
            clicked=False,
        )

        counter = Campaign.total_sent if delivery.ok else Campaign.total_failed
        try:
            self.db.add(record)
            await self.db.execute(
                update(Campaign)
                .where(Campaign.id == campaign_id)
                .values({counter.key: counter + 1})
                .execution_options(synchronize_session=False)
            )
            if delivery.deactivates_subscriber:
                await self.db.execute(
                    update(Subscriber)
                    .where(
                        and_(
                            Subscriber.id == subscriber_id,
                            Subscriber.status == SubscriberStatus.ACTIVE,
                        )
                    )
                    .values(status=SubscriberStatus.UNSUBSCRIBED)
                    .execution_options(synchronize_session=False)
                )
                logger.info(f"🧹 Deactivated subscriber {subscriber_id}: endpoint gone")
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        if delivery.outcome is DeliveryOutcome.UNAUTHORIZED:
            logger.error(f"🔒 Push service rejected VAPID credentials: {delivery.reason}")
        elif not delivery.ok:
            logger.warning(
                f"Delivery to subscriber {subscriber_id} failed: "
                f"{delivery.outcome.value} ({delivery.status_code})"
            )

        return record
