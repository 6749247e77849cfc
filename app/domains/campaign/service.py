"""Campaign service layer: lifecycle, fan-out and click tracking."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import and_, desc, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.exceptions.base import BaseAppException, ValidationError
from app.exceptions.campaign import (
    CampaignAlreadySentError,
    CampaignDeliveryError,
    CampaignNotEditableError,
    CampaignNotFoundError,
    TemplateNotFoundError,
)
from app.exceptions.push import PayloadTooLargeError, PushNotConfiguredError
from app.schemas.campaign import (
    CampaignCreate,
    CampaignFilter,
    CampaignUpdate,
    NotificationPayload,
)
from app.services.delivery_executor import DeliveryBatchExecutor
from app.services.push_transport import PushTransport, push_transport
from app.shared.pagination import PaginationParams, paginate
from models.base import as_naive_utc, utcnow
from models.campaign import Campaign, CampaignStatus
from models.delivery import DeliveryRecord, DeliveryStatus
from models.subscriber import Subscriber
from models.template import Template


logger = logging.getLogger(__name__)

CONTENT_FIELDS = ("title", "body", "icon", "badge", "image", "url")


@dataclass
class SendResult:
    """Terminal outcome of one campaign send."""

    campaign_id: UUID
    status: str
    sent: int
    failed: int
    aborted: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "status": self.status,
            "sent": self.sent,
            "failed": self.failed,
            "aborted": self.aborted,
        }


class CampaignService:
    """Service class for campaign business logic."""

    def __init__(self, db: AsyncSession, transport: PushTransport | None = None):
        self.db = db
        self.transport = transport or push_transport

    async def create_campaign(
        self,
        campaign_data: CampaignCreate,
        user_id: Optional[UUID] = None,
        source_feed_id: Optional[UUID] = None,
    ) -> Campaign:
        """Create a draft (or scheduled) campaign, copying template content if given."""

        content: dict[str, Any] = {}
        if campaign_data.template_id is not None:
            template = await self._get_template(campaign_data.template_id)
            if not template:
                raise TemplateNotFoundError()
            content = {name: getattr(template, name) for name in CONTENT_FIELDS}

        explicit = campaign_data.model_dump(include=set(CONTENT_FIELDS), exclude_none=True)
        content.update(explicit)

        scheduled_at = as_naive_utc(campaign_data.scheduled_at)
        campaign = Campaign(
            **content,
            target_segments=campaign_data.target_segments,
            target_browsers=campaign_data.target_browsers,
            status=CampaignStatus.SCHEDULED if scheduled_at else CampaignStatus.DRAFT,
            scheduled_at=scheduled_at,
            template_id=campaign_data.template_id,
            source_feed_id=source_feed_id,
            created_by=user_id,
            total_sent=0,
            total_failed=0,
            total_clicked=0,
        )

        try:
            self.db.add(campaign)
            await self.db.commit()
            await self.db.refresh(campaign)
            return campaign
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to create campaign: {str(e)}")

    async def get_campaign(self, campaign_id: UUID) -> Optional[Campaign]:
        """Get a campaign by ID."""
        # Counters are written by store-level updates
        stmt = (
            select(Campaign)
            .where(Campaign.id == campaign_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_campaigns_list(
        self,
        filters: Optional[CampaignFilter] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> Dict[str, Any]:
        """Get paginated list of campaigns, newest first."""

        stmt = select(Campaign).execution_options(populate_existing=True)
        if filters and filters.status:
            stmt = stmt.where(Campaign.status == filters.status)
        stmt = stmt.order_by(desc(Campaign.created_at))

        return await paginate(self.db, stmt, pagination or PaginationParams())

    async def update_campaign(self, campaign_id: UUID, campaign_data: CampaignUpdate) -> Campaign:
        """Update a campaign that has not started sending."""

        campaign = await self.get_campaign(campaign_id)
        if not campaign:
            raise CampaignNotFoundError()
        if campaign.status not in CampaignStatus.EDITABLE:
            raise CampaignNotEditableError()

        update_data = campaign_data.model_dump(exclude_unset=True)
        if "scheduled_at" in update_data:
            update_data["scheduled_at"] = as_naive_utc(update_data["scheduled_at"])
            update_data["status"] = (
                CampaignStatus.SCHEDULED if update_data["scheduled_at"] else CampaignStatus.DRAFT
            )
        for field, value in update_data.items():
            if field in ("title", "body") and value is None:
                continue
            setattr(campaign, field, value)

        try:
            await self.db.commit()
            await self.db.refresh(campaign)
            return campaign
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to update campaign: {str(e)}")

    async def delete_campaign(self, campaign_id: UUID) -> bool:
        """Delete a campaign and its delivery records."""

        campaign = await self.get_campaign(campaign_id)
        if not campaign:
            raise CampaignNotFoundError()
        if campaign.status == CampaignStatus.SENDING:
            raise CampaignNotEditableError("A campaign cannot be deleted while it is sending")

        try:
            await self.db.delete(campaign)
            await self.db.commit()
            return True
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to delete campaign: {str(e)}")

    async def get_deliveries_list(
        self, campaign_id: UUID, pagination: Optional[PaginationParams] = None
    ) -> Dict[str, Any]:
        """Get paginated delivery records for a campaign."""

        if not await self.get_campaign(campaign_id):
            raise CampaignNotFoundError()

        stmt = (
            select(DeliveryRecord)
            .where(DeliveryRecord.campaign_id == campaign_id)
            .order_by(DeliveryRecord.sent_at.asc())
            .execution_options(populate_existing=True)
        )
        return await paginate(self.db, stmt, pagination or PaginationParams())

    def build_payload(self, campaign: Campaign) -> bytes:
        """Serialize the notification payload, rejecting oversized content.

        Raises:
            PayloadTooLargeError: the payload cannot fit a push message
        """
        payload = NotificationPayload(
            title=campaign.title,
            body=campaign.body,
            icon=campaign.icon,
            badge=campaign.badge,
            image=campaign.image,
            url=campaign.url,
            campaign_id=str(campaign.id),
        ).to_bytes()

        if not self.transport.check_payload_size(payload):
            raise PayloadTooLargeError(
                details={"size": len(payload), "limit": self.transport.max_payload_bytes}
            )
        return payload

    async def send_campaign(self, campaign_id: UUID) -> SendResult:
        """Deliver a campaign to every eligible subscriber exactly once.

        The draft/scheduled -> sending transition is a conditional update, so
        concurrent duplicate requests for one campaign let exactly one through.

        Raises:
            CampaignNotFoundError: unknown campaign
            PushNotConfiguredError: VAPID credentials are missing
            PayloadTooLargeError: content does not fit a push message
            CampaignAlreadySentError: campaign already left draft/scheduled
            CampaignDeliveryError: storage failed mid-send; campaign marked failed
        """
        campaign = await self.get_campaign(campaign_id)
        if not campaign:
            raise CampaignNotFoundError()
        if not self.transport.is_configured:
            raise PushNotConfiguredError()

        payload = self.build_payload(campaign)

        if not await self._acquire_send(campaign_id):
            raise CampaignAlreadySentError(details={"status": campaign.status})

        logger.info(f"🚀 Sending campaign {campaign_id}: {campaign.title!r}")
        executor = DeliveryBatchExecutor(self.db, transport=self.transport)

        try:
            subscribers = await executor.eligible_subscribers(campaign)
            batch = await executor.execute(campaign, subscribers, payload)
            final_status = CampaignStatus.FAILED if batch.aborted else CampaignStatus.SENT
            await self._finalize(campaign_id, final_status)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception(f"❌ Campaign {campaign_id} aborted by storage error")
            await self._mark_failed_best_effort(campaign_id)
            raise CampaignDeliveryError(details={"error": str(e)}) from e

        await self.db.refresh(campaign)
        logger.info(
            f"✅ Campaign {campaign_id} {campaign.status}: "
            f"{campaign.total_sent} sent, {campaign.total_failed} failed"
        )
        return SendResult(
            campaign_id=campaign.id,
            status=campaign.status,
            sent=campaign.total_sent,
            failed=campaign.total_failed,
            aborted=batch.aborted,
        )

    async def record_click(self, campaign_id: UUID, endpoint: Optional[str] = None) -> bool:
        """Count one click-through for a campaign.

        Unknown campaigns are a silent no-op and storage errors are logged, not
        raised: the caller is a service worker that cannot react to failures.

        Returns:
            True if the campaign counter was incremented
        """
        now = utcnow()
        try:
            result = await self.db.execute(
                update(Campaign)
                .where(
                    and_(
                        Campaign.id == campaign_id,
                        Campaign.total_clicked < Campaign.total_sent,
                    )
                )
                .values(total_clicked=Campaign.total_clicked + 1)
                .execution_options(synchronize_session=False)
            )
            counted = result.rowcount == 1

            if endpoint:
                subscriber_ids = select(Subscriber.id).where(Subscriber.endpoint == endpoint)
                await self.db.execute(
                    update(DeliveryRecord)
                    .where(
                        and_(
                            DeliveryRecord.campaign_id == campaign_id,
                            DeliveryRecord.subscriber_id.in_(subscriber_ids),
                            DeliveryRecord.status == DeliveryStatus.SENT,
                            DeliveryRecord.clicked.is_(False),
                        )
                    )
                    .values(clicked=True, clicked_at=now)
                    .execution_options(synchronize_session=False)
                )
                await self.db.execute(
                    update(Subscriber)
                    .where(Subscriber.endpoint == endpoint)
                    .values(last_active=now)
                    .execution_options(synchronize_session=False)
                )

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to record click for campaign {campaign_id}: {str(e)}")
            return False

        if not counted:
            logger.debug(f"Click for campaign {campaign_id} not counted")
        return counted

    async def dispatch_due_campaigns(self, now: Optional[datetime] = None) -> list[SendResult]:
        """Send every scheduled campaign whose time has come."""

        now = as_naive_utc(now) or utcnow()
        stmt = (
            select(Campaign.id)
            .where(
                and_(
                    Campaign.status == CampaignStatus.SCHEDULED,
                    Campaign.scheduled_at <= now,
                )
            )
            .order_by(Campaign.scheduled_at.asc())
        )
        due_ids = list((await self.db.execute(stmt)).scalars().all())

        results = []
        for campaign_id in due_ids:
            try:
                results.append(await self.send_campaign(campaign_id))
            except BaseAppException as e:
                logger.error(f"Scheduled campaign {campaign_id} not sent: {e.message}")

        if due_ids:
            logger.info(f"⏰ Dispatched {len(results)}/{len(due_ids)} scheduled campaigns")
        return results

    async def reconcile_stale_campaigns(self, older_than_minutes: Optional[int] = None) -> int:
        """Close campaigns left in ``sending`` by a crashed process.

        Counters are recomputed from persisted delivery records and the
        campaign is marked failed.

        Returns:
            Number of campaigns reconciled
        """
        minutes = older_than_minutes if older_than_minutes is not None else settings.campaign_stale_after_minutes
        cutoff = utcnow() - timedelta(minutes=minutes)

        stmt = select(Campaign.id).where(
            and_(Campaign.status == CampaignStatus.SENDING, Campaign.sent_at < cutoff)
        )
        stale_ids = list((await self.db.execute(stmt)).scalars().all())

        for campaign_id in stale_ids:
            await self._finalize(campaign_id, CampaignStatus.FAILED, only_if_sending=True)
            logger.warning(f"♻️ Reconciled stale campaign {campaign_id} as failed")

        return len(stale_ids)

    # Private helper methods
    async def _get_template(self, template_id: UUID) -> Optional[Template]:
        stmt = select(Template).where(Template.id == template_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _acquire_send(self, campaign_id: UUID) -> bool:
        """Move a campaign into ``sending`` if, and only if, it is still sendable."""
        try:
            result = await self.db.execute(
                update(Campaign)
                .where(
                    and_(
                        Campaign.id == campaign_id,
                        Campaign.status.in_(CampaignStatus.SENDABLE),
                    )
                )
                .values(status=CampaignStatus.SENDING, sent_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise CampaignDeliveryError(details={"error": str(e)}) from e
        return result.rowcount == 1

    async def _finalize(
        self, campaign_id: UUID, status: str, only_if_sending: bool = False
    ) -> None:
        """Write the terminal status with counters recomputed from delivery records."""
        sent_count = (
            select(func.count(DeliveryRecord.id))
            .where(
                and_(
                    DeliveryRecord.campaign_id == campaign_id,
                    DeliveryRecord.status == DeliveryStatus.SENT,
                )
            )
            .scalar_subquery()
        )
        failed_count = (
            select(func.count(DeliveryRecord.id))
            .where(
                and_(
                    DeliveryRecord.campaign_id == campaign_id,
                    DeliveryRecord.status == DeliveryStatus.FAILED,
                )
            )
            .scalar_subquery()
        )

        stmt = update(Campaign).where(Campaign.id == campaign_id)
        if only_if_sending:
            stmt = stmt.where(Campaign.status == CampaignStatus.SENDING)

        try:
            await self.db.execute(
                stmt.values(status=status, total_sent=sent_count, total_failed=failed_count)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def _mark_failed_best_effort(self, campaign_id: UUID) -> None:
        try:
            await self._finalize(campaign_id, CampaignStatus.FAILED)
        except SQLAlchemyError as e:
            # Left in sending; reconcile_stale_campaigns closes it later
            logger.error(f"Could not mark campaign {campaign_id} failed: {str(e)}")
