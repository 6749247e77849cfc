"""Celery tasks for scheduled campaign delivery and recovery."""

import asyncio
import logging
from typing import Any

from app.celery_app import celery_app
from app.domains.campaign.service import CampaignService
from app.tasks.db import task_session

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.campaign_tasks.dispatch_scheduled_campaigns_task", bind=True)
def dispatch_scheduled_campaigns_task(self) -> dict[str, Any]:
    """Send scheduled campaigns that are due. Runs every minute."""
    result = asyncio.run(_dispatch_scheduled_async())
    if result["dispatched"]:
        logger.info(f"✅ Scheduled dispatch completed (Task ID: {self.request.id}): {result}")
    return result


@celery_app.task(name="app.tasks.campaign_tasks.reconcile_stale_campaigns_task", bind=True)
def reconcile_stale_campaigns_task(self) -> dict[str, Any]:
    """Close campaigns left in ``sending`` by a crashed worker.

    Returns:
        Dictionary with the number of campaigns reconciled
    """
    logger.info(f"🚀 Starting stale campaign reconciliation (Task ID: {self.request.id})")
    try:
        return asyncio.run(_reconcile_async())
    except Exception as e:
        logger.error(f"❌ Reconciliation failed: {str(e)}")
        raise self.retry(exc=e, countdown=60, max_retries=3)


async def _dispatch_scheduled_async() -> dict[str, Any]:
    async with task_session() as session:
        results = await CampaignService(session).dispatch_due_campaigns()
    return {
        "dispatched": len(results),
        "sent": sum(r.sent for r in results),
        "failed": sum(r.failed for r in results),
    }


async def _reconcile_async() -> dict[str, Any]:
    async with task_session() as session:
        reconciled = await CampaignService(session).reconcile_stale_campaigns()
    return {"reconciled": reconciled}
