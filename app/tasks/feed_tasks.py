"""Celery tasks for RSS feed polling."""

import asyncio
import logging
from dataclasses import asdict
from typing import Any

from app.celery_app import celery_app
from app.core.config import settings
from app.services.feed_poller import FeedPoller
from app.tasks.db import task_session

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.feed_tasks.poll_feeds_task", bind=True)
def poll_feeds_task(self) -> dict[str, Any]:
    """Run one feed poll tick.

    Scheduled hourly by Celery Beat. A tick is safe to run more than once:
    feed markers only advance through conditional updates.

    Returns:
        Dictionary with tick statistics
    """
    if not settings.feed_poll_enabled:
        logger.info("Feed polling disabled; skipping tick")
        return {"skipped": True}

    logger.info(f"🚀 Starting feed poll tick (Task ID: {self.request.id})")
    result = asyncio.run(_poll_feeds_async())
    logger.info(f"✅ Feed poll tick completed: {result}")
    return result


async def _poll_feeds_async() -> dict[str, Any]:
    async with task_session() as session:
        summary = await FeedPoller(session).run_tick()

    stats = asdict(summary)
    # Per-feed details stay in the logs
    stats.pop("results")
    return stats
