"""Celery application: feed polling and campaign housekeeping on a beat schedule."""

from celery import Celery
from celery.schedules import crontab
from celery.signals import after_setup_logger

from app.core.config import settings
from app.core.logging_config import configure_logging

celery_app = Celery(
    "push_campaigns",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.tasks.feed_tasks", "app.tasks.campaign_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    # A send to a large audience is the longest task
    task_time_limit=30 * 60,
    task_soft_time_limit=25 * 60,
    # Sends are long and uneven; do not let one worker hoard them
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)


def build_beat_schedule() -> dict:
    """Periodic tasks. Every entry expires before its next run so a stalled
    beat never replays a backlog of ticks."""
    reconcile_every = settings.campaign_reconcile_interval_minutes
    return {
        "poll-rss-feeds": {
            "task": "app.tasks.feed_tasks.poll_feeds_task",
            "schedule": crontab(minute=settings.feed_poll_minute),
            "options": {"expires": 50 * 60},
        },
        "dispatch-scheduled-campaigns": {
            "task": "app.tasks.campaign_tasks.dispatch_scheduled_campaigns_task",
            "schedule": crontab(),
            "options": {"expires": 55},
        },
        "reconcile-stale-campaigns": {
            "task": "app.tasks.campaign_tasks.reconcile_stale_campaigns_task",
            "schedule": crontab(minute=f"*/{reconcile_every}"),
            "options": {"expires": reconcile_every * 60 - 5},
        },
    }


celery_app.conf.beat_schedule = build_beat_schedule()

celery_app.conf.task_routes = {
    "app.tasks.feed_tasks.*": {"queue": "feeds"},
    "app.tasks.campaign_tasks.*": {"queue": "campaigns"},
}


@after_setup_logger.connect
def setup_worker_logging(logger=None, **kwargs):
    configure_logging(force=True)
