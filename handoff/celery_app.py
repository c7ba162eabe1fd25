"""Celery application configuration."""

from celery import Celery
from celery.schedules import crontab

from handoff.config import get_settings

settings = get_settings()

app = Celery(
    "handoff",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["handoff.tasks.travel_tasks"],
)

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    result_expires=3600,  # 1 hour
    beat_schedule={
        "prune-stale-travel-events-hourly": {
            "task": "handoff.tasks.travel_tasks.prune_stale_supplemental_events",
            "schedule": crontab(minute=15),
        },
    },
)
