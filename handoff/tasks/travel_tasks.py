"""Housekeeping for travel buffer events."""

import logging
from datetime import datetime, timedelta, timezone

from handoff.celery_app import app
from handoff.config import get_app_config
from handoff.database import SessionLocal
from handoff.services.event_service import EventService

logger = logging.getLogger(__name__)


def _prune_cutoff(now: datetime | None = None) -> datetime:
    """Events that ended before this no longer need their travel events."""
    now = now or datetime.now(timezone.utc)
    hours = int(get_app_config().travel["prune_after_hours"])
    return now - timedelta(hours=hours)


@app.task
def prune_stale_supplemental_events() -> dict:
    """Delete travel events that no assignee will drive.

    Travel is computed per assignee, so it goes stale when an event is
    unassigned or skipped, and once the event is long over.
    """
    db = SessionLocal()
    try:
        removed = EventService().prune_stale_supplemental_events(db, _prune_cutoff())
        logger.info(f"Pruned {removed} stale travel events")
        return {"success": True, "removed": removed}
    finally:
        db.close()
