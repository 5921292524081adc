"""APScheduler setup for periodic tasks."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)


def create_scheduler(service) -> AsyncIOScheduler:
    """Create and configure the scheduler with all jobs."""
    from bmtc_resolver.config import settings

    scheduler = AsyncIOScheduler()

    # Refresh the full stop index every N hours
    scheduler.add_job(
        service.refresh_stop_index,
        "interval",
        hours=settings.stops_refresh_hours,
        id="refresh_stop_index",
        name="Refresh stop index from BMTC API",
        max_instances=1,
    )

    return scheduler
