"""
Scheduled presence maintenance
Flips users whose sessions stopped sending heartbeats to offline
"""
import asyncio
import logging
from typing import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import PRESENCE_SWEEP_SECONDS
from services.presence import PresenceTracker

logger = logging.getLogger(__name__)

PRESENCE_JOB_ID = "presence_expiry"


async def expire_stale_presence(tracker_factory: Callable[[], PresenceTracker]):
    tracker = tracker_factory()
    try:
        expired = await tracker.expire_stale()
        logger.debug(f"Presence sweep complete: {expired} expired")
    except Exception as e:
        logger.error(f"Presence sweep failed: {e}")


def start_scheduler(tracker_factory: Callable[[], PresenceTracker],
                    interval_seconds: int = PRESENCE_SWEEP_SECONDS) -> AsyncIOScheduler:
    """Start the presence sweep on the running event loop"""
    scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
    scheduler.add_job(
        expire_stale_presence,
        IntervalTrigger(seconds=interval_seconds),
        args=[tracker_factory],
        id=PRESENCE_JOB_ID,
        name="Expire stale presence",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info(f"Scheduler started - presence sweep every {interval_seconds}s")
    return scheduler


def stop_scheduler(scheduler: AsyncIOScheduler):
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
