"""
Daily scheduler: runs the scraper once a day at SCHEDULE_HOUR in
SCHEDULE_TIMEZONE (06:00 Singapore time by default).
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from internship_sg import database
from internship_sg.config import Settings, settings
from internship_sg.models.scraper_log import ScraperTrigger
from internship_sg.services.scraper import ScraperAlreadyRunningError, run_scraper

logger = logging.getLogger(__name__)


def next_run_at(now: datetime, hour: int = 6, tz: str = "Asia/Singapore") -> datetime:
    """
    Next occurrence of `hour`:00 in `tz` strictly after `now`.

    Naive datetimes are taken as UTC. The result is timezone-aware (in `tz`).
    """
    zone = ZoneInfo(tz)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local_now = now.astimezone(zone)

    candidate = local_now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if candidate <= local_now:
        candidate = (candidate + timedelta(days=1)).replace(hour=hour)
    return candidate


async def run_once(config: Settings = settings, include_feeds: Optional[bool] = None) -> None:
    """One scheduled run. Failures are logged, never raised."""
    async with database.AsyncSessionLocal() as db:
        try:
            summary = await run_scraper(
                db, trigger=ScraperTrigger.CRON, include_feeds=include_feeds, config=config
            )
            logger.info(
                f"Scheduled run {summary.log_id} done: {summary.jobs_added} new, "
                f"{summary.jobs_updated} updated, {len(summary.errors)} errors"
            )
        except ScraperAlreadyRunningError as e:
            logger.warning(f"Skipping scheduled run: {e}")
        except Exception as e:
            logger.error(f"Scheduled run failed: {e}", exc_info=True)


async def run_forever(config: Settings = settings, include_feeds: Optional[bool] = None) -> None:
    """Sleep until the next slot, run, repeat."""
    while True:
        now = datetime.now(timezone.utc)
        next_run = next_run_at(now, config.schedule_hour, config.schedule_timezone)
        wait_s = (next_run - now).total_seconds()
        logger.info(f"Next scraper run at {next_run.isoformat()} (in {wait_s / 3600:.1f}h)")
        await asyncio.sleep(wait_s)
        await run_once(config, include_feeds)
