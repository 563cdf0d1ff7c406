"""
Staleness sweeper: jobs not re-confirmed by a scrape within the window are
marked inactive.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from internship_sg.models.job import Job, JobSource

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_DAYS = 90


async def sweep_stale_jobs(
    db: AsyncSession,
    max_age_days: int = DEFAULT_MAX_AGE_DAYS,
    now: Optional[datetime] = None
) -> int:
    """
    Deactivate active jobs last seen (or, if never seen, posted) before the cutoff.

    Employer-posted jobs are exempt: no scrape will ever re-confirm them.

    Args:
        db: Database session (flushes; caller commits)
        max_age_days: Staleness window
        now: Reference time, defaults to utcnow

    Returns:
        Number of jobs deactivated
    """
    if max_age_days <= 0:
        raise ValueError("max_age_days must be positive")

    now = now or datetime.utcnow()
    cutoff = now - timedelta(days=max_age_days)

    result = await db.execute(
        select(Job).where(
            and_(
                Job.is_active.is_(True),
                Job.source != JobSource.EMPLOYER.value,
                or_(
                    Job.last_seen_at < cutoff,
                    and_(Job.last_seen_at.is_(None), Job.posted_at < cutoff),
                ),
            )
        )
    )
    stale_jobs = result.scalars().all()

    for job in stale_jobs:
        job.is_active = False
        job.updated_at = now

    await db.flush()

    if stale_jobs:
        logger.info(f"Marked {len(stale_jobs)} jobs inactive (not seen for {max_age_days} days)")
    return len(stale_jobs)
