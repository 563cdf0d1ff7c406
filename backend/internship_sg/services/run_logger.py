"""
Run logger: one scraper_logs row per scraper run.
Rows are created as 'running' at run start and finalized exactly once.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from internship_sg.models.scraper_log import ScraperLog, ScraperLogStatus, ScraperTrigger
from internship_sg.schemas.scraper import ScrapeSummary, ScraperLogCreate

logger = logging.getLogger(__name__)

VALID_STATUSES = {s.value for s in ScraperLogStatus}
VALID_TRIGGERS = {t.value for t in ScraperTrigger}


async def get_running_log(db: AsyncSession) -> Optional[ScraperLog]:
    """Most recent run still marked 'running', if any."""
    result = await db.execute(
        select(ScraperLog)
        .where(ScraperLog.status == ScraperLogStatus.RUNNING.value)
        .order_by(ScraperLog.started_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def fail_abandoned_runs(db: AsyncSession, older_than_minutes: int) -> int:
    """
    Mark 'running' rows older than the window as failed.
    These are runs whose process died before finalizing.
    """
    cutoff = datetime.utcnow() - timedelta(minutes=older_than_minutes)
    result = await db.execute(
        select(ScraperLog).where(
            ScraperLog.status == ScraperLogStatus.RUNNING.value,
            ScraperLog.started_at < cutoff,
        )
    )
    abandoned = result.scalars().all()

    for log in abandoned:
        log.status = ScraperLogStatus.FAILED.value
        log.completed_at = datetime.utcnow()
        log.errors = list(log.errors or []) + [
            {"company": "*", "error": "Run abandoned before completion"}
        ]
        logger.warning(f"Marked abandoned scraper run {log.id} (started {log.started_at}) as failed")

    if abandoned:
        await db.commit()
    return len(abandoned)


async def start_run_log(
    db: AsyncSession,
    trigger: ScraperTrigger = ScraperTrigger.MANUAL
) -> ScraperLog:
    """Create the 'running' row for a new run."""
    log = ScraperLog(
        status=ScraperLogStatus.RUNNING.value,
        trigger=ScraperTrigger(trigger).value,
        started_at=datetime.utcnow(),
        errors=[],
    )
    db.add(log)
    await db.commit()
    await db.refresh(log)

    logger.info(f"Started scraper run {log.id} (trigger={log.trigger})")
    return log


async def finish_run_log(
    db: AsyncSession,
    log: ScraperLog,
    summary: ScrapeSummary,
    status: ScraperLogStatus = ScraperLogStatus.COMPLETED
) -> ScraperLog:
    """Write the run's counters and final status."""
    log.status = status.value
    log.completed_at = datetime.utcnow()
    log.companies_processed = summary.companies_processed
    log.jobs_found = summary.jobs_found
    log.jobs_added = summary.jobs_added
    log.jobs_updated = summary.jobs_updated
    log.jobs_skipped = summary.jobs_skipped
    log.jobs_deactivated = summary.jobs_deactivated
    log.errors = [e.model_dump() for e in summary.errors]

    await db.commit()
    await db.refresh(log)

    logger.info(
        f"Finished scraper run {log.id}: status={log.status} "
        f"companies={log.companies_processed} found={log.jobs_found} "
        f"added={log.jobs_added} updated={log.jobs_updated} skipped={log.jobs_skipped} "
        f"deactivated={log.jobs_deactivated} errors={len(log.errors)}"
    )
    return log


async def create_run_log(db: AsyncSession, payload: ScraperLogCreate) -> ScraperLog:
    """Insert a log row reported by an external scraper process."""
    if payload.status not in VALID_STATUSES:
        raise ValueError(f"Invalid status '{payload.status}'. Must be one of {sorted(VALID_STATUSES)}")
    if payload.trigger not in VALID_TRIGGERS:
        raise ValueError(f"Invalid trigger '{payload.trigger}'. Must be one of {sorted(VALID_TRIGGERS)}")

    log = ScraperLog(
        status=payload.status,
        trigger=payload.trigger,
        companies_processed=payload.companies_processed,
        jobs_found=payload.jobs_found,
        jobs_added=payload.jobs_added,
        jobs_updated=payload.jobs_updated,
        jobs_skipped=payload.jobs_skipped,
        jobs_deactivated=payload.jobs_deactivated,
        errors=[e.model_dump() for e in payload.errors],
        started_at=payload.started_at or datetime.utcnow(),
        completed_at=payload.completed_at,
    )
    db.add(log)
    await db.commit()
    await db.refresh(log)
    return log


async def list_run_logs(
    db: AsyncSession,
    page: int = 1,
    limit: int = 20,
    status: Optional[str] = None
) -> tuple[list[ScraperLog], int]:
    """
    Page through run logs, newest first.

    Returns:
        (logs on this page, total matching rows)
    """
    query = select(ScraperLog)
    count_query = select(func.count()).select_from(ScraperLog)
    if status:
        query = query.where(ScraperLog.status == status)
        count_query = count_query.where(ScraperLog.status == status)

    total = (await db.execute(count_query)).scalar_one()

    result = await db.execute(
        query.order_by(ScraperLog.started_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total
