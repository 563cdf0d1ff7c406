"""
Scraper orchestrator: one run over every enabled company.

For each company: robots.txt check, fetch, parse, normalize, then dedup and
persist. Fetching and parsing run concurrently (bounded); database writes go
through a single lock because they share one session. One company's failure
is recorded on the run and never aborts it.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from internship_sg.config import Settings, settings
from internship_sg.models.company import Company
from internship_sg.models.scraper_log import ScraperLogStatus, ScraperTrigger
from internship_sg.schemas.scraper import ScrapeSummary
from internship_sg.services.dedup import DedupOutcome, apply_decision, classify
from internship_sg.services.feeds import FeedJob, fetch_adzuna_jobs, fetch_jooble_jobs
from internship_sg.services.fetcher import HttpFetcher, build_fetcher, greenhouse_board_token
from internship_sg.services.normalizer import (
    ScrapedJob,
    normalize_job,
    parse_careers_page,
    parse_greenhouse_jobs,
)
from internship_sg.services.registry import get_or_create_company
from internship_sg.services.robots import RobotsDisallowedError
from internship_sg.services.run_logger import (
    fail_abandoned_runs,
    finish_run_log,
    get_running_log,
    start_run_log,
)
from internship_sg.services.staleness import sweep_stale_jobs

logger = logging.getLogger(__name__)


class ScraperAlreadyRunningError(Exception):
    """Another run is still in progress."""
    pass


@dataclass(frozen=True)
class CompanyTarget:
    """What a worker needs to scrape one company, detached from the session."""
    id: UUID
    name: str
    careers_url: str


def _count(summary: ScrapeSummary, outcome: DedupOutcome) -> None:
    if outcome == DedupOutcome.NEW:
        summary.jobs_added += 1
    elif outcome == DedupOutcome.UPDATE:
        summary.jobs_updated += 1
    else:
        summary.jobs_skipped += 1


async def load_targets(db: AsyncSession, limit: Optional[int] = None) -> List[CompanyTarget]:
    """Enabled companies in alphabetical order."""
    query = select(Company).where(Company.is_enabled.is_(True)).order_by(Company.name)
    if limit:
        query = query.limit(limit)
    result = await db.execute(query)
    return [
        CompanyTarget(id=c.id, name=c.name, careers_url=c.careers_url)
        for c in result.scalars().all()
    ]


async def scrape_company(fetcher: HttpFetcher, target: CompanyTarget) -> List[ScrapedJob]:
    """
    Fetch and parse one company's postings.

    Raises:
        RobotsDisallowedError: robots.txt disallows the careers page
        FetchError: the page (or board API) could not be fetched
    """
    if not await fetcher.allowed(target.careers_url):
        raise RobotsDisallowedError(f"Blocked by robots.txt: {target.careers_url}")

    board_token = greenhouse_board_token(target.careers_url)
    if board_token:
        raw_jobs = await fetcher.fetch_greenhouse(board_token)
        return parse_greenhouse_jobs(raw_jobs)

    page_html = await fetcher.fetch(target.careers_url)
    return parse_careers_page(page_html, target.careers_url)


async def persist_company_jobs(
    db: AsyncSession,
    target: CompanyTarget,
    scraped_jobs: List[ScrapedJob],
    summary: ScrapeSummary
) -> None:
    """Normalize, dedup and store one company's postings, then commit."""
    company = await db.get(Company, target.id)
    if company is None:
        summary.add_error(target.name, "Company was removed during the run")
        return

    now = datetime.utcnow()
    found = 0
    for scraped in scraped_jobs:
        job = normalize_job(scraped, target.careers_url)
        if job is None:
            continue
        found += 1
        decision = await classify(db, company.id, job, careers_url=target.careers_url)
        await apply_decision(db, company, job, decision, now=now)
        _count(summary, decision.outcome)

    company.last_scraped_at = now
    company.last_jobs_found = found
    await db.commit()

    summary.jobs_found += found
    summary.companies_processed += 1
    logger.info(f"[{target.name}] {found} internships saved")


async def scrape_companies(
    db: AsyncSession,
    fetcher: HttpFetcher,
    targets: List[CompanyTarget],
    summary: ScrapeSummary,
    config: Settings
) -> None:
    semaphore = asyncio.Semaphore(max(1, config.scraper_max_concurrency))
    write_lock = asyncio.Lock()

    async def worker(target: CompanyTarget) -> None:
        async with semaphore:
            logger.info(f"Scraping {target.name}: {target.careers_url}")
            try:
                scraped_jobs = await asyncio.wait_for(
                    scrape_company(fetcher, target),
                    timeout=config.scraper_company_timeout_seconds,
                )
            except asyncio.TimeoutError:
                error = f"Timed out after {config.scraper_company_timeout_seconds}s"
                logger.warning(f"[{target.name}] {error}")
                summary.add_error(target.name, error)
                scraped_jobs = None
            except Exception as e:
                logger.warning(f"[{target.name}] {type(e).__name__}: {e}")
                summary.add_error(target.name, str(e) or type(e).__name__)
                scraped_jobs = None

            if scraped_jobs is not None:
                async with write_lock:
                    await persist_company_jobs(db, target, scraped_jobs, summary)

            # Be respectful to servers
            await asyncio.sleep(config.scraper_request_delay_seconds)

    tasks = [asyncio.create_task(worker(target)) for target in targets]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def persist_feed_jobs(db: AsyncSession, feed_jobs: List[FeedJob], summary: ScrapeSummary) -> None:
    """Attach feed postings to get-or-created companies and store them."""
    now = datetime.utcnow()
    for feed_job in feed_jobs:
        company = await get_or_create_company(
            db, feed_job.company_name or "", careers_url=feed_job.job.url
        )
        if company is None:
            continue

        job = normalize_job(feed_job.job, feed_job.job.url, source=feed_job.source)
        if job is None:
            continue

        summary.jobs_found += 1
        decision = await classify(db, company.id, job)
        await apply_decision(db, company, job, decision, now=now)
        _count(summary, decision.outcome)

    await db.commit()


async def run_feeds(
    db: AsyncSession,
    fetcher: HttpFetcher,
    summary: ScrapeSummary,
    config: Settings
) -> None:
    """Pull the Adzuna and Jooble feeds that have credentials configured."""
    if config.adzuna_app_id and config.adzuna_app_key:
        jobs, errors = await fetch_adzuna_jobs(
            fetcher.session, config.adzuna_app_id, config.adzuna_app_key, pages=config.feed_pages
        )
        for error in errors:
            summary.add_error("Adzuna", error)
        logger.info(f"Adzuna feed: {len(jobs)} internships")
        await persist_feed_jobs(db, jobs, summary)
    else:
        logger.info("Adzuna credentials not configured, skipping feed")

    if config.jooble_api_key:
        jobs, errors = await fetch_jooble_jobs(
            fetcher.session, config.jooble_api_key, pages=config.feed_pages
        )
        for error in errors:
            summary.add_error("Jooble", error)
        logger.info(f"Jooble feed: {len(jobs)} internships")
        await persist_feed_jobs(db, jobs, summary)
    else:
        logger.info("Jooble API key not configured, skipping feed")


def feeds_configured(config: Settings) -> bool:
    return bool((config.adzuna_app_id and config.adzuna_app_key) or config.jooble_api_key)


async def run_scraper(
    db: AsyncSession,
    *,
    trigger: ScraperTrigger = ScraperTrigger.MANUAL,
    fetcher: Optional[HttpFetcher] = None,
    limit: Optional[int] = None,
    include_feeds: Optional[bool] = None,
    config: Settings = settings
) -> ScrapeSummary:
    """
    Run the scraper once and record it in scraper_logs.

    Args:
        db: Database session
        trigger: What started the run (manual, cron, cli)
        fetcher: Fetch strategy, defaults to the configured one
        limit: Only scrape the first N enabled companies (test mode)
        include_feeds: Pull aggregator feeds; defaults to "when configured"
        config: Settings to run with

    Returns:
        Summary of the run

    Raises:
        ScraperAlreadyRunningError: another run is still in progress
    """
    await fail_abandoned_runs(db, config.scraper_stale_run_minutes)
    running = await get_running_log(db)
    if running is not None:
        raise ScraperAlreadyRunningError(
            f"Scraper run {running.id} in progress since {running.started_at}"
        )

    log = await start_run_log(db, trigger)
    summary = ScrapeSummary(log_id=log.id)
    started = time.monotonic()

    if include_feeds is None:
        include_feeds = feeds_configured(config)

    try:
        targets = await load_targets(db, limit)
        logger.info(f"Starting scraper for {len(targets)} companies")

        async with (fetcher or build_fetcher(config)) as active_fetcher:
            await scrape_companies(db, active_fetcher, targets, summary, config)
            if include_feeds:
                await run_feeds(db, active_fetcher, summary, config)

        summary.jobs_deactivated = await sweep_stale_jobs(db, config.job_staleness_days)
        await db.commit()

        summary.duration_seconds = time.monotonic() - started
        await finish_run_log(db, log, summary, ScraperLogStatus.COMPLETED)
    except Exception as e:
        logger.error(f"Scraper run {summary.log_id} failed: {e}", exc_info=True)
        await db.rollback()
        summary.add_error("*", f"{type(e).__name__}: {str(e)[:500]}")
        summary.duration_seconds = time.monotonic() - started
        await finish_run_log(db, log, summary, ScraperLogStatus.FAILED)
        raise

    logger.info(
        f"Scraper complete in {summary.duration_seconds:.1f}s: "
        f"{summary.jobs_found} found, {summary.jobs_added} new, {summary.jobs_updated} updated, "
        f"{summary.jobs_skipped} unchanged, {summary.jobs_deactivated} deactivated, "
        f"{len(summary.errors)} errors"
    )
    return summary
