"""
Worker entrypoint for the scraper.

    python -m internship_sg.worker              # full run
    python -m internship_sg.worker --test       # first 3 companies
    python -m internship_sg.worker --seed       # seed companies.json, then run
    python -m internship_sg.worker --sweep-only # only deactivate stale jobs
    python -m internship_sg.worker --schedule   # run daily at SCHEDULE_HOUR
"""
import argparse
import asyncio
import logging
import sys

from internship_sg import database
from internship_sg.config import settings
from internship_sg.models.scraper_log import ScraperTrigger
from internship_sg.scheduler import run_forever
from internship_sg.services.registry import seed_companies
from internship_sg.services.scraper import ScraperAlreadyRunningError, run_scraper
from internship_sg.services.staleness import sweep_stale_jobs

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

TEST_MODE_COMPANIES = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="internship.sg careers page scraper")
    parser.add_argument("--test", action="store_true",
                        help=f"only scrape the first {TEST_MODE_COMPANIES} companies")
    parser.add_argument("--seed", nargs="?", const="", default=None, metavar="PATH",
                        help="seed companies from a companies.json (bundled file if no PATH)")
    parser.add_argument("--sweep-only", action="store_true",
                        help="only mark stale jobs inactive")
    parser.add_argument("--schedule", action="store_true",
                        help="stay running and scrape daily")
    parser.add_argument("--no-feeds", action="store_true",
                        help="skip the Adzuna/Jooble feeds")
    parser.add_argument("--init-db", action="store_true",
                        help="create tables before running (SQLite/dev)")
    return parser


async def run_command(args: argparse.Namespace) -> int:
    if args.init_db:
        await database.init_db()

    async with database.AsyncSessionLocal() as db:
        if args.seed is not None:
            created = await seed_companies(db, args.seed or settings.companies_file)
            logger.info(f"Seeded {created} companies")

        if args.sweep_only:
            deactivated = await sweep_stale_jobs(db, settings.job_staleness_days)
            await db.commit()
            logger.info(f"Deactivated {deactivated} stale jobs")
            return 0

    if args.schedule:
        await run_forever(settings, include_feeds=False if args.no_feeds else None)
        return 0

    async with database.AsyncSessionLocal() as db:
        try:
            summary = await run_scraper(
                db,
                trigger=ScraperTrigger.CLI,
                limit=TEST_MODE_COMPANIES if args.test else None,
                include_feeds=False if args.no_feeds else None,
            )
        except ScraperAlreadyRunningError as e:
            logger.error(str(e))
            return 1

    for error in summary.errors:
        logger.warning(f"  {error.company}: {error.error}")
    return 0


async def worker_main(args: argparse.Namespace) -> int:
    try:
        return await run_command(args)
    finally:
        await database.engine.dispose()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(worker_main(args))


if __name__ == "__main__":
    sys.exit(main())
