"""
Aggregator feeds: Adzuna and Jooble keyword searches for Singapore internships.

Both are optional and skipped (with a log line) when their API keys are not
configured.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from internship_sg.services.normalizer import ScrapedJob, collapse_whitespace, extract_work_arrangement

logger = logging.getLogger(__name__)

ADZUNA_BASE = "https://api.adzuna.com/v1/api/jobs/sg/search"
JOOBLE_BASE = "https://jooble.org/api"

ADZUNA_KEYWORDS = ["intern", "internship", "trainee", "graduate"]
JOOBLE_KEYWORDS = ["internship", "intern", "trainee"]

# Feeds are keyword searches, so titles get a stricter check than careers pages
FEED_TITLE_KEYWORDS = ("intern", "trainee", "graduate")

RESULTS_PER_PAGE = 50


@dataclass
class FeedJob:
    """A feed posting with the company it names."""
    company_name: Optional[str]
    job: ScrapedJob
    source: str


def is_feed_internship(title: Optional[str]) -> bool:
    lowered = (title or "").lower()
    return any(keyword in lowered for keyword in FEED_TITLE_KEYWORDS)


def annual_to_monthly(value: Optional[float]) -> Optional[int]:
    if not value:
        return None
    return int(round(float(value) / 12))


def parse_salary_string(salary: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    """'SGD 1,000 - 1,500 per month' -> (1000, 1500); one number -> (n, None)."""
    if not salary:
        return None, None
    numbers = [int(n.replace(",", "")) for n in re.findall(r"\d[\d,]*", salary)]
    if len(numbers) >= 2:
        return min(numbers), max(numbers)
    if len(numbers) == 1:
        return numbers[0], None
    return None, None


def adzuna_to_feed_job(raw: Dict[str, Any]) -> Optional[FeedJob]:
    title = collapse_whitespace(raw.get("title"))
    url = raw.get("redirect_url") or raw.get("link")
    if not title or not url or not is_feed_internship(title):
        return None

    description = raw.get("description")
    return FeedJob(
        company_name=(raw.get("company") or {}).get("display_name"),
        source="adzuna",
        job=ScrapedJob(
            title=title,
            url=url,
            location=(raw.get("location") or {}).get("display_name"),
            description=description,
            salary_min=annual_to_monthly(raw.get("salary_min")),
            salary_max=annual_to_monthly(raw.get("salary_max")),
            work_arrangement=extract_work_arrangement(f"{title} {description or ''}"),
        ),
    )


def jooble_to_feed_job(raw: Dict[str, Any]) -> Optional[FeedJob]:
    title = collapse_whitespace(raw.get("title"))
    url = raw.get("link")
    if not title or not url or not is_feed_internship(title):
        return None

    salary_min, salary_max = parse_salary_string(raw.get("salary"))
    snippet = raw.get("snippet")
    return FeedJob(
        company_name=raw.get("company"),
        source="jooble",
        job=ScrapedJob(
            title=title,
            url=url,
            location=raw.get("location"),
            description=snippet,
            salary_min=salary_min,
            salary_max=salary_max,
            work_arrangement=extract_work_arrangement(f"{title} {snippet or ''}"),
        ),
    )


async def fetch_adzuna_jobs(
    session: aiohttp.ClientSession,
    app_id: str,
    app_key: str,
    pages: int = 3,
    delay_s: float = 1.0,
    base_url: str = ADZUNA_BASE,
    timeout_s: int = 30
) -> Tuple[List[FeedJob], List[str]]:
    """
    Search Adzuna Singapore for each keyword across `pages` pages.

    Returns:
        (internship postings de-duplicated by URL, error messages)
    """
    jobs: List[FeedJob] = []
    errors: List[str] = []
    seen_urls: set = set()
    timeout = aiohttp.ClientTimeout(total=timeout_s)

    for keyword in ADZUNA_KEYWORDS:
        for page in range(1, pages + 1):
            params = {
                "app_id": app_id,
                "app_key": app_key,
                "results_per_page": str(RESULTS_PER_PAGE),
                "what": keyword,
                "content-type": "application/json",
            }
            try:
                async with session.get(f"{base_url}/{page}", params=params, timeout=timeout) as resp:
                    if resp.status != 200:
                        errors.append(f"Adzuna API error: {resp.status}")
                        continue
                    data = await resp.json(content_type=None)
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                errors.append(f"Adzuna fetch error: {type(e).__name__}: {str(e)[:200]}")
                continue

            results = data.get("results") or []
            logger.info(f"Adzuna '{keyword}' page {page}: {len(results)} jobs")

            for raw in results:
                feed_job = adzuna_to_feed_job(raw)
                if feed_job and feed_job.job.url not in seen_urls:
                    seen_urls.add(feed_job.job.url)
                    jobs.append(feed_job)

            if not results:
                break  # no further pages for this keyword
            await asyncio.sleep(delay_s)

    return jobs, errors


async def fetch_jooble_jobs(
    session: aiohttp.ClientSession,
    api_key: str,
    pages: int = 3,
    delay_s: float = 1.0,
    base_url: str = JOOBLE_BASE,
    timeout_s: int = 30
) -> Tuple[List[FeedJob], List[str]]:
    """
    Search Jooble (location Singapore) for each keyword across `pages` pages.

    Returns:
        (internship postings de-duplicated by URL, error messages)
    """
    jobs: List[FeedJob] = []
    errors: List[str] = []
    seen_urls: set = set()
    timeout = aiohttp.ClientTimeout(total=timeout_s)

    for keyword in JOOBLE_KEYWORDS:
        for page in range(1, pages + 1):
            body = {
                "keywords": keyword,
                "location": "Singapore",
                "page": page,
                "ResultOnPage": RESULTS_PER_PAGE,
            }
            try:
                async with session.post(f"{base_url}/{api_key}", json=body, timeout=timeout) as resp:
                    if resp.status != 200:
                        errors.append(f"Jooble API error: {resp.status}")
                        continue
                    data = await resp.json(content_type=None)
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                errors.append(f"Jooble fetch error: {type(e).__name__}: {str(e)[:200]}")
                continue

            results = data.get("jobs") or []
            logger.info(f"Jooble '{keyword}' page {page}: {len(results)} jobs")

            for raw in results:
                feed_job = jooble_to_feed_job(raw)
                if feed_job and feed_job.job.url not in seen_urls:
                    seen_urls.add(feed_job.job.url)
                    jobs.append(feed_job)

            if not results:
                break
            await asyncio.sleep(delay_s)

    return jobs, errors
