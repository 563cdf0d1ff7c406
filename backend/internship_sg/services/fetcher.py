"""
Fetcher: retrieves careers page content for the scraper.

Two strategies share one interface (allowed / fetch / fetch_greenhouse):
- HttpFetcher: plain aiohttp GET, the default
- BrowserFetcher: Playwright-rendered page for JavaScript-heavy careers sites
"""
import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

import aiohttp
from playwright.async_api import async_playwright, Error as PlaywrightError

from internship_sg.config import Settings
from internship_sg.services.robots import check_robots_body, fetch_robots_txt, robots_url_for

logger = logging.getLogger(__name__)

GREENHOUSE_BASE = "https://boards-api.greenhouse.io/v1/boards"
GREENHOUSE_BOARD_RE = re.compile(
    r"^https?://(?:job-)?boards(?:\.eu)?\.greenhouse\.io/(?:embed/job_board\?for=)?([A-Za-z0-9_-]+)",
    re.IGNORECASE,
)

# Worth a second attempt; any other non-2xx fails immediately
RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


class FetchError(Exception):
    """Raised when a careers page cannot be retrieved"""
    pass


def greenhouse_board_token(url: str) -> Optional[str]:
    """Return the board token if url points at a Greenhouse-hosted job board."""
    match = GREENHOUSE_BOARD_RE.match(url or "")
    return match.group(1) if match else None


async def fetch_careers_page(
    session: aiohttp.ClientSession,
    url: str,
    user_agent: str,
    timeout_s: int = 30,
    attempts: int = 2,
    backoff_s: float = 0.5
) -> str:
    """
    GET a careers page and return its HTML.

    Raises:
        FetchError: non-retryable status, or every attempt failed
    """
    headers = {"User-Agent": user_agent, "Accept": "text/html,application/xhtml+xml"}
    timeout = aiohttp.ClientTimeout(total=timeout_s)
    last_error = "no attempts made"

    for attempt in range(attempts):
        try:
            async with session.get(url, headers=headers, timeout=timeout) as resp:
                if 200 <= resp.status < 300:
                    body = await resp.text(errors="ignore")
                    logger.debug(f"[fetch] {url} status={resp.status} bytes={len(body)}")
                    return body
                if resp.status not in RETRYABLE_STATUSES:
                    raise FetchError(f"HTTP {resp.status} from {url}")
                last_error = f"HTTP {resp.status}"
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            last_error = f"{type(e).__name__}: {str(e)[:200]}"

        logger.warning(f"[fetch] {url} attempt {attempt + 1}/{attempts} failed: {last_error}")
        if attempt < attempts - 1:
            await asyncio.sleep(backoff_s * (attempt + 1))

    raise FetchError(f"Giving up on {url} after {attempts} attempts ({last_error})")


async def fetch_greenhouse_jobs(
    session: aiohttp.ClientSession,
    board_token: str,
    user_agent: str,
    timeout_s: int = 15,
    base_url: str = GREENHOUSE_BASE
) -> List[Dict[str, Any]]:
    """
    Fetch jobs from a Greenhouse board via its public JSON API.

    Raises:
        FetchError: non-200 status or unparseable body
    """
    url = f"{base_url}/{board_token}/jobs?content=true"
    headers = {"User-Agent": user_agent}
    timeout = aiohttp.ClientTimeout(total=timeout_s)

    try:
        async with session.get(url, headers=headers, timeout=timeout) as resp:
            if resp.status != 200:
                raise FetchError(f"Greenhouse board '{board_token}' returned HTTP {resp.status}")
            data = await resp.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        raise FetchError(f"Greenhouse board '{board_token}': {type(e).__name__}: {str(e)[:200]}") from e

    jobs = data.get("jobs", []) if isinstance(data, dict) else []
    logger.info(f"[greenhouse:{board_token}] jobs_count={len(jobs)}")
    return jobs if isinstance(jobs, list) else []


class HttpFetcher:
    """aiohttp-backed fetcher. Use as an async context manager."""

    def __init__(
        self,
        user_agent: str,
        timeout_s: int = 30,
        robots_timeout_s: int = 5,
        max_connections: int = 10
    ):
        self.user_agent = user_agent
        self.timeout_s = timeout_s
        self.robots_timeout_s = robots_timeout_s
        self.max_connections = max_connections
        self._session: Optional[aiohttp.ClientSession] = None
        # robots.txt URL -> body (None when there is nothing to obey), per run
        self._robots_cache: Dict[str, Optional[str]] = {}

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("Fetcher used outside of 'async with'")
        return self._session

    async def __aenter__(self) -> "HttpFetcher":
        connector = aiohttp.TCPConnector(limit=self.max_connections)
        self._session = aiohttp.ClientSession(connector=connector)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def allowed(self, url: str) -> bool:
        """robots.txt check; each host's robots.txt is fetched once per fetcher."""
        robots_url = robots_url_for(url)
        if robots_url not in self._robots_cache:
            self._robots_cache[robots_url] = await fetch_robots_txt(
                self.session, robots_url, user_agent=self.user_agent, timeout_s=self.robots_timeout_s
            )
        return check_robots_body(self._robots_cache[robots_url], url)

    async def fetch(self, url: str) -> str:
        return await fetch_careers_page(
            self.session, url, user_agent=self.user_agent, timeout_s=self.timeout_s
        )

    async def fetch_greenhouse(self, board_token: str) -> List[Dict[str, Any]]:
        return await fetch_greenhouse_jobs(self.session, board_token, user_agent=self.user_agent)


class BrowserFetcher(HttpFetcher):
    """
    Renders careers pages in headless Chromium before handing back the HTML.

    robots.txt and Greenhouse API calls still go through aiohttp.
    """

    def __init__(self, *args, settle_ms: int = 2000, **kwargs):
        super().__init__(*args, **kwargs)
        self.settle_ms = settle_ms
        self._playwright = None
        self._browser = None

    async def __aenter__(self) -> "BrowserFetcher":
        await super().__aenter__()
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=True,
            args=["--no-sandbox", "--disable-setuid-sandbox"]
        )
        logger.info("Headless browser launched for careers page rendering")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        await super().__aexit__(exc_type, exc, tb)

    async def fetch(self, url: str) -> str:
        if self._browser is None:
            raise RuntimeError("Fetcher used outside of 'async with'")

        page = await self._browser.new_page(user_agent=self.user_agent)
        try:
            await page.goto(url, wait_until="networkidle", timeout=self.timeout_s * 1000)
            # Let client-side rendering settle
            await page.wait_for_timeout(self.settle_ms)
            return await page.content()
        except PlaywrightError as e:
            raise FetchError(f"Browser fetch of {url} failed: {str(e)[:200]}") from e
        finally:
            await page.close()


def build_fetcher(config: Settings) -> HttpFetcher:
    """Pick the fetch strategy configured by SCRAPER_USE_BROWSER."""
    fetcher_cls = BrowserFetcher if config.scraper_use_browser else HttpFetcher
    return fetcher_cls(
        user_agent=config.scraper_user_agent,
        timeout_s=config.scraper_page_timeout_seconds,
        robots_timeout_s=config.scraper_robots_timeout_seconds,
        max_connections=max(2, config.scraper_max_concurrency * 2),
    )
