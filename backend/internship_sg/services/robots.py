"""
robots.txt checks run before every careers page fetch.
"""
import logging
from typing import Optional
from urllib.parse import urlparse

import aiohttp

logger = logging.getLogger(__name__)


class RobotsDisallowedError(Exception):
    """Raised when robots.txt forbids scraping a careers page"""
    pass


def robots_url_for(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}/robots.txt"


def is_path_allowed(robots_txt: str, url: str) -> bool:
    """
    Decide whether url may be fetched under the given robots.txt body.

    A User-agent group applies to us when its agent is '*' or contains 'bot'.
    Inside an applying group, 'Disallow: /' or a Disallow prefix of the URL
    path denies. Empty Disallow lines allow everything.
    """
    path = (urlparse(url).path or "/").lower()
    applies = False

    for raw_line in robots_txt.splitlines():
        line = raw_line.split("#", 1)[0].strip().lower()
        if not line:
            continue

        if line.startswith("user-agent:"):
            agent = line[len("user-agent:"):].strip()
            applies = agent == "*" or "bot" in agent
        elif applies and line.startswith("disallow:"):
            rule = line[len("disallow:"):].strip()
            if not rule:
                continue
            if rule == "/" or path.startswith(rule):
                return False

    return True


async def fetch_robots_txt(
    session: aiohttp.ClientSession,
    robots_url: str,
    user_agent: Optional[str] = None,
    timeout_s: int = 5
) -> Optional[str]:
    """
    Fetch a robots.txt body.

    Returns None when there is nothing to obey: a missing robots.txt
    (non-200) or any network error.
    """
    headers = {"User-Agent": user_agent} if user_agent else None
    try:
        timeout = aiohttp.ClientTimeout(total=timeout_s)
        async with session.get(robots_url, headers=headers, timeout=timeout) as resp:
            if resp.status != 200:
                logger.debug(f"[robots] {robots_url} status={resp.status}, treating as allowed")
                return None
            return await resp.text(errors="ignore")
    except Exception as e:
        logger.debug(f"[robots] {robots_url} unreachable ({type(e).__name__}), treating as allowed")
        return None


def check_robots_body(body: Optional[str], url: str) -> bool:
    """Evaluate url against a fetched robots.txt body (None allows everything)."""
    if body is None:
        return True
    allowed = is_path_allowed(body, url)
    if not allowed:
        logger.info(f"[robots] {url} disallowed by {robots_url_for(url)}")
    return allowed


async def check_robots_txt(
    session: aiohttp.ClientSession,
    url: str,
    user_agent: Optional[str] = None,
    timeout_s: int = 5
) -> bool:
    """
    Fetch robots.txt for the host of url and check it.

    A missing robots.txt (non-200) or any network error counts as allowed.
    """
    body = await fetch_robots_txt(session, robots_url_for(url), user_agent, timeout_s)
    return check_robots_body(body, url)
