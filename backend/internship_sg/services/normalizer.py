"""
Normalizer: turns heterogeneous careers page content into canonical job records.

Two stages:
1. Extraction (parse_careers_page / parse_greenhouse_jobs) pulls ScrapedJob
   candidates out of HTML or the Greenhouse JSON API.
2. normalize_job() cleans a candidate into a NormalizedJob: PDPA
   sanitization, defaults, URL validation.
"""
import html
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from internship_sg.schemas.job import NormalizedJob
from internship_sg.services.privacy import contains_personal_data, strip_personal_data

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "See job posting for full details."
DEFAULT_LOCATION = "Singapore"

INTERNSHIP_KEYWORDS = ("intern", "trainee", "graduate", "student", "apprentice")

MIN_TITLE_LENGTH = 5
MAX_TITLE_LENGTH = 200

# Generic selectors, most specific first
GENERIC_LINK_SELECTORS = [
    'a[href*="intern" i]',
    'a[href*="job" i]',
    'a[href*="position" i]',
    'a[href*="career" i]',
    '[class*="job"] a',
    '[class*="position"] a',
    '[class*="opening"] a',
    '[class*="listing"] a',
    '[class*="vacancy"] a',
    '.job-title a',
    '.position-title a',
    'h2 a', 'h3 a', 'h4 a',
]

CONTEXT_CLASS_HINTS = ("job", "position", "listing")
CONTEXT_TAGS = ("article", "li")

SKIPPED_HREF_PREFIXES = ("mailto:", "tel:", "javascript:", "#")


@dataclass
class ScrapedJob:
    """Raw job candidate as found on a careers page."""
    title: str
    url: str
    location: Optional[str] = None
    description: Optional[str] = None
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    work_arrangement: Optional[str] = None
    duration: Optional[str] = None


@dataclass(frozen=True)
class PlatformSelectors:
    """CSS selectors for an applicant tracking system's job cards."""
    card: str
    title: str
    location: Optional[str]
    link: str = "a"


PLATFORM_SELECTORS: Dict[str, PlatformSelectors] = {
    "greenhouse": PlatformSelectors(
        card='.opening, [class*="job-post"]',
        title="a",
        location=".location",
    ),
    "lever": PlatformSelectors(
        card=".posting",
        title='h5, [data-qa="posting-name"]',
        location='[class*="location"], .workplaceTypes',
    ),
    "workday": PlatformSelectors(
        card='[data-automation-id="jobItem"], li[class*="job"]',
        title='[data-automation-id="jobTitle"], h3',
        location='[data-automation-id="locationText"]',
    ),
}


# ============================================================
# TEXT HELPERS
# ============================================================

def collapse_whitespace(text: Optional[str]) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def slugify(text: str, max_length: int = 100) -> str:
    """URL-friendly slug: lowercase, non-alphanumerics collapsed to '-'."""
    slug = re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")
    return slug[:max_length].rstrip("-")


def is_internship_title(title: Optional[str]) -> bool:
    lowered = (title or "").lower()
    return any(keyword in lowered for keyword in INTERNSHIP_KEYWORDS)


_SALARY_K_RANGE = re.compile(
    r"(?:S?\$|SGD)?\s*(?<![\d,.])(\d+(?:\.\d+)?)\s*k?\s*(?:-|–|to)\s*(?:S?\$|SGD)?\s*(\d+(?:\.\d+)?)\s*k\b",
    re.IGNORECASE,
)
_SALARY_CURRENCY_RANGE = re.compile(
    r"(?:S?\$|SGD)\s*(\d[\d,]*(?:\.\d+)?)\s*(?:-|–|to)\s*(?:S?\$|SGD)?\s*(\d[\d,]*(?:\.\d+)?)",
    re.IGNORECASE,
)
_SALARY_BARE_RANGE = re.compile(
    r"\b(\d{1,3}(?:,\d{3})+|\d{3,5})\s*(?:-|–|to)\s*(\d{1,3}(?:,\d{3})+|\d{3,5})\b",
    re.IGNORECASE,
)
_SALARY_SINGLE = re.compile(r"(?:S?\$|SGD)\s*(\d[\d,]*(?:\.\d+)?)(\s*k\b)?", re.IGNORECASE)


def _to_number(raw: str) -> float:
    return float(raw.replace(",", ""))


def _looks_like_years(low: float, high: float) -> bool:
    return 1900 <= low <= 2100 and 1900 <= high <= 2100


def extract_salary(text: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    """
    Pull a monthly salary range out of free text.

    Handles "$1,000 - $2,000", "1.5k-2k" (a trailing k applies to both ends,
    so "$1.5 - 2k" is 1500-2000), "SGD 800 to 1200" and a single
    currency amount ("S$1,200 / month", returned as (1200, None)).
    Returns (None, None) when nothing salary-like is found.
    """
    if not text:
        return None, None

    match = _SALARY_K_RANGE.search(text)
    if match:
        low, high = _to_number(match.group(1)), _to_number(match.group(2))
        low = low * 1000 if low < 100 else low
        high = high * 1000 if high < 100 else high
        return _ordered(low, high)

    match = _SALARY_CURRENCY_RANGE.search(text)
    if match:
        return _ordered(_to_number(match.group(1)), _to_number(match.group(2)))

    match = _SALARY_BARE_RANGE.search(text)
    if match:
        low, high = _to_number(match.group(1)), _to_number(match.group(2))
        if not _looks_like_years(low, high):
            return _ordered(low, high)

    match = _SALARY_SINGLE.search(text)
    if match:
        amount = _to_number(match.group(1))
        if match.group(2) and amount < 100:
            amount *= 1000
        if amount > 0:
            return int(round(amount)), None

    return None, None


def _ordered(low: float, high: float) -> Tuple[int, int]:
    low_i, high_i = int(round(low)), int(round(high))
    return (low_i, high_i) if low_i <= high_i else (high_i, low_i)


_REMOTE_RE = re.compile(r"\b(remote|work from home|wfh)\b", re.IGNORECASE)
_HYBRID_RE = re.compile(r"\bhybrid\b", re.IGNORECASE)
_ONSITE_RE = re.compile(r"\b(on-site|onsite|on site|in office|office)\b", re.IGNORECASE)


def extract_work_arrangement(text: Optional[str]) -> Optional[str]:
    """remote / hybrid / onsite, or None if the text does not say."""
    if not text:
        return None
    # Checked first: "hybrid (2 days remote)" is hybrid
    if _HYBRID_RE.search(text):
        return "hybrid"
    if _REMOTE_RE.search(text):
        return "remote"
    if _ONSITE_RE.search(text):
        return "onsite"
    return None


_DURATION_RE = re.compile(
    r"\b(\d{1,2})(?:\s*(?:-|–|to)\s*(\d{1,2}))?[\s-]*(month|week)s?\b",
    re.IGNORECASE,
)


def extract_duration(text: Optional[str]) -> Optional[str]:
    """'6-month internship' -> '6 months', '3 to 6 months' -> '3-6 months'."""
    if not text:
        return None
    match = _DURATION_RE.search(text)
    if not match:
        return None

    low, high, unit = match.group(1), match.group(2), match.group(3).lower()
    amount = f"{int(low)}-{int(high)}" if high else str(int(low))
    plural = "s" if high or int(low) != 1 else ""
    return f"{amount} {unit}{plural}"


def html_to_text(markup: Optional[str]) -> str:
    """Strip tags from an HTML fragment (Greenhouse content is entity-escaped HTML)."""
    if not markup:
        return ""
    soup = BeautifulSoup(html.unescape(markup), "lxml")
    return collapse_whitespace(soup.get_text(" "))


def is_valid_http_url(url: Optional[str]) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def absolute_url(href: str, base_url: str) -> str:
    return urljoin(base_url, href.strip())


# ============================================================
# EXTRACTION
# ============================================================

def detect_platform(careers_url: str, soup: Optional[BeautifulSoup] = None) -> Optional[str]:
    """Identify the applicant tracking system behind a careers page."""
    host = (urlparse(careers_url).netloc or "").lower()
    if "greenhouse.io" in host:
        return "greenhouse"
    if "lever.co" in host:
        return "lever"
    if "myworkdayjobs.com" in host or "workday" in host:
        return "workday"

    if soup is not None:
        if soup.select_one('[data-automation-id="jobItem"]'):
            return "workday"
        if soup.select_one(".posting .posting-title, .postings-group .posting"):
            return "lever"
        if soup.select_one("#grnhse_app, .opening a[href*='greenhouse']"):
            return "greenhouse"
    return None


def _context_container(element: Tag) -> Optional[Tag]:
    """Nearest enclosing job card (the element itself included)."""
    node: Optional[Tag] = element
    while node is not None and isinstance(node, Tag):
        if node.name in CONTEXT_TAGS:
            return node
        classes = " ".join(node.get("class") or []).lower()
        if any(hint in classes for hint in CONTEXT_CLASS_HINTS):
            return node
        node = node.parent
    return None


def _candidate_from_link(
    link: Tag,
    title: str,
    careers_url: str,
    location: Optional[str] = None,
    context: Optional[Tag] = None
) -> Optional[ScrapedJob]:
    href = (link.get("href") or "").strip()
    if not href or href.lower().startswith(SKIPPED_HREF_PREFIXES):
        return None

    container = context if context is not None else _context_container(link)
    context_text = collapse_whitespace(container.get_text(" ")) if container is not None else ""
    salary_min, salary_max = extract_salary(context_text)

    return ScrapedJob(
        title=title,
        url=absolute_url(href, careers_url),
        location=location,
        salary_min=salary_min,
        salary_max=salary_max,
        work_arrangement=extract_work_arrangement(context_text),
        duration=extract_duration(context_text),
    )


def _accept_title(title: str, seen: set) -> bool:
    if not is_internship_title(title):
        return False
    if not MIN_TITLE_LENGTH <= len(title) <= MAX_TITLE_LENGTH:
        return False
    key = title.lower()
    if key in seen:
        return False
    seen.add(key)
    return True


def _parse_platform_cards(
    soup: BeautifulSoup,
    selectors: PlatformSelectors,
    careers_url: str
) -> List[ScrapedJob]:
    jobs: List[ScrapedJob] = []
    seen: set = set()

    for card in soup.select(selectors.card):
        title_el = card.select_one(selectors.title)
        link = card if card.name == "a" else card.select_one(selectors.link)
        if title_el is None or link is None:
            continue

        title = collapse_whitespace(title_el.get_text(" "))
        if not _accept_title(title, seen):
            continue

        location = None
        if selectors.location:
            location_el = card.select_one(selectors.location)
            if location_el is not None:
                location = collapse_whitespace(location_el.get_text(" ")) or None

        job = _candidate_from_link(link, title, careers_url, location=location, context=card)
        if job:
            jobs.append(job)

    return jobs


def _parse_generic(soup: BeautifulSoup, careers_url: str) -> List[ScrapedJob]:
    jobs: List[ScrapedJob] = []
    seen: set = set()

    for selector in GENERIC_LINK_SELECTORS:
        for link in soup.select(selector):
            href = (link.get("href") or "").strip()
            if not href or href.lower().startswith(SKIPPED_HREF_PREFIXES):
                continue
            title = collapse_whitespace(link.get_text(" "))
            if not _accept_title(title, seen):
                continue
            job = _candidate_from_link(link, title, careers_url)
            if job:
                jobs.append(job)

    return jobs


def parse_careers_page(page_html: str, careers_url: str) -> List[ScrapedJob]:
    """
    Extract internship candidates from a careers page.

    Uses the ATS card layout when the platform is recognised and yields
    results, otherwise the generic link heuristics.
    """
    soup = BeautifulSoup(page_html or "", "lxml")
    platform = detect_platform(careers_url, soup)

    if platform:
        jobs = _parse_platform_cards(soup, PLATFORM_SELECTORS[platform], careers_url)
        if jobs:
            logger.debug(f"Parsed {len(jobs)} jobs from {careers_url} using {platform} layout")
            return jobs

    jobs = _parse_generic(soup, careers_url)
    logger.debug(f"Parsed {len(jobs)} jobs from {careers_url} using generic selectors")
    return jobs


def parse_greenhouse_jobs(raw_jobs: List[Dict[str, Any]]) -> List[ScrapedJob]:
    """Map Greenhouse board API jobs to candidates, keeping internships only."""
    jobs: List[ScrapedJob] = []
    seen: set = set()

    for raw_job in raw_jobs:
        title = collapse_whitespace(raw_job.get("title"))
        url = raw_job.get("absolute_url")
        if not title or not url:
            continue  # skip malformed jobs
        if not _accept_title(title, seen):
            continue

        description = html_to_text(raw_job.get("content")) or None
        location = collapse_whitespace((raw_job.get("location") or {}).get("name")) or None
        context_text = " ".join(filter(None, [title, location, description]))
        salary_min, salary_max = extract_salary(description)

        jobs.append(ScrapedJob(
            title=title,
            url=url,
            location=location,
            description=description,
            salary_min=salary_min,
            salary_max=salary_max,
            work_arrangement=extract_work_arrangement(context_text),
            duration=extract_duration(context_text),
        ))

    return jobs


# ============================================================
# NORMALIZATION
# ============================================================

def normalize_job(
    scraped: ScrapedJob,
    careers_url: str,
    source: str = "scraped",
    sanitize: Callable[[Optional[str]], Optional[str]] = strip_personal_data
) -> Optional[NormalizedJob]:
    """
    Clean a candidate into a NormalizedJob.

    Returns None if nothing usable is left of the title.
    """
    raw_title = collapse_whitespace(scraped.title)
    title = sanitize(raw_title)
    if not title:
        return None

    raw_description = scraped.description or DEFAULT_DESCRIPTION
    raw_location = collapse_whitespace(scraped.location) or DEFAULT_LOCATION

    if any(contains_personal_data(t) for t in (raw_title, raw_description, raw_location)):
        logger.debug(f"PDPA: personal data redacted from '{title}'")

    application_url = scraped.url if is_valid_http_url(scraped.url) else careers_url

    salary_min, salary_max = scraped.salary_min, scraped.salary_max
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        salary_min, salary_max = salary_max, salary_min

    return NormalizedJob(
        title=title,
        description=sanitize(raw_description) or DEFAULT_DESCRIPTION,
        location=sanitize(raw_location) or DEFAULT_LOCATION,
        work_arrangement=scraped.work_arrangement,
        salary_min=salary_min,
        salary_max=salary_max,
        duration=scraped.duration,
        application_url=application_url,
        source=source,
    )
