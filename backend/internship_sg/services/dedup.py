"""
Deduplicator: decides whether a normalized job is new, an update to a stored
job, or a duplicate to skip.

A job is identified by dedup_key = sha256(company_id | normalized title).
When the key misses, a job of the same company with the same application URL
and a near-identical title also counts as a match (renamed postings). Shared
apply links and the careers page fallback never match on URL alone.
"""
import enum
import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from rapidfuzz import fuzz
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from internship_sg.models.company import Company
from internship_sg.models.job import Job, WorkArrangement
from internship_sg.schemas.job import NormalizedJob
from internship_sg.services.normalizer import DEFAULT_DESCRIPTION, collapse_whitespace, slugify
from internship_sg.services.registry import unique_slug

logger = logging.getLogger(__name__)

# Minimum fuzz.ratio between titles for a same-URL match
TITLE_SIMILARITY_THRESHOLD = 85.0

# Fields a re-scrape may change on an existing job
UPDATABLE_FIELDS = (
    "location",
    "work_arrangement",
    "salary_min",
    "salary_max",
    "duration",
    "application_url",
    "description",
)


class DedupOutcome(str, enum.Enum):
    NEW = "new"
    UPDATE = "update"
    SKIP = "skip"


@dataclass
class DedupDecision:
    outcome: DedupOutcome
    key: str
    existing: Optional[Job] = None
    changed_fields: List[str] = field(default_factory=list)


def normalize_title(title: str) -> str:
    return collapse_whitespace(title).casefold()


def dedup_key(company_id, title: str) -> str:
    joined = f"{company_id}|{normalize_title(title)}"
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


def changed_fields(existing: Job, job: NormalizedJob) -> List[str]:
    """
    Fields whose scraped value differs from the stored one.

    Unknown scraped values (None, default description) never overwrite
    known stored values.
    """
    changed = []
    for name in UPDATABLE_FIELDS:
        new_value = getattr(job, name)
        if new_value is None:
            continue
        if name == "description" and new_value == DEFAULT_DESCRIPTION:
            continue
        if getattr(existing, name) != new_value:
            changed.append(name)
    return changed


async def find_existing(
    db: AsyncSession,
    company_id,
    job: NormalizedJob,
    careers_url: Optional[str] = None
) -> Optional[Job]:
    key = dedup_key(company_id, job.title)
    result = await db.execute(
        select(Job).where(and_(Job.company_id == company_id, Job.dedup_key == key))
    )
    existing = result.scalars().first()
    if existing or job.application_url == careers_url:
        return existing

    result = await db.execute(
        select(Job).where(
            and_(Job.company_id == company_id, Job.application_url == job.application_url)
        )
    )
    for candidate in result.scalars().all():
        if titles_match(candidate.title, job.title):
            return candidate
    return None


def titles_match(stored_title: str, scraped_title: str) -> bool:
    """True when two titles are the same posting, allowing small renames."""
    similarity = fuzz.ratio(normalize_title(stored_title), normalize_title(scraped_title))
    return similarity >= TITLE_SIMILARITY_THRESHOLD


async def classify(
    db: AsyncSession,
    company_id,
    job: NormalizedJob,
    careers_url: Optional[str] = None
) -> DedupDecision:
    """
    Classify a normalized job against stored jobs of the same company.

    - no match -> NEW
    - match that is inactive or has changed fields -> UPDATE
    - otherwise -> SKIP
    """
    key = dedup_key(company_id, job.title)
    existing = await find_existing(db, company_id, job, careers_url)

    if existing is None:
        return DedupDecision(outcome=DedupOutcome.NEW, key=key)

    changes = changed_fields(existing, job)
    if not existing.is_active or changes:
        return DedupDecision(
            outcome=DedupOutcome.UPDATE, key=key, existing=existing, changed_fields=changes
        )

    return DedupDecision(outcome=DedupOutcome.SKIP, key=key, existing=existing)


async def apply_decision(
    db: AsyncSession,
    company: Company,
    job: NormalizedJob,
    decision: DedupDecision,
    now: Optional[datetime] = None
) -> Job:
    """
    Persist a dedup decision (flush only, the caller commits).

    NEW inserts; UPDATE copies changed fields and reactivates; both UPDATE
    and SKIP count as a re-confirming scrape and touch last_seen_at.
    """
    now = now or datetime.utcnow()

    if decision.outcome == DedupOutcome.NEW:
        new_job = Job(
            company_id=company.id,
            title=job.title,
            slug=await unique_slug(db, Job, slugify(f"{job.title} at {company.name}"), fallback="job"),
            description=job.description,
            location=job.location,
            job_type="internship",
            work_arrangement=job.work_arrangement or WorkArrangement.ONSITE.value,
            salary_min=job.salary_min,
            salary_max=job.salary_max,
            duration=job.duration,
            application_url=job.application_url,
            source=job.source,
            dedup_key=decision.key,
            is_active=True,
            posted_at=now,
            last_seen_at=now,
        )
        db.add(new_job)
        await db.flush()
        logger.debug(f"Added job {new_job.slug}")
        return new_job

    existing = decision.existing
    if existing is None:
        raise ValueError(f"{decision.outcome.value} decision without a matched job")

    if decision.outcome == DedupOutcome.UPDATE:
        for name in decision.changed_fields:
            setattr(existing, name, getattr(job, name))
        if not existing.is_active:
            logger.info(f"Reactivated job {existing.id}: {existing.title}")
        existing.is_active = True
        logger.debug(f"Updated job {existing.id} fields={decision.changed_fields}")

    existing.last_seen_at = now
    await db.flush()
    return existing
