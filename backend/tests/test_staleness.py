"""
Tests for the staleness sweep.
"""
import pytest
from datetime import datetime, timedelta
from sqlalchemy.ext.asyncio import AsyncSession

from internship_sg.models.company import Company
from internship_sg.models.job import Job, JobSource
from internship_sg.services.staleness import sweep_stale_jobs

NOW = datetime(2026, 6, 1, 6, 0, 0)


async def add_job(db: AsyncSession, company: Company, slug: str, **fields) -> Job:
    job = Job(
        company_id=company.id,
        title=slug.replace("-", " ").title(),
        slug=slug,
        application_url=f"https://acme.example/{slug}",
        dedup_key=slug,
        **fields,
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)
    return job


@pytest.mark.asyncio
async def test_sweep_deactivates_jobs_not_seen_within_window(db: AsyncSession, company: Company):
    stale = await add_job(db, company, "stale-intern", last_seen_at=NOW - timedelta(days=91))
    fresh = await add_job(db, company, "fresh-intern", last_seen_at=NOW - timedelta(days=89))

    count = await sweep_stale_jobs(db, max_age_days=90, now=NOW)
    await db.commit()

    assert count == 1
    await db.refresh(stale)
    await db.refresh(fresh)
    assert stale.is_active is False
    assert fresh.is_active is True


@pytest.mark.asyncio
async def test_sweep_falls_back_to_posted_at(db: AsyncSession, company: Company):
    never_seen = await add_job(db, company, "never-seen-intern", posted_at=NOW - timedelta(days=120))

    assert await sweep_stale_jobs(db, max_age_days=90, now=NOW) == 1
    await db.refresh(never_seen)
    assert never_seen.is_active is False


@pytest.mark.asyncio
async def test_sweep_keeps_employer_posted_jobs(db: AsyncSession, company: Company):
    employer_job = await add_job(
        db, company, "employer-intern",
        source=JobSource.EMPLOYER.value,
        posted_at=NOW - timedelta(days=365),
    )

    assert await sweep_stale_jobs(db, max_age_days=90, now=NOW) == 0
    await db.refresh(employer_job)
    assert employer_job.is_active is True


@pytest.mark.asyncio
async def test_sweep_ignores_already_inactive_jobs(db: AsyncSession, company: Company):
    await add_job(db, company, "old-intern", is_active=False, last_seen_at=NOW - timedelta(days=200))

    assert await sweep_stale_jobs(db, max_age_days=90, now=NOW) == 0


@pytest.mark.asyncio
async def test_sweep_rejects_non_positive_window(db: AsyncSession):
    with pytest.raises(ValueError):
        await sweep_stale_jobs(db, max_age_days=0)
