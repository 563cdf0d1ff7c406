"""
Jobs API endpoints.
Public listing of active internships.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from internship_sg.database import get_db
from internship_sg.models.company import Company
from internship_sg.models.job import Job
from internship_sg.schemas.job import JobListResponse, JobResponse, JobStats

# Configure logger
logger = logging.getLogger(__name__)

router = APIRouter()


def to_job_response(job: Job, company: Company) -> JobResponse:
    """Flatten a job and its company into the listing entry."""
    return JobResponse.model_validate(job).model_copy(update={
        "company_name": company.name,
        "company_logo_url": company.logo_url,
        "company_industry": company.industry,
    })


@router.get("", response_model=JobListResponse)
async def list_jobs(
    search: Optional[str] = Query(None, description="Matches title or description"),
    industry: Optional[str] = Query(None, description="Exact company industry"),
    db: AsyncSession = Depends(get_db)
):
    """
    Active jobs, newest first, with listing stats and the industry filter options.
    """
    query = (
        select(Job, Company)
        .join(Company, Job.company_id == Company.id)
        .where(Job.is_active.is_(True))
        .order_by(Job.created_at.desc(), Job.id.desc())
    )
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Job.title.ilike(pattern), Job.description.ilike(pattern)))
    if industry:
        query = query.where(Company.industry == industry)

    result = await db.execute(query)
    jobs = [to_job_response(job, company) for job, company in result.all()]

    active_jobs = (await db.execute(
        select(func.count()).select_from(Job).where(Job.is_active.is_(True))
    )).scalar_one()
    companies = (await db.execute(select(func.count()).select_from(Company))).scalar_one()

    result = await db.execute(
        select(Company.industry).where(Company.industry.is_not(None)).distinct()
    )
    industries = sorted(i for i in result.scalars().all() if i)

    logger.debug(f"Listed {len(jobs)} jobs (search={search!r}, industry={industry!r})")
    return JobListResponse(
        jobs=jobs,
        stats=JobStats(jobs=active_jobs, companies=companies),
        industries=industries,
    )
