"""
Admin API endpoints.
Manage scraper companies, inspect scraper runs, clear jobs and read stats.
"""
import logging
import math
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from internship_sg.api.deps import require_admin
from internship_sg.database import get_db
from internship_sg.models.company import Company
from internship_sg.models.job import Job
from internship_sg.models.scraper_log import ScraperLog
from internship_sg.schemas.company import (
    CompanyCreate,
    CompanyEnvelope,
    CompanyListResponse,
    CompanyUpdate,
)
from internship_sg.schemas.job import AdminStats, AdminStatsResponse, ClearJobsResponse
from internship_sg.schemas.scraper import (
    Pagination,
    ScraperLogCreate,
    ScraperLogEnvelope,
    ScraperLogListResponse,
)
from internship_sg.services.normalizer import slugify
from internship_sg.services.registry import find_company_by_name, unique_slug
from internship_sg.services.run_logger import create_run_log, list_run_logs

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


async def get_company_or_404(company_id: UUID, db: AsyncSession) -> Company:
    company = await db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


# ============================================================
# COMPANIES
# ============================================================

@router.get("/companies", response_model=CompanyListResponse)
async def list_companies(
    search: Optional[str] = Query(None),
    enabled: Optional[str] = Query(None, description="'true' or 'false'"),
    db: AsyncSession = Depends(get_db)
):
    """List scraper companies by name, optionally filtered by name/industry and enabled flag."""
    query = select(Company).order_by(Company.name)

    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Company.name.ilike(pattern), Company.industry.ilike(pattern)))

    if enabled == "true":
        query = query.where(Company.is_enabled.is_(True))
    elif enabled == "false":
        query = query.where(Company.is_enabled.is_(False))

    result = await db.execute(query)
    return CompanyListResponse(companies=result.scalars().all())


@router.post("/companies", response_model=CompanyEnvelope, status_code=201)
async def create_company(
    request: CompanyCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Add a company to the scraper.

    Returns:
        201: Company created
        400: Name or careers URL missing
        409: A company with this name already exists
    """
    name = (request.name or "").strip()
    careers_url = (request.careers_url or "").strip()
    if not name or not careers_url:
        raise HTTPException(status_code=400, detail="Name and careers URL are required")

    if await find_company_by_name(db, name):
        raise HTTPException(status_code=409, detail="A company with this name already exists")

    company = Company(
        name=name,
        slug=await unique_slug(db, Company, slugify(name), fallback="company"),
        careers_url=careers_url,
        logo_url=request.logo_url or None,
        website=request.website or None,
        industry=request.industry or None,
        size=request.size or None,
        is_enabled=request.is_enabled,
    )
    db.add(company)
    await db.commit()
    await db.refresh(company)

    logger.info(f"Created scraper company {company.id}: {company.name}")
    return CompanyEnvelope(company=company)


@router.get("/companies/{company_id}", response_model=CompanyEnvelope)
async def get_company(
    company_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    company = await get_company_or_404(company_id, db)
    return CompanyEnvelope(company=company)


@router.patch("/companies/{company_id}", response_model=CompanyEnvelope)
async def update_company(
    company_id: UUID,
    request: CompanyUpdate,
    db: AsyncSession = Depends(get_db)
):
    """
    Update only the fields present in the request body.

    Returns:
        200: Updated company
        400: No fields to update
        404: Company not found
        409: Renamed to an existing company's name
    """
    updates = request.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    company = await get_company_or_404(company_id, db)

    if "name" in updates:
        name = (updates["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Name cannot be empty")
        other = await find_company_by_name(db, name)
        if other is not None and other.id != company.id:
            raise HTTPException(status_code=409, detail="A company with this name already exists")
        updates["name"] = name

    if "careers_url" in updates and not (updates["careers_url"] or "").strip():
        raise HTTPException(status_code=400, detail="Careers URL cannot be empty")

    if "is_enabled" in updates and updates["is_enabled"] is None:
        del updates["is_enabled"]

    for field, value in updates.items():
        setattr(company, field, value)
    company.updated_at = datetime.utcnow()

    await db.commit()
    await db.refresh(company)

    logger.info(f"Updated scraper company {company.id}: {sorted(updates)}")
    return CompanyEnvelope(company=company)


@router.delete("/companies/{company_id}")
async def delete_company(
    company_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    """Delete a company and its jobs."""
    company = await get_company_or_404(company_id, db)

    await db.execute(delete(Job).where(Job.company_id == company.id))
    await db.delete(company)
    await db.commit()

    logger.info(f"Deleted scraper company {company_id}")
    return {"success": True}


# ============================================================
# SCRAPER LOGS
# ============================================================

@router.get("/scraper-logs", response_model=ScraperLogListResponse)
async def get_scraper_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Scraper run history, newest first."""
    logs, total = await list_run_logs(db, page=page, limit=limit, status=status)
    return ScraperLogListResponse(
        logs=logs,
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )


@router.post("/scraper-logs", response_model=ScraperLogEnvelope, status_code=201)
async def post_scraper_log(
    request: ScraperLogCreate,
    db: AsyncSession = Depends(get_db)
):
    """Record a run reported by an external scraper process."""
    try:
        log = await create_run_log(db, request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ScraperLogEnvelope(log=log)


# ============================================================
# JOBS
# ============================================================

@router.delete("/jobs/clear", response_model=ClearJobsResponse)
async def clear_jobs(db: AsyncSession = Depends(get_db)):
    """Delete every job (companies are kept)."""
    before = (await db.execute(select(func.count()).select_from(Job))).scalar_one()

    await db.execute(delete(Job))
    await db.commit()

    after = (await db.execute(select(func.count()).select_from(Job))).scalar_one()

    logger.warning(f"Cleared jobs table: {before} -> {after}")
    return ClearJobsResponse(
        message=f"Deleted {before - after} jobs",
        before=before,
        after=after,
    )


# ============================================================
# STATS
# ============================================================

@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(db: AsyncSession = Depends(get_db)):
    now = datetime.utcnow()
    start_of_month = datetime(now.year, now.month, 1)

    async def count(query) -> int:
        return (await db.execute(query)).scalar_one()

    total_jobs = await count(select(func.count()).select_from(Job))
    active_jobs = await count(select(func.count()).select_from(Job).where(Job.is_active.is_(True)))
    total_companies = await count(select(func.count()).select_from(Company))
    enabled_companies = await count(
        select(func.count()).select_from(Company).where(Company.is_enabled.is_(True))
    )
    jobs_this_month = await count(
        select(func.count()).select_from(Job).where(Job.created_at >= start_of_month)
    )

    result = await db.execute(
        select(ScraperLog).order_by(ScraperLog.started_at.desc()).limit(1)
    )
    last_run = result.scalar_one_or_none()

    return AdminStatsResponse(stats=AdminStats(
        total_jobs=total_jobs,
        active_jobs=active_jobs,
        total_companies=total_companies,
        enabled_companies=enabled_companies,
        jobs_this_month=jobs_this_month,
        last_run_at=last_run.started_at if last_run else None,
        last_run_status=last_run.status if last_run else None,
    ))
