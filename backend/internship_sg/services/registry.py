"""
Source registry helpers: seeding companies and slug allocation.
"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from internship_sg.models.company import Company
from internship_sg.services.normalizer import slugify

logger = logging.getLogger(__name__)

DEFAULT_COMPANIES_FILE = Path(__file__).resolve().parent.parent / "data" / "companies.json"


async def unique_slug(db: AsyncSession, model, base: str, fallback: str = "item") -> str:
    """
    Return base, or base-1, base-2, ... whichever is not yet taken in model.slug.
    """
    base = base or fallback
    result = await db.execute(
        select(model.slug).where((model.slug == base) | (model.slug.like(f"{base}-%")))
    )
    taken = set(result.scalars().all())

    if base not in taken:
        return base

    counter = 1
    while f"{base}-{counter}" in taken:
        counter += 1
    return f"{base}-{counter}"


async def find_company_by_name(db: AsyncSession, name: str) -> Optional[Company]:
    """Case-insensitive lookup by company name."""
    result = await db.execute(
        select(Company).where(func.lower(Company.name) == name.strip().lower())
    )
    return result.scalars().first()


async def get_or_create_company(
    db: AsyncSession,
    name: str,
    website: Optional[str] = None,
    careers_url: Optional[str] = None
) -> Optional[Company]:
    """
    Find a company by name or create it.

    Companies created this way (from aggregator feeds) are disabled: they
    have no curated careers page to scrape.
    """
    name = (name or "").strip()
    if not name:
        return None

    company = await find_company_by_name(db, name)
    if company:
        return company

    company = Company(
        name=name,
        slug=await unique_slug(db, Company, slugify(name), fallback="company"),
        website=website,
        careers_url=careers_url or website or "",
        industry="Various",
        is_enabled=False,
    )
    db.add(company)
    await db.flush()
    logger.info(f"Created company from feed: {name}")
    return company


async def seed_companies(db: AsyncSession, path: Optional[Union[str, Path]] = None) -> int:
    """
    Seed the companies table from a companies.json file.

    File format: {"companies": [{"name", "careers_url", "logo_url", "website",
    "industry", "size"}, ...]}. Existing companies (matched by name) are left
    untouched. Returns the number of companies created.
    """
    source = Path(path) if path else DEFAULT_COMPANIES_FILE
    with open(source, encoding="utf-8") as f:
        data = json.load(f)

    created = 0
    for entry in data.get("companies", []):
        name = (entry.get("name") or "").strip()
        careers_url = (entry.get("careers_url") or "").strip()
        if not name or not careers_url:
            logger.warning(f"Skipping seed entry without name/careers_url: {entry}")
            continue

        if await find_company_by_name(db, name):
            logger.debug(f"Company already exists: {name}")
            continue

        db.add(Company(
            name=name,
            slug=await unique_slug(db, Company, slugify(name), fallback="company"),
            logo_url=entry.get("logo_url") or None,
            website=entry.get("website") or None,
            careers_url=careers_url,
            industry=entry.get("industry") or None,
            size=entry.get("size") or None,
            is_enabled=entry.get("is_enabled", True) is not False,
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow(),
        ))
        await db.flush()
        created += 1
        logger.info(f"Seeded company: {name}")

    await db.commit()
    return created
