"""
Tests for company seeding and slug allocation.
"""
import json

import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from internship_sg.models.company import Company
from internship_sg.services.registry import (
    DEFAULT_COMPANIES_FILE,
    find_company_by_name,
    get_or_create_company,
    seed_companies,
    unique_slug,
)


@pytest.mark.asyncio
async def test_seed_bundled_companies_is_idempotent(db: AsyncSession):
    with open(DEFAULT_COMPANIES_FILE, encoding="utf-8") as f:
        expected = len(json.load(f)["companies"])

    assert await seed_companies(db) == expected
    assert await seed_companies(db) == 0

    count = (await db.execute(select(func.count()).select_from(Company))).scalar_one()
    assert count == expected


@pytest.mark.asyncio
async def test_seed_from_file_skips_incomplete_entries(db: AsyncSession, tmp_path):
    path = tmp_path / "companies.json"
    path.write_text(json.dumps({"companies": [
        {"name": "Lion Analytics", "careers_url": "https://lion.example/careers", "industry": "Data"},
        {"name": "No Careers Page"},
        {"careers_url": "https://nameless.example/jobs"},
        {"name": "Paused Co", "careers_url": "https://paused.example/jobs", "is_enabled": False},
    ]}))

    assert await seed_companies(db, path) == 2

    lion = await find_company_by_name(db, "LION ANALYTICS")
    assert lion.slug == "lion-analytics"
    assert lion.industry == "Data"
    assert lion.is_enabled is True

    paused = await find_company_by_name(db, "paused co")
    assert paused.is_enabled is False


@pytest.mark.asyncio
async def test_unique_slug(db: AsyncSession, company: Company):
    assert await unique_slug(db, Company, "acme-labs") == "acme-labs-1"
    assert await unique_slug(db, Company, "fresh-name") == "fresh-name"
    assert await unique_slug(db, Company, "", fallback="company") == "company"


@pytest.mark.asyncio
async def test_get_or_create_company(db: AsyncSession, company: Company):
    assert (await get_or_create_company(db, "acme labs")).id == company.id

    created = await get_or_create_company(db, "Feed Only Pte Ltd", careers_url="https://jobs.example/1")
    await db.commit()
    assert created.is_enabled is False
    assert created.careers_url == "https://jobs.example/1"
    assert created.industry == "Various"

    assert await get_or_create_company(db, "   ") is None
