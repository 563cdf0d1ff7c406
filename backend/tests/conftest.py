"""
Pytest fixtures for testing.
"""
import pytest
import pytest_asyncio
from typing import AsyncGenerator, List, Optional

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Import database module BEFORE app to allow override
import internship_sg.database
from internship_sg.database import Base
# Import ALL models so Base.metadata knows about all tables
from internship_sg.models.company import Company
from internship_sg.models.job import Job  # noqa: F401
from internship_sg.models.scraper_log import ScraperLog  # noqa: F401
from internship_sg.config import Settings, settings

from scraper_samples import ACME_CAREERS_HTML, BANK_CAREERS_HTML, CLOUD_BOARD_JOBS, FakeFetcher

# Now import app (after we can override database)
from internship_sg.main import app as fastapi_app


# Test database URL (use in-memory SQLite for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """
    Known settings for every test: no auth secrets, no feeds, no politeness delay.
    """
    monkeypatch.setattr(settings, "cron_secret", None)
    monkeypatch.setattr(settings, "admin_token", None)
    monkeypatch.setattr(settings, "adzuna_app_id", None)
    monkeypatch.setattr(settings, "adzuna_app_key", None)
    monkeypatch.setattr(settings, "jooble_api_key", None)
    monkeypatch.setattr(settings, "scraper_request_delay_seconds", 0)
    return settings


@pytest.fixture
def scraper_config() -> Settings:
    """Settings for direct run_scraper calls."""
    return Settings(
        scraper_request_delay_seconds=0,
        scraper_company_timeout_seconds=5,
        scraper_max_concurrency=2,
        adzuna_app_id=None,
        adzuna_app_key=None,
        jooble_api_key=None,
    )


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database for each test.
    Ensures cleanup happens even if test fails.
    """
    # Use StaticPool to keep single connection alive and reuse it
    # so all sessions see the same in-memory database
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables FIRST
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # THEN replace the app's engine and sessionmaker
    # This ensures get_db() uses sessions connected to DB with tables
    original_engine = internship_sg.database.engine
    original_sessionmaker = internship_sg.database.AsyncSessionLocal

    internship_sg.database.engine = test_engine
    internship_sg.database.AsyncSessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    # Create session for direct test use
    async_session = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    session = async_session()

    try:
        yield session
    finally:
        # Step 1: Close session
        try:
            await session.close()
        except Exception as e:
            print(f"Warning: Failed to close session: {e}")

        # Step 2: Drop tables (best effort)
        try:
            async with test_engine.begin() as conn:
                await conn.run_sync(Base.metadata.drop_all)
        except Exception as e:
            print(f"Warning: Failed to drop tables: {e}")

        # Step 3: Dispose test engine
        try:
            await test_engine.dispose()
        except Exception as e:
            print(f"Warning: Failed to dispose engine: {e}")

        # Step 4: Restore original engine
        internship_sg.database.engine = original_engine
        internship_sg.database.AsyncSessionLocal = original_sessionmaker


@pytest_asyncio.fixture
async def async_client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing endpoints.

    The db fixture already replaced the engine with the test engine,
    so all endpoints will automatically use the test database.
    """
    transport = ASGITransport(app=fastapi_app)

    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        follow_redirects=True
    ) as client:
        yield client

    fastapi_app.dependency_overrides.clear()


async def make_company(
    db: AsyncSession,
    name: str,
    careers_url: str,
    industry: Optional[str] = "Technology",
    is_enabled: bool = True
) -> Company:
    company = Company(
        name=name,
        slug=name.lower().replace(" ", "-"),
        careers_url=careers_url,
        industry=industry,
        is_enabled=is_enabled,
    )
    db.add(company)
    await db.commit()
    await db.refresh(company)
    return company


@pytest_asyncio.fixture
async def company(db: AsyncSession) -> Company:
    """An enabled company with a plain HTML careers page."""
    return await make_company(db, "Acme Labs", "https://acme.example/careers", industry="Technology")


@pytest_asyncio.fixture
async def companies(db: AsyncSession) -> List[Company]:
    """Three enabled companies (one on Greenhouse) and one disabled company."""
    return [
        await make_company(db, "Acme Labs", "https://acme.example/careers", industry="Technology"),
        await make_company(db, "Banking Co", "https://bank.example/jobs", industry="Finance"),
        await make_company(db, "Cloud Board", "https://boards.greenhouse.io/cloudboard", industry="Technology"),
        await make_company(db, "Dormant Pte Ltd", "https://dormant.example/careers", is_enabled=False),
    ]


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    """Fetcher serving the three enabled companies of the companies fixture."""
    return FakeFetcher(
        pages={
            "https://acme.example/careers": ACME_CAREERS_HTML,
            "https://bank.example/jobs": BANK_CAREERS_HTML,
        },
        boards={"cloudboard": CLOUD_BOARD_JOBS},
    )
