"""
Tests for the scraper trigger API.
"""
import pytest
from datetime import datetime
from uuid import UUID
from typing import List
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from internship_sg.api.deps import get_scraper_fetcher
from internship_sg.main import app as fastapi_app
from internship_sg.models.company import Company
from internship_sg.models.scraper_log import ScraperLog
from internship_sg.services import scraper as scraper_service

from scraper_samples import FakeFetcher


@pytest.fixture
def use_fake_fetcher(fake_fetcher: FakeFetcher) -> FakeFetcher:
    fastapi_app.dependency_overrides[get_scraper_fetcher] = lambda: fake_fetcher
    return fake_fetcher


@pytest.mark.asyncio
async def test_scraper_status(async_client: AsyncClient):
    response = await async_client.get("/api/scraper")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_trigger_scraper_returns_summary(
    async_client: AsyncClient, companies: List[Company], use_fake_fetcher: FakeFetcher
):
    response = await async_client.post("/api/scraper")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["jobsScraped"] == 4
    assert data["newJobs"] == 4
    assert data["updatedJobs"] == 0
    assert data["skippedJobs"] == 0
    assert data["companiesUpdated"] == 3
    assert data["deactivatedJobs"] == 0
    assert data["errors"] == []
    assert data["logId"]
    assert data["duration"].endswith("s")


@pytest.mark.asyncio
async def test_trigger_reports_company_errors(
    async_client: AsyncClient, companies: List[Company], use_fake_fetcher: FakeFetcher
):
    use_fake_fetcher.disallowed.add("https://bank.example/jobs")

    response = await async_client.post("/api/scraper")

    assert response.status_code == 200
    errors = response.json()["errors"]
    assert len(errors) == 1
    assert errors[0]["company"] == "Banking Co"


@pytest.mark.asyncio
async def test_cron_secret_required_when_configured(
    async_client: AsyncClient, companies: List[Company], use_fake_fetcher: FakeFetcher, test_settings
):
    test_settings.cron_secret = "s3cret"

    response = await async_client.post("/api/scraper")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}

    response = await async_client.post("/api/scraper", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_cron_secret_bearer_runs_as_cron(
    async_client: AsyncClient, db: AsyncSession, companies: List[Company],
    use_fake_fetcher: FakeFetcher, test_settings
):
    test_settings.cron_secret = "s3cret"

    response = await async_client.post("/api/scraper", headers={"Authorization": "Bearer s3cret"})

    assert response.status_code == 200
    log = await db.get(ScraperLog, UUID(response.json()["logId"]))
    assert log.trigger == "cron"


@pytest.mark.asyncio
async def test_same_origin_request_is_allowed(
    async_client: AsyncClient, companies: List[Company], use_fake_fetcher: FakeFetcher, test_settings
):
    test_settings.cron_secret = "s3cret"

    response = await async_client.post("/api/scraper", headers={"Origin": "http://test"})
    assert response.status_code == 200

    response = await async_client.post("/api/scraper", headers={"Origin": "http://evil.example"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_run_in_progress_returns_409(
    async_client: AsyncClient, db: AsyncSession, companies: List[Company], use_fake_fetcher: FakeFetcher
):
    db.add(ScraperLog(status="running", trigger="cron", started_at=datetime.utcnow(), errors=[]))
    await db.commit()

    response = await async_client.post("/api/scraper")

    assert response.status_code == 409
    assert "in progress" in response.json()["error"]


@pytest.mark.asyncio
async def test_unexpected_failure_returns_500(
    async_client: AsyncClient, companies: List[Company], use_fake_fetcher: FakeFetcher, monkeypatch
):
    async def broken_sweep(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(scraper_service, "sweep_stale_jobs", broken_sweep)

    response = await async_client.post("/api/scraper")

    assert response.status_code == 500
    assert response.json() == {"error": "database went away"}
