"""
Scraper trigger endpoints.
POST runs the scraper synchronously and returns the run summary.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from internship_sg.api.deps import get_scraper_fetcher, is_authorized_scraper_request, is_cron_request
from internship_sg.database import get_db
from internship_sg.models.scraper_log import ScraperTrigger
from internship_sg.schemas.scraper import ScraperRunResponse
from internship_sg.services.fetcher import HttpFetcher
from internship_sg.services.scraper import ScraperAlreadyRunningError, run_scraper

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ScraperRunResponse)
async def trigger_scraper(
    request: Request,
    db: AsyncSession = Depends(get_db),
    fetcher: Optional[HttpFetcher] = Depends(get_scraper_fetcher)
):
    """
    Run the scraper now.

    Errors are returned as {"error": ...} bodies, which the admin scraper
    page displays directly.

    Returns:
        200: Run summary
        401: Not the cron job and not the admin page
        409: Another run is in progress
        500: Run failed
    """
    if not is_authorized_scraper_request(request):
        logger.warning("Unauthorized scraper trigger attempt")
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    trigger = ScraperTrigger.CRON if is_cron_request(request) else ScraperTrigger.MANUAL

    try:
        summary = await run_scraper(db, trigger=trigger, fetcher=fetcher)
    except ScraperAlreadyRunningError as e:
        return JSONResponse(status_code=409, content={"error": str(e)})
    except Exception as e:
        logger.error(f"Scraper API error: {str(e)}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": str(e) or "Scraper failed"})

    return ScraperRunResponse.from_summary(summary)


@router.get("")
async def scraper_status():
    """Readiness probe for the scraper trigger."""
    return {
        "status": "ready",
        "message": "Scraper API is ready. Use POST to trigger scraping.",
    }
