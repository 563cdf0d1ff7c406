"""
Shared request dependencies: bearer-token checks for admin and scraper routes.
"""
import hmac
import logging
from typing import Optional
from urllib.parse import urlparse

from fastapi import Header, HTTPException, Request

from internship_sg.config import settings
from internship_sg.services.fetcher import HttpFetcher

logger = logging.getLogger(__name__)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an 'Authorization: Bearer <token>' header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def token_matches(authorization: Optional[str], expected: str) -> bool:
    token = bearer_token(authorization)
    return token is not None and hmac.compare_digest(token, expected)


async def require_admin(authorization: Optional[str] = Header(None)) -> None:
    """
    Dependency for /api/admin/* routes.

    Requires 'Authorization: Bearer <ADMIN_TOKEN>' when ADMIN_TOKEN is set;
    open when it is not (development).

    Raises:
        HTTPException 401: Missing or wrong token
    """
    if not settings.admin_token:
        return
    if not token_matches(authorization, settings.admin_token):
        logger.warning("Rejected admin request with missing or invalid token")
        raise HTTPException(status_code=401, detail="Unauthorized")


def is_cron_request(request: Request) -> bool:
    return bool(settings.cron_secret) and token_matches(
        request.headers.get("authorization"), settings.cron_secret
    )


def is_same_origin(request: Request) -> bool:
    origin = request.headers.get("origin")
    host = request.headers.get("host")
    if not origin or not host:
        return False
    return urlparse(origin).netloc == host


def is_authorized_scraper_request(request: Request) -> bool:
    """
    A scraper trigger is allowed when CRON_SECRET is unset, when it carries
    the CRON_SECRET bearer token, or when it comes from the admin page on the
    same origin.
    """
    if not settings.cron_secret:
        return True
    return is_cron_request(request) or is_same_origin(request)


async def get_scraper_fetcher() -> Optional[HttpFetcher]:
    """Fetcher for API-triggered runs; None means the configured default."""
    return None
