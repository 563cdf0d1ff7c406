"""Company (scraper source) Pydantic schemas."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class CompanyCreate(BaseModel):
    """
    Request schema for adding a company to the scraper.

    name and careers_url are validated by the endpoint so a missing value
    gets the same 400 as an empty one.
    """
    name: Optional[str] = None
    careers_url: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    industry: Optional[str] = None
    size: Optional[str] = None
    is_enabled: bool = True


class CompanyUpdate(BaseModel):
    """Partial update: only fields present in the request are applied."""
    name: Optional[str] = None
    careers_url: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    industry: Optional[str] = None
    size: Optional[str] = None
    is_enabled: Optional[bool] = None


class CompanyResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    logo_url: Optional[str] = None
    website: Optional[str] = None
    industry: Optional[str] = None
    size: Optional[str] = None
    careers_url: str
    is_enabled: bool
    last_scraped_at: Optional[datetime] = None
    last_jobs_found: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CompanyEnvelope(BaseModel):
    company: CompanyResponse


class CompanyListResponse(BaseModel):
    companies: list[CompanyResponse]
