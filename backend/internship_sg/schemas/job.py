"""Job-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NormalizedJob(BaseModel):
    """Canonical job record produced by the normalizer, ready for dedup."""
    title: str
    description: str
    location: str = "Singapore"
    work_arrangement: Optional[str] = None  # remote | hybrid | onsite; unknown stays None
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    duration: Optional[str] = None
    application_url: str
    source: str = "scraped"  # scraped | adzuna | jooble


class JobResponse(BaseModel):
    """Public job listing entry."""
    id: int
    title: str
    slug: str
    description: Optional[str] = None
    requirements: Optional[str] = None
    location: str
    job_type: str
    work_arrangement: str
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    duration: Optional[str] = None
    application_url: str
    source: str
    is_active: bool
    posted_at: datetime
    company_id: UUID
    company_name: Optional[str] = None
    company_logo_url: Optional[str] = None
    company_industry: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class JobStats(BaseModel):
    jobs: int
    companies: int


class JobListResponse(BaseModel):
    jobs: list[JobResponse]
    stats: JobStats
    industries: list[str]


class ClearJobsResponse(BaseModel):
    success: bool = True
    message: str
    before: int
    after: int


class AdminStats(BaseModel):
    """Dashboard counters for the admin page."""
    total_jobs: int = Field(serialization_alias="totalJobs")
    active_jobs: int = Field(serialization_alias="activeJobs")
    total_companies: int = Field(serialization_alias="totalCompanies")
    enabled_companies: int = Field(serialization_alias="enabledCompanies")
    jobs_this_month: int = Field(serialization_alias="jobsThisMonth")
    last_run_at: Optional[datetime] = Field(default=None, serialization_alias="lastRunAt")
    last_run_status: Optional[str] = Field(default=None, serialization_alias="lastRunStatus")


class AdminStatsResponse(BaseModel):
    stats: AdminStats
