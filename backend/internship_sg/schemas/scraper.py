"""Scraper run and scraper log Pydantic schemas."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CompanyError(BaseModel):
    """One company's failure within a run."""
    company: str
    error: str


class ScrapeSummary(BaseModel):
    """Counters accumulated by one scraper run."""
    companies_processed: int = 0
    jobs_found: int = 0
    jobs_added: int = 0
    jobs_updated: int = 0
    jobs_skipped: int = 0
    jobs_deactivated: int = 0
    errors: list[CompanyError] = Field(default_factory=list)
    log_id: Optional[UUID] = None
    duration_seconds: float = 0.0

    def add_error(self, company: str, error: str) -> None:
        self.errors.append(CompanyError(company=company, error=error))


class ScraperRunResponse(BaseModel):
    """Body returned by POST /api/scraper (read by the admin scraper page)."""
    success: bool = True
    message: str = "Scraper completed"
    jobs_scraped: int = Field(serialization_alias="jobsScraped")
    new_jobs: int = Field(serialization_alias="newJobs")
    updated_jobs: int = Field(serialization_alias="updatedJobs")
    skipped_jobs: int = Field(serialization_alias="skippedJobs")
    deactivated_jobs: int = Field(serialization_alias="deactivatedJobs")
    companies_updated: int = Field(serialization_alias="companiesUpdated")
    errors: list[CompanyError] = Field(default_factory=list)
    log_id: Optional[UUID] = Field(default=None, serialization_alias="logId")
    duration: str

    @classmethod
    def from_summary(cls, summary: ScrapeSummary) -> "ScraperRunResponse":
        return cls(
            jobs_scraped=summary.jobs_found,
            new_jobs=summary.jobs_added,
            updated_jobs=summary.jobs_updated,
            skipped_jobs=summary.jobs_skipped,
            deactivated_jobs=summary.jobs_deactivated,
            companies_updated=summary.companies_processed,
            errors=summary.errors,
            log_id=summary.log_id,
            duration=f"{summary.duration_seconds:.1f}s",
        )


class ScraperLogCreate(BaseModel):
    """Externally reported run (POST /api/admin/scraper-logs)."""
    status: str = "running"
    trigger: str = "manual"
    companies_processed: int = 0
    jobs_found: int = 0
    jobs_added: int = 0
    jobs_updated: int = 0
    jobs_skipped: int = 0
    jobs_deactivated: int = 0
    errors: list[CompanyError] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ScraperLogResponse(BaseModel):
    id: UUID
    status: str
    trigger: str
    companies_processed: int
    jobs_found: int
    jobs_added: int
    jobs_updated: int
    jobs_skipped: int
    jobs_deactivated: int
    errors: list[CompanyError]
    started_at: datetime
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ScraperLogEnvelope(BaseModel):
    log: ScraperLogResponse


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(serialization_alias="totalPages")


class ScraperLogListResponse(BaseModel):
    logs: list[ScraperLogResponse]
    pagination: Pagination
