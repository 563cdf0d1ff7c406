from datetime import datetime
import enum

from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from internship_sg.database import Base
from internship_sg.database_types import GUID


class WorkArrangement(str, enum.Enum):
    ONSITE = "onsite"
    HYBRID = "hybrid"
    REMOTE = "remote"


class JobSource(str, enum.Enum):
    """Where a job record came from."""
    SCRAPED = "scraped"    # Company careers page
    ADZUNA = "adzuna"
    JOOBLE = "jooble"
    EMPLOYER = "employer"  # Posted by an employer; never swept


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(GUID, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)

    # Listing
    title = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    requirements = Column(Text, nullable=True)
    location = Column(String, nullable=False, default="Singapore")
    job_type = Column(String, nullable=False, default="internship")
    work_arrangement = Column(String, nullable=False, default=WorkArrangement.ONSITE.value)

    # Monthly SGD
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    duration = Column(String, nullable=True)  # e.g. "6 months"

    application_url = Column(String, nullable=False)
    source = Column(String, nullable=False, default=JobSource.SCRAPED.value)

    # sha256(company_id | normalized title), see services.dedup
    dedup_key = Column(String(64), nullable=False, index=True)

    # Lifecycle
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    posted_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_seen_at = Column(DateTime, nullable=True)  # Last scrape that re-confirmed the posting

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    company = relationship("Company", back_populates="jobs")

    __table_args__ = (
        # Staleness sweep
        Index("idx_jobs_active_last_seen", "is_active", "last_seen_at"),
    )
