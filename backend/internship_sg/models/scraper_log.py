from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime
import uuid
import enum

from internship_sg.database import Base
from internship_sg.database_types import GUID, JSONDocument


class ScraperLogStatus(str, enum.Enum):
    """Scraper run status."""
    RUNNING = "running"      # Run started, not yet finalized
    COMPLETED = "completed"  # Finished (per-company errors may still be listed)
    FAILED = "failed"        # Aborted by an unexpected error


class ScraperTrigger(str, enum.Enum):
    MANUAL = "manual"  # Admin "Run Scraper" button
    CRON = "cron"      # Daily schedule
    CLI = "cli"


class ScraperLog(Base):
    __tablename__ = "scraper_logs"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)

    # Status: running | completed | failed
    # Only ONE run may be 'running' at a time (enforced by services.scraper)
    status = Column(String, nullable=False, default=ScraperLogStatus.RUNNING.value, index=True)
    trigger = Column(String, nullable=False, default=ScraperTrigger.MANUAL.value)

    # Counts
    companies_processed = Column(Integer, nullable=False, default=0)
    jobs_found = Column(Integer, nullable=False, default=0)
    jobs_added = Column(Integer, nullable=False, default=0)
    jobs_updated = Column(Integer, nullable=False, default=0)
    jobs_skipped = Column(Integer, nullable=False, default=0)
    jobs_deactivated = Column(Integer, nullable=False, default=0)

    # Structure: [{"company": "Grab", "error": "robots.txt disallows scraping"}, ...]
    errors = Column(JSONDocument, nullable=False, default=list)

    # Timestamps
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    completed_at = Column(DateTime, nullable=True)
