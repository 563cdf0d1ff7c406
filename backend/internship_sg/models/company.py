"""Company model: the scraper's source registry."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Boolean
from sqlalchemy.orm import relationship
import uuid

from internship_sg.database import Base
from internship_sg.database_types import GUID


class Company(Base):
    __tablename__ = "companies"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, unique=True, index=True)
    slug = Column(String, nullable=False, unique=True, index=True)

    # Display metadata
    logo_url = Column(String, nullable=True)
    website = Column(String, nullable=True)
    industry = Column(String, nullable=True, index=True)
    size = Column(String, nullable=True)  # e.g. "1000+", "51-200"

    # Scrape configuration
    careers_url = Column(String, nullable=False)
    is_enabled = Column(Boolean, nullable=False, default=True, index=True)

    # Written by each scraper run
    last_scraped_at = Column(DateTime, nullable=True)
    last_jobs_found = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    jobs = relationship("Job", back_populates="company", cascade="all, delete-orphan", passive_deletes=True)
