"""Database models"""
from internship_sg.models.company import Company
from internship_sg.models.job import Job, JobSource, WorkArrangement
from internship_sg.models.scraper_log import ScraperLog, ScraperLogStatus, ScraperTrigger

__all__ = [
    "Company",
    "Job",
    "JobSource",
    "WorkArrangement",
    "ScraperLog",
    "ScraperLogStatus",
    "ScraperTrigger",
]
