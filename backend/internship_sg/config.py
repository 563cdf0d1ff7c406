from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./internship_sg.db"

    # App
    debug: bool = False
    allowed_origins: Optional[str] = None  # comma-separated

    # Auth
    cron_secret: Optional[str] = None  # Bearer token for the scheduled trigger
    admin_token: Optional[str] = None  # Bearer token for /api/admin/*; open when unset

    # Scraper
    scraper_user_agent: str = (
        "InternshipSG-Bot/1.0 (PDPA Compliant Job Aggregator; +https://internship.sg)"
    )
    scraper_request_delay_seconds: float = 3.0
    scraper_page_timeout_seconds: int = 30
    scraper_robots_timeout_seconds: int = 5
    scraper_company_timeout_seconds: int = 90
    scraper_max_concurrency: int = 2
    scraper_use_browser: bool = False
    scraper_stale_run_minutes: int = 120
    companies_file: Optional[str] = None  # defaults to the bundled companies.json

    # Staleness
    job_staleness_days: int = 90

    # Schedule (daily run)
    schedule_hour: int = 6
    schedule_timezone: str = "Asia/Singapore"

    # Aggregator feeds
    adzuna_app_id: Optional[str] = None
    adzuna_app_key: Optional[str] = None
    jooble_api_key: Optional[str] = None
    feed_pages: int = 3

    def get_allowed_origins(self) -> list[str]:
        """Parse ALLOWED_ORIGINS into a list."""
        if not self.allowed_origins:
            return []
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


settings = Settings()
