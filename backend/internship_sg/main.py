"""
FastAPI application entry point for the internship.sg backend.

This is the main app that:
- Initializes FastAPI with CORS
- Registers the scraper, admin and jobs routers
- Provides health check endpoint
- Creates tables on SQLite (development) and disposes the engine on shutdown
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from internship_sg import database
from internship_sg.config import settings
from internship_sg.api import admin, jobs, scraper

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    On startup: create tables when running on SQLite (PostgreSQL uses Alembic)
    On shutdown: Close database connections gracefully
    """
    # Startup
    logger.info("Starting internship.sg API...")
    logger.info(f"Database: {settings.database_url.split('@')[1] if '@' in settings.database_url else 'configured'}")
    logger.info(f"Debug mode: {settings.debug}")
    if settings.database_url.startswith("sqlite"):
        await database.init_db()

    yield

    # Shutdown
    logger.info("Shutting down internship.sg API...")
    await database.engine.dispose()


# Initialize FastAPI app
app = FastAPI(
    title="internship.sg API",
    description="Internship listings for Singapore, aggregated from company careers pages",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure CORS
# Set ALLOWED_ORIGINS environment variable with comma-separated domains
allowed_origins = [
    "http://localhost:3000",  # Local development
]
allowed_origins.extend(settings.get_allowed_origins())

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Simple health check endpoint."""
    return {
        "status": "healthy",
        "service": "internship.sg API",
        "version": "1.0.0",
    }


# Root endpoint
@app.get("/")
async def root():
    """API root with basic info."""
    return {
        "message": "internship.sg API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "jobs": "/api/jobs",
            "scraper": "/api/scraper",
            "admin": "/api/admin",
        },
    }


# Register API routers
app.include_router(scraper.router, prefix="/api/scraper", tags=["scraper"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
