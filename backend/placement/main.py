"""
FastAPI application entry point for the Teacher Placement API.

This is the main app that:
- Initializes FastAPI with CORS
- Registers all API routers under /api/v1
- Provides health check endpoint
- Disposes the database engine on shutdown
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from placement.config import settings
from placement.database import engine
# Import API routers
from placement.api import (
    admin,
    applications,
    auth,
    interview_selections,
    jobs,
    matching,
    payments,
    school_jobs,
    schools,
    teachers,
)

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

    On startup: log configuration (schema is managed by Alembic)
    On shutdown: close database connections gracefully
    """
    logger.info("Starting Teacher Placement API...")
    logger.info(f"Database: {settings.database_url.split('@')[1] if '@' in settings.database_url else 'configured'}")
    logger.info(f"Payment mode: {settings.payment_mode}, debug: {settings.debug}")
    if settings.payment_mode == "dev" and not settings.debug:
        logger.error("PAYMENT_MODE=dev is ignored while DEBUG is off: checkouts will be refused")
    elif settings.payment_mode == "stripe" and not settings.stripe_secret_key:
        logger.error("PAYMENT_MODE=stripe but STRIPE_SECRET_KEY is not set: checkouts will fail")

    yield

    logger.info("Shutting down Teacher Placement API...")
    await engine.dispose()


# Initialize FastAPI app
app = FastAPI(
    title="Teacher Placement API",
    description="Matches foreign teachers with schools and job postings in China",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure CORS
# ALLOWED_ORIGINS adds comma-separated production domains
allowed_origins = [
    "http://localhost:3000",  # Local development
]
if settings.allowed_origins:
    allowed_origins.extend(o.strip() for o in settings.allowed_origins.split(',') if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Simple health check endpoint."""
    return {
        "status": "healthy",
        "service": "Teacher Placement API",
        "version": "1.0.0",
    }


@app.get("/")
async def root():
    """API root with basic info."""
    return {
        "message": "Teacher Placement API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


# Register API routers
app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(teachers.router, prefix="/api/v1/teachers", tags=["teachers"])
app.include_router(schools.router, prefix="/api/v1/school", tags=["schools"])
app.include_router(school_jobs.router, prefix="/api/v1/school/jobs", tags=["school-jobs"])
app.include_router(
    interview_selections.router,
    prefix="/api/v1/school/interview-selections",
    tags=["interview-selections"],
)
app.include_router(jobs.router, prefix="/api/v1/jobs", tags=["jobs"])
app.include_router(matching.router, prefix="/api/v1/matching", tags=["matching"])
app.include_router(applications.router, prefix="/api/v1/applications", tags=["applications"])
app.include_router(payments.router, prefix="/api/v1/payments", tags=["payments"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["admin"])
