"""
Job Tracker - FastAPI application entry point.

A personal tracker for job applications: table and board views,
dashboard statistics, and CSV export.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from datetime import datetime
import logging
import os

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import __version__
from .config import settings
from .rate_limit import limiter
from .routers import applications
from .auth import router as auth_router
from .sessions import registry

# --- Logging Configuration ---
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("jobtracker")


def setup_database():
    """Create tables if fresh DB, run migrations if existing."""
    import subprocess
    from sqlalchemy import inspect as sa_inspect
    from .database import engine, Base

    inspector = sa_inspect(engine)
    existing = inspector.get_table_names()

    if "users" not in existing:
        logger.info("Fresh database - creating all tables...")
        # Import all models so Base.metadata knows about them
        from . import models  # noqa: F401
        from .auth import models as auth_models  # noqa: F401
        Base.metadata.create_all(bind=engine, checkfirst=True)
        subprocess.run(["alembic", "stamp", "head"], check=True)
        logger.info("Tables created and alembic stamped to head.")
    else:
        logger.info("Existing database - running migrations...")
        subprocess.run(["alembic", "upgrade", "head"], check=True)
        logger.info("Migrations complete.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup; drop cached sessions on shutdown."""
    logger.info("Starting Job Tracker...")
    os.makedirs("data", exist_ok=True)
    setup_database()
    logger.info("Job Tracker ready!")
    yield
    registry.clear()
    logger.info("Shutting down Job Tracker...")


app = FastAPI(
    title="Job Tracker",
    description="Personal job application tracker - table and board views, stats, and CSV export",
    version=__version__,
    lifespan=lifespan
)

# --- Rate Limiting ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# --- Security Headers Middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# --- Middleware ---
_allowed_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

# Include routers
app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
app.include_router(auth_router, prefix="/auth", tags=["auth"])


@app.get("/api/health", tags=["system"])
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.utcnow().isoformat()
    }
