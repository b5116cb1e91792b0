"""
FastAPI application entry point.

This module initializes the FastAPI application, configures middleware,
and registers all API routers.
"""
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.logging_config import configure_logging

from .api.routers import company_profiles, imports, inspections, mapping, reconciliation

# Ensure logging is configured before the application starts serving requests.
configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown events."""
    if os.getenv("SKIP_DB_INIT") == "1":
        logger.info("SKIP_DB_INIT=1 detected; skipping database bootstrap during startup")
        yield
        return

    try:
        from .db.session import create_tables

        logger.info("Initializing database tables...")
        create_tables()
        logger.info("inspections and company_profiles tables ready")
    except Exception:
        logger.exception("Failed to initialize database tables; the service cannot start without them")
        raise

    yield


app = FastAPI(
    title="InspectSync API",
    version="1.0.0",
    description="Import reconciliation for field inspection schedules exported by inspection companies",
    lifespan=lifespan,
)

allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
allowed_origins = [origin.strip() for origin in allowed_origins]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(mapping.router)
app.include_router(imports.router)
app.include_router(reconciliation.router)
app.include_router(company_profiles.router)
app.include_router(inspections.router)


@app.get("/")
async def root():
    """Root endpoint returning API information."""
    return {
        "message": "InspectSync API",
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for deployment monitoring."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "inspectsync-api"
    }
