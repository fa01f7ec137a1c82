"""
HomeScore Web App - FastAPI Entry Point

Weighted factor scoring for property listings and buyer leads.

Run with: uvicorn homescore.main:app --reload
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from homescore.api import factors, leads, preferences, scoring
from homescore.api.errors import error_body, status_for
from homescore.config import settings
from homescore.database import close_db, init_db
from homescore.services.scoring_service import get_scoring_service
from scoring_engine.modules.errors import ScoringError
from scoring_engine.modules.logger import setup_logging

logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle manager."""
    await init_db()
    if settings.log_dir:
        setup_logging(settings.log_dir, "server")

    service = get_scoring_service()
    logger.info(
        f"Loaded {len(service.properties.registry)} property factors, "
        f"{len(service.leads.registry)} lead factors"
    )
    yield
    await close_db()


app = FastAPI(
    title="HomeScore",
    description="Weighted factor scoring for listings and leads",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS middleware - allow frontend to access API
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(factors.router, prefix="/api", tags=["Factors"])
app.include_router(preferences.router, prefix="/api/preferences", tags=["Preferences"])
app.include_router(scoring.router, prefix="/api/scoring", tags=["Scoring"])
app.include_router(leads.router, prefix="/api/leads", tags=["Leads"])


@app.exception_handler(ScoringError)
async def scoring_error_handler(request: Request, exc: ScoringError):
    """Engine errors raised outside a router's own handling (e.g. model validators)."""
    return JSONResponse(status_code=status_for(exc), content={"detail": error_body(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    errors = exc.errors(include_url=False, include_context=False)
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {
        "status": "ok",
        "app": "HomeScore",
        "version": APP_VERSION,
    }


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    service = get_scoring_service()
    return {
        "status": "healthy",
        "database": "connected",
        "property_factors": len(service.properties.registry),
        "lead_factors": len(service.leads.registry),
    }
