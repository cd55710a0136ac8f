"""
SchoolPulse Analytics — class and academic-year performance analytics.
FastAPI backend entry point.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.errors import AnalyticsError, EmptyInput
from routes.analyze import RANKING_LIMIT, router as analyze_router

# Load environment
load_dotenv()

SCHOOL_NAME = os.getenv("SCHOOL_NAME", "My School")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()
# Comma-separated allowed origins, e.g. http://localhost:8081,https://app.example.com
raw_origins = os.getenv("CORS_ORIGINS", "http://localhost:8081,http://localhost:19006")
ALLOWED_ORIGINS = [o.strip() for o in raw_origins.split(",") if o.strip()]

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="SchoolPulse Analytics API",
    description=(
        "Class snapshots, grade distributions, rankings and academic-year "
        "comparisons computed from already-fetched school records."
    ),
    version="1.0.0",
)

# CORS — allow the mobile/web dev servers
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AnalyticsError)
async def analytics_error_handler(request: Request, exc: AnalyticsError):
    """Analytics failures are caller-recoverable: render a prompt or empty state."""
    status = 404 if isinstance(exc, EmptyInput) else 422
    logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.kind)
    return JSONResponse(status_code=status, content=exc.to_dict())


# Register route modules
app.include_router(analyze_router, prefix="/api/analytics", tags=["Analytics"])


@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "school_name": SCHOOL_NAME,
    }


@app.get("/api/config")
async def get_config():
    """Return server configuration to the frontend."""
    return {
        "school_name": SCHOOL_NAME,
        "ranking_limit": RANKING_LIMIT,
    }
