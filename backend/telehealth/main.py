"""FastAPI application for telehealth clinical decision support."""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from telehealth import __version__
from telehealth.api import clinical_router
from telehealth.core.config import settings
from telehealth.core.redis import close_redis, ping_redis
from telehealth.services.clinical_knowledge import get_knowledge_base_stats

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    The knowledge base is validated when its module is imported, so by the
    time this runs a malformed catalogue has already stopped startup.
    """
    startup_start = time.perf_counter()

    kb_stats = get_knowledge_base_stats()
    logger.info(
        f"Knowledge base loaded: {kb_stats['total_conditions']} conditions, "
        f"{kb_stats['total_symptoms']} symptoms, {kb_stats['total_red_flag_rules']} red-flag rules"
    )

    app.state.startup_time_ms = (time.perf_counter() - startup_start) * 1000
    logger.info(f"Server ready - startup time: {app.state.startup_time_ms:.0f}ms")

    yield

    # Shutdown
    close_redis()


app = FastAPI(
    title=settings.app_name,
    description="Offline clinical decision support: differential diagnosis, urgency triage, red flags and follow-up questions.",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:3001"],  # Next.js dev server
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(clinical_router)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, Any]:
    """Health check endpoint (liveness probe)."""
    return {
        "status": "healthy",
        "service": "telehealth-decision-support",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/ready", tags=["Health"])
def readiness_check() -> dict[str, Any]:
    """Readiness check endpoint.

    The engine works without Redis; the cache status is reported for
    monitoring only.
    """
    return {
        "status": "ready",
        "service": "telehealth-decision-support",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
        "knowledge_base": get_knowledge_base_stats(),
        "assessment_cache": {
            "enabled": settings.assessment_cache_enabled,
            "redis_available": ping_redis() if settings.assessment_cache_enabled else False,
        },
    }


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "service": "Telehealth Clinical Decision Support API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
    }
