"""
OrgPlan API Main Application

Entry point for the FastAPI application.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from orgplan.platform.config import settings
from orgplan.platform.logging import configure_logging, get_logger
from orgplan.api.routers import initiatives, resources, roadmap, teams
from orgplan.api.dependencies import (
    init_resources,
    close_resources,
    get_postgres_adapter,
)

# Configure logging on import
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting OrgPlan API...")
    try:
        init_resources()
        logger.info("Resources initialized successfully.")
    except Exception as e:
        logger.error("Failed to initialize resources", error=str(e))
        raise

    yield

    logger.info("Shutting down OrgPlan API...")
    close_resources()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Team capacity ledger with conflict detection and roadmap analytics",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(",") if settings.CORS_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =============================================================================
# OBSERVABILITY
# =============================================================================

if settings.METRICS_ENABLED:
    app.mount("/metrics", make_asgi_app())


# =============================================================================
# HEALTH ENDPOINTS
# =============================================================================


@app.get("/health/live", tags=["Health"])
async def liveness() -> dict:
    """Liveness probe - is the service running?"""
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
def readiness() -> dict:
    """
    Readiness probe - is the service ready to accept traffic?
    Checks the database connection.
    """
    postgres_healthy = get_postgres_adapter().health_check()

    return {
        "status": "ready" if postgres_healthy else "not_ready",
        "version": settings.VERSION,
        "checks": {
            "postgres": "healthy" if postgres_healthy else "unhealthy",
        },
    }


# =============================================================================
# API ROUTERS
# =============================================================================

app.include_router(teams.router, prefix="/api/v1/teams", tags=["Teams"])
app.include_router(teams.members_router, prefix="/api/v1/team-members", tags=["Teams"])
app.include_router(initiatives.router, prefix="/api/v1/initiatives", tags=["Initiatives"])
app.include_router(resources.router, prefix="/api/v1/resources", tags=["Resources"])
app.include_router(roadmap.router, prefix="/api/v1/roadmap", tags=["Roadmap"])
app.include_router(roadmap.milestones_router, prefix="/api/v1/roadmap-milestones", tags=["Roadmap"])


def run() -> None:
    import uvicorn

    uvicorn.run(
        "orgplan.api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        workers=settings.API_WORKERS,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
