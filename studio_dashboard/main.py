"""
FastAPI Application Entry Point

This module initializes the FastAPI application and integrates:
- Dashboard and booking routes
- Living Apps Record Store client lifecycle
- Lifecycle events
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studio_dashboard.api import close_dashboard_service, dashboard_router, get_dashboard_service
from studio_dashboard.config import settings
from studio_dashboard.services.dashboard import DashboardService

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"

# Log startup information
logger.info("=" * 60)
logger.info(settings.studio_name)
logger.info("=" * 60)
logger.info(f"Python version: {sys.version}")
logger.info(f"Debug mode: {settings.debug}")
logger.info(f"Log level: {settings.log_level}")
logger.info(f"Record Store: {settings.living_apps_base_url}")
logger.info(f"Session cookie configured: {'Yes' if settings.living_apps_cookie else 'No'}")
logger.info(f"Timezone: {settings.timezone}")
logger.info("=" * 60)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
    - Loads the first dashboard snapshot
    - Closes the Record Store session on shutdown
    """
    # Startup
    logger.info("Starting application...")

    try:
        logger.info("Loading dashboard data...")
        await get_dashboard_service().refresh()
        logger.info("Dashboard data loaded")
    except Exception as e:
        logger.error(f"Error during startup: {e}", exc_info=True)
        logger.warning("Application will start; use POST /dashboard/refresh to retry")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    close_dashboard_service()
    logger.info("Application shutdown complete")


# Initialize FastAPI application
app = FastAPI(
    title=settings.studio_name,
    description=(
        "Booking overview for a massage studio. "
        "Aggregates customers, services and appointment requests "
        "stored in Living Apps."
    ),
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """
    Root endpoint.

    Returns basic API information.
    """
    return {
        "message": f"{settings.studio_name} API",
        "version": APP_VERSION,
        "status": "running",
        "endpoints": {
            "health": "/health",
            "docs": "/docs" if settings.debug else "disabled in production",
            "overview": "/dashboard",
            "agenda": "/dashboard/agenda",
            "refresh": "/dashboard/refresh",
            "services": "/services",
            "appointments": "/appointments",
        }
    }


@app.get("/health")
async def health_check(dashboard: DashboardService = Depends(get_dashboard_service)):
    """
    Application health check endpoint.

    Reports whether the last fetch cycle succeeded. Does not contact the
    Record Store.
    """
    healthy = dashboard.error is None

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "api": "operational",
            "record_store": "ok" if healthy else dashboard.error,
            "version": APP_VERSION,
        }
    )


app.include_router(dashboard_router)

logger.info("FastAPI application initialized")

# If running with uvicorn directly (not through import)
if __name__ == "__main__":
    import uvicorn

    logger.info("Starting uvicorn server...")
    logger.info(f"Host: {settings.app_host}")
    logger.info(f"Port: {settings.app_port}")

    uvicorn.run(
        "studio_dashboard.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
