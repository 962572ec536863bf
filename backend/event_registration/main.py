"""
Event Registration API - Main Application Entry Point

Registration service for a capacity-limited event:
- Per-region confirmed seats claimed with atomic conditional updates
- Waiting list for registrants beyond capacity, promotable by admins
- Ledger/roster consistency through every edit, move and delete
- Structured logging with request correlation, Prometheus metrics, Redis-cached counts
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from event_registration.core.config import get_settings
from event_registration.core.exceptions import StorageUnavailable
from event_registration.core.logging import setup_logging, get_logger
from event_registration.core.metrics import metrics_endpoint
from event_registration.api.router import api_router
from event_registration.api.middleware import RequestLoggingMiddleware
from event_registration.db.session import AsyncSessionLocal, init_db
from event_registration.services.cache_service import get_redis, close_redis, get_cache_stats
from event_registration.services.capacity_ledger import ensure_initialized
from event_registration.services.schedule_service import is_registration_open

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        regions=settings.REGIONS,
    )

    if settings.DB_AUTO_CREATE:
        await init_db()

    # Ledger rows must exist before the first claim
    try:
        async with AsyncSessionLocal() as session:
            await ensure_initialized(session, settings.REGIONS, settings.DEFAULT_REGION_CAPACITY)
    except StorageUnavailable:
        logger.error("capacity_ledger_init_failed", message="Database unreachable at startup")

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    yield

    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Event registration API with per-region capacity and a waiting list",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "registration_open": is_registration_open(),
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
