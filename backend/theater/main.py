"""
Theater Seat Booking API - Main Application Entry Point

A seat booking backend for a single-screen theater:
- One in-memory seat inventory per show, serializing every seat transition
- Adjacent block selection around the seat a customer points at
- Time-boxed holds for external booking flows, expired lazily on read
- API keys and JWT bearer tokens with per-key rate limits
- Redis caching of show listings, structured logging, Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from theater.core.config import get_settings
from theater.core.exceptions import register_exception_handlers
from theater.core.logging import setup_logging, get_logger
from theater.core.metrics import metrics_endpoint
from theater.core.rate_limit import RateLimiter
from theater.api.router import api_router
from theater.api.middleware import RequestLoggingMiddleware
from theater.db.base import Base
from theater.db.session import AsyncSessionLocal, engine
from theater.domain.seat import SeatLayout
from theater.services.cache_service import get_redis, close_redis, get_cache_stats
from theater.services.inventory_registry import InventoryRegistry
from theater.services.show_service import ensure_schedule

import theater.models  # noqa: F401  registers every table on Base.metadata

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
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    if settings.AUTO_CREATE_SCHEMA:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("schema_created")

    async with AsyncSessionLocal() as session:
        await ensure_schedule(session)

    yield

    app.state.inventory_registry.clear()
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Seat booking API for a single-screen theater with concurrency-safe seat inventory",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.inventory_registry = InventoryRegistry(SeatLayout.from_settings(settings))
app.state.rate_limiter = RateLimiter()

register_exception_handlers(app)

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
