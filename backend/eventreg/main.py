"""
Event Registration API - Main Application Entry Point

Organizers publish events with a fixed ticket capacity, users book,
cancel and review. Highlights:
- Reservation engine that never lets confirmed tickets exceed capacity,
  under concurrent requests and across worker processes
- Redis caching of event listings with invalidation on every booking change
- Structured logging with request correlation, Prometheus metrics
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eventreg.api.middleware import RequestLoggingMiddleware
from eventreg.api.router import api_router
from eventreg.core.config import get_settings
from eventreg.core.exceptions import ReservationError
from eventreg.core.logging import get_logger, setup_logging
from eventreg.core.metrics import metrics_endpoint
from eventreg.db.session import SessionLocal
from eventreg.infrastructure.redis_client import close_redis, get_redis
from eventreg.services.auth_service import ensure_admin
from eventreg.services.cache_service import get_cache_stats
from eventreg.services.strategy_factory import build_admission_strategy

settings = get_settings()


async def bootstrap_admin() -> None:
    if not (settings.BOOTSTRAP_ADMIN_EMAIL and settings.BOOTSTRAP_ADMIN_PASSWORD_HASH):
        return
    async with SessionLocal() as session:
        await ensure_admin(
            session,
            settings.BOOTSTRAP_ADMIN_EMAIL,
            settings.BOOTSTRAP_ADMIN_PASSWORD_HASH,
        )
        await session.commit()


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
        admission_strategy=app.state.admission.name,
        review_eligibility=settings.REVIEW_ELIGIBILITY,
    )

    await bootstrap_admin()

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
    description="Event registration API with a concurrency-safe seat reservation engine",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# The entry point owns the admission strategy; handlers get it via api.deps
app.state.admission = build_admission_strategy(settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
        headers=exc.headers,
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "admission_strategy": app.state.admission.name,
        "cache": cache_stats,
    }


if settings.METRICS_ENABLED:

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
