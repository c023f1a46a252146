import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError

from esperto.config import get_settings
from esperto.database import init_db
from esperto.exceptions import EspertoError, RemoteFailure
from esperto.logging_config import configure_logging
from esperto.routers.auth import router as auth_router
from esperto.routers.products import router as products_router
from esperto.routers.stores import router as stores_router
from esperto.routers.product_prices import router as product_prices_router
from esperto.routers.comparisons import router as comparisons_router
from esperto.routers.contributions import router as contributions_router
from esperto.routers.alerts import router as alerts_router, notifications_router
from esperto.routers.reports import router as reports_router, suggestions_router
from esperto.routers.webhooks import router as webhooks_router
from esperto.routers.admin import router as admin_router
from esperto.routers.billing import router as billing_router
from esperto.tasks.scheduler import start_scheduler, stop_scheduler
from esperto.services.cache import cache

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database, cache, and scheduler on startup."""
    configure_logging(settings.log_level)
    logger.info("Starting up... Initializing database")
    init_db()
    logger.info("Connecting to Redis cache...")
    await cache.connect()
    if settings.scheduler_enabled:
        logger.info("Starting maintenance scheduler...")
        start_scheduler()
    yield
    logger.info("Shutting down...")
    stop_scheduler()
    await cache.disconnect()


app = FastAPI(
    title="O Esperto Comparador API",
    description="Grocery price comparison with community price contributions",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url] if settings.environment == "production" else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EspertoError)
async def esperto_error_handler(request: Request, exc: EspertoError):
    if isinstance(exc, RemoteFailure) or exc.status_code >= 500:
        logger.exception(f"Unhandled failure on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc) or exc.public_message},
        headers=exc.headers
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Include routers
app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(products_router, prefix=settings.api_prefix)
app.include_router(stores_router, prefix=settings.api_prefix)
app.include_router(product_prices_router, prefix=settings.api_prefix)
app.include_router(comparisons_router, prefix=settings.api_prefix)
app.include_router(contributions_router, prefix=settings.api_prefix)
app.include_router(alerts_router, prefix=settings.api_prefix)
app.include_router(notifications_router, prefix=settings.api_prefix)
app.include_router(reports_router, prefix=settings.api_prefix)
app.include_router(suggestions_router, prefix=settings.api_prefix)
app.include_router(webhooks_router, prefix=settings.api_prefix)
app.include_router(admin_router, prefix=settings.api_prefix)
app.include_router(billing_router, prefix=settings.api_prefix)


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": "O Esperto Comparador API",
        "version": "1.0.0"
    }
