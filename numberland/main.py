"""Main FastAPI application for the NumberLand progress service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text

from numberland.core.config import settings
from numberland.core.logging import setup_logging
from numberland.core.database import init_db, get_db
from numberland.core.dependencies import get_snapshot_cache, get_snapshot_store
from numberland.core.exceptions import ProgressError
from numberland.routers import progress, analytics

# Setup structured logging
setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle manager."""
    # Startup
    logger.info("Starting NumberLand Progress Service", version=settings.APP_VERSION)

    if settings.SNAPSHOT_BACKEND == "database":
        await init_db()
    else:
        app.state.snapshot_cache = await get_snapshot_cache()

    app.state.snapshot_store = await get_snapshot_store()

    logger.info("Progress service initialized successfully", backend=settings.SNAPSHOT_BACKEND)

    yield

    # Shutdown
    logger.info("Shutting down NumberLand Progress Service")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Activity progress tracking, weakness analysis and learning plans for NumberLand",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production() else None,
    redoc_url="/redoc" if not settings.is_production() else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup Prometheus metrics
if settings.ENABLE_METRICS:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")


@app.exception_handler(ProgressError)
async def progress_error_handler(request: Request, exc: ProgressError):
    """Map domain errors to their HTTP status with a uniform body."""
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error_code, "message": exc.message, "details": exc.details},
    )


# Include routers
app.include_router(progress.router, prefix="/api/progress", tags=["progress"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["analytics"])


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "status": "operational"
    }


@app.get("/health", tags=["health"])
async def health_check(request: Request):
    """Health check endpoint."""
    health_status = {
        "status": "healthy",
        "service": settings.SERVICE_NAME,
        "version": settings.APP_VERSION,
        "checks": {}
    }

    # Check database
    if settings.SNAPSHOT_BACKEND == "database":
        try:
            async for db in get_db():
                await db.execute(text("SELECT 1"))
                health_status["checks"]["database"] = "healthy"
        except Exception as e:
            health_status["checks"]["database"] = f"unhealthy: {str(e)}"
            health_status["status"] = "degraded"

    # Check cache
    try:
        if hasattr(request.app.state, "snapshot_cache"):
            await request.app.state.snapshot_cache.exists("health_check")
            health_status["checks"]["cache"] = "healthy"
    except Exception as e:
        health_status["checks"]["cache"] = f"unhealthy: {str(e)}"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "numberland.main:app",
        host="0.0.0.0",
        port=settings.SERVICE_PORT,
        reload=settings.ENVIRONMENT == "development",
        log_config=None  # Use structlog instead
    )
