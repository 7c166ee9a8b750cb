"""FastAPI application entry point."""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from ..exceptions import DatasetLoadError, FormatError
from .config import get_config
from .dependencies import close_orchestrator
from .routers import cache, datasets, health

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Get configuration
config = get_config()

# Prometheus metrics
REQUEST_COUNT = Counter(
    "epwinsight_api_requests_total",
    "Total API requests",
    ["method", "endpoint", "status"]
)
REQUEST_DURATION = Histogram(
    "epwinsight_api_request_duration_seconds",
    "API request duration in seconds",
    ["method", "endpoint"]
)
DATASET_LOAD_FAILURES = Counter(
    "epwinsight_api_dataset_load_failures_total",
    "Remote dataset loads that failed with no cached fallback",
    ["kind"]
)

UNTRACKED_PATHS = {"/health", "/metrics"}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Lifespan context manager for startup and shutdown events.

    Startup:
    - Log configuration

    Shutdown:
    - Close the shared HTTP session
    """
    # Startup
    logger.info("Starting EPWInsight API")
    logger.info(f"Max upload size: {config.max_upload_bytes} bytes")

    yield

    # Shutdown
    logger.info("Shutting down EPWInsight API")
    close_orchestrator()


# Initialize FastAPI application
app = FastAPI(
    title=config.api_title,
    version=config.api_version,
    description=config.api_description,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=config.cors_allow_credentials,
    allow_methods=config.cors_allow_methods,
    allow_headers=config.cors_allow_headers,
)


# Request logging and metrics middleware
@app.middleware("http")
async def logging_and_metrics_middleware(request: Request, call_next):
    """
    Middleware to log requests and collect Prometheus metrics.

    Tracks:
    - Request count by method, endpoint, and status
    - Request duration by method and endpoint
    """
    if request.url.path in UNTRACKED_PATHS:
        return await call_next(request)

    start_time = time.time()

    # Generate request ID
    request_id = f"{int(start_time * 1000)}-{id(request)}"

    logger.info(
        f"Request started: {request.method} {request.url.path} "
        f"[{request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time
    endpoint = request.url.path

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=endpoint
    ).observe(duration)

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"[{request_id}] - {response.status_code} - {duration:.3f}s"
    )

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Response-Time"] = f"{duration:.3f}s"

    return response


@app.exception_handler(FormatError)
async def format_error_handler(request: Request, exc: FormatError):
    """Unparseable EPW documents are a client error."""
    logger.warning(f"Invalid EPW document: {request.url.path} - {exc}")
    return JSONResponse(
        status_code=422,
        content={
            "detail": str(exc),
            "type": "format_error",
            "path": str(request.url.path)
        }
    )


@app.exception_handler(DatasetLoadError)
async def dataset_load_error_handler(request: Request, exc: DatasetLoadError):
    """Remote source failures with nothing cached map to a bad gateway."""
    DATASET_LOAD_FAILURES.labels(kind=exc.kind).inc()
    logger.error(f"Dataset load failed: {request.url.path} - {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={
            "detail": str(exc),
            "type": "dataset_load_error",
            "error_type": exc.kind,
            "path": str(request.url.path)
        }
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors.

    Returns:
        500 error with sanitized error message
    """
    logger.error(
        f"Unhandled exception: {request.method} {request.url.path} - {str(exc)}",
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "type": "internal_error",
            "path": str(request.url.path)
        }
    )


# Prometheus metrics endpoint
@app.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns:
        Prometheus metrics in text format
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# Include routers
app.include_router(health.router)
app.include_router(datasets.router)
app.include_router(cache.router)


@app.get("/api/v1/info")
async def api_info():
    """
    Get API version and configuration information.

    Returns:
        API metadata and available endpoints
    """
    return {
        "api": {
            "title": config.api_title,
            "version": config.api_version,
            "description": config.api_description
        },
        "endpoints": {
            "health": "/health",
            "docs": "/docs",
            "metrics": "/metrics",
            "datasets": "/api/v1/datasets",
            "cache": "/api/v1/cache"
        },
        "analyses": [
            "daily_averages",
            "monthly_averages",
            "annual_stats",
            "comfort",
            "wind_rose"
        ],
        "limits": {
            "max_upload_bytes": config.max_upload_bytes
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "epwinsight.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=config.log_level.lower()
    )
