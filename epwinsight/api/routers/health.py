"""Health check endpoint."""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from ... import __version__
from ...exceptions import CacheStorageError
from ...orchestrator import WeatherDataOrchestrator
from ..dependencies import get_orchestrator

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    cache: str
    message: str


@router.get("/health", response_model=HealthResponse)
def health_check(
    orchestrator: WeatherDataOrchestrator = Depends(get_orchestrator),
) -> HealthResponse:
    """
    Health check endpoint.

    Verifies that the API is running and the dataset cache is readable.

    Returns:
        Health status information
    """
    try:
        orchestrator.cache.backend.keys(orchestrator.cache.config.key_prefix)
    except CacheStorageError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dataset cache unavailable"
        )

    return HealthResponse(
        status="healthy",
        cache="available",
        message="EPWInsight API is running"
    )


@router.get("/")
async def root() -> dict:
    """
    Root endpoint with API information.

    Returns:
        Basic API information
    """
    return {
        "service": "EPWInsight API",
        "version": __version__,
        "documentation": "/docs",
        "health_check": "/health"
    }
