"""Dataset cache management endpoints."""

import logging

from fastapi import APIRouter, Depends

from ...ingestion.cache import CacheInfo, CacheStatus
from ...orchestrator import WeatherDataOrchestrator
from ..dependencies import get_orchestrator
from ..schemas import CacheClearResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/cache", tags=["cache"])


@router.get("", response_model=CacheInfo)
def get_cache_info(
    orchestrator: WeatherDataOrchestrator = Depends(get_orchestrator),
) -> CacheInfo:
    """
    List cached datasets.

    Returns:
        Entries (newest first) with file name, source URL, timestamp and size
    """
    return orchestrator.cache.info()


@router.get("/status", response_model=CacheStatus)
def get_cache_status(
    orchestrator: WeatherDataOrchestrator = Depends(get_orchestrator),
) -> CacheStatus:
    """
    Cache usage against its byte budget.

    Returns:
        Entry count, bytes used, usage percentage and near-limit flag
    """
    return orchestrator.cache.status()


@router.delete("", response_model=CacheClearResponse)
def clear_cache(
    orchestrator: WeatherDataOrchestrator = Depends(get_orchestrator),
) -> CacheClearResponse:
    """
    Remove every cached dataset.

    Returns:
        Number of entries removed
    """
    removed = orchestrator.cache.clear()
    logger.info(f"Cache cleared via API: {removed} entries")
    return CacheClearResponse(removed=removed, message=f"Cleared {removed} cached datasets")
