"""Shared dependencies for API routes."""

import logging
from typing import Optional

from ..orchestrator import WeatherDataOrchestrator, create_orchestrator

logger = logging.getLogger(__name__)

# One orchestrator, and so one cache index, per process
_orchestrator: Optional[WeatherDataOrchestrator] = None


def get_orchestrator() -> WeatherDataOrchestrator:
    """Get or create the global orchestrator instance."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = create_orchestrator()
        logger.info(f"Dataset cache directory: {_orchestrator.cache.config.cache_dir}")
    return _orchestrator


def close_orchestrator() -> None:
    """Release the global orchestrator, if one was created."""
    global _orchestrator
    if _orchestrator is not None:
        _orchestrator.close()
        _orchestrator = None
