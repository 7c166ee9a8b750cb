"""API test configuration and fixtures."""
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from epwinsight.api.dependencies import get_orchestrator
from epwinsight.api.main import app
from epwinsight.ingestion.archive_client import ArchiveClient
from epwinsight.orchestrator import WeatherDataOrchestrator

REMOTE_PARAMS = {
    "url": "https://climate.example.org/SWE_Gothenburg.zip",
    "file_name": "SWE_Gothenburg.epw",
}


@pytest.fixture
def api_fetcher():
    """Archive client stand-in; tests set fetch.return_value or side_effect."""
    return Mock(spec=ArchiveClient)


@pytest.fixture
def api_orchestrator(memory_cache, api_fetcher, parser):
    return WeatherDataOrchestrator(cache=memory_cache, fetcher=api_fetcher, parser=parser)


@pytest.fixture(scope="function")
def client(api_orchestrator):
    """Create a test client backed by an in-memory cache."""
    app.dependency_overrides[get_orchestrator] = lambda: api_orchestrator

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def remote_params():
    return dict(REMOTE_PARAMS)
