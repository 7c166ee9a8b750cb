"""Dataset parsing and analysis endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool

from ...models import ComfortAnalysis, ProcessedDataset, WindRoseData
from ...orchestrator import WeatherDataOrchestrator
from ...processing.parser import decode_text
from ..config import get_config
from ..dependencies import get_orchestrator
from ..schemas import DatasetAnalysis, DatasetSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/datasets", tags=["datasets"])
config = get_config()


async def read_upload(request: Request, orchestrator: WeatherDataOrchestrator) -> ProcessedDataset:
    """Read an EPW document from the request body and parse it off the event loop."""
    body = await request.body()

    if not body:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body is empty; send the EPW file contents"
        )
    if len(body) > config.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"EPW upload exceeds {config.max_upload_bytes} bytes"
        )

    text = decode_text(body, orchestrator.parser.config.file_encodings)
    return await run_in_threadpool(orchestrator.parse_from_text, text)


def analyze(
    orchestrator: WeatherDataOrchestrator,
    dataset: ProcessedDataset,
    comfort_temp: float,
    band_width: float,
) -> DatasetAnalysis:
    return DatasetAnalysis(
        header=dataset.header,
        record_count=dataset.record_count,
        comfort=orchestrator.compute_comfort(dataset.hourly_data, comfort_temp, band_width),
        wind_rose=orchestrator.build_wind_rose(dataset.hourly_data),
    )


@router.post("/parse", response_model=DatasetSummary, response_model_exclude_none=True)
async def parse_dataset(
    request: Request,
    include_hourly: bool = Query(
        default=False,
        description="Include all hourly records in the response"
    ),
    orchestrator: WeatherDataOrchestrator = Depends(get_orchestrator),
) -> DatasetSummary:
    """
    Parse an uploaded EPW file.

    The request body is the raw file content. Malformed data rows are
    skipped and reported in `diagnostics`.

    Returns:
        Header, daily/monthly averages and annual statistics
    """
    dataset = await read_upload(request, orchestrator)
    return DatasetSummary.from_dataset(dataset, include_hourly=include_hourly)


@router.post("/analyze", response_model=DatasetAnalysis)
async def analyze_dataset(
    request: Request,
    comfort_temp: float = Query(
        default=21.0,
        ge=-50.0,
        le=60.0,
        description="Comfort setpoint in °C"
    ),
    band_width: float = Query(
        default=1.0,
        ge=0.0,
        le=20.0,
        description="Half-width of the comfort band in °C"
    ),
    orchestrator: WeatherDataOrchestrator = Depends(get_orchestrator),
) -> DatasetAnalysis:
    """
    Comfort and wind-rose analysis of an uploaded EPW file.

    Returns:
        Degree-days/hours against the setpoint and the wind-rose matrix
    """
    dataset = await read_upload(request, orchestrator)
    return await run_in_threadpool(analyze, orchestrator, dataset, comfort_temp, band_width)


@router.get("/remote", response_model=DatasetSummary, response_model_exclude_none=True)
def get_remote_dataset(
    url: str = Query(..., description="URL of a ZIP archive containing the EPW file"),
    file_name: str = Query(..., description="EPW file name inside the archive"),
    include_hourly: bool = Query(default=False),
    orchestrator: WeatherDataOrchestrator = Depends(get_orchestrator),
) -> DatasetSummary:
    """
    Load an EPW file from a remote ZIP archive.

    Results are cached for 7 days; an expired copy is served when the
    archive host is unreachable.

    Returns:
        Header, daily/monthly averages and annual statistics
    """
    dataset = orchestrator.parse_from_remote_archive(url, file_name)
    return DatasetSummary.from_dataset(dataset, include_hourly=include_hourly)


@router.get("/remote/comfort", response_model=ComfortAnalysis)
def get_remote_comfort(
    url: str = Query(..., description="URL of a ZIP archive containing the EPW file"),
    file_name: str = Query(..., description="EPW file name inside the archive"),
    comfort_temp: float = Query(default=21.0, ge=-50.0, le=60.0),
    band_width: float = Query(default=1.0, ge=0.0, le=20.0),
    orchestrator: WeatherDataOrchestrator = Depends(get_orchestrator),
) -> ComfortAnalysis:
    """
    Comfort analysis of a remote EPW file.

    Returns:
        Heating/cooling degree-days and degree-hours, comfortable hours
    """
    dataset = orchestrator.parse_from_remote_archive(url, file_name)
    return orchestrator.compute_comfort(dataset.hourly_data, comfort_temp, band_width)


@router.get("/remote/wind-rose", response_model=WindRoseData)
def get_remote_wind_rose(
    url: str = Query(..., description="URL of a ZIP archive containing the EPW file"),
    file_name: str = Query(..., description="EPW file name inside the archive"),
    orchestrator: WeatherDataOrchestrator = Depends(get_orchestrator),
) -> WindRoseData:
    """
    Wind-rose distribution of a remote EPW file.

    Returns:
        16 x 7 frequency (%) and mean speed matrices
    """
    dataset = orchestrator.parse_from_remote_archive(url, file_name)
    return orchestrator.build_wind_rose(dataset.hourly_data)
