"""Pydantic response schemas for the API."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models import (
    AnnualStats,
    ComfortAnalysis,
    DailyAverages,
    DatasetHeader,
    MonthlyAverages,
    ObservationRecord,
    ParseDiagnostic,
    ProcessedDataset,
    WindRoseData,
)

# Diagnostics echoed back in a summary; the count is always complete
MAX_REPORTED_DIAGNOSTICS = 20


class DatasetSummary(BaseModel):
    """Parsed dataset without the hourly records unless requested."""
    header: DatasetHeader
    record_count: int
    daily_averages: DailyAverages
    monthly_averages: MonthlyAverages
    annual_stats: AnnualStats
    diagnostics_count: int
    diagnostics: List[ParseDiagnostic] = Field(default_factory=list)
    hourly_data: Optional[List[ObservationRecord]] = None

    @classmethod
    def from_dataset(
        cls, dataset: ProcessedDataset, include_hourly: bool = False
    ) -> "DatasetSummary":
        return cls(
            header=dataset.header,
            record_count=dataset.record_count,
            daily_averages=dataset.daily_averages,
            monthly_averages=dataset.monthly_averages,
            annual_stats=dataset.annual_stats,
            diagnostics_count=len(dataset.diagnostics),
            diagnostics=list(dataset.diagnostics[:MAX_REPORTED_DIAGNOSTICS]),
            hourly_data=list(dataset.hourly_data) if include_hourly else None,
        )


class DatasetAnalysis(BaseModel):
    """Comfort and wind-rose analysis of one dataset."""
    header: DatasetHeader
    record_count: int
    comfort: ComfortAnalysis
    wind_rose: WindRoseData


class CacheClearResponse(BaseModel):
    """Result of clearing the dataset cache."""
    removed: int
    message: str
