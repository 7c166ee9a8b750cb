"""
Weather data orchestrator

Public entry point: parses EPW text, files and remote archives, consults
the cache before downloading, and computes comfort and wind-rose analyses.
"""
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from .aggregation.config import AggregationConfig
from .aggregation.feature_calculators import ComfortAnalyzer, WindRoseBuilder
from .exceptions import ArchiveError, DatasetLoadError, SourceError
from .ingestion.archive_client import ArchiveClient
from .ingestion.cache import CacheStore
from .ingestion.config import CacheConfig, FetchConfig
from .ingestion.storage import FileSystemBackend
from .models import ComfortAnalysis, ObservationRecord, ProcessedDataset, WindRoseData
from .processing.config import ProcessingConfig
from .processing.parser import DatasetParser

logger = logging.getLogger(__name__)


class WeatherDataOrchestrator:
    """Coordinates fetching, parsing, caching and analysis"""

    def __init__(
        self,
        cache: CacheStore,
        fetcher: Optional[ArchiveClient] = None,
        parser: Optional[DatasetParser] = None,
        aggregation_config: Optional[AggregationConfig] = None,
    ):
        """
        Initialize orchestrator

        Args:
            cache: Dataset cache; owned by the caller and shared across requests
            fetcher: Remote archive client
            parser: EPW document parser
            aggregation_config: Defaults for comfort and wind-rose analysis
        """
        self.cache = cache
        self.fetcher = fetcher or ArchiveClient()
        self.parser = parser or DatasetParser()
        aggregation_config = aggregation_config or AggregationConfig()
        self.comfort_analyzer = ComfortAnalyzer(aggregation_config)
        self.wind_rose_builder = WindRoseBuilder(aggregation_config)
        logger.info("WeatherDataOrchestrator initialized")

    def parse_from_text(self, text: str) -> ProcessedDataset:
        """Parse EPW text without touching the cache."""
        return self.parser.parse(text)

    def parse_from_file(self, path: Union[str, Path]) -> ProcessedDataset:
        """Parse a local EPW file without touching the cache."""
        return self.parser.parse_file(path)

    def parse_from_remote_archive(self, url: str, file_name: str) -> ProcessedDataset:
        """
        Load an EPW file from a remote ZIP archive, cache-first

        A fresh cache hit is returned without downloading. Otherwise the
        archive is fetched and parsed and the result cached; failing to
        cache never fails the load. If the download or extraction fails,
        any cached copy is returned regardless of age; an expired entry is
        only replaced once a fresh copy has been parsed.

        Args:
            url: Archive URL
            file_name: EPW member name inside the archive

        Returns:
            ProcessedDataset

        Raises:
            DatasetLoadError: If the source fails and nothing is cached
            FormatError: If the downloaded file is not a valid EPW document
        """
        # Expired entries stay in place as a fallback until the refetch succeeds
        cached = self.cache.get(url, file_name, delete_expired=False)
        if cached is not None:
            return cached

        logger.info(f"Downloading and parsing EPW from: {url}")

        try:
            text = self.fetcher.fetch(url, file_name)
        except SourceError as e:
            logger.error(f"Failed to fetch EPW from remote ZIP: {e}")

            stale = self.cache.get_stale(url, file_name)
            if stale is not None:
                logger.warning(f"Using expired cache as fallback for {file_name}")
                return stale

            kind = "archive" if isinstance(e, ArchiveError) else "network"
            raise DatasetLoadError(
                f"Failed to load EPW data: {e}. This may be due to network "
                f"issues or cross-origin restrictions on the archive host.",
                kind=kind,
            ) from e

        dataset = self.parser.parse(text)

        if not self.cache.put(url, file_name, dataset):
            logger.warning(f"{file_name} was loaded but not cached")

        return dataset

    def compute_comfort(
        self,
        records: Sequence[ObservationRecord],
        comfort_temp: Optional[float] = None,
        band_width: Optional[float] = None,
    ) -> ComfortAnalysis:
        """Comfort analysis of hourly records against a setpoint."""
        return self.comfort_analyzer.analyze(records, comfort_temp, band_width)

    def build_wind_rose(self, records: Sequence[ObservationRecord]) -> WindRoseData:
        """Wind-rose distribution of hourly records."""
        return self.wind_rose_builder.build(records)

    def close(self):
        """Close network resources."""
        self.fetcher.close()


def create_orchestrator(
    cache_config: Optional[CacheConfig] = None,
    fetch_config: Optional[FetchConfig] = None,
    processing_config: Optional[ProcessingConfig] = None,
    aggregation_config: Optional[AggregationConfig] = None,
) -> WeatherDataOrchestrator:
    """
    Factory function building an orchestrator with a file-system cache

    Returns:
        WeatherDataOrchestrator instance
    """
    cache_config = cache_config or CacheConfig()
    backend = FileSystemBackend(
        cache_config.cache_dir,
        capacity_bytes=cache_config.storage_capacity_bytes,
    )
    return WeatherDataOrchestrator(
        cache=CacheStore(backend, cache_config),
        fetcher=ArchiveClient(fetch_config),
        parser=DatasetParser(processing_config),
        aggregation_config=aggregation_config,
    )
