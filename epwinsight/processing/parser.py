"""
EPW document parser

Splits an EPW document into its LOCATION header and hourly records,
converts every field with a fallback of 0 and assembles the processed
dataset with its aggregates.
"""
import logging
import math
import re
from pathlib import Path
from typing import List, Optional, Union

from ..aggregation.aggregator import Aggregator
from ..exceptions import FieldError, FormatError
from ..models import DatasetHeader, ObservationRecord, ParseDiagnostic, ProcessedDataset
from .config import ProcessingConfig

logger = logging.getLogger(__name__)


# Hourly record layout: (field name, type) by EPW column index.
# Range clamping lives on ObservationRecord itself.
RECORD_SCHEMA = (
    ("year", int),
    ("month", int),
    ("day", int),
    ("hour", int),
    ("minute", int),
    ("data_source_flag", str),
    ("dry_bulb_temperature", float),
    ("dew_point_temperature", float),
    ("relative_humidity", float),
    ("atmospheric_pressure", float),
    ("extraterrestrial_horizontal_radiation", float),
    ("extraterrestrial_direct_normal_radiation", float),
    ("horizontal_infrared_radiation", float),
    ("global_horizontal_radiation", float),
    ("direct_normal_radiation", float),
    ("diffuse_horizontal_radiation", float),
    ("global_horizontal_illuminance", float),
    ("direct_normal_illuminance", float),
    ("diffuse_horizontal_illuminance", float),
    ("zenith_luminance", float),
    ("wind_direction", float),
    ("wind_speed", float),
    ("total_sky_cover", float),
    ("opaque_sky_cover", float),
    ("visibility", float),
    ("ceiling_height", float),
    ("present_weather_observation", int),
    ("present_weather_codes", str),
    ("precipitable_water", float),
    ("aerosol_optical_depth", float),
    ("snow_depth", float),
    ("days_since_last_snowfall", float),
    ("albedo", float),
    ("liquid_precipitation_depth", float),
    ("liquid_precipitation_quantity", float),
)

# LOCATION,<city>,<state>,<country>,<source>,<WMO>,<lat>,<lon>,<tz>,<elev>
HEADER_TEXT_FIELDS = {"location": 1, "country": 3, "data_source": 4, "station_id": 5}
HEADER_NUMERIC_FIELDS = {"latitude": 6, "longitude": 7, "timezone": 8, "elevation": 9}

_FLOAT_PREFIX = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"\s*[+-]?\d+")


def parse_float(value: str) -> float:
    """Leading numeric prefix of ``value`` as a float, or 0.0."""
    match = _FLOAT_PREFIX.match(value)
    if not match:
        return 0.0
    number = float(match.group())
    return number if math.isfinite(number) else 0.0


def parse_int(value: str) -> int:
    """Leading integer prefix of ``value``, or 0."""
    match = _INT_PREFIX.match(value)
    return int(match.group()) if match else 0


class RecordParser:
    """Turns one comma-delimited line into an ObservationRecord."""

    def __init__(self, min_fields: int = len(RECORD_SCHEMA)):
        self.min_fields = max(min_fields, len(RECORD_SCHEMA))

    def parse(self, line: str, line_number: Optional[int] = None) -> ObservationRecord:
        """
        Parse a single hourly record line

        Args:
            line: Raw record text
            line_number: Position in the document, used for diagnostics

        Returns:
            ObservationRecord with every numeric field defaulted and clamped

        Raises:
            FieldError: If the line has fewer than the required fields
        """
        fields = line.split(",")
        if len(fields) < self.min_fields:
            raise FieldError(
                f"Expected at least {self.min_fields} fields, got {len(fields)}",
                line_number=line_number,
                field_count=len(fields),
            )

        values = {}
        for index, (name, kind) in enumerate(RECORD_SCHEMA):
            raw = fields[index]
            if kind is str:
                values[name] = raw.strip()
            elif kind is int:
                values[name] = parse_int(raw)
            else:
                values[name] = parse_float(raw)

        return ObservationRecord(**values)


class DatasetParser:
    """Parser for complete EPW documents"""

    def __init__(
        self,
        config: Optional[ProcessingConfig] = None,
        aggregator: Optional[Aggregator] = None,
    ):
        """
        Initialize parser

        Args:
            config: Processing configuration (defaults from environment)
            aggregator: Aggregator used to summarise parsed records
        """
        self.config = config or ProcessingConfig()
        self.aggregator = aggregator or Aggregator()
        self.record_parser = RecordParser(self.config.min_record_fields)

    def parse_header(self, line: str) -> DatasetHeader:
        """Parse the LOCATION line; missing fields default to '' or 0.0."""
        fields = line.split(",")

        def field(index: int) -> str:
            return fields[index].strip() if index < len(fields) else ""

        values = {name: field(index) for name, index in HEADER_TEXT_FIELDS.items()}
        values.update(
            {name: parse_float(field(index)) for name, index in HEADER_NUMERIC_FIELDS.items()}
        )
        return DatasetHeader(**values)

    def parse(self, text: str) -> ProcessedDataset:
        """
        Parse an EPW document

        Args:
            text: Full document text

        Returns:
            ProcessedDataset with hourly records and aggregates

        Raises:
            FormatError: If the document is shorter than the EPW header
        """
        lines = [line for line in text.splitlines() if line.strip()]

        if len(lines) < self.config.min_header_lines:
            raise FormatError(
                f"Invalid EPW file format: expected at least "
                f"{self.config.min_header_lines} header lines, got {len(lines)}"
            )

        header = self.parse_header(lines[0])

        records: List[ObservationRecord] = []
        diagnostics: List[ParseDiagnostic] = []

        for index in range(self.config.min_header_lines, len(lines)):
            try:
                records.append(self.record_parser.parse(lines[index], line_number=index + 1))
            except FieldError as e:
                logger.debug(f"Skipping line {index + 1}: {e}")
                diagnostics.append(
                    ParseDiagnostic(
                        line_number=index + 1,
                        field_count=e.field_count or 0,
                        message=str(e),
                    )
                )

        if diagnostics:
            logger.warning(
                f"Skipped {len(diagnostics)} malformed lines while parsing "
                f"{header.location or 'EPW document'}"
            )
        logger.info(f"Parsed {len(records)} hourly records for {header.location or 'unknown location'}")

        daily, monthly, annual = self.aggregator.aggregate(records)

        return ProcessedDataset(
            header=header,
            hourly_data=tuple(records),
            daily_averages=daily,
            monthly_averages=monthly,
            annual_stats=annual,
            diagnostics=tuple(diagnostics),
        )

    def parse_file(self, path: Union[str, Path]) -> ProcessedDataset:
        """
        Parse a local EPW file

        Args:
            path: Path to the .epw file

        Returns:
            ProcessedDataset
        """
        path = Path(path)
        logger.info(f"Parsing file: {path}")
        return self.parse(decode_text(path.read_bytes(), self.config.file_encodings))


def decode_text(content: bytes, encodings: List[str]) -> str:
    """Decode with the first encoding that succeeds."""
    for encoding in encodings[:-1]:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    return content.decode(encodings[-1], errors="replace")


def create_parser(config: Optional[ProcessingConfig] = None) -> DatasetParser:
    """
    Factory function to create a parser instance

    Args:
        config: Processing configuration

    Returns:
        DatasetParser instance
    """
    return DatasetParser(config)
