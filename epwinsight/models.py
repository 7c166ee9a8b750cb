"""Pydantic value objects for parsed EPW data and derived analyses."""

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clamp(value: float, lower: float, upper: float) -> float:
    return min(upper, max(lower, value))


# ============================================================================
# Parsed document
# ============================================================================

class DatasetHeader(BaseModel):
    """Site identity from the LOCATION line."""
    model_config = ConfigDict(frozen=True)

    location: str = ""
    country: str = ""
    data_source: str = ""
    station_id: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    timezone: float = 0.0  # hours from UTC
    elevation: float = 0.0  # m


class ObservationRecord(BaseModel):
    """
    One hour of weather in EPW column order.

    Values that have a physical range are clamped into it when the record
    is built.
    """
    model_config = ConfigDict(frozen=True)

    year: int = 0
    month: int = 0
    day: int = 0
    hour: int = 0
    minute: int = 0
    data_source_flag: str = ""
    dry_bulb_temperature: float = 0.0  # °C
    dew_point_temperature: float = 0.0  # °C
    relative_humidity: float = 0.0  # %
    atmospheric_pressure: float = 0.0  # Pa
    extraterrestrial_horizontal_radiation: float = 0.0  # Wh/m²
    extraterrestrial_direct_normal_radiation: float = 0.0  # Wh/m²
    horizontal_infrared_radiation: float = 0.0  # Wh/m²
    global_horizontal_radiation: float = 0.0  # Wh/m²
    direct_normal_radiation: float = 0.0  # Wh/m²
    diffuse_horizontal_radiation: float = 0.0  # Wh/m²
    global_horizontal_illuminance: float = 0.0  # lux
    direct_normal_illuminance: float = 0.0  # lux
    diffuse_horizontal_illuminance: float = 0.0  # lux
    zenith_luminance: float = 0.0  # Cd/m²
    wind_direction: float = 0.0  # degrees
    wind_speed: float = 0.0  # m/s
    total_sky_cover: float = 0.0  # tenths
    opaque_sky_cover: float = 0.0  # tenths
    visibility: float = 0.0  # km
    ceiling_height: float = 0.0  # m
    present_weather_observation: int = 0
    present_weather_codes: str = ""
    precipitable_water: float = 0.0  # mm
    aerosol_optical_depth: float = 0.0
    snow_depth: float = 0.0  # cm
    days_since_last_snowfall: float = 0.0
    albedo: float = 0.0
    liquid_precipitation_depth: float = 0.0  # mm
    liquid_precipitation_quantity: float = 0.0  # hr

    @field_validator("relative_humidity")
    @classmethod
    def _clamp_percentage(cls, value: float) -> float:
        return _clamp(value, 0.0, 100.0)

    @field_validator("wind_direction")
    @classmethod
    def _clamp_direction(cls, value: float) -> float:
        return _clamp(value, 0.0, 360.0)

    @field_validator("total_sky_cover", "opaque_sky_cover")
    @classmethod
    def _clamp_sky_cover(cls, value: float) -> float:
        return _clamp(value, 0.0, 10.0)

    @field_validator("albedo")
    @classmethod
    def _clamp_albedo(cls, value: float) -> float:
        return _clamp(value, 0.0, 1.0)

    @field_validator(
        "extraterrestrial_horizontal_radiation",
        "extraterrestrial_direct_normal_radiation",
        "horizontal_infrared_radiation",
        "global_horizontal_radiation",
        "direct_normal_radiation",
        "diffuse_horizontal_radiation",
        "global_horizontal_illuminance",
        "direct_normal_illuminance",
        "diffuse_horizontal_illuminance",
        "zenith_luminance",
        "wind_speed",
        "visibility",
        "ceiling_height",
        "precipitable_water",
        "aerosol_optical_depth",
        "snow_depth",
        "days_since_last_snowfall",
        "liquid_precipitation_depth",
        "liquid_precipitation_quantity",
    )
    @classmethod
    def _clamp_non_negative(cls, value: float) -> float:
        return max(0.0, value)


class ParseDiagnostic(BaseModel):
    """A line the parser skipped."""
    model_config = ConfigDict(frozen=True)

    line_number: int  # 1-based, counted over non-blank lines
    field_count: int
    message: str


# ============================================================================
# Aggregates
# ============================================================================

class DailyAverages(BaseModel):
    """365 per-day means; days without data are 0.0."""
    model_config = ConfigDict(frozen=True)

    temperature: Tuple[float, ...]
    humidity: Tuple[float, ...]
    wind_speed: Tuple[float, ...]


class MonthlyAverages(BaseModel):
    """12 per-month means; months without data are 0.0."""
    model_config = ConfigDict(frozen=True)

    temperature: Tuple[float, ...]
    humidity: Tuple[float, ...]
    wind_speed: Tuple[float, ...]
    wind_direction: Tuple[float, ...]


class AnnualStats(BaseModel):
    """Whole-file statistics; all zero for an empty record set."""
    model_config = ConfigDict(frozen=True)

    min_temperature: float = 0.0
    max_temperature: float = 0.0
    avg_temperature: float = 0.0
    avg_humidity: float = 0.0
    avg_wind_speed: float = 0.0
    predominant_wind_direction: float = 0.0


class ProcessedDataset(BaseModel):
    """A parsed EPW document with its aggregates. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    header: DatasetHeader
    hourly_data: Tuple[ObservationRecord, ...] = ()
    daily_averages: DailyAverages
    monthly_averages: MonthlyAverages
    annual_stats: AnnualStats
    diagnostics: Tuple[ParseDiagnostic, ...] = ()

    @property
    def record_count(self) -> int:
        return len(self.hourly_data)


# ============================================================================
# Derived analyses
# ============================================================================

class ComfortAnalysis(BaseModel):
    """Degree-day/degree-hour totals against a comfort setpoint."""
    model_config = ConfigDict(frozen=True)

    comfort_temperature: float
    band_width: float
    heating_degree_days: float = 0.0
    cooling_degree_days: float = 0.0
    heating_degree_hours: float = 0.0
    cooling_degree_hours: float = 0.0
    comfortable_hours: int = 0
    hours_considered: int = 0
    comfort_percentage: float = Field(default=0.0, ge=0.0, le=100.0)


class WindRoseData(BaseModel):
    """16 directions x 7 speed bands of frequency (%) and mean speed (m/s)."""
    model_config = ConfigDict(frozen=True)

    directions: Tuple[str, ...]
    speed_bands: Tuple[str, ...]
    frequencies: Tuple[Tuple[float, ...], ...]
    speeds: Tuple[Tuple[float, ...], ...]
    calm_hours: int = 0
    total_hours: int = 0
