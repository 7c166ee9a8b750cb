"""
Configuration management for the aggregation service.
"""
from pydantic_settings import BaseSettings


class AggregationConfig(BaseSettings):
    """Configuration for aggregation service."""

    # Comfort analysis
    comfort_temperature_c: float = 21.0
    comfort_band_width_c: float = 1.0
    max_hours: int = 8760  # one non-leap year of hourly data

    # Wind rose speed band lower bounds (m/s); the last band is open-ended
    wind_speed_bins: list[float] = [0, 2, 4, 6, 8, 10, 15]

    class Config:
        env_file = ".env"
        env_prefix = "EPWINSIGHT_"
        extra = "ignore"


def get_config() -> AggregationConfig:
    """Get aggregation configuration instance."""
    return AggregationConfig()
