"""
Feature calculators for thermal comfort and wind distribution.

Each calculator takes the hourly record sequence of one processed dataset
and returns a derived value object. Both are O(n) over at most one year of
hours, cheap enough to rerun on every comfort-setpoint change.
"""
import math
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from ..models import ComfortAnalysis, ObservationRecord, WindRoseData
from .config import AggregationConfig

WIND_DIRECTIONS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)

DEFAULT_SPEED_BINS = (0, 2, 4, 6, 8, 10, 15)  # m/s


def calculate_comfort_analysis(
    records: Sequence[ObservationRecord],
    comfort_temp: float = 21.0,
    band_width: float = 1.0,
    max_hours: int = 8760,
) -> ComfortAnalysis:
    """
    Calculate heating/cooling degree-days and degree-hours around a setpoint.

    Only the first ``max_hours`` records are considered, so repeated or
    overlapping source data cannot inflate annual totals.

    Degree-days use the daily mean temperature:
    - HDD: sum of (comfort - daily_mean) for days below comfort - band
    - CDD: sum of (daily_mean - comfort) for days above comfort + band

    Degree-hours apply the same test to every hourly reading. Hours inside
    the band count as comfortable.

    Returns ComfortAnalysis with comfort_percentage in [0, 100].
    """
    if band_width < 0:
        raise ValueError(f"band_width must be non-negative, got {band_width}")

    year_data = records[:max_hours]
    lower = comfort_temp - band_width
    upper = comfort_temp + band_width

    # Daily mean temperatures for degree days
    daily_temps: Dict[Tuple[int, int], List[float]] = defaultdict(list)
    for record in year_data:
        daily_temps[(record.month, record.day)].append(record.dry_bulb_temperature)

    heating_degree_days = 0.0
    cooling_degree_days = 0.0
    for temps in daily_temps.values():
        daily_mean = sum(temps) / len(temps)
        if daily_mean < lower:
            heating_degree_days += comfort_temp - daily_mean
        elif daily_mean > upper:
            cooling_degree_days += daily_mean - comfort_temp

    # Hourly degree hours and comfortable hours
    heating_degree_hours = 0.0
    cooling_degree_hours = 0.0
    comfortable_hours = 0
    for record in year_data:
        temp = record.dry_bulb_temperature
        if temp < lower:
            heating_degree_hours += comfort_temp - temp
        elif temp > upper:
            cooling_degree_hours += temp - comfort_temp
        else:
            comfortable_hours += 1

    hours_considered = len(year_data)
    comfort_percentage = (
        comfortable_hours / hours_considered * 100 if hours_considered else 0.0
    )

    return ComfortAnalysis(
        comfort_temperature=comfort_temp,
        band_width=band_width,
        heating_degree_days=heating_degree_days,
        cooling_degree_days=cooling_degree_days,
        heating_degree_hours=heating_degree_hours,
        cooling_degree_hours=cooling_degree_hours,
        comfortable_hours=comfortable_hours,
        hours_considered=hours_considered,
        comfort_percentage=comfort_percentage,
    )


def speed_band_labels(speed_bins: Sequence[float]) -> Tuple[str, ...]:
    """Labels such as '0-2', '10-15', '15+' for a list of band lower bounds."""
    labels = []
    for index, lower in enumerate(speed_bins):
        if index + 1 < len(speed_bins):
            labels.append(f"{lower:g}-{speed_bins[index + 1]:g}")
        else:
            labels.append(f"{lower:g}+")
    return tuple(labels)


def direction_index(wind_direction: float) -> int:
    """Index of the 22.5° compass sector centred on the given bearing."""
    return int(math.floor(((wind_direction + 11.25) % 360) / 22.5)) % len(WIND_DIRECTIONS)


def speed_index(wind_speed: float, speed_bins: Sequence[float]) -> int:
    """Index of the highest speed band whose lower bound is <= wind_speed."""
    for index in range(len(speed_bins) - 1):
        if wind_speed < speed_bins[index + 1]:
            return index
    return len(speed_bins) - 1


def calculate_wind_rose(
    records: Sequence[ObservationRecord],
    speed_bins: Sequence[float] = DEFAULT_SPEED_BINS,
) -> WindRoseData:
    """
    Bin wind observations into a direction x speed-band matrix.

    Calm hours (wind speed <= 0) are excluded from the matrix. Each cell
    holds the percentage of non-calm hours that fell into it and the mean
    speed of those hours; empty cells are 0. The matrix is always fully
    populated.
    """
    band_count = len(speed_bins)
    counts = [[0] * band_count for _ in WIND_DIRECTIONS]
    speed_sums = [[0.0] * band_count for _ in WIND_DIRECTIONS]

    calm_hours = 0
    for record in records:
        if record.wind_speed <= 0:
            calm_hours += 1
            continue
        d = direction_index(record.wind_direction)
        s = speed_index(record.wind_speed, speed_bins)
        counts[d][s] += 1
        speed_sums[d][s] += record.wind_speed

    total_count = len(records) - calm_hours

    frequencies = []
    speeds = []
    for d in range(len(WIND_DIRECTIONS)):
        frequency_row = []
        speed_row = []
        for s in range(band_count):
            count = counts[d][s]
            if count > 0:
                frequency_row.append(count / total_count * 100)
                speed_row.append(speed_sums[d][s] / count)
            else:
                frequency_row.append(0.0)
                speed_row.append(0.0)
        frequencies.append(tuple(frequency_row))
        speeds.append(tuple(speed_row))

    return WindRoseData(
        directions=WIND_DIRECTIONS,
        speed_bands=speed_band_labels(speed_bins),
        frequencies=tuple(frequencies),
        speeds=tuple(speeds),
        calm_hours=calm_hours,
        total_hours=len(records),
    )


class ComfortAnalyzer:
    """Comfort analysis with configured defaults."""

    def __init__(self, config: Optional[AggregationConfig] = None):
        self.config = config or AggregationConfig()

    def analyze(
        self,
        records: Sequence[ObservationRecord],
        comfort_temp: Optional[float] = None,
        band_width: Optional[float] = None,
    ) -> ComfortAnalysis:
        if comfort_temp is None:
            comfort_temp = self.config.comfort_temperature_c
        if band_width is None:
            band_width = self.config.comfort_band_width_c
        return calculate_comfort_analysis(
            records,
            comfort_temp=comfort_temp,
            band_width=band_width,
            max_hours=self.config.max_hours,
        )


class WindRoseBuilder:
    """Wind rose construction with configured speed bands."""

    def __init__(self, config: Optional[AggregationConfig] = None):
        self.config = config or AggregationConfig()

    def build(self, records: Sequence[ObservationRecord]) -> WindRoseData:
        return calculate_wind_rose(records, speed_bins=self.config.wind_speed_bins)
