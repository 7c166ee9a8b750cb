"""
Daily, monthly and annual aggregation of hourly observation records.
"""
import logging
from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from ..models import AnnualStats, DailyAverages, MonthlyAverages, ObservationRecord

logger = logging.getLogger(__name__)

# Non-leap calendar; EPW typical years always have 365 days
DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)
DAYS_IN_YEAR = sum(DAYS_IN_MONTH)


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def calendar_days() -> List[Tuple[int, int]]:
    """All (month, day) pairs of a non-leap year in calendar order."""
    return [
        (month, day)
        for month, days in enumerate(DAYS_IN_MONTH, start=1)
        for day in range(1, days + 1)
    ]


class Aggregator:
    """Computes multi-resolution summaries from a record sequence."""

    def daily_averages(self, records: Sequence[ObservationRecord]) -> DailyAverages:
        """
        Average temperature, humidity and wind speed per calendar day.

        Records are bucketed by (month, day). Days that received no records
        report 0.0; records dated outside the 365-day calendar are ignored.

        Args:
            records: Hourly observation records

        Returns:
            DailyAverages with exactly 365 entries per series
        """
        buckets: Dict[Tuple[int, int], List[ObservationRecord]] = defaultdict(list)
        for record in records:
            buckets[(record.month, record.day)].append(record)

        temperature = []
        humidity = []
        wind_speed = []

        for key in calendar_days():
            day_records = buckets.get(key, [])
            temperature.append(_mean([r.dry_bulb_temperature for r in day_records]))
            humidity.append(_mean([r.relative_humidity for r in day_records]))
            wind_speed.append(_mean([r.wind_speed for r in day_records]))

        return DailyAverages(
            temperature=tuple(temperature),
            humidity=tuple(humidity),
            wind_speed=tuple(wind_speed),
        )

    def monthly_averages(self, records: Sequence[ObservationRecord]) -> MonthlyAverages:
        """
        Average temperature, humidity, wind speed and wind direction per month.

        Wind direction is the arithmetic mean of the angles, not a circular
        mean: readings of 350° and 10° average to 180°.

        Args:
            records: Hourly observation records

        Returns:
            MonthlyAverages with exactly 12 entries per series
        """
        buckets: Dict[int, List[ObservationRecord]] = defaultdict(list)
        for record in records:
            buckets[record.month].append(record)

        temperature = []
        humidity = []
        wind_speed = []
        wind_direction = []

        for month in range(1, 13):
            month_records = buckets.get(month, [])
            temperature.append(_mean([r.dry_bulb_temperature for r in month_records]))
            humidity.append(_mean([r.relative_humidity for r in month_records]))
            wind_speed.append(_mean([r.wind_speed for r in month_records]))
            wind_direction.append(_mean([r.wind_direction for r in month_records]))

        return MonthlyAverages(
            temperature=tuple(temperature),
            humidity=tuple(humidity),
            wind_speed=tuple(wind_speed),
            wind_direction=tuple(wind_direction),
        )

    def annual_stats(self, records: Sequence[ObservationRecord]) -> AnnualStats:
        """Min/max/mean over the flat record list; zeros when empty."""
        if not records:
            return AnnualStats()

        temperatures = [r.dry_bulb_temperature for r in records]

        return AnnualStats(
            min_temperature=min(temperatures),
            max_temperature=max(temperatures),
            avg_temperature=_mean(temperatures),
            avg_humidity=_mean([r.relative_humidity for r in records]),
            avg_wind_speed=_mean([r.wind_speed for r in records]),
            predominant_wind_direction=_mean([r.wind_direction for r in records]),
        )

    def aggregate(
        self, records: Sequence[ObservationRecord]
    ) -> Tuple[DailyAverages, MonthlyAverages, AnnualStats]:
        """Compute all three resolutions in one call."""
        logger.debug(f"Aggregating {len(records)} records")
        return (
            self.daily_averages(records),
            self.monthly_averages(records),
            self.annual_stats(records),
        )
