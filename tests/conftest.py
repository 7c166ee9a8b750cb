"""Shared test configuration and fixtures."""
import io
import math
import zipfile

import pytest

from epwinsight.aggregation.aggregator import calendar_days
from epwinsight.aggregation.config import AggregationConfig
from epwinsight.ingestion.cache import CacheStore
from epwinsight.ingestion.config import CacheConfig
from epwinsight.ingestion.storage import MemoryBackend
from epwinsight.models import ObservationRecord
from epwinsight.processing.config import ProcessingConfig
from epwinsight.processing.parser import DatasetParser

GOTHENBURG_HEADER = "LOCATION,Gothenburg,,SWE,TMY,025120,57.663,12.28,1,6"

# Header block after LOCATION; always 7 lines so records start at line 9
HEADER_BLOCK = [
    "DESIGN CONDITIONS,0",
    "TYPICAL/EXTREME PERIODS,0",
    "GROUND TEMPERATURES,0",
    "HOLIDAYS/DAYLIGHT SAVINGS,No,0,0,0",
    "COMMENTS 1,Synthetic test data",
    "COMMENTS 2,",
    "DATA PERIODS,1,1,Data,Sunday, 1/ 1,12/31",
]

HOURS_PER_YEAR = 8760


def make_record_line(
    month=1,
    day=1,
    hour=1,
    temperature=10.0,
    humidity=50.0,
    wind_direction=180.0,
    wind_speed=3.0,
    year=1995,
):
    """One 35-field EPW data line; fields not given are plausible defaults."""
    fields = ["0"] * 35
    fields[0] = str(year)
    fields[1] = str(month)
    fields[2] = str(day)
    fields[3] = str(hour)
    fields[4] = "60"
    fields[5] = "?9?9?9?9E0?9?9?9*9*9?9?9?9?9?9?9?9?9*_*9*9*9*9*9"
    fields[6] = f"{temperature:.1f}"
    fields[7] = f"{temperature - 5:.1f}"
    fields[8] = f"{humidity:.0f}"
    fields[9] = "101325"
    fields[20] = f"{wind_direction:.0f}"
    fields[21] = f"{wind_speed:.1f}"
    fields[22] = "5"
    fields[23] = "3"
    fields[24] = "20.0"
    fields[25] = "77777"
    fields[26] = "9"
    fields[27] = "999999999"
    fields[32] = "0.2"
    return ",".join(fields)


def make_document(record_lines, header=GOTHENBURG_HEADER):
    return "\n".join([header] + HEADER_BLOCK + list(record_lines)) + "\n"


def sinusoid_temperature(index):
    """15 ± 15 °C over the year, coldest at the first hour."""
    return 15 + 15 * math.sin(2 * math.pi * index / HOURS_PER_YEAR - math.pi / 2)


def gothenburg_lines():
    lines = []
    index = 0
    for month, day in calendar_days():
        for hour in range(1, 25):
            lines.append(make_record_line(
                month=month,
                day=day,
                hour=hour,
                temperature=sinusoid_temperature(index),
                humidity=70 + 20 * math.sin(2 * math.pi * index / 24),
                wind_direction=(index * 7) % 360,
                wind_speed=(index % 12) * 1.0,
            ))
            index += 1
    return lines


@pytest.fixture(scope="session")
def record_line():
    """Builder for a single EPW data line."""
    return make_record_line


@pytest.fixture(scope="session")
def epw_document():
    """Builder for a full EPW document from data lines."""
    return make_document


@pytest.fixture(scope="session")
def gothenburg_text():
    """A full year (8760 hours) of synthetic Gothenburg data."""
    return make_document(gothenburg_lines())


@pytest.fixture
def small_text():
    """Three days in January and one in July."""
    lines = [
        make_record_line(month=1, day=1, hour=h, temperature=-2.0, humidity=80,
                         wind_direction=270, wind_speed=4.0)
        for h in range(1, 25)
    ]
    lines += [
        make_record_line(month=1, day=2, hour=h, temperature=0.0, humidity=90,
                         wind_direction=90, wind_speed=2.0)
        for h in range(1, 25)
    ]
    lines += [
        make_record_line(month=7, day=15, hour=h, temperature=25.0, humidity=50,
                         wind_direction=180, wind_speed=1.0)
        for h in range(1, 25)
    ]
    return make_document(lines)


@pytest.fixture
def parser():
    """Dataset parser with default configuration."""
    return DatasetParser(ProcessingConfig())


@pytest.fixture(scope="session")
def gothenburg_dataset(gothenburg_text):
    """Parsed full-year dataset, shared across the session."""
    return DatasetParser(ProcessingConfig()).parse(gothenburg_text)


@pytest.fixture
def small_dataset(parser, small_text):
    return parser.parse(small_text)


@pytest.fixture
def aggregation_config():
    return AggregationConfig()


@pytest.fixture
def make_records():
    """Builder for ObservationRecord lists from (month, day, temp) tuples."""
    def build(rows, wind_direction=0.0, wind_speed=0.0):
        return [
            ObservationRecord(
                month=month,
                day=day,
                hour=1,
                dry_bulb_temperature=temp,
                wind_direction=wind_direction,
                wind_speed=wind_speed,
            )
            for month, day, temp in rows
        ]
    return build


class FakeClock:
    """Manually advanced clock in epoch seconds."""

    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache_config(tmp_path):
    return CacheConfig(cache_dir=tmp_path / "cache")


@pytest.fixture
def memory_cache(cache_config, clock):
    """Cache store over an unbounded in-memory backend."""
    return CacheStore(MemoryBackend(), cache_config, clock=clock)


@pytest.fixture
def encrypted_archive():
    """ZIP archive holding SWE_Gothenburg.epw with the encryption flag set."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("SWE_Gothenburg.epw", b"LOCATION,Gothenburg")
    content = bytearray(buffer.getvalue())
    # General purpose flag bits: offset 6 in the local header, 8 in the central one
    content[6] |= 0x01
    content[content.index(b"PK\x01\x02") + 8] |= 0x01
    return bytes(content)
