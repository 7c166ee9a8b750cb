"""
Tests for the EPW document parser
"""
import pytest

from epwinsight.exceptions import FieldError, FormatError
from epwinsight.processing.config import ProcessingConfig
from epwinsight.processing.parser import (
    RECORD_SCHEMA,
    DatasetParser,
    RecordParser,
    create_parser,
    decode_text,
    parse_float,
    parse_int,
)


def test_record_schema_covers_all_epw_fields():
    """Test that the record layout has the 35 EPW columns"""
    assert len(RECORD_SCHEMA) == 35
    assert RECORD_SCHEMA[6] == ("dry_bulb_temperature", float)
    assert RECORD_SCHEMA[20] == ("wind_direction", float)
    assert RECORD_SCHEMA[21] == ("wind_speed", float)


@pytest.mark.parametrize("raw,expected", [
    ("12.5", 12.5),
    (" -3.2 ", -3.2),
    ("1e3", 1000.0),
    ("7.5abc", 7.5),
    ("", 0.0),
    ("abc", 0.0),
    ("nan", 0.0),
    ("inf", 0.0),
])
def test_parse_float_fallback(raw, expected):
    assert parse_float(raw) == expected


@pytest.mark.parametrize("raw,expected", [("1995", 1995), ("12.7", 12), ("x", 0), ("", 0)])
def test_parse_int_fallback(raw, expected):
    assert parse_int(raw) == expected


def test_create_parser():
    """Test factory function"""
    parser = create_parser()
    assert isinstance(parser, DatasetParser)
    assert parser.config.min_header_lines == 8


class TestRecordParser:
    """Test single-line parsing"""

    def test_parse_valid_line(self, record_line):
        record = RecordParser().parse(record_line(month=3, day=4, hour=5, temperature=12.3))

        assert record.year == 1995
        assert (record.month, record.day, record.hour) == (3, 4, 5)
        assert record.dry_bulb_temperature == pytest.approx(12.3)
        assert record.atmospheric_pressure == 101325
        assert record.present_weather_codes == "999999999"

    def test_short_line_raises_field_error(self):
        with pytest.raises(FieldError) as exc_info:
            RecordParser().parse("1995,1,1,1,60,flag,1,2,3,4", line_number=12)

        assert exc_info.value.field_count == 10
        assert exc_info.value.line_number == 12

    def test_values_clamped_to_physical_range(self, record_line):
        fields = record_line().split(",")
        fields[8] = "150"     # relative humidity
        fields[20] = "400"    # wind direction
        fields[21] = "-4"     # wind speed
        fields[22] = "12"     # total sky cover
        fields[13] = "-10"    # global horizontal radiation
        fields[32] = "1.5"    # albedo

        record = RecordParser().parse(",".join(fields))

        assert record.relative_humidity == 100
        assert record.wind_direction == 360
        assert record.wind_speed == 0
        assert record.total_sky_cover == 10
        assert record.global_horizontal_radiation == 0
        assert record.albedo == 1

    def test_non_numeric_fields_default_to_zero(self, record_line):
        fields = record_line().split(",")
        fields[6] = "missing"
        fields[9] = ""

        record = RecordParser().parse(",".join(fields))

        assert record.dry_bulb_temperature == 0.0
        assert record.atmospheric_pressure == 0.0

    def test_extra_fields_ignored(self, record_line):
        record = RecordParser().parse(record_line(temperature=4.0) + ",extra,fields")
        assert record.dry_bulb_temperature == 4.0


class TestDatasetParser:
    """Test full-document parsing"""

    def test_too_few_lines_raises_format_error(self, parser):
        with pytest.raises(FormatError):
            parser.parse("LOCATION,A\nB\nC\n")

    def test_blank_lines_do_not_count_as_header(self, parser):
        with pytest.raises(FormatError):
            parser.parse("LOCATION,A\n\n\n\n\n\n\n\nB\n")

    def test_header_only_document(self, parser, epw_document):
        dataset = parser.parse(epw_document([]))

        assert dataset.record_count == 0
        assert dataset.annual_stats.min_temperature == 0
        assert dataset.annual_stats.max_temperature == 0
        assert len(dataset.daily_averages.temperature) == 365

    def test_header_fields(self, parser, epw_document):
        dataset = parser.parse(epw_document([]))
        header = dataset.header

        assert header.location == "Gothenburg"
        assert header.country == "SWE"
        assert header.data_source == "TMY"
        assert header.station_id == "025120"
        assert header.latitude == pytest.approx(57.663)
        assert header.longitude == pytest.approx(12.28)
        assert header.timezone == 1
        assert header.elevation == 6

    def test_header_missing_fields_default(self, parser, epw_document):
        dataset = parser.parse(epw_document([], header="LOCATION,Nowhere,,XX"))
        header = dataset.header

        assert header.location == "Nowhere"
        assert header.country == "XX"
        assert header.data_source == ""
        assert header.latitude == 0.0
        assert header.elevation == 0.0

    def test_malformed_line_skipped_with_diagnostic(self, parser, epw_document, record_line):
        lines = [record_line(hour=h) for h in range(1, 5)]
        lines.insert(2, "1995,1,1,3,60,bad,line")

        dataset = parser.parse(epw_document(lines))

        assert dataset.record_count == 4
        assert len(dataset.diagnostics) == 1
        diagnostic = dataset.diagnostics[0]
        assert diagnostic.line_number == 11
        assert diagnostic.field_count == 7

    def test_crlf_line_endings(self, parser, epw_document, record_line):
        text = epw_document([record_line(), record_line(hour=2)]).replace("\n", "\r\n")
        dataset = parser.parse(text)
        assert dataset.record_count == 2

    def test_min_header_lines_configurable(self, epw_document, record_line):
        parser = DatasetParser(ProcessingConfig(min_header_lines=8))
        dataset = parser.parse(epw_document([record_line()]))
        assert dataset.record_count == 1

    def test_parse_file(self, parser, tmp_path, small_text):
        path = tmp_path / "sample.epw"
        path.write_text(small_text, encoding="utf-8")

        dataset = parser.parse_file(path)

        assert dataset.record_count == 72
        assert dataset.header.location == "Gothenburg"

    def test_parse_file_latin1(self, parser, tmp_path, epw_document, record_line):
        path = tmp_path / "latin1.epw"
        text = epw_document([record_line()], header="LOCATION,Göteborg,,SWE,TMY,025120,57.6,12.2,1,6")
        path.write_bytes(text.encode("latin-1"))

        dataset = parser.parse_file(path)

        assert dataset.header.location == "Göteborg"


class TestGothenburgYear:
    """Full-year synthetic scenario"""

    def test_record_count(self, gothenburg_dataset):
        assert gothenburg_dataset.record_count == 8760
        assert gothenburg_dataset.diagnostics == ()

    def test_annual_temperature_range(self, gothenburg_dataset):
        stats = gothenburg_dataset.annual_stats
        assert stats.min_temperature == pytest.approx(0.0, abs=0.1)
        assert stats.max_temperature == pytest.approx(30.0, abs=0.1)
        assert stats.avg_temperature == pytest.approx(15.0, abs=0.1)

    def test_short_line_leaves_remaining_records(self, parser, gothenburg_text):
        lines = gothenburg_text.splitlines()
        lines[100] = "1995,1,5,1,60,flag,1,2,3,4"

        dataset = parser.parse("\n".join(lines))

        assert dataset.record_count == 8759
        assert len(dataset.diagnostics) == 1


def test_decode_text_fallback():
    assert decode_text("å".encode("utf-8"), ["utf-8", "latin-1"]) == "å"
    assert decode_text("å".encode("latin-1"), ["utf-8", "latin-1"]) == "å"
