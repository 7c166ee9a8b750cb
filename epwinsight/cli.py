"""
Command-line interface for EPWInsight.

Subcommands parse local or remote EPW files and manage the dataset cache.
"""
import argparse
import logging
import sys
from typing import List, Optional

from .exceptions import EPWInsightError
from .models import ComfortAnalysis, ProcessedDataset, WindRoseData
from .orchestrator import WeatherDataOrchestrator, create_orchestrator

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def print_dataset(dataset: ProcessedDataset) -> None:
    header = dataset.header
    stats = dataset.annual_stats
    monthly = dataset.monthly_averages

    print("\n" + "=" * 60)
    print("EPW DATASET SUMMARY")
    print("=" * 60)
    print(f"Location:          {header.location}, {header.country}")
    print(f"Station:           {header.station_id} ({header.data_source})")
    print(f"Coordinates:       {header.latitude:.3f}, {header.longitude:.3f}")
    print(f"Elevation:         {header.elevation:.1f} m (UTC{header.timezone:+g})")
    print(f"Hourly Records:    {dataset.record_count}")
    print(f"Skipped Lines:     {len(dataset.diagnostics)}")
    print(f"\nAnnual Statistics:")
    print(f"  Temperature:       {stats.min_temperature:.1f} / {stats.avg_temperature:.1f} / "
          f"{stats.max_temperature:.1f} °C (min/avg/max)")
    print(f"  Humidity:          {stats.avg_humidity:.1f} %")
    print(f"  Wind Speed:        {stats.avg_wind_speed:.1f} m/s")
    print(f"  Predominant Wind:  {stats.predominant_wind_direction:.0f}°")
    print(f"\nMonthly Averages:")
    for name, temp, rh, ws in zip(
        MONTH_NAMES, monthly.temperature, monthly.humidity, monthly.wind_speed
    ):
        print(f"  {name}  {temp:6.1f} °C  {rh:5.1f} %  {ws:4.1f} m/s")
    print("=" * 60)


def print_comfort(comfort: ComfortAnalysis) -> None:
    print(f"\nComfort Analysis ({comfort.comfort_temperature:g} ± {comfort.band_width:g} °C):")
    print(f"  Heating Degree Days:  {comfort.heating_degree_days:.1f}")
    print(f"  Cooling Degree Days:  {comfort.cooling_degree_days:.1f}")
    print(f"  Heating Degree Hours: {comfort.heating_degree_hours:.0f}")
    print(f"  Cooling Degree Hours: {comfort.cooling_degree_hours:.0f}")
    print(f"  Comfortable Hours:    {comfort.comfortable_hours} / {comfort.hours_considered} "
          f"({comfort.comfort_percentage:.1f}%)")


def print_wind_rose(rose: WindRoseData) -> None:
    print(f"\nWind Rose (% of {rose.total_hours - rose.calm_hours} non-calm hours, "
          f"{rose.calm_hours} calm):")
    print("  Dir  " + " ".join(f"{band:>6}" for band in rose.speed_bands))
    for direction, row in zip(rose.directions, rose.frequencies):
        print(f"  {direction:<4} " + " ".join(f"{value:6.1f}" for value in row))


def run_parse(orchestrator: WeatherDataOrchestrator, args: argparse.Namespace) -> int:
    dataset = orchestrator.parse_from_file(args.path)
    report(orchestrator, dataset, args)
    return 0


def run_remote(orchestrator: WeatherDataOrchestrator, args: argparse.Namespace) -> int:
    dataset = orchestrator.parse_from_remote_archive(args.url, args.file_name)
    report(orchestrator, dataset, args)
    return 0


def report(
    orchestrator: WeatherDataOrchestrator,
    dataset: ProcessedDataset,
    args: argparse.Namespace,
) -> None:
    print_dataset(dataset)
    print_comfort(
        orchestrator.compute_comfort(dataset.hourly_data, args.comfort_temp, args.band_width)
    )
    if args.wind_rose:
        print_wind_rose(orchestrator.build_wind_rose(dataset.hourly_data))
    print()


def run_cache(orchestrator: WeatherDataOrchestrator, args: argparse.Namespace) -> int:
    cache = orchestrator.cache

    if args.action == "clear":
        removed = cache.clear()
        print(f"Cleared {removed} cached datasets")
    elif args.action == "status":
        status = cache.status()
        print(f"Entries:     {status.count}")
        print(f"Size:        {status.total_bytes / 1024 / 1024:.2f} MB "
              f"of {status.max_bytes / 1024 / 1024:.2f} MB ({status.usage_percent:.1f}%)")
        if status.is_near_limit:
            print("Warning:     cache is near its size limit")
    else:
        info = cache.info()
        print(f"{info.count} cached datasets, {info.total_bytes} bytes")
        for entry in info.entries:
            print(f"  {entry.timestamp:%Y-%m-%d %H:%M}  {entry.size:>9}  "
                  f"{entry.file_name}  ({entry.source_url})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="epwinsight",
        description="EnergyPlus Weather file parsing and climate analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Summarise a local EPW file with a 20 °C comfort setpoint
  epwinsight parse SWE_Gothenburg.epw --comfort-temp 20

  # Load an EPW file from a remote ZIP archive (cached for 7 days)
  epwinsight remote https://example.org/SWE_Gothenburg.zip SWE_Gothenburg.epw

  # Show cache usage
  epwinsight cache status
        """
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analysis = argparse.ArgumentParser(add_help=False)
    analysis.add_argument(
        "--comfort-temp",
        type=float,
        default=None,
        help="Comfort setpoint in °C (default: 21)"
    )
    analysis.add_argument(
        "--band-width",
        type=float,
        default=None,
        help="Half-width of the comfort band in °C (default: 1)"
    )
    analysis.add_argument(
        "--wind-rose",
        action="store_true",
        help="Print the wind-rose frequency table"
    )

    parse_cmd = subparsers.add_parser("parse", parents=[analysis], help="Parse a local EPW file")
    parse_cmd.add_argument("path", help="Path to the .epw file")
    parse_cmd.set_defaults(handler=run_parse)

    remote_cmd = subparsers.add_parser(
        "remote", parents=[analysis], help="Load an EPW file from a remote ZIP archive"
    )
    remote_cmd.add_argument("url", help="Archive URL")
    remote_cmd.add_argument("file_name", help="EPW file name inside the archive")
    remote_cmd.set_defaults(handler=run_remote)

    cache_cmd = subparsers.add_parser("cache", help="Inspect or clear the dataset cache")
    cache_cmd.add_argument(
        "action",
        nargs="?",
        default="info",
        choices=["info", "status", "clear"],
        help="Cache action (default: info)"
    )
    cache_cmd.set_defaults(handler=run_cache)

    return parser


def main(argv: Optional[List[str]] = None):
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    orchestrator = None
    try:
        orchestrator = create_orchestrator()
        sys.exit(args.handler(orchestrator, args))
    except (EPWInsightError, OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        sys.exit(1)
    finally:
        if orchestrator is not None:
            orchestrator.close()


if __name__ == "__main__":
    main()
