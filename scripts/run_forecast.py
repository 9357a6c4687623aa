#!/usr/bin/env python3
"""Surf forecast runner.

Fetches the hourly forecast for a spot and prints its ratings.

Usage:
    # List known spots
    python scripts/run_forecast.py --list

    # Hourly ratings for one spot (legacy fixed weights)
    python scripts/run_forecast.py --spot cottesloe

    # Custom weights (geometric aggregate)
    python scripts/run_forecast.py --spot huzzas --weights wind=0.5,dir=0.3,size=0.2

    # Rank every spot by today's best score
    python scripts/run_forecast.py --all

    # JSON output (same shape as the HTTP API)
    python scripts/run_forecast.py --spot trigg --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from surfcast.clients.open_meteo_client import OpenMeteoError
from surfcast.core.forecaster import SpotForecast, SpotForecaster, UnknownSpotError
from surfcast.core.rating import WeightProfile


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Quiet down noisy loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def parse_weights(text: Optional[str]) -> Optional[WeightProfile]:
    """Parse "wind=0.4,dir=0.3" into a WeightProfile."""
    if not text:
        return None

    values = {}
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if "=" not in part:
            raise argparse.ArgumentTypeError(f"Invalid weight '{part}', expected axis=value")
        key, value = part.split("=", 1)
        try:
            values[key.strip()] = float(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"Invalid weight value '{value}' for {key}")

    return WeightProfile.from_mapping(values)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Rate the hourly surf forecast for a spot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--spot", "-s",
        type=str,
        help="Spot id (see --list)",
    )
    target.add_argument(
        "--all",
        action="store_true",
        help="Rank all spots by today's best score",
    )
    target.add_argument(
        "--list",
        action="store_true",
        help="List known spots and exit",
    )

    parser.add_argument(
        "--weights", "-w",
        type=parse_weights,
        help="Custom axis weights, e.g. wind=0.4,dir=0.3,period=0.2,size=0.1",
    )

    parser.add_argument(
        "--hours",
        type=int,
        default=24,
        help="Hours to print (default: 24)",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print JSON instead of a table",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def format_forecast(forecast: SpotForecast, hours: int) -> str:
    """Format a spot forecast as a text table."""
    lines = [
        f"{forecast.spot.name} ({forecast.timezone})",
        f"Today: {forecast.summary.min_score:.1f} - {forecast.summary.max_score:.1f} / 10",
        "",
        f"{'Time':<17} {'Score':>5} {'Hs':>5} {'Tp':>5} {'Dir':>4} {'Wind':>5} {'WDir':>4}  Reasons",
    ]
    for hour in forecast.hours[:hours]:
        lines.append(
            f"{hour.ts:<17} {hour.score:>5.1f} {hour.hs:>5.1f} {hour.tp:>5.1f} "
            f"{hour.dp:>4.0f} {hour.wind_ms:>5.1f} {hour.wind_dir:>4.0f}  "
            + ", ".join(hour.reasons)
        )
    return "\n".join(lines)


def format_ranking(forecasts: list[SpotForecast]) -> str:
    """Format ranked spots as a text table."""
    lines = [f"{'#':>2}  {'Spot':<20} {'Best':>5} {'Worst':>5}"]
    for forecast in forecasts:
        lines.append(
            f"{forecast.rank:>2}  {forecast.spot.name:<20} "
            f"{forecast.summary.max_score:>5.1f} {forecast.summary.min_score:>5.1f}"
        )
    return "\n".join(lines)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    forecaster = SpotForecaster()

    if args.list:
        for spot in forecaster.spot_db.get_all_spots():
            print(f"{spot.id:<12} {spot.name:<20} {spot.break_type.value:<6} "
                  f"faces {spot.coast_bearing:.0f}")
        return 0

    if args.all:
        forecasts = forecaster.rank_spots(weights=args.weights)
        if args.json:
            print(json.dumps([f.to_dict() for f in forecasts], indent=2))
        else:
            print(format_ranking(forecasts))
        failed = forecaster.spot_db.spot_count - len(forecasts)
        if failed:
            print(f"\n{failed} spot(s) could not be forecast", file=sys.stderr)
        return 0 if forecasts else 1

    try:
        forecast = forecaster.forecast_spot(args.spot, args.weights)
    except UnknownSpotError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except OpenMeteoError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(forecast.to_dict(), indent=2))
    else:
        print(format_forecast(forecast, args.hours))

    # Summary (always to stderr so it doesn't pollute piped output)
    print(file=sys.stderr)
    print("=" * 50, file=sys.stderr)
    print("SUMMARY", file=sys.stderr)
    print("=" * 50, file=sys.stderr)
    print(f"  Spot: {forecast.spot.name}", file=sys.stderr)
    print(f"  Hours rated: {len(forecast.hours)}", file=sys.stderr)
    print(f"  Best today: {forecast.summary.max_score:.1f}", file=sys.stderr)
    print(f"  Weights: {'custom' if args.weights else 'legacy'}", file=sys.stderr)
    print("=" * 50, file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
