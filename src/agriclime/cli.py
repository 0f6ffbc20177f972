"""CLI entry point for severe-weather and climate-trend analysis."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from agriclime.analysis.sounding import build_sounding
from agriclime.config import load_analysis_config
from agriclime.errors import AnalysisError, ValidationError
from agriclime.models import DataSource, HeatMetrics
from agriclime.pipeline import AnalysisOrchestrator, Observed, run_climate_trend, run_severe_weather

logger = logging.getLogger(__name__)


def _load_json(path: str) -> object:
    with open(Path(path)) as f:
        return json.load(f)


def _field(data: dict, *names: str):
    """First of ``names`` present in ``data`` (camelCase or snake_case keys)."""
    for name in names:
        if name in data:
            return data[name]
    raise ValidationError(f"Sounding input is missing {names[0]}")


def _severe(args: argparse.Namespace, orchestrator: AnalysisOrchestrator):
    if args.input:
        data = _load_json(args.input)
        if not isinstance(data, dict):
            raise ValidationError("Sounding input must be a JSON object")
        sounding = build_sounding(
            pressure=_field(data, "pressure"),
            temperature=_field(data, "temperature"),
            dewpoint=_field(data, "dewpoint"),
            height=_field(data, "height"),
            wind_speed=_field(data, "windSpeed", "wind_speed"),
            wind_direction=_field(data, "windDirection", "wind_direction"),
        )
        heat = HeatMetrics.model_validate(data["heat"]) if data.get("heat") else None
        return orchestrator.analyze_sounding(Observed(sounding), heat)
    return run_severe_weather(
        args.lat, args.lon, force_sample=args.sample, orchestrator=orchestrator,
    )


def _trend(args: argparse.Namespace, orchestrator: AnalysisOrchestrator):
    if args.input:
        data = _load_json(args.input)
        series = data["series"] if isinstance(data, dict) else data
        series = [(p["year"], p["value"]) if isinstance(p, dict) else p for p in series]
        return orchestrator.analyze_series(Observed(series))
    return run_climate_trend(
        args.lat, args.lon,
        start_year=args.start_year,
        end_year=args.end_year,
        force_sample=args.sample,
        orchestrator=orchestrator,
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="agriclime",
        description="Severe-weather indices and climate trends for agricultural sites",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--config", default=None,
        help="Analysis config YAML (default: env AGRICLIME_CONFIG or config/analysis.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # severe subcommand
    severe_parser = subparsers.add_parser(
        "severe", help="Severe-weather indices from a point sounding"
    )
    severe_parser.add_argument("--lat", type=float, help="Latitude (decimal degrees)")
    severe_parser.add_argument("--lon", type=float, help="Longitude (decimal degrees)")
    severe_parser.add_argument(
        "--sample", action="store_true", help="Use the sample sounding instead of fetching"
    )
    severe_parser.add_argument(
        "--input", help="JSON file with sounding arrays (analyzed as observed)"
    )

    # trend subcommand
    trend_parser = subparsers.add_parser(
        "trend", help="Annual mean temperature trend for a point"
    )
    trend_parser.add_argument("--lat", type=float, help="Latitude (decimal degrees)")
    trend_parser.add_argument("--lon", type=float, help="Longitude (decimal degrees)")
    trend_parser.add_argument("--start-year", type=int, default=None)
    trend_parser.add_argument("--end-year", type=int, default=None)
    trend_parser.add_argument(
        "--sample", action="store_true", help="Use the sample series instead of fetching"
    )
    trend_parser.add_argument(
        "--input", help="JSON file with a (year, value) series (analyzed as observed)"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        orchestrator = AnalysisOrchestrator(config=load_analysis_config(args.config))
        if args.command == "severe":
            report = _severe(args, orchestrator)
        else:
            report = _trend(args, orchestrator)
    except (AnalysisError, FileNotFoundError, KeyError, json.JSONDecodeError) as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    if report.source == DataSource.SYNTHETIC_FALLBACK:
        logger.warning("Using synthetic data: %s", report.fallback_reason)
    print(report.model_dump_json(indent=2))


if __name__ == "__main__":
    main()
