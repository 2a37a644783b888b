"""
Command-line entry point for forecasting a commodity's monthly prices.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np

from .config import load_settings
from .data import PricePoint, generate_synthetic_history, get_commodity_profile, load_price_history
from .service import MODEL_TYPES, ForecastService


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Forecast monthly agricultural commodity prices from their price history."
    )
    parser.add_argument(
        "--commodity",
        default="corn",
        help="Commodity key, e.g. corn, wheat, coffee.",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=None,
        help="Monthly history CSV with year, month and price columns. Synthetic history is used when omitted.",
    )
    parser.add_argument(
        "--horizon",
        type=int,
        default=None,
        help="Forecast horizon in months (defaults to CROPCAST_HORIZON or 12).",
    )
    parser.add_argument(
        "--model",
        choices=MODEL_TYPES,
        default="ensemble",
        help="Forecasting model to run.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for the seasonal perturbation and synthetic history.",
    )
    parser.add_argument("--start-year", type=int, default=2018, help="First year of synthetic history.")
    parser.add_argument("--end-year", type=int, default=2024, help="Last year of synthetic history.")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Optional CSV path for the forecast table.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress messages.",
    )
    return parser.parse_args(argv)


def format_currency(value: float) -> str:
    return f"USD {value:,.2f}"


def format_percent(value: float) -> str:
    if not np.isfinite(value):
        return "n/a"
    return f"{value * 100:.2f}%"


def load_history(args: argparse.Namespace) -> List[PricePoint]:
    if args.data is not None:
        return load_price_history(args.data, commodity=args.commodity)
    rng = np.random.default_rng(args.seed)
    return generate_synthetic_history(args.commodity, args.start_year, args.end_year, rng=rng)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = load_settings()
    if args.seed is not None:
        settings = replace(settings, random_state=args.seed)

    try:
        history = load_history(args)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[run_forecast] Unable to load price history: {exc}", file=sys.stderr)
        return 1

    service = ForecastService(settings=settings, verbose=not args.quiet)
    validation = service.validate_data_for_prediction(history)
    print(f"[run_forecast] {validation.message}")
    for recommendation in validation.recommendations or ():
        print(f"  - {recommendation}")
    if not validation.is_valid:
        return 1

    result = service.generate_predictions(history, months_ahead=args.horizon, model_type=args.model)
    profile = get_commodity_profile(args.commodity)

    table = result.to_frame()
    for column in ("price", "lower", "upper"):
        table[column] = table[column].apply(lambda x: "-" if x != x else format_currency(x))

    print(f"\n=== {profile.label} forecast ({result.model}, confidence {result.confidence:.2f}) ===")
    print(table[["period", "price", "lower", "upper"]].to_string(index=False))

    summary = result.summarise()
    print(f"\nTrend over the horizon: {summary['trend_direction']} ({format_percent(summary['percent_change'])})")

    if args.output is not None:
        result.save(args.output)
        print("Forecast saved to:", args.output.resolve())
    return 0


if __name__ == "__main__":
    sys.exit(main())
