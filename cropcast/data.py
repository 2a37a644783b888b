"""
Price records, forecast containers and the commodity reference table.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .calendar import MonthStamp, compute_date_index

REQUIRED_COLUMNS = ("year", "month", "price")
DEFAULT_UNIT = "USD/metric ton"
DEFAULT_REGION = "Global"


@dataclass(frozen=True)
class ConfidenceInterval:
    lower: float
    upper: float

    @property
    def width(self) -> float:
        return self.upper - self.lower


@dataclass(frozen=True)
class PricePoint:
    """One monthly price observation or prediction for a commodity."""

    id: str
    commodity: str
    year: int
    month: int
    price: float
    unit: str = DEFAULT_UNIT
    source: str = ""
    quality: str = "Standard"
    region: Optional[str] = DEFAULT_REGION
    is_prediction: bool = False
    confidence_interval: Optional[ConfidenceInterval] = None

    def __post_init__(self) -> None:
        if self.year < 1900:
            raise ValueError(f"Year must be 1900 or later, got {self.year}")
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be within 1-12, got {self.month}")

    @property
    def stamp(self) -> MonthStamp:
        return MonthStamp(year=self.year, month=self.month)


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    message: str
    recommendations: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class ModelInfo:
    key: str
    name: str
    accuracy: float
    description: str


@dataclass(frozen=True)
class ForecastMetadata:
    methods_used: List[str]
    data_points: int
    forecast_horizon: int


@dataclass
class ForecastResult:
    predictions: List[PricePoint]
    confidence: float
    model: str
    accuracy: float
    metadata: ForecastMetadata = field(default_factory=lambda: ForecastMetadata([], 0, 0))

    FALLBACK_MODEL = "Simple Trend Model (Fallback)"

    @property
    def is_fallback(self) -> bool:
        return self.model == self.FALLBACK_MODEL

    def to_frame(self) -> pd.DataFrame:
        records = []
        for point in self.predictions:
            interval = point.confidence_interval
            records.append(
                {
                    "id": point.id,
                    "commodity": point.commodity,
                    "period": point.stamp.as_string(),
                    "year": point.year,
                    "month": point.month,
                    "price": point.price,
                    "lower": interval.lower if interval else np.nan,
                    "upper": interval.upper if interval else np.nan,
                    "unit": point.unit,
                    "source": point.source,
                    "quality": point.quality,
                }
            )
        columns = ["id", "commodity", "period", "year", "month", "price", "lower", "upper", "unit", "source", "quality"]
        return pd.DataFrame.from_records(records, columns=columns)

    def save(self, forecast_path: Path) -> None:
        forecast_path = Path(forecast_path)
        forecast_path.parent.mkdir(parents=True, exist_ok=True)
        self.to_frame().to_csv(forecast_path, index=False)

    def summarise(self) -> Dict[str, Any]:
        """Start/end prices, overall change and a coarse direction label for the horizon."""
        if not self.predictions:
            return {
                "model": self.model,
                "starting_price": np.nan,
                "ending_price": np.nan,
                "absolute_change": np.nan,
                "percent_change": np.nan,
                "trend_direction": "undetermined",
            }

        start_value = self.predictions[0].price
        end_value = self.predictions[-1].price
        absolute_change = end_value - start_value
        percent_change = (absolute_change / start_value) if start_value != 0 else np.nan
        return {
            "model": self.model,
            "starting_price": start_value,
            "ending_price": end_value,
            "absolute_change": absolute_change,
            "percent_change": percent_change,
            "trend_direction": _classify_trend(percent_change),
        }


def _classify_trend(percent_change: float) -> str:
    if not np.isfinite(percent_change):
        return "undetermined"
    threshold = 0.02  # 2% change over the horizon counts as material.
    if percent_change > threshold:
        return "upward"
    if percent_change < -threshold:
        return "downward"
    return "stable"


# Commodity reference table ---------------------------------------------------------


@dataclass(frozen=True)
class CommodityProfile:
    key: str
    label: str
    category: str
    base_price: float
    unit: str = DEFAULT_UNIT
    accuracy: float = 0.75


COMMODITY_PROFILES: Mapping[str, CommodityProfile] = MappingProxyType(
    {
        profile.key: profile
        for profile in (
            CommodityProfile("corn", "Corn", "Grains", 160.0, accuracy=0.85),
            CommodityProfile("wheat", "Wheat", "Grains", 220.0, accuracy=0.82),
            CommodityProfile("rice", "Rice", "Grains", 380.0, accuracy=0.80),
            CommodityProfile("soybeans", "Soybeans", "Oilseeds", 340.0, accuracy=0.88),
            CommodityProfile("cotton", "Cotton", "Fiber", 1500.0, unit="USD/lb", accuracy=0.83),
            CommodityProfile("sugar", "Sugar", "Sweeteners", 350.0, accuracy=0.78),
            CommodityProfile("coffee", "Coffee", "Beverages", 2800.0, accuracy=0.75),
            CommodityProfile("cocoa", "Cocoa", "Beverages", 2400.0, accuracy=0.72),
            CommodityProfile("palm_oil", "Palm Oil", "Oilseeds", 800.0, accuracy=0.79),
            CommodityProfile("rubber", "Rubber", "Industrial", 1600.0, accuracy=0.74),
        )
    }
)

UNKNOWN_BASE_PRICE = 200.0
UNKNOWN_ACCURACY = 0.75


def get_commodity_profile(commodity: str) -> CommodityProfile:
    """Profile for ``commodity``; unknown keys get a generic 200 USD/metric ton profile."""
    profile = COMMODITY_PROFILES.get(commodity)
    if profile is not None:
        return profile
    return CommodityProfile(
        key=commodity,
        label=commodity.replace("_", " ").title(),
        category="Other",
        base_price=UNKNOWN_BASE_PRICE,
        accuracy=UNKNOWN_ACCURACY,
    )


# Series helpers --------------------------------------------------------------------


def extract_prices(points: Sequence[PricePoint]) -> List[float]:
    return [float(point.price) for point in points]


def round_price(value: float) -> float:
    return round(float(value), 2)


def points_to_frame(points: Iterable[PricePoint]) -> pd.DataFrame:
    """Chronologically ordered frame with one row per point and a ``date_id`` column."""
    records = [
        {
            "id": point.id,
            "commodity": point.commodity,
            "year": point.year,
            "month": point.month,
            "price": float(point.price),
            "unit": point.unit,
            "source": point.source,
            "quality": point.quality,
            "region": point.region,
        }
        for point in points
    ]
    frame = pd.DataFrame.from_records(
        records,
        columns=["id", "commodity", "year", "month", "price", "unit", "source", "quality", "region"],
    )
    if frame.empty:
        frame["date_id"] = pd.Series(dtype=int)
        return frame
    return compute_date_index(frame)


def load_price_history(csv_path: Path, commodity: Optional[str] = None) -> List[PricePoint]:
    """
    Read a monthly price CSV into ``PricePoint`` values.

    Required columns are ``year``, ``month`` and ``price``. When the file carries a
    ``commodity`` column and ``commodity`` is given, only matching rows are kept.
    Non-positive or unparsable prices are interpolated from their neighbours.
    """
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV path does not exist: {csv_path}")
    df = pd.read_csv(csv_path)
    df.columns = [c.strip().lower() for c in df.columns]
    missing = [name for name in REQUIRED_COLUMNS if name not in df.columns]
    if missing:
        raise ValueError(f"{csv_path.name} lacks the price columns: {', '.join(missing)}")

    working = df.copy()
    if commodity is not None and "commodity" in working.columns:
        working = working[working["commodity"].astype(str) == commodity].copy()
    if working.empty:
        raise ValueError(f"No price rows found in {csv_path}")

    working["year"] = working["year"].astype(int)
    working["month"] = working["month"].astype(int)
    if working.duplicated(["year", "month"]).any():
        raise ValueError("Each (year, month) pair may appear only once per commodity.")

    working = compute_date_index(working)
    working["price"] = pd.to_numeric(working["price"], errors="coerce")
    working.loc[working["price"] <= 0, "price"] = np.nan
    working["price"] = working["price"].interpolate(method="linear", limit_direction="both")
    working["price"] = working["price"].ffill().bfill()
    if working["price"].isna().all():
        raise ValueError(f"No usable prices found in {csv_path}")

    key = commodity or (str(working["commodity"].iloc[0]) if "commodity" in working.columns else "unknown")
    profile = get_commodity_profile(key)

    def _column(row: pd.Series, name: str, default: Optional[str]) -> Optional[str]:
        value = row.get(name, default)
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return default
        return str(value)

    points: List[PricePoint] = []
    for _, row in working.iterrows():
        year, month = int(row["year"]), int(row["month"])
        points.append(
            PricePoint(
                id=_column(row, "id", f"{key}-{year}-{month}"),
                commodity=key,
                year=year,
                month=month,
                price=float(row["price"]),
                unit=_column(row, "unit", profile.unit),
                source=_column(row, "source", str(csv_path.name)),
                quality=_column(row, "quality", "Standard"),
                region=_column(row, "region", DEFAULT_REGION),
            )
        )
    return points


def generate_synthetic_history(
    commodity: str,
    start_year: int = 2018,
    end_year: int = 2024,
    rng: Optional[np.random.Generator] = None,
    volatility: float = 0.15,
) -> List[PricePoint]:
    """
    Monthly history shaped like the dashboard's offline data: the commodity's base
    price with a sinusoidal seasonal swing of 10%, 2% yearly drift and uniform noise
    of +/- ``volatility / 2``.
    """
    if end_year < start_year:
        raise ValueError("end_year must not precede start_year.")
    rng = rng if rng is not None else np.random.default_rng()
    profile = get_commodity_profile(commodity)

    points: List[PricePoint] = []
    for year in range(start_year, end_year + 1):
        for month in range(1, 13):
            seasonal_factor = math.sin((month - 1) * math.pi / 6) * 0.1
            trend_factor = (year - start_year) * 0.02
            random_factor = float(rng.uniform(-0.5, 0.5)) * volatility
            price = profile.base_price * (1 + seasonal_factor + trend_factor + random_factor)
            points.append(
                PricePoint(
                    id=f"{commodity}-{year}-{month}",
                    commodity=commodity,
                    year=year,
                    month=month,
                    price=round_price(price),
                    unit=profile.unit,
                    source="World Bank Commodity Markets",
                    quality="Standard",
                    region=DEFAULT_REGION,
                )
            )
    return points
