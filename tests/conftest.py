"""
Pytest fixtures for the forecasting tests.
"""
from typing import List, Optional, Sequence

import numpy as np
import pytest

from cropcast.calendar import MonthStamp
from cropcast.config import ForecastSettings
from cropcast.data import PricePoint
from cropcast.service import ForecastService


def make_history(
    prices: Sequence[float],
    start_year: int = 2022,
    start_month: int = 1,
    commodity: str = "corn",
    unit: str = "USD/metric ton",
) -> List[PricePoint]:
    """
    Build a contiguous monthly history starting at ``start_year``-``start_month``.
    """
    first = MonthStamp(start_year, start_month)
    stamps = [first] + first.advance(len(prices) - 1) if prices else []
    return [
        PricePoint(
            id=f"{commodity}-{stamp.year}-{stamp.month}",
            commodity=commodity,
            year=stamp.year,
            month=stamp.month,
            price=float(price),
            unit=unit,
            source="World Bank Commodity Markets",
            quality="Standard",
        )
        for stamp, price in zip(stamps, prices)
    ]


def make_service(perturbation: float = 0.0, random_state: Optional[int] = None, **overrides) -> ForecastService:
    settings = ForecastSettings(perturbation=perturbation, random_state=random_state, **overrides)
    return ForecastService(settings=settings)


@pytest.fixture
def constant_history():
    """24 months of corn at 160, 2022-01 through 2023-12."""
    return make_history([160.0] * 24)


@pytest.fixture
def trending_history():
    """36 months rising by 0.5 per month from 160, 2021-01 through 2023-12."""
    return make_history([160.0 + 0.5 * t for t in range(36)], start_year=2021)


@pytest.fixture
def seasonal_history():
    """Three years with a repeating sinusoidal monthly pattern around 200."""
    prices = [200.0 + 20.0 * np.sin((month - 1) * np.pi / 6) for _ in range(3) for month in range(1, 13)]
    return make_history(prices, start_year=2021)


@pytest.fixture
def service():
    """Service with the seasonal perturbation disabled."""
    return make_service(perturbation=0.0)


@pytest.fixture
def seeded_service():
    return make_service(perturbation=0.05, random_state=42)
