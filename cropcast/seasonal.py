"""
Seasonal decomposition forecaster: per-calendar-month factors over a recent linear trend.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np

from .calendar import latest_stamp
from .data import PricePoint, points_to_frame, round_price
from .errors import ExternalComputationError, InsufficientDataError
from .models import fit_index_trend


class SeasonalDecomposer:
    """
    Projects the trend of the trailing ``trend_window`` observations and scales each
    step by the historical factor of its calendar month.

    Every predicted price is perturbed by a uniform draw from
    ``[-perturbation, +perturbation]`` of its value. The draw comes from ``rng``;
    pass a seeded generator or ``perturbation=0`` for reproducible output.
    """

    SOURCE = "Seasonal"
    QUALITY = "Forecasted"

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        perturbation: float = 0.05,
        trend_window: int = 24,
    ) -> None:
        if perturbation < 0:
            raise ValueError("perturbation must be non-negative.")
        if trend_window < 2:
            raise ValueError("trend_window must cover at least two observations.")
        self.rng = rng if rng is not None else np.random.default_rng()
        self.perturbation = perturbation
        self.trend_window = trend_window

    def seasonal_factors(self, history: Sequence[PricePoint]) -> Dict[int, float]:
        """Mean price of each calendar month divided by the overall mean; unseen months are neutral."""
        if not history:
            raise InsufficientDataError("Seasonal factors need at least one observation.")

        frame = points_to_frame(history)
        overall_average = float(frame["price"].mean())
        if overall_average == 0:
            raise ExternalComputationError("Seasonal factors are undefined when the average price is zero.")

        monthly_average = frame.groupby("month")["price"].mean()
        factors: Dict[int, float] = {}
        for month in range(1, 13):
            if month in monthly_average.index:
                factors[month] = float(monthly_average.loc[month]) / overall_average
            else:
                factors[month] = 1.0
        return factors

    def forecast(self, history: Sequence[PricePoint], horizon: int) -> List[PricePoint]:
        if not history:
            raise InsufficientDataError("Seasonal forecast needs at least one observation.")

        factors = self.seasonal_factors(history)

        frame = points_to_frame(history)
        recent = frame["price"].tail(self.trend_window).to_numpy(dtype=float)
        trend = fit_index_trend(recent)
        window_length = len(recent)

        template = history[0]
        last = latest_stamp(point.stamp for point in history)
        predictions: List[PricePoint] = []
        for step, stamp in enumerate(last.advance(horizon), start=1):
            trend_price = trend.slope * (window_length + step) + trend.intercept
            predicted_price = trend_price * factors.get(stamp.month, 1.0)
            if self.perturbation > 0:
                predicted_price *= 1 + float(self.rng.uniform(-self.perturbation, self.perturbation))

            predictions.append(
                PricePoint(
                    id=f"predicted-{template.commodity}-{stamp.year}-{stamp.month}",
                    commodity=template.commodity,
                    year=stamp.year,
                    month=stamp.month,
                    price=round_price(predicted_price),
                    unit=template.unit,
                    source=self.SOURCE,
                    quality=self.QUALITY,
                    region=template.region,
                )
            )
        return predictions
