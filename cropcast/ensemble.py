"""
Fixed-weight ensemble of the seasonal, linear, smoothing and autoregressive forecasters.
"""

from __future__ import annotations

import sys
from dataclasses import replace
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence

from .data import PricePoint, points_to_frame, round_price
from .errors import DegenerateInputError, ExternalComputationError, InsufficientDataError
from .models import autoregressive_forecast, exponential_smoothing, fit_index_trend
from .seasonal import SeasonalDecomposer

ENSEMBLE_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        "seasonal": 0.40,
        "linear": 0.25,
        "smoothing": 0.20,
        "autoregressive": 0.15,
    }
)

SMOOTHING_DRIFT_SCALE = 0.01


class EnsembleCombiner:
    """
    Blends four forecasts per step with ``ENSEMBLE_WEIGHTS``.

    When the autoregressive model cannot be fitted (too little history, or a lag
    window without variance) the linear extrapolation stands in for its term.
    """

    SOURCE = "Ensemble ML Prediction"
    QUALITY = "AI Forecasted"

    def __init__(
        self,
        seasonal: Optional[SeasonalDecomposer] = None,
        smoothing_alpha: float = 0.3,
        ar_order: int = 3,
        verbose: bool = False,
    ) -> None:
        self.seasonal = seasonal if seasonal is not None else SeasonalDecomposer()
        self.smoothing_alpha = smoothing_alpha
        self.ar_order = ar_order
        self.verbose = verbose

    def forecast(self, history: Sequence[PricePoint], horizon: int) -> List[PricePoint]:
        seasonal_predictions = self.seasonal.forecast(history, horizon)

        prices = points_to_frame(history)["price"].tolist()
        trend = fit_index_trend(prices)
        last_smoothed = exponential_smoothing(prices, self.smoothing_alpha)[-1]
        smoothing_price = last_smoothed * (1 + self._smoothing_drift(trend.slope, trend.intercept))

        linear_prices = [trend.slope * (len(prices) + step) + trend.intercept for step in range(horizon)]
        try:
            ar_prices = autoregressive_forecast(prices, horizon, order=self.ar_order)
        except (InsufficientDataError, DegenerateInputError) as exc:
            print(f"[WARN] Autoregressive term replaced by linear extrapolation: {exc}", file=sys.stderr, flush=True)
            ar_prices = list(linear_prices)

        combined: List[PricePoint] = []
        for step, prediction in enumerate(seasonal_predictions):
            ensemble_price = (
                prediction.price * ENSEMBLE_WEIGHTS["seasonal"]
                + linear_prices[step] * ENSEMBLE_WEIGHTS["linear"]
                + smoothing_price * ENSEMBLE_WEIGHTS["smoothing"]
                + ar_prices[step] * ENSEMBLE_WEIGHTS["autoregressive"]
            )
            combined.append(
                replace(
                    prediction,
                    price=round_price(ensemble_price),
                    source=self.SOURCE,
                    quality=self.QUALITY,
                )
            )

        if self.verbose:
            print(f"[ensemble] Combined {len(combined)} steps from {len(prices)} observations.", flush=True)
        return combined

    @staticmethod
    def _smoothing_drift(slope: float, intercept: float) -> float:
        # Relative slope of the whole-series trend, scaled down to a monthly nudge.
        if intercept == 0:
            raise ExternalComputationError("Smoothing drift is undefined for a trend with zero intercept.")
        return (slope / intercept) * SMOOTHING_DRIFT_SCALE
