"""
High-level orchestration for commodity price forecasting.
"""

from __future__ import annotations

import sys
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .calendar import latest_stamp
from .confidence import confidence_intervals
from .config import ForecastSettings, load_settings
from .data import (
    ConfidenceInterval,
    ForecastMetadata,
    ForecastResult,
    ModelInfo,
    PricePoint,
    ValidationResult,
    extract_prices,
    get_commodity_profile,
    points_to_frame,
    round_price,
)
from .ensemble import EnsembleCombiner
from .errors import InsufficientDataError
from .models import fit_index_trend
from .seasonal import SeasonalDecomposer

MIN_HISTORY = 12
MIN_VALIDATION_HISTORY = 6

MODEL_TYPES = ("ensemble", "seasonal", "linear")

MODEL_REGISTRY: Tuple[ModelInfo, ...] = (
    ModelInfo(
        key="ensemble",
        name="Ensemble ML Model",
        accuracy=0.85,
        description="Combines seasonal, linear regression, exponential smoothing, and ARIMA models",
    ),
    ModelInfo(
        key="seasonal",
        name="Seasonal Decomposition",
        accuracy=0.78,
        description="Uses historical seasonal patterns and trend analysis",
    ),
    ModelInfo(
        key="linear",
        name="Linear Regression",
        accuracy=0.72,
        description="Simple linear trend extrapolation",
    ),
)

FALLBACK_CONFIDENCE = 0.60
FALLBACK_ANNUAL_GROWTH = 0.02


def _registry_entry(key: str) -> ModelInfo:
    for info in MODEL_REGISTRY:
        if info.key == key:
            return info
    raise KeyError(key)


class ForecastService:
    """
    Validates a monthly price history, runs the requested model and attaches
    confidence intervals.

    ``generate_predictions`` never raises: any failure along the way is replaced by
    a constant-growth forecast labelled ``"Simple Trend Model (Fallback)"`` with a
    confidence of 0.60.
    """

    def __init__(
        self,
        settings: Optional[ForecastSettings] = None,
        rng: Optional[np.random.Generator] = None,
        verbose: bool = False,
    ) -> None:
        self.settings = settings if settings is not None else load_settings()
        self.rng = rng
        self.verbose = verbose

    def generate_predictions(
        self,
        historical_data: Iterable[PricePoint],
        months_ahead: Optional[int] = None,
        model_type: str = "ensemble",
    ) -> ForecastResult:
        history = list(historical_data)
        requested = months_ahead if months_ahead is not None else self.settings.default_horizon
        try:
            horizon = int(requested)
        except (TypeError, ValueError, OverflowError):
            print(f"[WARN] Invalid forecast horizon {requested!r}, using fallback.", file=sys.stderr, flush=True)
            return self._fallback_result(history, 0)
        try:
            return self._forecast(history, horizon, model_type)
        except Exception as exc:
            print(f"[WARN] Error generating predictions, using fallback: {exc}", file=sys.stderr, flush=True)
            return self._fallback_result(history, horizon)

    @staticmethod
    def validate_data_for_prediction(data: Sequence[PricePoint]) -> ValidationResult:
        count = len(data)
        if count == 0:
            return ValidationResult(
                is_valid=False,
                message="No historical data available",
                recommendations=("Select a crop with available data",),
            )
        if count < MIN_VALIDATION_HISTORY:
            return ValidationResult(
                is_valid=False,
                message="Insufficient data for reliable predictions",
                recommendations=(
                    f"At least {MIN_VALIDATION_HISTORY} months of historical data required",
                    "Try selecting a longer time range",
                ),
            )
        if count < MIN_HISTORY:
            return ValidationResult(
                is_valid=True,
                message="Limited data available - predictions may be less accurate",
                recommendations=(
                    "Consider selecting a longer time range for better accuracy",
                    "Predictions will use simplified models",
                ),
            )
        return ValidationResult(is_valid=True, message="Sufficient data available for accurate predictions")

    @staticmethod
    def get_available_models() -> List[ModelInfo]:
        return list(MODEL_REGISTRY)

    @staticmethod
    def get_prediction_accuracy(commodity: str) -> float:
        return get_commodity_profile(commodity).accuracy

    # Internal ------------------------------------------------------------------------

    def _forecast(self, history: List[PricePoint], horizon: int, model_type: str) -> ForecastResult:
        if horizon <= 0:
            raise ValueError(f"Forecast horizon must be a positive number of months, got {horizon}.")
        if len(history) < MIN_HISTORY:
            raise InsufficientDataError("Insufficient historical data for reliable predictions")

        if self.verbose:
            print(
                f"[forecast] Running '{model_type}' model on {len(history)} observations for {horizon} months ...",
                flush=True,
            )

        if model_type == "seasonal":
            predictions = self._make_seasonal().forecast(history, horizon)
            model = _registry_entry("seasonal")
            methods_used = ["Seasonal Decomposition", "Trend Analysis"]
        elif model_type == "linear":
            predictions = self._linear_predictions(history, horizon)
            model = _registry_entry("linear")
            methods_used = ["Linear Regression"]
        else:
            predictions = self._make_ensemble().forecast(history, horizon)
            model = _registry_entry("ensemble")
            if model_type == "ensemble":
                methods_used = ["Seasonal Analysis", "Linear Regression", "Exponential Smoothing", "ARIMA"]
            else:
                methods_used = ["Ensemble Methods"]

        historical_prices = points_to_frame(history)["price"].tolist()
        lower, upper = confidence_intervals(
            historical_prices,
            extract_prices(predictions),
            confidence_level=self.settings.confidence_level,
        )
        enhanced = [
            replace(
                prediction,
                is_prediction=True,
                confidence_interval=ConfidenceInterval(lower=round_price(low), upper=round_price(high)),
            )
            for prediction, low, high in zip(predictions, lower, upper)
        ]

        if self.verbose:
            print(f"[forecast] Produced {len(enhanced)} predictions with '{model.name}'.", flush=True)

        return ForecastResult(
            predictions=enhanced,
            confidence=model.accuracy,
            model=model.name,
            accuracy=model.accuracy,
            metadata=ForecastMetadata(
                methods_used=methods_used,
                data_points=len(history),
                forecast_horizon=horizon,
            ),
        )

    def _generator(self) -> np.random.Generator:
        # Seeded services start every call from the same generator state.
        if self.rng is not None:
            return self.rng
        return np.random.default_rng(self.settings.random_state)

    def _make_seasonal(self) -> SeasonalDecomposer:
        return SeasonalDecomposer(
            rng=self._generator(),
            perturbation=self.settings.perturbation,
            trend_window=self.settings.trend_window,
        )

    def _make_ensemble(self) -> EnsembleCombiner:
        return EnsembleCombiner(
            seasonal=self._make_seasonal(),
            smoothing_alpha=self.settings.smoothing_alpha,
            ar_order=self.settings.ar_order,
            verbose=self.verbose,
        )

    def _linear_predictions(self, history: List[PricePoint], horizon: int) -> List[PricePoint]:
        prices = points_to_frame(history)["price"].tolist()
        trend = fit_index_trend(prices)

        template = history[0]
        last = latest_stamp(point.stamp for point in history)
        predictions: List[PricePoint] = []
        for step, stamp in enumerate(last.advance(horizon), start=1):
            predicted_price = trend.slope * (len(prices) + step) + trend.intercept
            predictions.append(
                PricePoint(
                    id=f"linear-prediction-{template.commodity}-{stamp.year}-{stamp.month}",
                    commodity=template.commodity,
                    year=stamp.year,
                    month=stamp.month,
                    price=max(0.0, round_price(predicted_price)),
                    unit=template.unit,
                    source="Linear Regression Model",
                    quality="ML Predicted",
                    region=template.region,
                    is_prediction=True,
                )
            )
        return predictions

    def _fallback_result(self, history: List[PricePoint], horizon: int) -> ForecastResult:
        return ForecastResult(
            predictions=self._simple_trend_predictions(history, horizon),
            confidence=FALLBACK_CONFIDENCE,
            model=ForecastResult.FALLBACK_MODEL,
            accuracy=FALLBACK_CONFIDENCE,
            metadata=ForecastMetadata(
                methods_used=["Simple Trend"],
                data_points=len(history),
                forecast_horizon=horizon,
            ),
        )

    @staticmethod
    def _simple_trend_predictions(history: List[PricePoint], horizon: int) -> List[PricePoint]:
        horizon = int(horizon)
        if not history or horizon <= 0:
            return []

        ordered = sorted(history, key=lambda point: point.stamp)
        recent = ordered[-MIN_HISTORY:]
        average_price = sum(point.price for point in recent) / len(recent)
        monthly_growth = FALLBACK_ANNUAL_GROWTH / 12

        template = history[0]
        last = ordered[-1].stamp
        predictions: List[PricePoint] = []
        for step, stamp in enumerate(last.advance(horizon), start=1):
            predictions.append(
                PricePoint(
                    id=f"simple-prediction-{template.commodity}-{stamp.year}-{stamp.month}",
                    commodity=template.commodity,
                    year=stamp.year,
                    month=stamp.month,
                    price=round_price(average_price * (1 + monthly_growth) ** step),
                    unit=template.unit,
                    source="Simple Trend Model",
                    quality="Basic Prediction",
                    region=template.region,
                    is_prediction=True,
                )
            )
        return predictions
