"""
Classical time-series building blocks used by the forecasting ensemble.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
from sklearn.metrics import r2_score

from .errors import DegenerateInputError, ExternalComputationError, InsufficientDataError

AR_DAMPING = 0.3
AR_FORECAST_WEIGHT = 0.7
AR_AVERAGE_WINDOW = 12


@dataclass(frozen=True)
class TrendFit:
    slope: float
    intercept: float
    x: np.ndarray
    y: np.ndarray

    def predict(self, x) -> np.ndarray:
        return self.slope * np.asarray(x, dtype=float) + self.intercept

    @property
    def r_squared(self) -> float:
        """
        Coefficient of determination of the fitted line against the observed prices.

        Undefined when every observed price is identical.
        """
        if np.ptp(self.y) == 0:
            raise ExternalComputationError("R-squared is undefined when the observed prices have zero variance.")
        return float(r2_score(self.y, self.predict(self.x)))


def fit_linear_trend(x: Sequence[float], y: Sequence[float]) -> TrendFit:
    """Closed-form ordinary least squares fit of ``y`` against ``x``."""
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if x_arr.shape != y_arr.shape:
        raise ValueError(f"x and y must have equal length, got {len(x_arr)} and {len(y_arr)}.")
    if x_arr.size == 0:
        raise ValueError("Cannot fit a trend to an empty series.")

    n = float(x_arr.size)
    sum_x = float(np.sum(x_arr))
    sum_y = float(np.sum(y_arr))
    sum_xy = float(np.sum(x_arr * y_arr))
    sum_xx = float(np.sum(x_arr * x_arr))

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0 or np.ptp(x_arr) == 0:
        raise DegenerateInputError("Linear trend requires at least two distinct x values.")

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return TrendFit(slope=slope, intercept=intercept, x=x_arr, y=y_arr)


def fit_index_trend(prices: Sequence[float]) -> TrendFit:
    """Trend of ``prices`` against their positions 0..n-1."""
    return fit_linear_trend(np.arange(len(prices), dtype=float), prices)


def exponential_smoothing(prices: Sequence[float], alpha: float = 0.3) -> List[float]:
    if not 0 < alpha <= 1:
        raise ValueError("alpha must be within (0, 1].")
    if len(prices) == 0:
        return []

    smoothed = [float(prices[0])]
    for price in prices[1:]:
        smoothed.append(alpha * float(price) + (1 - alpha) * smoothed[-1])
    return smoothed


def correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation coefficient of two equally long samples."""
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if x_arr.shape != y_arr.shape or x_arr.size == 0:
        raise ValueError("Correlation needs two non-empty samples of equal length.")
    if np.ptp(x_arr) == 0 or np.ptp(y_arr) == 0:
        raise DegenerateInputError("Correlation is undefined for a sample with zero variance.")

    n = float(x_arr.size)
    sum_x = float(np.sum(x_arr))
    sum_y = float(np.sum(y_arr))
    numerator = n * float(np.sum(x_arr * y_arr)) - sum_x * sum_y
    denominator = np.sqrt(
        (n * float(np.sum(x_arr * x_arr)) - sum_x * sum_x) * (n * float(np.sum(y_arr * y_arr)) - sum_y * sum_y)
    )
    if not denominator > 0:
        raise DegenerateInputError("Correlation is undefined for a sample with zero variance.")
    return float(numerator / denominator)


def autoregressive_coefficients(prices: Sequence[float], order: int = 3) -> List[float]:
    """
    Lag coefficients of the simplified AR model: the lag/current correlation damped
    by ``AR_DAMPING``. This is not a least-squares AR estimate.

    A lag whose correlation is undefined gets a coefficient of 0; only when every
    lag is undefined is the model itself considered degenerate.
    """
    if order <= 0:
        raise ValueError("order must be a positive integer.")
    if len(prices) <= order:
        raise InsufficientDataError(
            f"Autoregressive forecast of order {order} needs more than {order} observations, got {len(prices)}."
        )

    series = np.asarray(prices, dtype=float)
    current = series[order:]
    coefficients: List[float] = []
    undefined = 0
    for lag in range(1, order + 1):
        lagged = series[order - lag:len(series) - lag]
        try:
            coefficients.append(correlation(lagged, current) * AR_DAMPING)
        except DegenerateInputError:
            coefficients.append(0.0)
            undefined += 1
    if undefined == order:
        raise DegenerateInputError("Every lag correlation is undefined; the series has no variance to model.")
    return coefficients


def autoregressive_forecast(prices: Sequence[float], horizon: int, order: int = 3) -> List[float]:
    """
    Recursive AR(order) forecast. Each step blends the lag-weighted sum with the mean
    of the trailing twelve values of the history extended by the earlier forecasts.
    """
    coefficients = autoregressive_coefficients(prices, order)

    extended = [float(p) for p in prices]
    forecasts: List[float] = []
    for _ in range(horizon):
        forecast = 0.0
        for j in range(min(order, len(extended))):
            forecast += coefficients[j] * extended[-1 - j]

        recent = extended[-AR_AVERAGE_WINDOW:]
        average = sum(recent) / len(recent)
        forecast = forecast * AR_FORECAST_WEIGHT + average * (1 - AR_FORECAST_WEIGHT)

        forecasts.append(forecast)
        extended.append(forecast)
    return forecasts
