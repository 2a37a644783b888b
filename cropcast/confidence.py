"""
Volatility-based prediction intervals.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from .errors import ExternalComputationError, InsufficientDataError

Z_SCORES = {0.95: 1.96, 0.99: 2.58}
DEFAULT_Z_SCORE = 1.645


def z_score(confidence_level: float) -> float:
    return Z_SCORES.get(confidence_level, DEFAULT_Z_SCORE)


def historical_volatility(prices: Sequence[float]) -> float:
    """
    Root-mean-square of period-over-period relative returns. The returns are not
    centred on their mean.
    """
    series = np.asarray(prices, dtype=float)
    if series.size < 2:
        raise InsufficientDataError("Volatility needs at least two historical prices.")
    previous = series[:-1]
    if np.any(previous == 0):
        raise ExternalComputationError("Relative returns are undefined after a zero price.")

    returns = np.diff(series) / previous
    return float(np.sqrt(np.mean(returns ** 2)))


def confidence_intervals(
    historical_prices: Sequence[float],
    predictions: Sequence[float],
    confidence_level: float = 0.95,
) -> Tuple[List[float], List[float]]:
    """
    Lower and upper bounds for each prediction. The half-width at step ``i``
    (1-indexed) is ``z * volatility * |prediction| * sqrt(i)``, so bands widen with
    distance from the last observation.
    """
    volatility = historical_volatility(historical_prices)
    z = z_score(confidence_level)

    predicted = np.asarray(predictions, dtype=float)
    time_adjustment = np.sqrt(np.arange(1, predicted.size + 1, dtype=float))
    half_width = z * volatility * np.abs(predicted) * time_adjustment

    lower = predicted - half_width
    upper = predicted + half_width
    return lower.tolist(), upper.tolist()
