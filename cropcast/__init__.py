# flake8: noqa
"""
Forecasting core for the agricultural commodity price dashboard.

The package blends linear trend, exponential smoothing, seasonal decomposition and
a simplified autoregressive model into a weighted ensemble, attaches
volatility-based confidence bounds and always returns a forecast, falling back to
a constant-growth projection when a model fails.
"""

from .data import ForecastResult, PricePoint, ValidationResult  # noqa: F401
from .errors import DegenerateInputError, ExternalComputationError, InsufficientDataError  # noqa: F401
from .service import ForecastService  # noqa: F401
