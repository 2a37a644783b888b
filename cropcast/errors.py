"""
Exception taxonomy shared by the forecasting models and the service layer.
"""

from __future__ import annotations


class ForecastError(Exception):
    """Base class for every error raised by the forecasting core."""


class DegenerateInputError(ForecastError, ValueError):
    """The independent variable of a regression or correlation has zero variance."""


class InsufficientDataError(ForecastError, ValueError):
    """The series is too short for the requested model."""


class ExternalComputationError(ForecastError, ArithmeticError):
    """A numeric edge case (division by zero, undefined ratio) made a result meaningless."""
