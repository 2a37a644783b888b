"""
Runtime settings for the forecasting service.

Values come from the process environment (optionally seeded from a ``.env`` file)
and fall back to the defaults the dashboard has always used.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

import dotenv

ENV_PREFIX = "CROPCAST_"


@dataclass(frozen=True)
class ForecastSettings:
    default_horizon: int = 12
    confidence_level: float = 0.95
    perturbation: float = 0.05
    smoothing_alpha: float = 0.3
    ar_order: int = 3
    trend_window: int = 24
    random_state: Optional[int] = None

    def __post_init__(self) -> None:
        if self.default_horizon <= 0:
            raise ValueError("default_horizon must be a positive integer.")
        if not 0 < self.confidence_level < 1:
            raise ValueError("confidence_level must lie strictly between 0 and 1.")
        if not 0 <= self.perturbation < 1:
            raise ValueError("perturbation must be within [0, 1).")
        if not 0 < self.smoothing_alpha <= 1:
            raise ValueError("smoothing_alpha must be within (0, 1].")
        if self.ar_order <= 0:
            raise ValueError("ar_order must be a positive integer.")
        if self.trend_window < 2:
            raise ValueError("trend_window must cover at least two observations.")


def _read(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(f"{ENV_PREFIX}{name}")
    if value is None or not value.strip():
        return None
    return value.strip()


def load_settings(env: Optional[Mapping[str, str]] = None, dotenv_path: Optional[str] = None) -> ForecastSettings:
    """
    Build ``ForecastSettings`` from ``CROPCAST_*`` variables.

    When ``env`` is omitted the process environment is used after loading ``.env``
    (existing variables win over the file).
    """
    if env is None:
        dotenv.load_dotenv(dotenv_path=dotenv_path)
        env = os.environ

    defaults = ForecastSettings()
    horizon = _read(env, "HORIZON")
    level = _read(env, "CONFIDENCE_LEVEL")
    perturbation = _read(env, "PERTURBATION")
    alpha = _read(env, "SMOOTHING_ALPHA")
    order = _read(env, "AR_ORDER")
    window = _read(env, "TREND_WINDOW")
    seed = _read(env, "RANDOM_STATE")

    return ForecastSettings(
        default_horizon=int(horizon) if horizon else defaults.default_horizon,
        confidence_level=float(level) if level else defaults.confidence_level,
        perturbation=float(perturbation) if perturbation else defaults.perturbation,
        smoothing_alpha=float(alpha) if alpha else defaults.smoothing_alpha,
        ar_order=int(order) if order else defaults.ar_order,
        trend_window=int(window) if window else defaults.trend_window,
        random_state=int(seed) if seed else defaults.random_state,
    )
