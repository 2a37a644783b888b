"""
Tests for EnsembleCombiner.
"""
import math

import numpy as np
import pytest

from conftest import make_history

from cropcast.ensemble import ENSEMBLE_WEIGHTS, EnsembleCombiner
from cropcast.errors import ExternalComputationError
from cropcast.models import autoregressive_forecast, exponential_smoothing
from cropcast.seasonal import SeasonalDecomposer


def flat_combiner(**kwargs) -> EnsembleCombiner:
    return EnsembleCombiner(seasonal=SeasonalDecomposer(perturbation=0.0), **kwargs)


class TestWeights:
    def test_weights_sum_to_one(self):
        assert math.fsum(ENSEMBLE_WEIGHTS.values()) == 1.0
        assert sum(ENSEMBLE_WEIGHTS.values()) == pytest.approx(1.0)

    def test_weight_values(self):
        assert dict(ENSEMBLE_WEIGHTS) == {
            "seasonal": 0.40,
            "linear": 0.25,
            "smoothing": 0.20,
            "autoregressive": 0.15,
        }

    def test_weights_are_read_only(self):
        with pytest.raises(TypeError):
            ENSEMBLE_WEIGHTS["seasonal"] = 1.0


class TestEnsembleForecast:
    def test_constant_history_stays_flat(self, constant_history):
        predictions = flat_combiner().forecast(constant_history, 12)

        assert len(predictions) == 12
        assert [p.price for p in predictions] == pytest.approx([160.0] * 12)

    def test_constant_history_with_perturbation_within_five_percent(self, constant_history):
        combiner = EnsembleCombiner(seasonal=SeasonalDecomposer(rng=np.random.default_rng(1)))
        predictions = combiner.forecast(constant_history, 12)

        for prediction in predictions:
            assert 152.0 <= prediction.price <= 168.0

    def test_labels_and_timing_come_from_seasonal(self, seasonal_history):
        seasonal = SeasonalDecomposer(perturbation=0.0).forecast(seasonal_history, 6)
        predictions = flat_combiner().forecast(seasonal_history, 6)

        for combined, base in zip(predictions, seasonal):
            assert (combined.year, combined.month, combined.unit, combined.id) == (
                base.year,
                base.month,
                base.unit,
                base.id,
            )
            assert combined.source == "Ensemble ML Prediction"
            assert combined.quality == "AI Forecasted"

    def test_weighted_combination(self, seasonal_history):
        horizon = 4
        prices = [p.price for p in seasonal_history]
        seasonal = SeasonalDecomposer(perturbation=0.0).forecast(seasonal_history, horizon)

        n = len(prices)
        x = np.arange(n, dtype=float)
        slope, intercept = np.polyfit(x, prices, 1)
        smoothing = exponential_smoothing(prices)[-1] * (1 + (slope / intercept) * 0.01)
        ar = autoregressive_forecast(prices, horizon)

        predictions = flat_combiner().forecast(seasonal_history, horizon)
        for i, prediction in enumerate(predictions):
            linear = slope * (n + i) + intercept
            expected = 0.40 * seasonal[i].price + 0.25 * linear + 0.20 * smoothing + 0.15 * ar[i]
            assert prediction.price == pytest.approx(expected, abs=0.011)

    def test_autoregressive_failure_uses_linear_term(self, trending_history):
        horizon = 3
        prices = [p.price for p in trending_history]
        seasonal = SeasonalDecomposer(perturbation=0.0).forecast(trending_history, horizon)

        # Order above the history length forces the substitution.
        predictions = flat_combiner(ar_order=len(prices)).forecast(trending_history, horizon)

        n = len(prices)
        slope, intercept = 0.5, 160.0
        smoothing = exponential_smoothing(prices)[-1] * (1 + (slope / intercept) * 0.01)
        assert len(predictions) == horizon
        for i, prediction in enumerate(predictions):
            linear = slope * (n + i) + intercept
            expected = 0.40 * seasonal[i].price + 0.40 * linear + 0.20 * smoothing
            assert prediction.price == pytest.approx(expected, abs=0.011)

    def test_zero_intercept_surfaces_as_computation_error(self):
        history = make_history([10.0 * t for t in range(12)])
        with pytest.raises(ExternalComputationError):
            flat_combiner().forecast(history, 3)
