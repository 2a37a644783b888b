"""
Tests for SeasonalDecomposer.
"""
import numpy as np
import pytest

from conftest import make_history

from cropcast.errors import InsufficientDataError
from cropcast.seasonal import SeasonalDecomposer


class TestSeasonalFactors:
    def test_identical_monthly_means_give_neutral_factors(self):
        # Every month averages 160 across the two years.
        history = make_history([150.0] * 12 + [170.0] * 12)
        factors = SeasonalDecomposer(perturbation=0.0).seasonal_factors(history)

        assert set(factors) == set(range(1, 13))
        for factor in factors.values():
            assert factor == pytest.approx(1.0)

    def test_unobserved_months_are_neutral(self):
        history = make_history([100.0, 120.0, 140.0, 160.0, 180.0, 200.0])
        factors = SeasonalDecomposer(perturbation=0.0).seasonal_factors(history)

        assert factors[1] == pytest.approx(100.0 / 150.0)
        assert factors[6] == pytest.approx(200.0 / 150.0)
        for month in range(7, 13):
            assert factors[month] == 1.0

    def test_month_factor_is_ratio_to_overall_mean(self):
        history = make_history([200.0] + [100.0] * 11)
        factors = SeasonalDecomposer(perturbation=0.0).seasonal_factors(history)

        overall = 1300.0 / 12
        assert factors[1] == pytest.approx(200.0 / overall)
        assert factors[2] == pytest.approx(100.0 / overall)

    def test_empty_history(self):
        with pytest.raises(InsufficientDataError):
            SeasonalDecomposer().seasonal_factors([])


class TestSeasonalForecast:
    def test_continues_from_last_month(self, constant_history):
        predictions = SeasonalDecomposer(perturbation=0.0).forecast(constant_history, 14)

        assert len(predictions) == 14
        assert (predictions[0].year, predictions[0].month) == (2024, 1)
        assert (predictions[-1].year, predictions[-1].month) == (2025, 2)
        assert all(p.source == "Seasonal" and p.quality == "Forecasted" for p in predictions)
        assert predictions[0].id == "predicted-corn-2024-1"
        assert predictions[0].unit == "USD/metric ton"

    def test_unsorted_history_continues_from_latest(self, constant_history):
        predictions = SeasonalDecomposer(perturbation=0.0).forecast(list(reversed(constant_history)), 2)
        assert [(p.year, p.month) for p in predictions] == [(2024, 1), (2024, 2)]

    def test_constant_history_projects_flat_line(self, constant_history):
        predictions = SeasonalDecomposer(perturbation=0.0).forecast(constant_history, 12)
        assert [p.price for p in predictions] == pytest.approx([160.0] * 12)

    def test_trend_extrapolates_beyond_window(self):
        # Slope 2 over the trailing 24 points (index 0..23, intercept at the window start).
        history = make_history([100.0 + 2.0 * t for t in range(30)])
        predictions = SeasonalDecomposer(perturbation=0.0).forecast(history, 1)

        factors = SeasonalDecomposer(perturbation=0.0).seasonal_factors(history)
        window_start = 100.0 + 2.0 * 6
        expected = (2.0 * (24 + 1) + window_start) * factors[predictions[0].month]
        assert predictions[0].price == pytest.approx(expected, abs=0.01)

    def test_perturbation_bounded(self, constant_history):
        decomposer = SeasonalDecomposer(rng=np.random.default_rng(3), perturbation=0.05)
        predictions = decomposer.forecast(constant_history, 120)

        prices = [p.price for p in predictions]
        assert min(prices) >= 152.0 - 0.01
        assert max(prices) <= 168.0 + 0.01
        assert len(set(prices)) > 1

    def test_seeded_generators_reproduce(self, seasonal_history):
        first = SeasonalDecomposer(rng=np.random.default_rng(9)).forecast(seasonal_history, 12)
        second = SeasonalDecomposer(rng=np.random.default_rng(9)).forecast(seasonal_history, 12)
        assert first == second

    def test_disabled_perturbation_reproduces(self, seasonal_history):
        first = SeasonalDecomposer(perturbation=0.0).forecast(seasonal_history, 12)
        second = SeasonalDecomposer(perturbation=0.0).forecast(seasonal_history, 12)
        assert first == second

    def test_empty_history(self):
        with pytest.raises(InsufficientDataError):
            SeasonalDecomposer().forecast([], 3)

    def test_invalid_configuration(self):
        with pytest.raises(ValueError):
            SeasonalDecomposer(perturbation=-0.1)
        with pytest.raises(ValueError):
            SeasonalDecomposer(trend_window=1)
