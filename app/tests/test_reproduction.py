"""
Tests for the process.reproduction module.
"""

import numpy as np
import pandas as pd
import pytest

from process.reproduction import AdjustedGrowthEstimator, ReproductionEstimator, estimate_r
from utils.config import ReproductionSettings


def _series(positives, tests=None):
    n = len(positives)
    return pd.DataFrame({
        "date": pd.date_range("2021-06-01", periods=n, freq="D"),
        "tests": tests if tests is not None else [10000] * n,
        "positives": positives,
    })


class ConstantEstimator(ReproductionEstimator):
    """Stub estimator returning R = 1 everywhere."""

    def __init__(self):
        self.calls = []

    def estimate(self, series, test_exponent=0.7, smoothing=20.0):
        self.calls.append((test_exponent, smoothing))
        return pd.DataFrame({
            "upper": 1.5, "lower": 0.5, "R": 1.0, "date": series["date"].to_numpy(),
        })


class TestAdjustedGrowthEstimator:
    """Test the default estimator."""

    def test_two_constant_days(self):
        """The smallest permitted series gives R close to 1 without raising."""
        estimate = AdjustedGrowthEstimator().estimate(_series([100, 100], [1000, 1000]))
        assert len(estimate) == 2
        assert estimate["R"].tolist() == pytest.approx([1.0, 1.0])
        assert (estimate["lower"] <= estimate["R"]).all()
        assert (estimate["R"] <= estimate["upper"]).all()

    def test_constant_series(self):
        estimate = AdjustedGrowthEstimator().estimate(_series([250] * 30))
        assert estimate["R"].to_numpy() == pytest.approx(np.ones(30))

    def test_growing_series(self):
        positives = [int(100 * 1.05 ** i) for i in range(40)]
        estimate = AdjustedGrowthEstimator().estimate(_series(positives))
        assert (estimate["R"] > 1).all()
        assert (estimate["lower"] <= estimate["R"]).all()
        assert (estimate["R"] <= estimate["upper"]).all()

    def test_shrinking_series(self):
        positives = [int(5000 * 0.95 ** i) for i in range(40)]
        estimate = AdjustedGrowthEstimator().estimate(_series(positives))
        assert (estimate["R"] < 1).all()

    def test_more_tests_explain_more_positives(self):
        """Positives growing only because testing grows give R close to 1 with exponent 1."""
        tests = [1000 * (i + 1) for i in range(30)]
        positives = [10 * (i + 1) for i in range(30)]
        adjusted = AdjustedGrowthEstimator().estimate(_series(positives, tests), test_exponent=1.0)
        raw = AdjustedGrowthEstimator().estimate(_series(positives, tests), test_exponent=0.0)
        assert abs(adjusted["R"].iloc[15] - 1) < abs(raw["R"].iloc[15] - 1)

    def test_zero_positives(self):
        estimate = AdjustedGrowthEstimator().estimate(_series([0] * 10))
        assert np.isfinite(estimate[["R", "lower", "upper"]].to_numpy()).all()

    def test_rows_and_dates_preserved(self):
        series = _series(list(range(50, 80)))
        estimate = AdjustedGrowthEstimator().estimate(series)
        assert list(estimate.columns) == ["date", "R", "lower", "upper"]
        assert estimate["date"].tolist() == series["date"].tolist()

    def test_wider_interval_with_higher_confidence(self):
        series = _series([int(100 * 1.02 ** i) for i in range(20)])
        narrow = AdjustedGrowthEstimator(confidence_level=0.5).estimate(series)
        wide = AdjustedGrowthEstimator(confidence_level=0.99).estimate(series)
        assert ((wide["upper"] - wide["lower"]) >= (narrow["upper"] - narrow["lower"])).all()

    def test_single_day_is_rejected(self):
        with pytest.raises(ValueError, match="At least two days"):
            AdjustedGrowthEstimator().estimate(_series([100]))

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            AdjustedGrowthEstimator(generation_interval_mean=0)
        with pytest.raises(ValueError):
            AdjustedGrowthEstimator(confidence_level=1.0)
        with pytest.raises(ValueError, match="Smoothing"):
            AdjustedGrowthEstimator().estimate(_series([1, 2, 3]), smoothing=0)

    @pytest.mark.parametrize("level", [20, 2000])
    def test_weekday_pattern_is_smoothed_at_any_volume(self, level):
        """A flat series with only a weekday reporting pattern keeps R near 1."""
        pattern = [1.3, 1.2, 1.1, 1.0, 0.9, 0.7, 0.8]
        positives = [int(level * pattern[i % 7]) for i in range(60)]
        estimate = AdjustedGrowthEstimator().estimate(_series(positives))
        inner = estimate["R"].iloc[10:50]
        assert inner.max() - inner.min() < 0.5
        assert inner.mean() == pytest.approx(1.0, abs=0.1)

    def test_confidence_quantile(self):
        assert AdjustedGrowthEstimator(confidence_level=0.95).z == pytest.approx(1.959964, rel=1e-6)

    def test_growth_to_r(self):
        estimator = AdjustedGrowthEstimator(generation_interval_mean=4.0, generation_interval_sd=2.0)
        # shape 4, scale 1
        assert estimator.growth_to_r(np.array([0.0, 0.1])) == pytest.approx([1.0, 1.1 ** 4])
        assert estimator.growth_to_r(np.array([-2.0])) == pytest.approx([0.0])


class TestEstimateR:
    """Test the estimate_r entry point."""

    def test_default_estimator(self):
        estimate = estimate_r(_series([100] * 10))
        assert list(estimate.columns) == ["date", "R", "lower", "upper"]

    def test_custom_estimator(self):
        estimator = ConstantEstimator()
        estimate = estimate_r(_series([100] * 5), estimator=estimator)
        assert list(estimate.columns) == ["date", "R", "lower", "upper"]
        assert estimate["R"].tolist() == [1.0] * 5
        assert estimator.calls == [(0.7, 20.0)]

    def test_settings_are_passed(self):
        estimator = ConstantEstimator()
        settings = ReproductionSettings(test_exponent=0.5, smoothing=5.0)
        estimate_r(_series([100] * 5), estimator=estimator, settings=settings)
        assert estimator.calls == [(0.5, 5.0)]

    def test_settings_build_default_estimator(self):
        series = _series([int(100 * 1.05 ** i) for i in range(20)])
        narrow = estimate_r(series, settings=ReproductionSettings(confidence_level=0.5))
        wide = estimate_r(series, settings=ReproductionSettings(confidence_level=0.99))
        assert (wide["upper"] >= narrow["upper"]).all()
