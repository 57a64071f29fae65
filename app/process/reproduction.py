"""
Reproduction number estimation.

The estimator is a pluggable capability: anything implementing
`ReproductionEstimator.estimate` can be handed to `estimate_r`.

The default `AdjustedGrowthEstimator` works as follows:

1. Positives are adjusted for testing volume with a power law,
   I_t = (P_t + 0.5) / (T_t / mean(T)) ** alpha.
2. log I_t is smoothed with a penalized least squares (Whittaker) smoother.
   Each day is weighted by its Poisson precision P_t + 0.5, rescaled to mean 1
   so the smoothing strength means the same at any case volume.
3. The daily growth rate r_t is the central difference of the smoothed curve;
   its variance follows from the linear smoother.
4. r_t and its confidence limits are converted to R through a gamma
   distributed generation interval, R = (1 + r * scale) ** shape.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
import pandas as pd
from scipy import sparse
from scipy.sparse.linalg import spsolve
from scipy.stats import norm

from process import fields

logger = logging.getLogger(__name__)

DEFAULT_TEST_EXPONENT = 0.7
DEFAULT_SMOOTHING = 20.0
CONTINUITY = 0.5


class ReproductionEstimator(ABC):
    """Interface: daily case series + tuning parameters -> daily R with confidence limits."""

    @abstractmethod
    def estimate(
        self,
        series: pd.DataFrame,
        test_exponent: float = DEFAULT_TEST_EXPONENT,
        smoothing: float = DEFAULT_SMOOTHING,
    ) -> pd.DataFrame:
        """Return a DataFrame with columns ['date', 'R', 'lower', 'upper'], one row per input day.

        Args:
            series: Columns ['date', 'tests', 'positives'], one row per day
            test_exponent: Power-law exponent relating tests to expected cases
            smoothing: Smoothing strength; larger values give smoother curves
        """


def _difference_matrix(n: int, order: int) -> sparse.csr_matrix:
    d = sparse.eye(n, format="csr")
    for _ in range(order):
        d = d[1:] - d[:-1]
    return d


def _gradient_matrix(n: int) -> np.ndarray:
    """Linear operator matching np.gradient with unit spacing."""
    g = np.zeros((n, n))
    g[0, 0], g[0, 1] = -1.0, 1.0
    g[-1, -2], g[-1, -1] = -1.0, 1.0
    for i in range(1, n - 1):
        g[i, i - 1], g[i, i + 1] = -0.5, 0.5
    return g


class AdjustedGrowthEstimator(ReproductionEstimator):
    """Test-adjusted growth rate estimator with a gamma generation interval."""

    def __init__(self, generation_interval_mean: float = 4.7, generation_interval_sd: float = 2.9,
                 confidence_level: float = 0.95):
        if generation_interval_mean <= 0 or generation_interval_sd <= 0:
            raise ValueError("Generation interval mean and sd must be positive")
        if not 0 < confidence_level < 1:
            raise ValueError("Confidence level must lie strictly between 0 and 1")
        self.shape = (generation_interval_mean / generation_interval_sd) ** 2
        self.scale = generation_interval_sd ** 2 / generation_interval_mean
        self.z = norm.ppf(0.5 + confidence_level / 2)

    def growth_to_r(self, growth: np.ndarray) -> np.ndarray:
        base = np.clip(1.0 + np.asarray(growth) * self.scale, 0.0, None)
        return base ** self.shape

    def growth_rate(self, series: pd.DataFrame, test_exponent: float, smoothing: float):
        """Smoothed daily growth rate and its standard error."""
        n = len(series)
        tests = np.maximum(series[fields.TESTS].to_numpy(dtype=float), 1.0)
        positives = series[fields.POSITIVES].to_numpy(dtype=float) + CONTINUITY

        adjusted = positives / (tests / tests.mean()) ** test_exponent
        y = np.log(adjusted)
        precision = positives  # inverse of the delta-method variance of log(P)
        weights = sparse.diags(precision / precision.mean(), format="csc")

        order = min(2, n - 1)
        d = _difference_matrix(n, order)
        system = (weights + smoothing * (d.T @ d)).tocsc()
        smoother = spsolve(system, weights.toarray())
        g = _gradient_matrix(n)

        projection = g @ smoother
        growth = projection @ y
        variance = np.einsum("ij,j,ij->i", projection, 1.0 / precision, projection)
        return growth, np.sqrt(np.maximum(variance, 0.0))

    def estimate(self, series, test_exponent=DEFAULT_TEST_EXPONENT, smoothing=DEFAULT_SMOOTHING):
        if len(series) < 2:
            raise ValueError("At least two days are needed to estimate R")
        if smoothing <= 0:
            raise ValueError("Smoothing strength must be positive")

        growth, se = self.growth_rate(series, test_exponent, smoothing)
        return pd.DataFrame({
            fields.DATE: series[fields.DATE].to_numpy(),
            fields.R: self.growth_to_r(growth),
            fields.LOWER: self.growth_to_r(growth - self.z * se),
            fields.UPPER: self.growth_to_r(growth + self.z * se),
        })


def estimate_r(series: pd.DataFrame, estimator: Optional[ReproductionEstimator] = None, settings=None) -> pd.DataFrame:
    """Estimate R for a cleaned case series.

    Args:
        series: Columns ['date', 'tests', 'positives']
        estimator: Estimator to use; defaults to AdjustedGrowthEstimator built from `settings`
        settings: Optional ReproductionSettings with model parameters
    """
    if estimator is None:
        if settings is not None:
            estimator = AdjustedGrowthEstimator(
                settings.generation_interval_mean,
                settings.generation_interval_sd,
                settings.confidence_level,
            )
        else:
            estimator = AdjustedGrowthEstimator()
    test_exponent = settings.test_exponent if settings else DEFAULT_TEST_EXPONENT
    smoothing = settings.smoothing if settings else DEFAULT_SMOOTHING

    logger.info(
        f"Estimating R over {len(series)} days with {type(estimator).__name__} "
        f"(test exponent {test_exponent}, smoothing {smoothing})"
    )
    estimate = estimator.estimate(series, test_exponent=test_exponent, smoothing=smoothing)
    return estimate[fields.ESTIMATE_COLUMNS]
