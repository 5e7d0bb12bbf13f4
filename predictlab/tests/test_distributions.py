"""Unit tests for parametric distribution fits."""

from __future__ import annotations

import math
import unittest

from predictlab.core.stats.distributions import fit_beta, fit_ornstein_uhlenbeck, fit_power_law
from predictlab.core.utils.errors import InputError, NumericalDegeneracyError


class TestPowerLaw(unittest.TestCase):
    """Validate the discrete power-law estimator."""

    def test_alpha_for_constant_tail(self) -> None:
        fit = fit_power_law([1.0] * 8, x_min=1.0)
        self.assertAlmostEqual(fit.alpha, 1.0 + 1.0 / math.log(2.0), places=12)
        self.assertEqual(fit.n, 8)

    def test_default_x_min_is_smallest_positive_value(self) -> None:
        fit = fit_power_law([0.0, 2.0, 3.0, 10.0])
        self.assertEqual(fit.x_min, 2.0)
        self.assertEqual(fit.n, 3)

    def test_x_min_filters_tail(self) -> None:
        fit = fit_power_law([1.0, 2.0, 5.0, 8.0], x_min=5.0)
        self.assertEqual(fit.n, 2)

    def test_invalid_cutoffs_raise(self) -> None:
        with self.assertRaises(InputError):
            fit_power_law([1.0, 2.0], x_min=0.5)
        with self.assertRaises(InputError):
            fit_power_law([1.0, 2.0], x_min=10.0)


class TestBeta(unittest.TestCase):
    """Validate method-of-moments Beta fit."""

    def test_symmetric_sample(self) -> None:
        fit = fit_beta([0.2, 0.4, 0.6, 0.8])
        self.assertAlmostEqual(fit.alpha, 2.0, places=12)
        self.assertAlmostEqual(fit.beta, 2.0, places=12)

    def test_boundary_values_are_ignored(self) -> None:
        self.assertEqual(fit_beta([0.0, 0.2, 0.4, 0.6, 0.8, 1.0]), fit_beta([0.2, 0.4, 0.6, 0.8]))

    def test_zero_variance_is_sharp(self) -> None:
        fit = fit_beta([0.3, 0.3, 0.3])
        self.assertAlmostEqual(fit.alpha / (fit.alpha + fit.beta), 0.3, places=9)
        self.assertGreater(fit.alpha + fit.beta, 1e5)

    def test_parameters_are_floored(self) -> None:
        fit = fit_beta([0.01, 0.99])
        self.assertGreaterEqual(fit.alpha, 0.1)
        self.assertGreaterEqual(fit.beta, 0.1)

    def test_no_interior_data_raises(self) -> None:
        with self.assertRaises(NumericalDegeneracyError):
            fit_beta([0.0, 1.0])


class TestOrnsteinUhlenbeck(unittest.TestCase):
    """Validate OU estimation by regression."""

    def test_deterministic_mean_reversion(self) -> None:
        series = [0.0]
        for _ in range(20):
            series.append(series[-1] + 0.5 * (10.0 - series[-1]))
        fit = fit_ornstein_uhlenbeck(series)
        self.assertAlmostEqual(fit.theta, 0.5, places=6)
        self.assertAlmostEqual(fit.mu, 10.0, places=6)
        self.assertTrue(fit.mean_reverting)
        self.assertAlmostEqual(fit.half_life, math.log(2.0) / 0.5, places=6)

    def test_trend_is_not_mean_reverting(self) -> None:
        fit = fit_ornstein_uhlenbeck([float(value) for value in range(10)])
        self.assertFalse(fit.mean_reverting)
        self.assertIsNone(fit.half_life)
        self.assertAlmostEqual(fit.mu, 4.5, places=12)

    def test_short_series_raises(self) -> None:
        with self.assertRaises(InputError):
            fit_ornstein_uhlenbeck([1.0, 2.0])


if __name__ == "__main__":
    unittest.main()
