"""Unit tests for linear, weighted and LOWESS regression."""

from __future__ import annotations

import unittest

import numpy as np

from predictlab.core.stats.regression import linear_regression, lowess, weighted_linear_regression
from predictlab.core.utils.errors import InputError


class TestLinearRegression(unittest.TestCase):
    """Validate closed-form least squares."""

    def test_exact_line(self) -> None:
        x = [0.0, 1.0, 2.0, 3.0]
        fit = linear_regression(x, [1.0, 3.0, 5.0, 7.0])
        self.assertAlmostEqual(fit.slope, 2.0, places=12)
        self.assertAlmostEqual(fit.intercept, 1.0, places=12)
        self.assertAlmostEqual(fit.r_squared, 1.0, places=12)

    def test_zero_variance_x_falls_back_to_mean(self) -> None:
        fit = linear_regression([2.0, 2.0, 2.0], [1.0, 2.0, 6.0])
        self.assertEqual(fit.slope, 0.0)
        self.assertAlmostEqual(fit.intercept, 3.0, places=12)
        self.assertEqual(fit.r_squared, 0.0)

    def test_zero_weight_ignores_outlier(self) -> None:
        fit = weighted_linear_regression(
            [0.0, 1.0, 2.0, 3.0],
            [0.0, 1.0, 2.0, 100.0],
            [1.0, 1.0, 1.0, 0.0],
        )
        self.assertAlmostEqual(fit.slope, 1.0, places=12)
        self.assertAlmostEqual(fit.intercept, 0.0, places=12)

    def test_negative_weights_raise(self) -> None:
        with self.assertRaises(InputError):
            weighted_linear_regression([0.0, 1.0], [0.0, 1.0], [1.0, -1.0])

    def test_mismatched_lengths_raise(self) -> None:
        with self.assertRaises(InputError):
            linear_regression([0.0, 1.0], [0.0])


class TestLowess(unittest.TestCase):
    """Validate local smoothing behaviour."""

    def test_linear_data_is_reproduced(self) -> None:
        x = np.arange(20, dtype=float)
        y = 0.5 * x - 3.0
        np.testing.assert_allclose(lowess(x, y, bandwidth_fraction=0.3), y, atol=1e-9)

    def test_large_fraction_approaches_global_fit(self) -> None:
        rng = np.random.default_rng(3)
        x = np.linspace(0.0, 10.0, 40)
        y = 1.5 * x + rng.normal(scale=2.0, size=x.size)
        global_fit = linear_regression(x, y).predict(x)
        np.testing.assert_allclose(lowess(x, y, bandwidth_fraction=1000.0), global_fit, atol=1e-5)

    def test_small_fraction_tracks_curvature(self) -> None:
        x = np.linspace(-3.0, 3.0, 41)
        y = x**2
        local = lowess(x, y, bandwidth_fraction=0.2)
        global_fit = linear_regression(x, y).predict(x)
        self.assertLess(float(np.sum((local - y) ** 2)), float(np.sum((global_fit - y) ** 2)))

    def test_output_aligns_with_input_order(self) -> None:
        x = [3.0, 0.0, 2.0, 1.0]
        y = [6.0, 0.0, 4.0, 2.0]
        np.testing.assert_allclose(lowess(x, y, bandwidth_fraction=0.8), y, atol=1e-9)

    def test_invalid_fraction_raises(self) -> None:
        with self.assertRaises(InputError):
            lowess([0.0, 1.0, 2.0], [0.0, 1.0, 2.0], bandwidth_fraction=0.0)


if __name__ == "__main__":
    unittest.main()
