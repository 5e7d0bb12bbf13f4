"""Unit tests for Brier drawdown metrics."""

from __future__ import annotations

import math
import unittest

from predictlab.core.backtest.metrics import (
    calculate_max_drawdown,
    calculate_window_metrics,
    compute_drawdown,
)
from predictlab.core.utils.errors import InputError


class TestDrawdown(unittest.TestCase):
    """Validate running-best Brier drawdown."""

    def test_drawdown_trace(self) -> None:
        points = compute_drawdown([0.2, 0.25, 0.15, 0.30])
        self.assertEqual([point.window for point in points], [0, 1, 2, 3])
        expected_peaks = [0.2, 0.2, 0.15, 0.15]
        expected_drawdowns = [0.0, 0.05, 0.0, 0.15]
        for point, peak, drawdown in zip(points, expected_peaks, expected_drawdowns, strict=True):
            self.assertAlmostEqual(point.peak_score, peak, places=12)
            self.assertAlmostEqual(point.drawdown, drawdown, places=12)
            self.assertGreaterEqual(point.drawdown, 0.0)
        self.assertAlmostEqual(calculate_max_drawdown(points), 0.15, places=12)

    def test_nan_scores_are_skipped(self) -> None:
        points = compute_drawdown([0.3, math.nan, 0.1], window_numbers=[4, 5, 6])
        self.assertEqual([point.window for point in points], [4, 6])

    def test_empty_trace(self) -> None:
        self.assertEqual(compute_drawdown([]), ())
        self.assertEqual(calculate_max_drawdown(()), 0.0)

    def test_misaligned_labels_raise(self) -> None:
        with self.assertRaises(InputError):
            compute_drawdown([0.1, 0.2], window_numbers=[1])


class TestWindowMetrics(unittest.TestCase):
    """Validate the per-window metric bundle."""

    def test_accuracy_is_base_rate(self) -> None:
        metrics = calculate_window_metrics([0.9, 0.9, 0.9, 0.9], [1, 0, 0, 0])
        self.assertAlmostEqual(metrics.accuracy, 0.25, places=12)
        self.assertEqual(metrics.sample_size, 4)

    def test_empty_bundle_serializes_nan_as_none(self) -> None:
        payload = calculate_window_metrics([], []).to_dict()
        self.assertIsNone(payload["brierScore"])
        self.assertEqual(payload["sampleSize"], 0)


if __name__ == "__main__":
    unittest.main()
