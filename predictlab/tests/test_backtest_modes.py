"""Unit tests for interval, confidence-bucket and sequential backtests."""

from __future__ import annotations

import math
import unittest

from predictlab.core.backtest.engine import BacktestEngine
from predictlab.core.backtest.types import (
    BacktestFailure,
    ConfidenceResult,
    IntervalBacktestResult,
    SequentialResult,
)
from predictlab.core.config import BacktestConfig
from predictlab.core.utils.errors import BacktestConfigError, InputError
from predictlab.tests.helpers import alternating_records, fixed_clock, make_records


class TestIntervalBacktest(unittest.TestCase):
    """Validate calendar bucketing."""

    def setUp(self) -> None:
        self.engine = BacktestEngine(clock=fixed_clock)

    def test_buckets_cover_every_resolved_record(self) -> None:
        result = self.engine.backtest_by_time_interval(alternating_records(65), interval_days=30)
        self.assertIsInstance(result, IntervalBacktestResult)
        self.assertEqual([bucket.event_count for bucket in result.buckets], [30, 30, 5])
        self.assertEqual(result.buckets[0].interval, "2024-01-01 to 2024-01-31")
        self.assertEqual(result.to_dict()["bucketCount"], 3)

    def test_single_record_is_covered(self) -> None:
        result = self.engine.backtest_by_time_interval(make_records([0.7], [1]))
        self.assertEqual(len(result.buckets), 1)
        self.assertEqual(result.buckets[0].event_count, 1)

    def test_empty_buckets_are_omitted(self) -> None:
        records = make_records([0.6, 0.4], [1, 0], day_offsets=[0, 100])
        result = self.engine.backtest_by_time_interval(records, interval_days=30)
        self.assertEqual([bucket.event_count for bucket in result.buckets], [1, 1])

    def test_no_resolved_events(self) -> None:
        result = self.engine.backtest_by_time_interval(make_records([0.5], [None]))
        self.assertIsInstance(result, BacktestFailure)
        self.assertEqual(result.error, "No resolved events")

    def test_invalid_interval(self) -> None:
        with self.assertRaises(BacktestConfigError):
            self.engine.backtest_by_time_interval(alternating_records(5), interval_days=0)

    def test_sub_nanosecond_interval_is_rejected(self) -> None:
        with self.assertRaises(BacktestConfigError):
            self.engine.backtest_by_time_interval(alternating_records(20), interval_days=1e-15)

    def test_bucket_count_guard(self) -> None:
        with self.assertRaises(BacktestConfigError):
            self.engine.backtest_by_time_interval(alternating_records(20), interval_days=1e-6)

        capped = BacktestEngine(BacktestConfig(max_windows=10), clock=fixed_clock)
        with self.assertRaises(BacktestConfigError):
            capped.backtest_by_time_interval(alternating_records(30), interval_days=1)
        self.assertEqual(
            len(capped.backtest_by_time_interval(alternating_records(30), interval_days=3).buckets),
            10,
        )


class TestAccuracyByConfidence(unittest.TestCase):
    """Validate probability bucketing."""

    def setUp(self) -> None:
        self.engine = BacktestEngine(clock=fixed_clock)

    def test_bucket_statistics(self) -> None:
        records = make_records([0.73, 0.1, 1.0, 0.5], [1, 0, 1, None])
        result = self.engine.accuracy_by_confidence(records)
        self.assertIsInstance(result, ConfidenceResult)
        self.assertEqual(result.total_events, 3)
        self.assertEqual([bucket.bucket for bucket in result.buckets], [1, 7, 9])
        self.assertEqual(sum(bucket.sample_count for bucket in result.buckets), 3)

        bucket_seven = result.buckets[1]
        self.assertAlmostEqual(bucket_seven.lower_bound, 0.7, places=12)
        self.assertAlmostEqual(bucket_seven.upper_bound, 0.8, places=12)
        self.assertAlmostEqual(bucket_seven.calibration_error, 0.27, places=12)
        self.assertAlmostEqual(bucket_seven.brier, 0.27**2, places=12)

    def test_custom_bucket_count(self) -> None:
        result = self.engine.accuracy_by_confidence(alternating_records(10), num_buckets=2)
        self.assertEqual([bucket.bucket for bucket in result.buckets], [0, 1])
        self.assertEqual([bucket.sample_count for bucket in result.buckets], [5, 5])

    def test_no_resolved_events(self) -> None:
        result = self.engine.accuracy_by_confidence([])
        self.assertEqual(result.error, "No resolved events")

    def test_invalid_bucket_count(self) -> None:
        with self.assertRaises(InputError):
            self.engine.accuracy_by_confidence(alternating_records(4), num_buckets=0)


class TestSequentialBacktest(unittest.TestCase):
    """Validate online evaluation after the warm-up."""

    def setUp(self) -> None:
        self.engine = BacktestEngine(clock=fixed_clock)

    def test_steps_and_running_averages(self) -> None:
        result = self.engine.sequential_backtest(alternating_records(12))
        self.assertIsInstance(result, SequentialResult)
        self.assertEqual([step.step for step in result.sequence], [10, 11])
        self.assertEqual([step.event_id for step in result.sequence], ["evt-10", "evt-11"])
        self.assertAlmostEqual(result.sequence[0].cumulative_avg_brier, 0.04, places=12)
        self.assertAlmostEqual(result.sequence[1].cumulative_avg_brier, 0.065, places=12)
        self.assertAlmostEqual(
            result.sequence[1].cumulative_avg_log,
            (math.log(0.8) + math.log(0.7)) / 2,
            places=12,
        )
        self.assertAlmostEqual(result.final_brier_score, 0.065, places=12)
        self.assertEqual(result.to_dict()["stepCount"], 2)

    def test_extreme_forecasts_stay_finite(self) -> None:
        probabilities = [0.5] * 10 + [0.0]
        outcomes = [1] * 10 + [1]
        result = self.engine.sequential_backtest(make_records(probabilities, outcomes))
        self.assertTrue(math.isfinite(result.sequence[0].log_score))

    def test_warm_up_boundary(self) -> None:
        failure = self.engine.sequential_backtest(alternating_records(9))
        self.assertEqual(failure.error, "Insufficient resolved events")

        empty = self.engine.sequential_backtest(alternating_records(10))
        self.assertIsInstance(empty, SequentialResult)
        self.assertEqual(empty.sequence, ())
        self.assertIsNone(empty.to_dict()["finalMetrics"]["brierScore"])


if __name__ == "__main__":
    unittest.main()
