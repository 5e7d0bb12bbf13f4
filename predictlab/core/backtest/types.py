"""Data structures for backtest results."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from predictlab.core.data.records import PredictionRecord


class Predictor(Protocol):
    """
    Pluggable re-fit model: maps the training records seen so far to a
    probability for the next event.

    Engine methods accept a predictor but do not call it yet; every
    evaluation scores the record's own ``probability``.
    """

    def __call__(self, training_records: Sequence[PredictionRecord]) -> float: ...


def json_float(value: float | None) -> float | None:
    """Map ``NaN`` to ``None`` so payloads stay strict JSON."""
    if value is None or math.isnan(value):
        return None
    return float(value)


@dataclass(frozen=True)
class MetricsBundle:
    """
    Scores for one set of (prediction, outcome) pairs.

    ``log_score`` is the unnegated mean log-likelihood: it is ``<= 0`` and
    values closer to zero are better, unlike ``brier_score`` (lower is better)
    and ``spherical_score`` (higher is better). Float fields are ``NaN`` for an
    empty set.
    """

    brier_score: float
    log_score: float
    spherical_score: float
    ece: float
    accuracy: float
    sample_size: int

    @classmethod
    def empty(cls) -> MetricsBundle:
        return cls(math.nan, math.nan, math.nan, math.nan, math.nan, 0)

    def to_dict(self) -> dict[str, float | int | None]:
        return {
            "brierScore": json_float(self.brier_score),
            "logScore": json_float(self.log_score),
            "sphericalScore": json_float(self.spherical_score),
            "ece": json_float(self.ece),
            "accuracy": json_float(self.accuracy),
            "sampleSize": self.sample_size,
        }


@dataclass(frozen=True)
class Window:
    """One evaluated rolling window ``[window_start, window_end)``."""

    window_num: int
    window_start: datetime
    window_end: datetime
    events: tuple[PredictionRecord, ...]
    metrics: MetricsBundle

    @property
    def event_count(self) -> int:
        return len(self.events)

    def to_dict(self) -> dict[str, Any]:
        return {
            "windowNum": self.window_num,
            "windowStart": self.window_start.isoformat(),
            "windowEnd": self.window_end.isoformat(),
            "eventCount": self.event_count,
            "metrics": self.metrics.to_dict(),
            "events": [record.to_dict() for record in self.events],
        }


@dataclass(frozen=True)
class DrawdownPoint:
    """Brier degradation of one window relative to the best window so far."""

    window: int
    score: float
    peak_score: float
    drawdown: float

    def to_dict(self) -> dict[str, float | int]:
        return {
            "window": self.window,
            "score": self.score,
            "peakScore": self.peak_score,
            "drawdown": self.drawdown,
        }


@dataclass(frozen=True)
class BacktestResult:
    """Container for a rolling-window backtest."""

    windows: tuple[Window, ...]
    summary: dict[str, Any]
    drawdown: tuple[DrawdownPoint, ...]
    total_events: int
    success: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "windowCount": len(self.windows),
            "totalEvents": self.total_events,
            "windows": [window.to_dict() for window in self.windows],
            "summary": self.summary,
            "drawdown": [point.to_dict() for point in self.drawdown],
        }


@dataclass(frozen=True)
class SplitResult:
    """Evaluation of the resolved members of a held-out test set."""

    test_set_size: int
    metrics: MetricsBundle
    events: tuple[PredictionRecord, ...]
    timestamp: datetime
    success: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "testSetSize": self.test_set_size,
            "metrics": self.metrics.to_dict(),
            "events": [record.to_dict() for record in self.events],
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class IntervalBucket:
    """Metrics for one non-empty calendar bucket ``[start, end)``."""

    start: datetime
    end: datetime
    event_count: int
    metrics: MetricsBundle

    @property
    def interval(self) -> str:
        return f"{self.start.date().isoformat()} to {self.end.date().isoformat()}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "interval": self.interval,
            "eventCount": self.event_count,
            "metrics": self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class IntervalBacktestResult:
    buckets: tuple[IntervalBucket, ...]
    timestamp: datetime
    success: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "bucketCount": len(self.buckets),
            "buckets": [bucket.to_dict() for bucket in self.buckets],
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ConfidenceBucket:
    """Calibration of the forecasts whose probability falls in one bucket."""

    bucket: int
    lower_bound: float
    upper_bound: float
    sample_count: int
    predicted_probability: float
    actual_accuracy: float
    calibration_error: float
    brier: float

    def to_dict(self) -> dict[str, float | int]:
        return {
            "bucket": self.bucket,
            "lowerBound": self.lower_bound,
            "upperBound": self.upper_bound,
            "sampleCount": self.sample_count,
            "predictedProbability": self.predicted_probability,
            "actualAccuracy": self.actual_accuracy,
            "calibrationError": self.calibration_error,
            "brier": self.brier,
        }


@dataclass(frozen=True)
class ConfidenceResult:
    buckets: tuple[ConfidenceBucket, ...]
    total_events: int
    timestamp: datetime
    success: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "buckets": [bucket.to_dict() for bucket in self.buckets],
            "totalEvents": self.total_events,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class SequentialStep:
    """One online evaluation step with running averages over all steps so far."""

    step: int
    event_id: str
    prediction: float
    outcome: int
    brier_score: float
    log_score: float
    cumulative_avg_brier: float
    cumulative_avg_log: float

    def to_dict(self) -> dict[str, float | int | str]:
        return {
            "step": self.step,
            "eventId": self.event_id,
            "prediction": self.prediction,
            "outcome": self.outcome,
            "brierScore": self.brier_score,
            "logScore": self.log_score,
            "cumulativeAvgBrier": self.cumulative_avg_brier,
            "cumulativeAvgLog": self.cumulative_avg_log,
        }


@dataclass(frozen=True)
class SequentialResult:
    sequence: tuple[SequentialStep, ...]
    final_brier_score: float
    final_log_score: float
    timestamp: datetime
    success: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "stepCount": len(self.sequence),
            "sequence": [step.to_dict() for step in self.sequence],
            "finalMetrics": {
                "brierScore": json_float(self.final_brier_score),
                "logScore": json_float(self.final_log_score),
            },
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class BacktestFailure:
    """Recoverable "not enough data" outcome, returned instead of raised."""

    error: str
    success: bool = field(default=False, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.error}
