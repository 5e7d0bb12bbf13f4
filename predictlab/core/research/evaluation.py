"""Offline evaluation helpers: metric suites, calibration curves, seeded splits."""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar

import numpy as np

from predictlab.core.backtest.types import BacktestFailure, json_float
from predictlab.core.data.records import PredictionRecord
from predictlab.core.stats._validation import ArrayLike, paired_arrays
from predictlab.core.stats.calibration import (
    bin_indices,
    brier_decomposition,
    expected_calibration_error,
)
from predictlab.core.stats.descriptive import mean, standard_deviation
from predictlab.core.stats.resampling import BootstrapInterval, bootstrap_ci, make_rng
from predictlab.core.stats.scoring import brier_score, log_score, spherical_score
from predictlab.core.utils.errors import DataSufficiencyError, InputError
from predictlab.core.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
MetricsFn = Callable[[list[T], list[T]], Mapping[str, Any]]

MIN_VALID_PAIRS = 2
QUICK_EVALUATE_MIN_RESOLVED = 10
READINESS_MAX_BRIER = 0.5
READINESS_MAX_ECE = 0.15
READINESS_MIN_TEST_SIZE = 100
DATASET_MAX_AGE_DAYS = 90
DATASET_MIN_RESOLUTION_RATE = 0.5


def _valid_pairs(predictions: ArrayLike, outcomes: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    """Keep pairs with a finite probability in [0, 1] and a binary outcome."""
    p, o = paired_arrays(predictions, outcomes, "predictions", "outcomes")
    with np.errstate(invalid="ignore"):
        mask = np.isfinite(p) & (p >= 0.0) & (p <= 1.0) & ((o == 0.0) | (o == 1.0))
    return p[mask], o[mask]


def _empty_evaluation(note: str) -> dict[str, Any]:
    return {
        "brierScore": None,
        "logScore": None,
        "ece": None,
        "sphericalScore": None,
        "note": note,
    }


def evaluate_predictions(predictions: ArrayLike, outcomes: ArrayLike) -> dict[str, Any]:
    """
    Multi-metric evaluation with Brier decomposition.

    Pairs with an invalid probability or non-binary outcome are dropped
    before scoring.

    Args:
        predictions: Forecast probabilities.
        outcomes: Binary outcomes, same length as ``predictions``.

    Returns:
        ``brierScore``, ``logScore``, ``ece``, ``sphericalScore``,
        ``reliability``, ``resolution``, ``uncertainty`` and ``sampleSize``.
        With fewer than two valid pairs the score fields are ``None`` and a
        ``note`` explains why.
    """
    p, o = _valid_pairs(predictions, outcomes)
    if p.size == 0:
        return _empty_evaluation("Insufficient data for evaluation")
    if p.size < MIN_VALID_PAIRS:
        return _empty_evaluation("Insufficient valid predictions")

    decomposition = brier_decomposition(p, o)
    return {
        "brierScore": brier_score(p, o),
        "logScore": log_score(p, o),
        "ece": expected_calibration_error(p, o, num_bins=10),
        "sphericalScore": spherical_score(p, o),
        "reliability": json_float(decomposition.reliability),
        "resolution": json_float(decomposition.resolution),
        "uncertainty": json_float(decomposition.uncertainty),
        "sampleSize": int(p.size),
    }


def calibration_analysis(
    predictions: ArrayLike,
    outcomes: ArrayLike,
    num_bins: int = 10,
) -> dict[str, Any]:
    """
    Binned reliability curve.

    Returns:
        Non-empty ``bins`` with bounds, mean confidence, observed frequency
        and size; overall ``ece`` (``None`` without valid pairs); and the
        number of over- and under-confident bins.
    """
    p, o = _valid_pairs(predictions, outcomes)
    indices = bin_indices(p, num_bins)

    bins: list[dict[str, float | int]] = []
    for bin_id in range(num_bins):
        mask = indices == bin_id
        size = int(mask.sum())
        if size == 0:
            continue
        bins.append(
            {
                "lowerBound": bin_id / num_bins,
                "upperBound": (bin_id + 1) / num_bins,
                "confidenceMean": float(p[mask].mean()),
                "accuracyMean": float(o[mask].mean()),
                "size": size,
            }
        )

    return {
        "bins": bins,
        "ece": json_float(expected_calibration_error(p, o, num_bins=num_bins)),
        "overconfidenceCount": sum(1 for b in bins if b["confidenceMean"] > b["accuracyMean"]),
        "underconfidenceCount": sum(1 for b in bins if b["confidenceMean"] < b["accuracyMean"]),
        "binCount": num_bins,
    }


@dataclass(frozen=True)
class Partition:
    """Seeded train/validation/test split with the shuffled source indices."""

    train: tuple[Any, ...]
    validation: tuple[Any, ...]
    test: tuple[Any, ...]
    train_indices: tuple[int, ...]
    validation_indices: tuple[int, ...]
    test_indices: tuple[int, ...]
    seed: int

    def to_dict(self) -> dict[str, Any]:
        total = len(self.train) + len(self.validation) + len(self.test)
        return {
            "seed": self.seed,
            "totalRecords": total,
            "splits": {
                name: {"size": len(part), "fraction": len(part) / total}
                for name, part in (
                    ("train", self.train),
                    ("validation", self.validation),
                    ("test", self.test),
                )
            },
            "indices": {
                "trainIndices": list(self.train_indices),
                "valIndices": list(self.validation_indices),
                "testIndices": list(self.test_indices),
            },
        }


def partition_records(
    records: Sequence[T],
    test_ratio: float = 0.2,
    validation_ratio: float = 0.15,
    seed: int = 42,
) -> Partition:
    """
    Shuffle ``records`` with a seeded generator and cut train/validation/test.

    Test and validation sizes are ``floor(n * ratio)``; train takes the rest.

    Raises:
        DataSufficiencyError: Empty dataset.
        InputError: Ratios outside ``[0, 1)`` or summing to 1 or more.
    """
    if not 0.0 <= test_ratio < 1.0 or not 0.0 <= validation_ratio < 1.0:
        raise InputError("test_ratio and validation_ratio must be in [0, 1).")
    if test_ratio + validation_ratio >= 1.0:
        raise InputError("test_ratio + validation_ratio must be < 1.")
    items = list(records)
    if not items:
        raise DataSufficiencyError("Dataset is empty")

    n = len(items)
    test_size = math.floor(n * test_ratio)
    validation_size = math.floor(n * validation_ratio)
    train_size = n - test_size - validation_size

    order = [int(index) for index in make_rng(seed).permutation(n)]
    train_indices = tuple(order[:train_size])
    validation_indices = tuple(order[train_size : train_size + validation_size])
    test_indices = tuple(order[train_size + validation_size :])

    logger.info(
        "Partitioned %s records: train=%s validation=%s test=%s seed=%s",
        n,
        train_size,
        validation_size,
        test_size,
        seed,
    )
    return Partition(
        train=tuple(items[i] for i in train_indices),
        validation=tuple(items[i] for i in validation_indices),
        test=tuple(items[i] for i in test_indices),
        train_indices=train_indices,
        validation_indices=validation_indices,
        test_indices=test_indices,
        seed=seed,
    )


@dataclass(frozen=True)
class TimeSeriesSplit:
    """Chronological train/test cut; every train record precedes every test record."""

    train: tuple[PredictionRecord, ...]
    test: tuple[PredictionRecord, ...]
    split_point: datetime | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "trainCount": len(self.train),
            "testCount": len(self.test),
            "splitPoint": self.split_point.isoformat() if self.split_point else None,
            "train": [record.to_dict() for record in self.train],
            "test": [record.to_dict() for record in self.test],
        }


def time_series_split(
    records: Sequence[PredictionRecord],
    train_fraction: float = 0.7,
) -> TimeSeriesSplit:
    """
    Split records by creation time for temporal backtests.

    Records are ordered by ``created_at`` (ties keep input order) and cut at
    ``floor(n * train_fraction)``. ``split_point`` is the creation time of the
    first test record, or ``None`` when the test side is empty.

    Raises:
        DataSufficiencyError: Empty dataset.
        InputError: ``train_fraction`` outside ``[0, 1]``.
    """
    if (
        isinstance(train_fraction, bool)
        or not isinstance(train_fraction, (int, float))
        or not 0.0 <= train_fraction <= 1.0
    ):
        raise InputError(f"train_fraction must be in [0, 1], got {train_fraction!r}")
    ordered = sorted(records, key=lambda record: record.created_at)
    if not ordered:
        raise DataSufficiencyError("Dataset is empty")

    split_index = math.floor(len(ordered) * train_fraction)
    test = tuple(ordered[split_index:])
    logger.info(
        "Time-series split of %s records: train=%s test=%s",
        len(ordered),
        split_index,
        len(test),
    )
    return TimeSeriesSplit(
        train=tuple(ordered[:split_index]),
        test=test,
        split_point=test[0].created_at if test else None,
    )


def validate_dataset(
    records: Sequence[PredictionRecord],
    max_age_days: float = DATASET_MAX_AGE_DAYS,
    clock: Callable[[], datetime] | None = None,
) -> dict[str, Any]:
    """
    Integrity report for a record collection.

    An empty collection is an error. A dataset whose oldest record is more
    than ``max_age_days`` old, or whose resolution rate is below 50%, gets a
    warning.
    """
    now = clock() if clock is not None else datetime.now(tz=UTC)
    errors: list[str] = []
    warnings: list[str] = []
    if not records:
        errors.append("Dataset is empty")
        return {
            "valid": False,
            "errors": errors,
            "warnings": warnings,
            "stats": {
                "totalRecords": 0,
                "resolvedRecords": 0,
                "resolutionRate": None,
                "ageDays": None,
            },
        }

    oldest = min(record.created_at for record in records)
    age = max(now - oldest, timedelta(0))
    age_days = age / timedelta(days=1)
    if age_days > max_age_days:
        warnings.append(f"Dataset is {age_days:.0f} days old")

    resolved_count = sum(1 for record in records if record.resolved)
    resolution_rate = resolved_count / len(records)
    if resolution_rate < DATASET_MIN_RESOLUTION_RATE:
        warnings.append(f"Low resolution rate: {resolution_rate * 100:.1f}%")

    return {
        "valid": not errors,
        "errors": errors,
        "warnings": warnings,
        "stats": {
            "totalRecords": len(records),
            "resolvedRecords": resolved_count,
            "resolutionRate": resolution_rate,
            "ageDays": round(age_days, 1),
        },
    }


@dataclass(frozen=True)
class FoldResult:
    fold: int
    train_indices: tuple[int, ...]
    validation_indices: tuple[int, ...]
    metrics: Mapping[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "fold": self.fold,
            "trainSize": len(self.train_indices),
            "valSize": len(self.validation_indices),
            "trainIndices": list(self.train_indices),
            "valIndices": list(self.validation_indices),
            "metrics": dict(self.metrics),
        }


@dataclass(frozen=True)
class KFoldResult:
    folds: tuple[FoldResult, ...]
    mean_metrics: dict[str, float]
    std_metrics: dict[str, float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "folds": [fold.to_dict() for fold in self.folds],
            "avgMetrics": dict(self.mean_metrics),
            "stdMetrics": dict(self.std_metrics),
        }


def _numeric(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def kfold_cross_validation(
    records: Sequence[T],
    metrics_fn: MetricsFn,
    k: int = 5,
    seed: int = 42,
) -> KFoldResult:
    """
    Seeded k-fold cross-validation.

    Indices are shuffled once; fold ``i`` validates on the ``i``-th slice of
    ``floor(n / k)`` indices and the last fold absorbs the remainder.

    Args:
        records: Dataset items.
        metrics_fn: ``metrics_fn(train, validation)`` returning a metric mapping.
        k: Number of folds.
        seed: Shuffle seed.

    Returns:
        Per-fold metrics plus mean and population standard deviation of each
        metric key of the first fold, over folds where the value is a finite
        number.

    Raises:
        DataSufficiencyError: Fewer records than folds.
    """
    if isinstance(k, bool) or not isinstance(k, int) or k < 2:
        raise InputError(f"k must be an integer >= 2, got {k!r}")
    if not callable(metrics_fn):
        raise InputError("metrics_fn must be callable.")
    items = list(records)
    n = len(items)
    if n < k:
        raise DataSufficiencyError(f"Dataset too small for {k}-fold CV")

    order = [int(index) for index in make_rng(seed).permutation(n)]
    fold_size = n // k
    folds: list[FoldResult] = []
    for fold in range(k):
        start = fold * fold_size
        end = n if fold == k - 1 else (fold + 1) * fold_size
        validation_indices = tuple(order[start:end])
        train_indices = tuple(order[:start] + order[end:])
        metrics = metrics_fn(
            [items[i] for i in train_indices],
            [items[i] for i in validation_indices],
        )
        folds.append(
            FoldResult(
                fold=fold + 1,
                train_indices=train_indices,
                validation_indices=validation_indices,
                metrics=dict(metrics or {}),
            )
        )

    mean_metrics: dict[str, float] = {}
    std_metrics: dict[str, float] = {}
    for key in folds[0].metrics:
        values = [fold.metrics.get(key) for fold in folds]
        numbers = [float(value) for value in values if _numeric(value)]
        if numbers:
            mean_metrics[key] = mean(numbers)
            std_metrics[key] = standard_deviation(numbers)

    logger.info("Cross-validation complete: folds=%s records=%s seed=%s", k, n, seed)
    return KFoldResult(folds=tuple(folds), mean_metrics=mean_metrics, std_metrics=std_metrics)


def assess_readiness(
    metrics: Mapping[str, Any],
    calibration: Mapping[str, Any] | None = None,
    test_size: int | None = None,
) -> dict[str, Any]:
    """
    Deployment readiness flags for an evaluated model.

    Missing test metrics are an issue; a Brier score above 0.5, ECE above 0.15
    or a test set under 100 samples are warnings.
    """
    issues: list[str] = []
    warnings: list[str] = []

    brier = metrics.get("brierScore") if metrics else None
    if brier is None:
        issues.append("No test metrics available")
    elif brier > READINESS_MAX_BRIER:
        warnings.append("Brier score > 0.5 indicates poor calibration")

    ece = calibration.get("ece") if calibration else None
    if ece is not None and ece > READINESS_MAX_ECE:
        warnings.append("ECE > 0.15 suggests model needs recalibration")

    if test_size is not None and test_size < READINESS_MIN_TEST_SIZE:
        warnings.append("Test set < 100 samples; increase data for stability")

    return {"ready": not issues, "issues": issues, "warnings": warnings}


def quick_evaluate(
    records: Sequence[PredictionRecord],
    num_bins: int = 10,
    min_resolved: int = QUICK_EVALUATE_MIN_RESOLVED,
    clock: Callable[[], datetime] | None = None,
) -> dict[str, Any] | BacktestFailure:
    """
    One-call evaluation of the resolved records' stored forecasts.

    Returns:
        ``success``, ``metrics``, ``calibration``, ``readiness``,
        ``sampleSize`` and ``timestamp``, or a failure when fewer than
        ``min_resolved`` records are resolved.
    """
    resolved = [record for record in records if record.resolved]
    if len(resolved) < min_resolved:
        logger.warning(
            "Quick evaluation skipped: %s resolved records, %s required",
            len(resolved),
            min_resolved,
        )
        return BacktestFailure(f"Insufficient resolved records ({len(resolved)})")

    predictions = [record.probability for record in resolved]
    outcomes = [record.outcome for record in resolved]
    metrics = evaluate_predictions(predictions, outcomes)
    calibration = calibration_analysis(predictions, outcomes, num_bins=num_bins)
    now = clock() if clock is not None else datetime.now(tz=UTC)
    return {
        "success": True,
        "metrics": metrics,
        "calibration": calibration,
        "readiness": assess_readiness(metrics, calibration, len(resolved)),
        "sampleSize": len(resolved),
        "timestamp": now.isoformat(),
    }


def brier_confidence_interval(
    predictions: ArrayLike,
    outcomes: ArrayLike,
    iterations: int = 1000,
    confidence_level: float = 0.95,
    seed: int | None = None,
) -> BootstrapInterval:
    """Percentile bootstrap interval for the Brier score, resampling forecast/outcome pairs."""
    p, o = _valid_pairs(predictions, outcomes)
    pairs = list(zip(p.tolist(), o.tolist(), strict=True))

    def pair_brier(sample: Sequence[tuple[float, float]]) -> float:
        return brier_score([pair[0] for pair in sample], [pair[1] for pair in sample])

    return bootstrap_ci(
        pairs,
        pair_brier,
        iterations=iterations,
        confidence_level=confidence_level,
        seed=seed,
    )
