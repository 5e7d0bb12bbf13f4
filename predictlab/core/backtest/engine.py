"""Deterministic rolling-window backtest engine for probability forecasts."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

import numpy as np
import pandas as pd

from predictlab.core.backtest.metrics import (
    calculate_window_metrics,
    summarize_windows,
    window_drawdown,
)
from predictlab.core.backtest.types import (
    BacktestFailure,
    BacktestResult,
    ConfidenceBucket,
    ConfidenceResult,
    IntervalBacktestResult,
    IntervalBucket,
    MetricsBundle,
    Predictor,
    SequentialResult,
    SequentialStep,
    SplitResult,
    Window,
)
from predictlab.core.config import BACKTEST_SCENARIOS, BacktestConfig, resolve_scenario_name
from predictlab.core.data.records import PredictionRecord, records_to_frame
from predictlab.core.stats.calibration import bin_indices
from predictlab.core.stats.scoring import brier_score, log_likelihoods
from predictlab.core.utils.errors import BacktestConfigError, InputError
from predictlab.core.utils.logging import format_metrics, get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]
SEQUENTIAL_WARMUP = 10


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _validate_records(records: Any, name: str = "records") -> list[PredictionRecord]:
    """Accept a list of records or raw mappings; anything else is a caller error."""
    if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Sequence):
        raise InputError(f"{name} must be a list of prediction records.")

    validated: list[PredictionRecord] = []
    for position, item in enumerate(records):
        if isinstance(item, PredictionRecord):
            validated.append(item)
        elif isinstance(item, Mapping):
            validated.append(PredictionRecord.from_mapping(item))
        else:
            raise InputError(f"{name}[{position}] is not a prediction record.")
    return validated


def _validate_config(config: BacktestConfig) -> None:
    """Re-check window geometry for configs built without validation."""
    if not isinstance(config, BacktestConfig):
        raise BacktestConfigError("BacktestEngine requires a BacktestConfig.")
    if config.window_size_days <= 0:
        raise BacktestConfigError("window_size_days must be greater than 0.")
    if config.step_days <= 0:
        raise BacktestConfigError("step_days must be greater than 0.")
    if config.min_events_per_window < 1:
        raise BacktestConfigError("min_events_per_window must be at least 1.")


def _positive_timedelta(days: float, name: str) -> pd.Timedelta:
    """Convert a day count to a Timedelta, rejecting lengths that round to zero."""
    try:
        delta = pd.Timedelta(days=days)
    except (OverflowError, ValueError) as exc:
        raise BacktestConfigError(f"{name} is out of range: {days} days.") from exc
    if delta <= pd.Timedelta(0):
        raise BacktestConfigError(f"{name} is too small to represent: {days} days.")
    return delta


def _check_predictor(predictor: Predictor | None) -> None:
    if predictor is not None and not callable(predictor):
        raise InputError("predictor must be callable.")


def _resolved_sorted(records: Sequence[PredictionRecord]) -> list[PredictionRecord]:
    """Resolved records ordered by creation time; ties keep input order."""
    return sorted((record for record in records if record.resolved), key=lambda r: r.created_at)


def _score_records(records: Sequence[PredictionRecord], num_bins: int = 10) -> MetricsBundle:
    return calculate_window_metrics(
        [record.probability for record in records],
        [record.outcome for record in records],
        num_bins=num_bins,
    )


class BacktestEngine:
    """
    Evaluate stored forecasts against realized outcomes.

    The engine holds only its configuration; every method returns a new
    result. Insufficient data is reported as a ``BacktestFailure`` value,
    while malformed input and invalid parameters raise.

    Args:
        config: Window geometry; defaults to the ``default`` scenario.
        clock: Source of the ``timestamp`` stamped on auxiliary results.
    """

    def __init__(self, config: BacktestConfig | None = None, clock: Clock | None = None) -> None:
        self.config = config if config is not None else BacktestConfig()
        _validate_config(self.config)
        self._clock = clock or _utc_now

    def run_rolling_window_backtest(
        self,
        records: Sequence[PredictionRecord],
        predictor: Predictor | None = None,
    ) -> BacktestResult | BacktestFailure:
        """
        Slide fixed-length windows over resolved records and score each one.

        Windows are half-open ``[start, start + window)``. The first starts at
        the earliest resolved timestamp and windows advance by the step while
        ``start + window <= last timestamp``. Windows holding fewer than
        ``min_events_per_window`` records are skipped and do not consume a
        window number; numbering starts at 0.

        Args:
            records: Prediction records in any order.
            predictor: Accepted for re-fit backtests; stored probabilities are
                scored regardless.

        Returns:
            Windows, summary and Brier drawdown trace, or a failure when fewer
            than ``min_events_per_window`` records are resolved.
        """
        config = self.config
        _validate_config(config)
        _check_predictor(predictor)
        resolved = _resolved_sorted(_validate_records(records))

        if len(resolved) < config.min_events_per_window:
            logger.warning(
                "Rolling backtest skipped: %s resolved events, %s required",
                len(resolved),
                config.min_events_per_window,
            )
            return BacktestFailure(f"Insufficient resolved events ({len(resolved)})")

        times = pd.DatetimeIndex(records_to_frame(resolved)["created_at"])
        window = _positive_timedelta(config.window_size_days, "window_size_days")
        step = _positive_timedelta(config.step_days, "step_days")
        first, last = times[0], times[-1]

        span = last - first
        expected_windows = 0 if span < window else int((span - window) // step) + 1
        if expected_windows > config.max_windows:
            raise BacktestConfigError(
                f"Backtest would evaluate {expected_windows} windows, "
                f"above max_windows={config.max_windows}."
            )

        windows: list[Window] = []
        start = first
        while start + window <= last:
            end = start + window
            lower = int(times.searchsorted(start, side="left"))
            upper = int(times.searchsorted(end, side="left"))
            members = resolved[lower:upper]
            if len(members) >= config.min_events_per_window:
                metrics = _score_records(members)
                windows.append(
                    Window(
                        window_num=len(windows),
                        window_start=start.to_pydatetime(),
                        window_end=end.to_pydatetime(),
                        events=tuple(members),
                        metrics=metrics,
                    )
                )
                logger.debug(
                    "Window %s [%s, %s) events=%s %s",
                    windows[-1].window_num,
                    start.isoformat(),
                    end.isoformat(),
                    len(members),
                    format_metrics(metrics.to_dict()),
                )
            start = start + step

        result = BacktestResult(
            windows=tuple(windows),
            summary=summarize_windows(windows),
            drawdown=window_drawdown(windows),
            total_events=len(resolved),
        )
        logger.info(
            "Rolling backtest complete: windows=%s resolved_events=%s window_days=%s step_days=%s",
            len(windows),
            len(resolved),
            config.window_size_days,
            config.step_days,
        )
        return result

    def backtest_split(
        self,
        train_records: Sequence[PredictionRecord],
        test_records: Sequence[PredictionRecord],
        predictor: Predictor | None = None,
    ) -> SplitResult | BacktestFailure:
        """
        Score the resolved members of a held-out test set.

        ``train_records`` is validated but otherwise unused until predictor
        re-fitting is supported.
        """
        _validate_records(train_records, "train_records")
        _check_predictor(predictor)
        test = _validate_records(test_records, "test_records")
        if not test:
            logger.warning("Split backtest skipped: empty test set")
            return BacktestFailure("No test records")

        resolved = [record for record in test if record.resolved]
        if not resolved:
            logger.warning("Split backtest skipped: no resolved test events")
            return BacktestFailure("No resolved test events")

        metrics = _score_records(resolved)
        logger.info(
            "Split backtest complete: test_events=%s %s",
            len(resolved),
            format_metrics(metrics.to_dict()),
        )
        return SplitResult(
            test_set_size=len(resolved),
            metrics=metrics,
            events=tuple(resolved),
            timestamp=self._clock(),
        )

    def backtest_by_time_interval(
        self,
        records: Sequence[PredictionRecord],
        interval_days: float = 30,
    ) -> IntervalBacktestResult | BacktestFailure:
        """
        Score consecutive non-overlapping calendar buckets.

        Buckets ``[start, start + interval)`` tile the range from the first to
        the last resolved timestamp, including the last record. Empty buckets
        are omitted. More than ``max_windows`` buckets raises
        ``BacktestConfigError``.

        Args:
            records: Prediction records in any order.
            interval_days: Bucket length in days.

        Returns:
            Non-empty buckets in time order, or a failure when nothing is
            resolved.
        """
        if (
            isinstance(interval_days, bool)
            or not isinstance(interval_days, (int, float))
            or interval_days <= 0
        ):
            raise BacktestConfigError(f"interval_days must be greater than 0, got {interval_days}")
        resolved = _resolved_sorted(_validate_records(records))
        if not resolved:
            logger.warning("Interval backtest skipped: no resolved events")
            return BacktestFailure("No resolved events")

        times = pd.DatetimeIndex(records_to_frame(resolved)["created_at"])
        interval = _positive_timedelta(interval_days, "interval_days")
        expected_buckets = int((times[-1] - times[0]) // interval) + 1
        if expected_buckets > self.config.max_windows:
            raise BacktestConfigError(
                f"Interval backtest would evaluate {expected_buckets} buckets, "
                f"above max_windows={self.config.max_windows}."
            )

        buckets: list[IntervalBucket] = []
        start = times[0]
        while start <= times[-1]:
            end = start + interval
            lower = int(times.searchsorted(start, side="left"))
            upper = int(times.searchsorted(end, side="left"))
            members = resolved[lower:upper]
            if members:
                buckets.append(
                    IntervalBucket(
                        start=start.to_pydatetime(),
                        end=end.to_pydatetime(),
                        event_count=len(members),
                        metrics=_score_records(members),
                    )
                )
            start = end

        logger.info(
            "Interval backtest complete: buckets=%s interval_days=%s", len(buckets), interval_days
        )
        return IntervalBacktestResult(buckets=tuple(buckets), timestamp=self._clock())

    def accuracy_by_confidence(
        self,
        records: Sequence[PredictionRecord],
        num_buckets: int = 10,
    ) -> ConfidenceResult | BacktestFailure:
        """
        Compare mean forecast with observed frequency per probability bucket.

        A forecast ``p`` falls in bucket ``min(floor(p * num_buckets),
        num_buckets - 1)``; only non-empty buckets are reported.
        """
        resolved = [record for record in _validate_records(records) if record.resolved]
        if not resolved:
            logger.warning("Confidence analysis skipped: no resolved events")
            return BacktestFailure("No resolved events")

        frame = records_to_frame(resolved)
        probabilities = frame["probability"].to_numpy(dtype=float)
        outcomes = frame["outcome"].to_numpy(dtype=float)
        indices = bin_indices(probabilities, num_buckets)

        buckets: list[ConfidenceBucket] = []
        for bucket_id in range(num_buckets):
            mask = indices == bucket_id
            if not np.any(mask):
                continue
            predicted = float(probabilities[mask].mean())
            observed = float(outcomes[mask].mean())
            buckets.append(
                ConfidenceBucket(
                    bucket=bucket_id,
                    lower_bound=bucket_id / num_buckets,
                    upper_bound=(bucket_id + 1) / num_buckets,
                    sample_count=int(mask.sum()),
                    predicted_probability=predicted,
                    actual_accuracy=observed,
                    calibration_error=abs(predicted - observed),
                    brier=brier_score(probabilities[mask], outcomes[mask]),
                )
            )

        logger.info(
            "Confidence analysis complete: buckets=%s resolved_events=%s",
            len(buckets),
            len(resolved),
        )
        return ConfidenceResult(
            buckets=tuple(buckets), total_events=len(resolved), timestamp=self._clock()
        )

    def sequential_backtest(
        self,
        records: Sequence[PredictionRecord],
        predictor: Predictor | None = None,
    ) -> SequentialResult | BacktestFailure:
        """
        Online evaluation in creation order after a warm-up of ten events.

        Step ``t`` (``t >= 10``) scores record ``t`` and reports running
        Brier and log-score averages over the ``t - 9`` steps so far. Log
        scores use clamped probabilities, so they stay finite for forecasts
        of exactly 0 or 1.
        """
        _check_predictor(predictor)
        resolved = _resolved_sorted(_validate_records(records))
        if len(resolved) < SEQUENTIAL_WARMUP:
            logger.warning(
                "Sequential backtest skipped: %s resolved events, %s required",
                len(resolved),
                SEQUENTIAL_WARMUP,
            )
            return BacktestFailure("Insufficient resolved events")

        scored = resolved[SEQUENTIAL_WARMUP:]
        probabilities = np.array([record.probability for record in scored], dtype=float)
        outcomes = np.array([record.outcome for record in scored], dtype=float)
        briers = (probabilities - outcomes) ** 2
        logs = log_likelihoods(probabilities, outcomes)
        counts = np.arange(1, len(scored) + 1, dtype=float)
        cumulative_brier = np.cumsum(briers) / counts
        cumulative_log = np.cumsum(logs) / counts

        sequence = tuple(
            SequentialStep(
                step=SEQUENTIAL_WARMUP + position,
                event_id=record.id,
                prediction=record.probability,
                outcome=int(record.outcome),
                brier_score=float(briers[position]),
                log_score=float(logs[position]),
                cumulative_avg_brier=float(cumulative_brier[position]),
                cumulative_avg_log=float(cumulative_log[position]),
            )
            for position, record in enumerate(scored)
        )
        final_brier = float(cumulative_brier[-1]) if sequence else float("nan")
        final_log = float(cumulative_log[-1]) if sequence else float("nan")

        logger.info(
            "Sequential backtest complete: steps=%s final_brier=%s",
            len(sequence),
            f"{final_brier:.4f}" if sequence else "n/a",
        )
        return SequentialResult(
            sequence=sequence,
            final_brier_score=final_brier,
            final_log_score=final_log,
            timestamp=self._clock(),
        )


def create_backtest_engine(
    scenario: str = "default",
    clock: Clock | None = None,
    **overrides: Any,
) -> BacktestEngine:
    """
    Build an engine from a named scenario.

    Args:
        scenario: ``default``, ``shortTerm`` or ``longTerm`` (snake_case
            spellings accepted).
        clock: Optional timestamp source passed to the engine.
        **overrides: Individual ``BacktestConfig`` fields replacing the preset.

    Returns:
        Configured backtest engine.

    Raises:
        BacktestConfigError: Unknown scenario or invalid override.
    """
    name = resolve_scenario_name(scenario)
    try:
        config = BacktestConfig.model_validate(
            {**BACKTEST_SCENARIOS[name], **overrides, "scenario": name}
        )
    except ValueError as exc:
        raise BacktestConfigError(f"Invalid backtest configuration: {exc}") from exc
    return BacktestEngine(config, clock=clock)
