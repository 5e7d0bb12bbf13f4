"""Backtest metrics calculations."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

import numpy as np
import pandas as pd

from predictlab.core.backtest.types import DrawdownPoint, MetricsBundle, Window
from predictlab.core.stats.calibration import expected_calibration_error
from predictlab.core.stats.scoring import brier_score, log_score, spherical_score
from predictlab.core.utils.errors import InputError

SUMMARY_METRICS = {
    "brierScore": "brier_score",
    "logScore": "log_score",
    "sphericalScore": "spherical_score",
    "ece": "ece",
    "accuracy": "accuracy",
}


def calculate_window_metrics(
    predictions: Sequence[float] | np.ndarray,
    outcomes: Sequence[int] | np.ndarray,
    num_bins: int = 10,
) -> MetricsBundle:
    """
    Score one set of resolved forecasts.

    Args:
        predictions: Forecast probabilities.
        outcomes: Binary outcomes aligned with ``predictions``.
        num_bins: Equal-width bins used for the ECE term.

    Returns:
        Metrics bundle; ``accuracy`` is the base rate (mean outcome), not a
        thresholded hit rate. Empty input gives ``MetricsBundle.empty()``.
    """
    p = np.asarray(predictions, dtype=float)
    o = np.asarray(outcomes, dtype=float)
    if p.size == 0:
        return MetricsBundle.empty()

    return MetricsBundle(
        brier_score=brier_score(p, o),
        log_score=log_score(p, o),
        spherical_score=spherical_score(p, o),
        ece=expected_calibration_error(p, o, num_bins=num_bins),
        accuracy=float(o.mean()),
        sample_size=int(p.size),
    )


def compute_drawdown(
    scores: Sequence[float],
    window_numbers: Sequence[int] | None = None,
) -> tuple[DrawdownPoint, ...]:
    """
    Brier drawdown trace across windows.

    Lower Brier is better, so the peak is the running minimum and drawdown is
    ``score - peak_score``. ``NaN`` scores are skipped.

    Args:
        scores: Per-window Brier scores in window order.
        window_numbers: Labels for each score; defaults to ``0..len(scores) - 1``.

    Returns:
        One point per finite score.
    """
    if window_numbers is None:
        labels = list(range(len(scores)))
    else:
        labels = list(window_numbers)
    if len(labels) != len(scores):
        raise InputError("window_numbers must align with scores.")
    scored = [
        (label, float(score))
        for label, score in zip(labels, scores, strict=True)
        if not math.isnan(score)
    ]
    if not scored:
        return ()

    series = pd.Series([score for _, score in scored], dtype=float)
    running_best = series.cummin()
    drawdowns = series - running_best
    return tuple(
        DrawdownPoint(
            window=label,
            score=float(series.iloc[position]),
            peak_score=float(running_best.iloc[position]),
            drawdown=float(drawdowns.iloc[position]),
        )
        for position, (label, _) in enumerate(scored)
    )


def window_drawdown(windows: Sequence[Window]) -> tuple[DrawdownPoint, ...]:
    """Drawdown trace labelled by each window's ``window_num``."""
    return compute_drawdown(
        [window.metrics.brier_score for window in windows],
        [window.window_num for window in windows],
    )


def calculate_max_drawdown(points: Sequence[DrawdownPoint]) -> float:
    """Largest Brier degradation from the best window so far; 0 when empty."""
    if not points:
        return 0.0
    return float(max(point.drawdown for point in points))


def describe_range(values: Sequence[float]) -> dict[str, float] | None:
    """``{min, max, avg}`` over the non-``NaN`` values, or ``None`` if there are none."""
    series = pd.Series(list(values), dtype=float).dropna()
    if series.empty:
        return None
    return {
        "min": float(series.min()),
        "max": float(series.max()),
        "avg": float(series.mean()),
    }


def summarize_windows(windows: Sequence[Window]) -> dict[str, Any]:
    """
    Aggregate per-window metrics.

    Returns:
        Summary with window and event counts, ``eventsPerWindow`` and one
        ``{min, max, avg}`` entry per metric, ``maxDrawdown`` and the covered
        ``timeRange``. Range entries are ``None`` when no window carries a
        finite value.
    """
    summary: dict[str, Any] = {
        "windows": len(windows),
        "totalEvents": sum(window.event_count for window in windows),
        "eventsPerWindow": describe_range([window.event_count for window in windows]),
    }
    for key, attribute in SUMMARY_METRICS.items():
        summary[key] = describe_range([getattr(window.metrics, attribute) for window in windows])

    summary["maxDrawdown"] = calculate_max_drawdown(window_drawdown(windows))
    if windows:
        summary["timeRange"] = {
            "start": windows[0].window_start.isoformat(),
            "end": windows[-1].window_end.isoformat(),
        }
    else:
        summary["timeRange"] = None
    return summary
