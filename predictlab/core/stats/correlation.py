"""Pearson, Spearman and lagged cross-correlation."""

from __future__ import annotations

import math

import numpy as np
import pandas as pd

from predictlab.core.stats._validation import ArrayLike, paired_arrays
from predictlab.core.utils.errors import InputError

# Relative spread below which a series is treated as constant.
_RELATIVE_SPREAD = 1e-12


def _is_constant(values: np.ndarray, sum_squares: float) -> bool:
    level = max(1.0, float(values.mean()) ** 2)
    return sum_squares <= values.size * level * _RELATIVE_SPREAD**2


def _pearson(x: np.ndarray, y: np.ndarray) -> float:
    if x.size == 0:
        return math.nan
    dx = x - x.mean()
    dy = y - y.mean()
    denom_x = float(np.sum(dx * dx))
    denom_y = float(np.sum(dy * dy))
    # A constant series carries no linear association.
    if _is_constant(x, denom_x) or _is_constant(y, denom_y):
        return 0.0
    value = float(np.sum(dx * dy)) / math.sqrt(denom_x * denom_y)
    return max(-1.0, min(1.0, value))


def pearson_correlation(x: ArrayLike, y: ArrayLike) -> float:
    """
    Pearson product-moment correlation.

    Returns:
        Correlation in ``[-1, 1]``; ``0.0`` when either series is constant and
        ``NaN`` for empty input.
    """
    x_values, y_values = paired_arrays(x, y)
    return _pearson(x_values, y_values)


def rank(values: np.ndarray) -> np.ndarray:
    """1-based ranks with ties assigned their average rank."""
    return pd.Series(values).rank(method="average").to_numpy(dtype=float)


def spearman_correlation(x: ArrayLike, y: ArrayLike) -> float:
    """Pearson correlation of the average-tie ranks of ``x`` and ``y``."""
    x_values, y_values = paired_arrays(x, y)
    if x_values.size == 0:
        return math.nan
    return _pearson(rank(x_values), rank(y_values))


def cross_correlation(x: ArrayLike, y: ArrayLike, lag: int) -> float:
    """
    Correlation between ``x`` and ``y`` shifted by ``lag`` observations.

    For ``lag >= 0`` this is ``corr(x[0:n-lag], y[lag:n])``, i.e. ``x`` leads
    ``y``. For ``lag < 0`` the roles swap, ``corr(x[-lag:n], y[0:n+lag])``,
    meaning ``y`` leads ``x``.

    Returns:
        Correlation, or ``NaN`` when ``|lag|`` leaves no overlapping samples.
    """
    if isinstance(lag, bool) or not isinstance(lag, (int, np.integer)):
        raise InputError(f"lag must be an integer, got {lag!r}")
    x_values, y_values = paired_arrays(x, y)
    n = x_values.size
    shift = abs(int(lag))
    if shift >= n:
        return math.nan
    if lag >= 0:
        return _pearson(x_values[: n - shift], y_values[shift:])
    return _pearson(x_values[shift:], y_values[: n - shift])


def cross_correlation_function(
    x: ArrayLike,
    y: ArrayLike,
    max_lag: int = 10,
) -> list[dict[str, float | int | None]]:
    """
    Cross-correlation for every lag in ``[-max_lag, max_lag]`` with overlap.

    Returns:
        Rows of ``{"lag": int, "correlation": float}`` in ascending lag order.
    """
    if isinstance(max_lag, bool) or not isinstance(max_lag, int) or max_lag < 0:
        raise InputError(f"max_lag must be a non-negative integer, got {max_lag!r}")
    x_values, y_values = paired_arrays(x, y)
    rows: list[dict[str, float | int | None]] = []
    for lag in range(-max_lag, max_lag + 1):
        if abs(lag) >= x_values.size:
            continue
        rows.append({"lag": lag, "correlation": cross_correlation(x_values, y_values, lag)})
    return rows
