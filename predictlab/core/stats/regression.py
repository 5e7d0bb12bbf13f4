"""Ordinary, weighted and locally weighted least-squares regression."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from predictlab.core.stats._validation import ArrayLike, as_float_array, paired_arrays
from predictlab.core.utils.errors import InputError

# Relative threshold under which a design is treated as having zero variance.
_DEGENERATE_TOLERANCE = 1e-12


@dataclass(frozen=True)
class LinearFit:
    """Fitted line ``y = slope * x + intercept``."""

    slope: float
    intercept: float
    r_squared: float

    def predict(self, x: ArrayLike) -> np.ndarray:
        return self.slope * as_float_array(x, "x") + self.intercept

    def to_dict(self) -> dict[str, float | None]:
        return {
            "slope": _json_float(self.slope),
            "intercept": _json_float(self.intercept),
            "rSquared": _json_float(self.r_squared),
        }


def _json_float(value: float) -> float | None:
    return None if math.isnan(value) else value


def _r_squared(y: np.ndarray, fitted: np.ndarray, weights: np.ndarray) -> float:
    """Weighted coefficient of determination; a constant target fit exactly scores 1."""
    mean_y = float(np.average(y, weights=weights))
    ss_tot = float(np.sum(weights * (y - mean_y) ** 2))
    ss_res = float(np.sum(weights * (y - fitted) ** 2))
    if ss_tot <= _DEGENERATE_TOLERANCE * max(1.0, mean_y * mean_y):
        return 1.0 if ss_res <= _DEGENERATE_TOLERANCE else 0.0
    return 1.0 - ss_res / ss_tot


def weighted_linear_regression(x: ArrayLike, y: ArrayLike, weights: ArrayLike) -> LinearFit:
    """
    Weighted least squares line via the closed-form normal equations.

    Degenerate designs (no positive weight mass or zero weighted variance in
    ``x``) fall back to a flat line at the weighted mean of ``y`` with
    ``r_squared = 0``. Empty input yields an all-``NaN`` fit.
    """
    x_values, y_values = paired_arrays(x, y, "x", "y")
    w = as_float_array(weights, "weights")
    if w.shape[0] != x_values.shape[0]:
        raise InputError("weights must have the same length as x and y.")
    if np.any(w < 0) or np.any(~np.isfinite(w)):
        raise InputError("weights must be finite and non-negative.")
    if x_values.size == 0:
        return LinearFit(math.nan, math.nan, math.nan)

    sum_w = float(w.sum())
    if sum_w <= 0.0:
        return LinearFit(0.0, float(y_values.mean()), 0.0)

    sum_wx = float(np.sum(w * x_values))
    sum_wy = float(np.sum(w * y_values))
    sum_wxx = float(np.sum(w * x_values * x_values))
    sum_wxy = float(np.sum(w * x_values * y_values))

    denominator = sum_w * sum_wxx - sum_wx * sum_wx
    scale = max(1.0, abs(sum_w * sum_wxx))
    if abs(denominator) <= _DEGENERATE_TOLERANCE * scale:
        return LinearFit(0.0, sum_wy / sum_w, 0.0)

    slope = (sum_w * sum_wxy - sum_wx * sum_wy) / denominator
    intercept = (sum_wy - slope * sum_wx) / sum_w
    fitted = slope * x_values + intercept
    return LinearFit(float(slope), float(intercept), _r_squared(y_values, fitted, w))


def linear_regression(x: ArrayLike, y: ArrayLike) -> LinearFit:
    """
    Ordinary least squares line of ``y`` on ``x``.

    Zero-variance ``x`` yields ``slope = 0``, ``intercept = mean(y)`` and
    ``r_squared = 0``.
    """
    x_values, _ = paired_arrays(x, y, "x", "y")
    return weighted_linear_regression(x, y, np.ones_like(x_values))


def _tricube(u: np.ndarray) -> np.ndarray:
    clipped = np.clip(np.abs(u), 0.0, 1.0)
    return (1.0 - clipped**3) ** 3


def lowess(x: ArrayLike, y: ArrayLike, bandwidth_fraction: float = 0.3) -> np.ndarray:
    """
    Locally weighted linear smoothing evaluated at every input point.

    For each ``x_i`` the ``k = ceil(bandwidth_fraction * n)`` nearest points
    (at least two) form the neighbourhood. Neighbours are weighted with the
    tri-cube kernel of their distance divided by the largest neighbour
    distance, and a weighted line is fit locally. Near the edges the
    neighbourhood is simply one-sided; no synthetic points are added.

    A fraction above 1 uses every point and stretches the kernel radius by
    the fraction, so very large values approach the global OLS line.

    Args:
        x: Predictor values.
        y: Response values.
        bandwidth_fraction: Neighbourhood size as a fraction of ``n``; must be
            positive.

    Returns:
        Smoothed values aligned with the input order.
    """
    x_values, y_values = paired_arrays(x, y, "x", "y")
    if not bandwidth_fraction > 0.0 or not math.isfinite(bandwidth_fraction):
        raise InputError(f"bandwidth_fraction must be positive, got {bandwidth_fraction}")

    n = x_values.size
    if n == 0:
        return np.array([], dtype=float)
    if n < 3:
        return linear_regression(x_values, y_values).predict(x_values)

    k = min(n, max(2, math.ceil(bandwidth_fraction * n)))
    stretch = max(1.0, bandwidth_fraction)
    smoothed = np.empty(n, dtype=float)
    for i in range(n):
        distances = np.abs(x_values - x_values[i])
        neighbours = np.argsort(distances, kind="stable")[:k]
        radius = float(distances[neighbours].max()) * stretch

        weights = np.zeros(n, dtype=float)
        if radius <= 0.0:
            weights[neighbours] = 1.0
        else:
            weights[neighbours] = _tricube(distances[neighbours] / radius)

        local_fit = weighted_linear_regression(x_values, y_values, weights)
        smoothed[i] = local_fit.slope * x_values[i] + local_fit.intercept
    return smoothed
