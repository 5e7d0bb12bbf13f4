"""
Proper scoring rules for binary probability forecasts.

Sign conventions (callers should not assume a uniform "higher is better"):

- ``brier_score``: mean squared error, range ``[0, 1]``, lower is better.
- ``log_score``: the *unnegated* mean log-likelihood, range ``(-inf, 0]``
  (bounded below by ``ln(1e-9)`` through clamping); values closer to zero are
  better. This is not the log loss, which is its negation.
- ``spherical_score``: range ``(0, 1]``, higher is better.

All functions return ``NaN`` for empty input and raise ``InputError`` for
mismatched lengths or values outside the forecast domain.
"""

from __future__ import annotations

import math

import numpy as np

from predictlab.core.stats._validation import ArrayLike, forecast_arrays

LOG_SCORE_EPSILON = 1e-9


def brier_score(predictions: ArrayLike, outcomes: ArrayLike) -> float:
    """Mean of ``(p_i - o_i)^2``."""
    p, o = forecast_arrays(predictions, outcomes)
    if p.size == 0:
        return math.nan
    return float(np.mean((p - o) ** 2))


def clamp_probabilities(predictions: np.ndarray, epsilon: float = LOG_SCORE_EPSILON) -> np.ndarray:
    """Clamp probabilities into ``[epsilon, 1 - epsilon]`` so logarithms stay finite."""
    return np.clip(predictions, epsilon, 1.0 - epsilon)


def log_likelihoods(predictions: ArrayLike, outcomes: ArrayLike) -> np.ndarray:
    """Per-forecast log-likelihood ``o*ln(p) + (1-o)*ln(1-p)`` with clamped ``p``."""
    p, o = forecast_arrays(predictions, outcomes)
    clamped = clamp_probabilities(p)
    return o * np.log(clamped) + (1.0 - o) * np.log(1.0 - clamped)


def log_score(predictions: ArrayLike, outcomes: ArrayLike) -> float:
    """
    Unnegated mean log-likelihood of the outcomes under the forecasts.

    Args:
        predictions: Forecast probabilities in ``[0, 1]``.
        outcomes: Binary outcomes.

    Returns:
        Mean log-likelihood (``<= 0``; closer to zero is better), or ``NaN``
        for empty input.
    """
    values = log_likelihoods(predictions, outcomes)
    if values.size == 0:
        return math.nan
    return float(values.mean())


def spherical_score(predictions: ArrayLike, outcomes: ArrayLike) -> float:
    """Mean of the probability assigned to the realized outcome over ``||(p, 1-p)||``."""
    p, o = forecast_arrays(predictions, outcomes)
    if p.size == 0:
        return math.nan
    realized = o * p + (1.0 - o) * (1.0 - p)
    norm = np.sqrt(p * p + (1.0 - p) * (1.0 - p))
    return float(np.mean(realized / norm))
