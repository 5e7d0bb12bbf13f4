"""Descriptive statistics. Empty input yields ``NaN`` rather than raising."""

from __future__ import annotations

import math

import numpy as np

from predictlab.core.stats._validation import ArrayLike, as_float_array
from predictlab.core.utils.errors import InputError


def mean(values: ArrayLike) -> float:
    array = as_float_array(values)
    if array.size == 0:
        return math.nan
    return float(array.mean())


def variance(values: ArrayLike) -> float:
    """Population variance (``ddof=0``)."""
    array = as_float_array(values)
    if array.size == 0:
        return math.nan
    return float(array.var())


def standard_deviation(values: ArrayLike) -> float:
    value = variance(values)
    return math.nan if math.isnan(value) else math.sqrt(value)


def median(values: ArrayLike) -> float:
    array = as_float_array(values)
    if array.size == 0:
        return math.nan
    return float(np.median(array))


def quantile(values: ArrayLike, q: float) -> float:
    """
    Quantile with linear interpolation between closest ranks.

    Args:
        values: Sample values.
        q: Quantile level in ``[0, 1]``.

    Returns:
        Interpolated quantile, or ``NaN`` for empty input.
    """
    if not 0.0 <= q <= 1.0:
        raise InputError(f"q must be in [0, 1], got {q}")
    array = as_float_array(values)
    if array.size == 0:
        return math.nan
    return float(np.quantile(array, q))
