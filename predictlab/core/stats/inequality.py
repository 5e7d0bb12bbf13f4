"""Inequality measures over non-negative distributions (e.g. position sizes)."""

from __future__ import annotations

import numpy as np

from predictlab.core.stats._validation import ArrayLike, as_float_array
from predictlab.core.utils.errors import InputError


def gini_coefficient(values: ArrayLike) -> float:
    """
    Gini coefficient ``G = sum((2i - n - 1) * x_i) / (n * sum(x))`` with ``x``
    sorted ascending and ``i`` 1-based.

    A uniform vector gives 0; one non-zero value among ``n`` gives
    ``(n - 1) / n``. Empty input and all-zero input return 0.

    Raises:
        InputError: Negative or non-finite values.
    """
    array = as_float_array(values, "values")
    if array.size == 0:
        return 0.0
    if np.any(~np.isfinite(array)) or np.any(array < 0):
        raise InputError("gini_coefficient() requires finite, non-negative values.")

    total = float(array.sum())
    if total <= 0.0:
        return 0.0

    ordered = np.sort(array)
    n = ordered.size
    ranks = np.arange(1, n + 1, dtype=float)
    return float(np.sum((2.0 * ranks - n - 1.0) * ordered) / (n * total))
