"""Input coercion shared by the statistics functions."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import pandas as pd

from predictlab.core.utils.errors import InputError

ArrayLike = Sequence[float] | np.ndarray | pd.Series


def as_float_array(values: ArrayLike, name: str = "values") -> np.ndarray:
    """
    Return a one-dimensional float copy of ``values``.

    A copy is always made so callers' arrays are never mutated downstream.
    """
    if values is None or isinstance(values, (str, bytes, dict)):
        raise InputError(f"{name} must be a sequence of numbers.")
    try:
        array = np.array(values, dtype=float, copy=True)
    except (TypeError, ValueError) as exc:
        raise InputError(f"{name} must be a sequence of numbers: {exc}") from exc
    if array.ndim != 1:
        raise InputError(f"{name} must be one-dimensional, got shape {array.shape}.")
    return array


def paired_arrays(
    first: ArrayLike,
    second: ArrayLike,
    first_name: str = "x",
    second_name: str = "y",
) -> tuple[np.ndarray, np.ndarray]:
    """Coerce two sequences and require equal lengths."""
    left = as_float_array(first, first_name)
    right = as_float_array(second, second_name)
    if left.shape[0] != right.shape[0]:
        raise InputError(
            f"{first_name} and {second_name} must have equal length "
            f"({left.shape[0]} != {right.shape[0]})."
        )
    return left, right


def forecast_arrays(predictions: ArrayLike, outcomes: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    """Coerce and validate probability forecasts against binary outcomes."""
    p, o = paired_arrays(predictions, outcomes, "predictions", "outcomes")
    if p.size and (np.any(~np.isfinite(p)) or np.any((p < 0.0) | (p > 1.0))):
        raise InputError("predictions must be finite probabilities in [0, 1].")
    if o.size and np.any((o != 0.0) & (o != 1.0)):
        raise InputError("outcomes must be binary (0 or 1).")
    return p, o
