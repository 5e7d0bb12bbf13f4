"""Market microstructure estimators."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from predictlab.core.stats._validation import ArrayLike, as_float_array, paired_arrays
from predictlab.core.stats.regression import linear_regression
from predictlab.core.utils.errors import InputError


@dataclass(frozen=True)
class VarianceRatioResult:
    """Lo-MacKinlay variance ratio; 1 under a random walk."""

    variance_ratio: float
    deviation: float
    q: int

    def to_dict(self) -> dict[str, float | int | None]:
        return {
            "varianceRatio": None if math.isnan(self.variance_ratio) else self.variance_ratio,
            "deviation": None if math.isnan(self.deviation) else self.deviation,
            "q": self.q,
        }


def kyle_lambda(price_changes: ArrayLike, signed_volume: ArrayLike) -> float:
    """
    Price impact per unit of signed order flow.

    Slope of the OLS regression of price changes on signed volume. A constant
    order flow carries no identifying variation and yields ``0.0``; empty
    input yields ``NaN``.
    """
    changes, flow = paired_arrays(price_changes, signed_volume, "price_changes", "signed_volume")
    return linear_regression(flow, changes).slope


def amihud_illiquidity(returns: ArrayLike, volumes: ArrayLike) -> float:
    """
    Mean of ``|return_i| / volume_i`` over observations with positive volume.

    Zero-volume observations are skipped. Returns ``NaN`` when no observation
    has positive volume.
    """
    ret, vol = paired_arrays(returns, volumes, "returns", "volumes")
    if np.any(vol < 0):
        raise InputError("volumes must be non-negative.")
    traded = vol > 0
    if not traded.any():
        return math.nan
    return float(np.mean(np.abs(ret[traded]) / vol[traded]))


def variance_ratio_test(prices: ArrayLike, q: int = 2) -> VarianceRatioResult:
    """
    Ratio of the variance of overlapping ``q``-period log returns to ``q``
    times the one-period variance.

    Values below 1 suggest mean reversion and above 1 momentum. When the
    one-period variance is zero or too few returns exist, the ratio is
    ``NaN``.
    """
    if isinstance(q, bool) or not isinstance(q, int) or q < 2:
        raise InputError(f"q must be an integer >= 2, got {q!r}")
    values = as_float_array(prices, "prices")
    if np.any(values <= 0):
        raise InputError("prices must be strictly positive for log returns.")

    returns = np.diff(np.log(values))
    if returns.size <= q:
        return VarianceRatioResult(math.nan, math.nan, q)

    one_period_var = float(returns.var())
    window_sums = np.convolve(returns, np.ones(q), mode="valid")
    q_period_var = float(window_sums.var())
    if one_period_var <= 0.0:
        return VarianceRatioResult(math.nan, math.nan, q)

    ratio = q_period_var / (q * one_period_var)
    return VarianceRatioResult(float(ratio), float(ratio - 1.0), q)
