"""Granger causality via nested least-squares regressions."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from scipy import stats as scipy_stats

from predictlab.core.stats._validation import ArrayLike, paired_arrays
from predictlab.core.utils.errors import InputError

SIGNIFICANCE_LEVEL = 0.05


@dataclass(frozen=True)
class GrangerResult:
    """
    F-test of whether lags of ``x`` improve an autoregression of ``y``.

    ``f_statistic`` and ``p_value`` are ``NaN`` when there are too few
    observations for the requested lag order, or when the unrestricted model
    fits exactly (zero residual variance leaves the F ratio undefined).
    """

    f_statistic: float
    p_value: float
    df_num: int
    df_den: int
    lag: int
    restricted_rss: float
    unrestricted_rss: float

    @property
    def significant(self) -> bool:
        return not math.isnan(self.p_value) and self.p_value < SIGNIFICANCE_LEVEL

    def to_dict(self) -> dict[str, float | int | bool | None]:
        return {
            "fStatistic": None if math.isnan(self.f_statistic) else self.f_statistic,
            "pValue": None if math.isnan(self.p_value) else self.p_value,
            "dfNum": self.df_num,
            "dfDen": self.df_den,
            "lag": self.lag,
            "significant": self.significant,
        }


def _lag_matrix(series: np.ndarray, lag: int) -> np.ndarray:
    """Columns ``series[t-1], ..., series[t-lag]`` for ``t = lag .. n-1``."""
    n = series.size
    return np.column_stack([series[lag - k : n - k] for k in range(1, lag + 1)])


def _residual_sum_of_squares(design: np.ndarray, target: np.ndarray) -> float:
    coefficients, _, _, _ = np.linalg.lstsq(design, target, rcond=None)
    residuals = target - design @ coefficients
    return float(residuals @ residuals)


def granger_causality(x: ArrayLike, y: ArrayLike, lag: int = 1) -> GrangerResult:
    """
    Test whether ``x`` Granger-causes ``y`` at lag order ``lag``.

    Restricted model: ``y_t ~ 1 + y_{t-1..t-lag}``. Unrestricted model adds
    ``x_{t-1..t-lag}``. ``F = ((RSS_r - RSS_u) / lag) / (RSS_u / (m - 2*lag - 1))``
    with ``m = n - lag`` usable observations; the p-value is the upper tail of
    the F distribution.

    Args:
        x: Candidate causal series.
        y: Target series, aligned with ``x``.
        lag: Number of lags in both models.

    Returns:
        Test statistic, p-value and degrees of freedom.
    """
    if isinstance(lag, bool) or not isinstance(lag, int) or lag < 1:
        raise InputError(f"lag must be a positive integer, got {lag!r}")
    x_values, y_values = paired_arrays(x, y)

    observations = y_values.size - lag
    df_num = lag
    df_den = observations - (2 * lag + 1)
    if observations <= 0 or df_den <= 0:
        return GrangerResult(math.nan, math.nan, df_num, max(df_den, 0), lag, math.nan, math.nan)

    target = y_values[lag:]
    intercept = np.ones((observations, 1))
    y_lags = _lag_matrix(y_values, lag)
    x_lags = _lag_matrix(x_values, lag)

    restricted_rss = _residual_sum_of_squares(np.hstack([intercept, y_lags]), target)
    unrestricted_rss = _residual_sum_of_squares(np.hstack([intercept, y_lags, x_lags]), target)

    scale = max(1.0, float(target @ target))
    if unrestricted_rss <= 1e-12 * scale:
        return GrangerResult(
            math.nan, math.nan, df_num, df_den, lag, restricted_rss, unrestricted_rss
        )

    improvement = max(0.0, restricted_rss - unrestricted_rss)
    f_statistic = (improvement / df_num) / (unrestricted_rss / df_den)
    p_value = float(scipy_stats.f.sf(f_statistic, df_num, df_den))
    return GrangerResult(
        f_statistic=float(f_statistic),
        p_value=p_value,
        df_num=df_num,
        df_den=df_den,
        lag=lag,
        restricted_rss=restricted_rss,
        unrestricted_rss=unrestricted_rss,
    )
