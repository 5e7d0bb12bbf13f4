"""Parametric fits: power law, Beta and Ornstein-Uhlenbeck."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass

import numpy as np

from predictlab.core.stats._validation import ArrayLike, as_float_array
from predictlab.core.stats.regression import linear_regression
from predictlab.core.utils.errors import InputError, NumericalDegeneracyError

BETA_PARAMETER_FLOOR = 0.1


@dataclass(frozen=True)
class PowerLawFit:
    alpha: float
    x_min: float
    n: int

    def to_dict(self) -> dict[str, float | int]:
        return {"alpha": self.alpha, "xMin": self.x_min, "n": self.n}


@dataclass(frozen=True)
class BetaFit:
    alpha: float
    beta: float

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class OrnsteinUhlenbeckFit:
    """
    Parameters of ``dX = theta * (mu - X) dt + sigma dW``.

    ``half_life`` is ``None`` when the series shows no mean reversion
    (``theta <= 0``); ``mu`` then falls back to the sample mean.
    """

    theta: float
    mu: float
    sigma: float
    half_life: float | None

    @property
    def mean_reverting(self) -> bool:
        return self.theta > 0.0

    def to_dict(self) -> dict[str, float | None]:
        return {
            "theta": self.theta,
            "mu": self.mu,
            "sigma": self.sigma,
            "halfLife": self.half_life,
        }


def fit_power_law(data: ArrayLike, x_min: float | None = None) -> PowerLawFit:
    """
    Estimate the exponent of ``p(x) ~ x^-alpha`` for ``x >= x_min``.

    Uses the discrete maximum-likelihood approximation
    ``alpha = 1 + n / sum(ln(x_i / (x_min - 0.5)))`` (Clauset, Shalizi and
    Newman, 2009), which is intended for integer-valued data such as trade
    counts or contract sizes.

    Args:
        data: Observations.
        x_min: Lower cut-off; defaults to the smallest positive observation.

    Returns:
        Fitted exponent with the cut-off and tail sample size used.

    Raises:
        InputError: No observations at or above ``x_min``, or ``x_min <= 0.5``.
    """
    values = as_float_array(data, "data")
    values = values[np.isfinite(values)]
    if x_min is None:
        positive = values[values > 0]
        if positive.size == 0:
            raise InputError("fit_power_law() requires at least one positive observation.")
        x_min = float(positive.min())
    if x_min <= 0.5:
        raise InputError(f"x_min must be greater than 0.5 for the discrete estimator, got {x_min}")

    tail = values[values >= x_min]
    if tail.size == 0:
        raise InputError(f"No observations at or above x_min={x_min}.")

    log_ratio_sum = float(np.sum(np.log(tail / (x_min - 0.5))))
    alpha = 1.0 + tail.size / log_ratio_sum
    return PowerLawFit(alpha=float(alpha), x_min=float(x_min), n=int(tail.size))


def fit_beta(data: ArrayLike) -> BetaFit:
    """
    Method-of-moments Beta fit on observations strictly inside ``(0, 1)``.

    ``common = m(1-m)/v - 1``, ``alpha = m * common``, ``beta = (1-m) * common``,
    each floored at 0.1. A zero-variance sample is treated as maximally
    concentrated and returns the floor-bounded moments of a very sharp Beta
    centred on the sample mean.

    Raises:
        NumericalDegeneracyError: No observations in ``(0, 1)``; there is no
            meaningful default shape.
    """
    values = as_float_array(data, "data")
    inside = values[(values > 0.0) & (values < 1.0)]
    if inside.size == 0:
        raise NumericalDegeneracyError("fit_beta() requires observations strictly inside (0, 1).")

    sample_mean = float(inside.mean())
    sample_var = float(inside.var())
    if sample_var <= 0.0:
        # Cap concentration instead of dividing by zero.
        common = 1e6
    else:
        common = sample_mean * (1.0 - sample_mean) / sample_var - 1.0
    alpha = max(BETA_PARAMETER_FLOOR, sample_mean * common)
    beta = max(BETA_PARAMETER_FLOOR, (1.0 - sample_mean) * common)
    return BetaFit(alpha=float(alpha), beta=float(beta))


def fit_ornstein_uhlenbeck(series: ArrayLike, dt: float = 1.0) -> OrnsteinUhlenbeckFit:
    """
    Estimate Ornstein-Uhlenbeck parameters by regressing increments on levels.

    With ``dX_t = a + b * X_t + e_t``: ``theta = -b / dt``, ``mu = -a / b``,
    ``sigma = std(e) / sqrt(dt)`` and ``half_life = ln 2 / theta``.

    Raises:
        InputError: Fewer than three observations or non-positive ``dt``.
    """
    if not dt > 0.0:
        raise InputError(f"dt must be positive, got {dt}")
    values = as_float_array(series, "series")
    if values.size < 3:
        raise InputError("fit_ornstein_uhlenbeck() requires at least three observations.")

    levels = values[:-1]
    increments = np.diff(values)
    fit = linear_regression(levels, increments)
    residuals = increments - (fit.intercept + fit.slope * levels)
    sigma = math.sqrt(float(residuals.var()) / dt)

    theta = -fit.slope / dt
    if theta > 0.0 and fit.slope != 0.0:
        mu = -fit.intercept / fit.slope
        half_life: float | None = math.log(2.0) / theta
    else:
        mu = float(values.mean())
        half_life = None
    return OrnsteinUhlenbeckFit(
        theta=float(theta),
        mu=float(mu),
        sigma=float(sigma),
        half_life=half_life,
    )
