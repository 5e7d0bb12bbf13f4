"""Bootstrap resampling with an injectable, seedable random source."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from predictlab.core.utils.errors import InputError

StatisticFn = Callable[[Sequence[Any]], float]


@dataclass(frozen=True)
class BootstrapInterval:
    """Percentile bootstrap interval and the mean of the bootstrap distribution."""

    lower: float
    upper: float
    mean: float
    iterations: int
    confidence_level: float

    def to_dict(self) -> dict[str, float | int | None]:
        return {
            "lower": None if math.isnan(self.lower) else self.lower,
            "upper": None if math.isnan(self.upper) else self.upper,
            "mean": None if math.isnan(self.mean) else self.mean,
            "iterations": self.iterations,
            "confidenceLevel": self.confidence_level,
        }


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Create the generator used for resampling; ``None`` draws OS entropy."""
    return np.random.default_rng(seed)


def bootstrap_ci(
    sample: Sequence[Any],
    statistic: StatisticFn,
    iterations: int = 1000,
    confidence_level: float = 0.95,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
) -> BootstrapInterval:
    """
    Percentile bootstrap confidence interval for ``statistic(sample)``.

    Each iteration draws ``len(sample)`` items with replacement and applies
    ``statistic`` to the resampled list. Results are reproducible whenever a
    ``seed`` or a seeded ``rng`` is supplied; passing both is an error.

    Args:
        sample: Observations; items may be numbers or any object the
            statistic understands (e.g. ``(prediction, outcome)`` pairs).
        statistic: Function mapping a resample to a float.
        iterations: Number of bootstrap resamples.
        confidence_level: Central coverage of the interval, in ``(0, 1)``.
        seed: Seed for a fresh ``numpy`` generator.
        rng: Pre-built generator, for callers sharing one random stream.

    Returns:
        Interval bounds from the empirical quantiles
        ``(1 - level) / 2`` and ``(1 + level) / 2`` of the bootstrap
        distribution. Empty samples give an all-``NaN`` interval.
    """
    if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
        raise InputError(f"iterations must be a positive integer, got {iterations!r}")
    if not 0.0 < confidence_level < 1.0:
        raise InputError(f"confidence_level must be in (0, 1), got {confidence_level}")
    if seed is not None and rng is not None:
        raise InputError("Pass either seed or rng to bootstrap_ci(), not both.")
    if not callable(statistic):
        raise InputError("statistic must be callable.")

    items = list(sample)
    if not items:
        return BootstrapInterval(math.nan, math.nan, math.nan, iterations, confidence_level)

    generator = rng if rng is not None else make_rng(seed)
    size = len(items)
    draws = generator.integers(0, size, size=(iterations, size))

    estimates = np.empty(iterations, dtype=float)
    for row, indices in enumerate(draws):
        estimates[row] = float(statistic([items[index] for index in indices]))

    finite = estimates[np.isfinite(estimates)]
    if finite.size == 0:
        return BootstrapInterval(math.nan, math.nan, math.nan, iterations, confidence_level)

    tail = (1.0 - confidence_level) / 2.0
    lower, upper = np.quantile(finite, [tail, 1.0 - tail])
    return BootstrapInterval(
        lower=float(lower),
        upper=float(upper),
        mean=float(finite.mean()),
        iterations=iterations,
        confidence_level=confidence_level,
    )
