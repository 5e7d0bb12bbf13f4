"""Calibration diagnostics: expected calibration error and Murphy decomposition."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass

import numpy as np

from predictlab.core.stats._validation import ArrayLike, forecast_arrays
from predictlab.core.utils.errors import InputError


@dataclass(frozen=True)
class BrierDecomposition:
    """
    Murphy decomposition ``brier_score = reliability - resolution + uncertainty``.

    ``reliability`` is the generalized term
    ``calibration_term + within_bin_variance - 2 * within_bin_covariance`` so
    the identity holds exactly for continuous forecasts, not only for
    forecasts that take one value per bin.
    """

    reliability: float
    resolution: float
    uncertainty: float
    brier_score: float
    calibration_term: float
    within_bin_variance: float
    within_bin_covariance: float

    def to_dict(self) -> dict[str, float | None]:
        return {
            key: None if math.isnan(value) else value for key, value in asdict(self).items()
        }


def bin_indices(predictions: np.ndarray, num_bins: int) -> np.ndarray:
    """
    Equal-width bin index for each probability: ``min(floor(p * num_bins), num_bins - 1)``.

    Probability ``1.0`` lands in the last bin.
    """
    if isinstance(num_bins, bool) or not isinstance(num_bins, int) or num_bins < 1:
        raise InputError(f"num_bins must be a positive integer, got {num_bins!r}")
    raw = np.floor(predictions * num_bins).astype(int)
    return np.clip(raw, 0, num_bins - 1)


def expected_calibration_error(
    predictions: ArrayLike,
    outcomes: ArrayLike,
    num_bins: int = 10,
) -> float:
    """
    Sample-weighted mean absolute gap between confidence and observed frequency.

    ``ECE = sum_b (n_b / N) * |mean(p_b) - mean(o_b)|``; empty bins contribute 0.

    Returns:
        ECE in ``[0, 1]``, or ``NaN`` for empty input.
    """
    p, o = forecast_arrays(predictions, outcomes)
    if p.size == 0:
        return math.nan

    indices = bin_indices(p, num_bins)
    total = p.size
    ece = 0.0
    for bin_id in range(num_bins):
        mask = indices == bin_id
        count = int(mask.sum())
        if count == 0:
            continue
        gap = abs(float(p[mask].mean()) - float(o[mask].mean()))
        ece += (count / total) * gap
    return float(ece)


def brier_decomposition(
    predictions: ArrayLike,
    outcomes: ArrayLike,
    num_bins: int = 10,
) -> BrierDecomposition:
    """
    Decompose the Brier score into reliability, resolution and uncertainty.

    Uses the same binning as ``expected_calibration_error``. For empty input
    every field is ``NaN``.
    """
    p, o = forecast_arrays(predictions, outcomes)
    if p.size == 0:
        return BrierDecomposition(*([math.nan] * 7))

    total = p.size
    base_rate = float(o.mean())
    indices = bin_indices(p, num_bins)

    calibration_term = 0.0
    resolution = 0.0
    within_variance = 0.0
    within_covariance = 0.0
    for bin_id in range(num_bins):
        mask = indices == bin_id
        count = int(mask.sum())
        if count == 0:
            continue
        weight = count / total
        bin_p = p[mask]
        bin_o = o[mask]
        mean_p = float(bin_p.mean())
        mean_o = float(bin_o.mean())
        calibration_term += weight * (mean_p - mean_o) ** 2
        resolution += weight * (mean_o - base_rate) ** 2
        within_variance += weight * float(np.mean((bin_p - mean_p) ** 2))
        within_covariance += weight * float(np.mean((bin_p - mean_p) * (bin_o - mean_o)))

    reliability = calibration_term + within_variance - 2.0 * within_covariance
    uncertainty = base_rate * (1.0 - base_rate)
    return BrierDecomposition(
        reliability=float(reliability),
        resolution=float(resolution),
        uncertainty=float(uncertainty),
        brier_score=float(np.mean((p - o) ** 2)),
        calibration_term=float(calibration_term),
        within_bin_variance=float(within_variance),
        within_bin_covariance=float(within_covariance),
    )
