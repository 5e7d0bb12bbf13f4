"""Statistics library: pure functions over forecasts, outcomes and market series."""

from predictlab.core.stats.calibration import (
    BrierDecomposition,
    brier_decomposition,
    expected_calibration_error,
)
from predictlab.core.stats.causality import GrangerResult, granger_causality
from predictlab.core.stats.correlation import (
    cross_correlation,
    cross_correlation_function,
    pearson_correlation,
    spearman_correlation,
)
from predictlab.core.stats.descriptive import mean, median, quantile, standard_deviation, variance
from predictlab.core.stats.distributions import (
    BetaFit,
    OrnsteinUhlenbeckFit,
    PowerLawFit,
    fit_beta,
    fit_ornstein_uhlenbeck,
    fit_power_law,
)
from predictlab.core.stats.inequality import gini_coefficient
from predictlab.core.stats.microstructure import (
    VarianceRatioResult,
    amihud_illiquidity,
    kyle_lambda,
    variance_ratio_test,
)
from predictlab.core.stats.regression import (
    LinearFit,
    linear_regression,
    lowess,
    weighted_linear_regression,
)
from predictlab.core.stats.resampling import BootstrapInterval, bootstrap_ci, make_rng
from predictlab.core.stats.scoring import brier_score, log_score, spherical_score

__all__ = [
    "BetaFit",
    "BootstrapInterval",
    "BrierDecomposition",
    "GrangerResult",
    "LinearFit",
    "OrnsteinUhlenbeckFit",
    "PowerLawFit",
    "VarianceRatioResult",
    "amihud_illiquidity",
    "bootstrap_ci",
    "brier_decomposition",
    "brier_score",
    "cross_correlation",
    "cross_correlation_function",
    "expected_calibration_error",
    "fit_beta",
    "fit_ornstein_uhlenbeck",
    "fit_power_law",
    "gini_coefficient",
    "granger_causality",
    "kyle_lambda",
    "linear_regression",
    "log_score",
    "lowess",
    "make_rng",
    "mean",
    "median",
    "pearson_correlation",
    "quantile",
    "spearman_correlation",
    "spherical_score",
    "standard_deviation",
    "variance",
    "weighted_linear_regression",
]
