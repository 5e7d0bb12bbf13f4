"""Domain-specific error taxonomy for PredictLab."""

from __future__ import annotations


class PredictLabError(Exception):
    """Base PredictLab error with CLI exit-code metadata."""

    exit_code: int = 1
    error_code: str = "predictlab_error"


class InputError(PredictLabError, ValueError):
    """Malformed or mismatched-shape arguments."""

    exit_code = 2
    error_code = "input_error"


class RecordValidationError(InputError):
    """Prediction record rejected at the ingestion boundary."""

    exit_code = 3
    error_code = "record_validation_error"


class ConfigLoadError(PredictLabError, ValueError):
    """Configuration loading/validation error."""

    exit_code = 4
    error_code = "config_error"


class BacktestConfigError(PredictLabError, ValueError):
    """Invalid backtest engine configuration."""

    exit_code = 5
    error_code = "backtest_config_error"


class DataSufficiencyError(PredictLabError):
    """
    Too few records for a requested partition or cross-validation.

    Backtest modes report insufficient data as a ``BacktestFailure`` value
    instead of raising this.
    """

    exit_code = 6
    error_code = "data_sufficiency_error"


class NumericalDegeneracyError(PredictLabError, ArithmeticError):
    """Degenerate numerical input with no safe fallback value."""

    exit_code = 7
    error_code = "numerical_degeneracy_error"


def exit_code_for_exception(exc: Exception) -> int:
    """
    Resolve process exit code for an exception.

    Args:
        exc: Raised exception.

    Returns:
        Integer process exit code.
    """
    return int(getattr(exc, "exit_code", 1))
