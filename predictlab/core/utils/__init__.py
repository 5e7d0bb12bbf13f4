"""Utility helpers."""

from predictlab.core.utils.errors import (
    BacktestConfigError,
    ConfigLoadError,
    DataSufficiencyError,
    InputError,
    NumericalDegeneracyError,
    PredictLabError,
    RecordValidationError,
    exit_code_for_exception,
)
from predictlab.core.utils.logging import configure_logging, format_metrics, get_logger

__all__ = [
    "BacktestConfigError",
    "ConfigLoadError",
    "DataSufficiencyError",
    "InputError",
    "NumericalDegeneracyError",
    "PredictLabError",
    "RecordValidationError",
    "configure_logging",
    "exit_code_for_exception",
    "format_metrics",
    "get_logger",
]
