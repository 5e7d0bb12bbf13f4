"""Backtest engine exports."""

from predictlab.core.backtest.engine import BacktestEngine, create_backtest_engine
from predictlab.core.backtest.metrics import (
    calculate_max_drawdown,
    calculate_window_metrics,
    compute_drawdown,
    summarize_windows,
)
from predictlab.core.backtest.types import (
    BacktestFailure,
    BacktestResult,
    ConfidenceBucket,
    ConfidenceResult,
    DrawdownPoint,
    IntervalBacktestResult,
    IntervalBucket,
    MetricsBundle,
    Predictor,
    SequentialResult,
    SequentialStep,
    SplitResult,
    Window,
)

__all__ = [
    "BacktestEngine",
    "BacktestFailure",
    "BacktestResult",
    "ConfidenceBucket",
    "ConfidenceResult",
    "DrawdownPoint",
    "IntervalBacktestResult",
    "IntervalBucket",
    "MetricsBundle",
    "Predictor",
    "SequentialResult",
    "SequentialStep",
    "SplitResult",
    "Window",
    "calculate_max_drawdown",
    "calculate_window_metrics",
    "compute_drawdown",
    "create_backtest_engine",
    "summarize_windows",
]
