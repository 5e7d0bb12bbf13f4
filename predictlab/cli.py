"""PredictLab command-line interface."""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any

import typer

from predictlab.core.backtest.engine import BacktestEngine, create_backtest_engine
from predictlab.core.backtest.types import BacktestFailure
from predictlab.core.config import AppConfig, load_config
from predictlab.core.data.records import PredictionRecord, load_records
from predictlab.core.research.evaluation import (
    assess_readiness,
    brier_confidence_interval,
    evaluate_predictions,
    kfold_cross_validation,
    partition_records,
    quick_evaluate,
    time_series_split,
    validate_dataset,
)
from predictlab.core.utils.errors import exit_code_for_exception
from predictlab.core.utils.logging import configure_logging, get_logger

app = typer.Typer(help="PredictLab CLI", no_args_is_help=True)


class BacktestMode(str, Enum):
    rolling = "rolling"
    interval = "interval"
    confidence = "confidence"
    sequential = "sequential"
    split = "split"


RECORDS_OPTION = typer.Option(
    ...,
    "--records",
    file_okay=True,
    dir_okay=False,
    resolve_path=True,
    help="Prediction records as a JSON array or CSV file.",
)
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    file_okay=True,
    dir_okay=False,
    resolve_path=True,
    help="Path to YAML configuration file.",
)
SCENARIO_OPTION = typer.Option(
    None,
    "--scenario",
    help="Backtest preset (default, shortTerm, longTerm); replaces the config backtest section.",
)
MODE_OPTION = typer.Option(BacktestMode.rolling, "--mode", help="Backtest mode.")
INTERVAL_DAYS_OPTION = typer.Option(
    30.0, "--interval-days", help="Bucket length for interval mode."
)
NUM_BUCKETS_OPTION = typer.Option(10, "--num-buckets", min=1, help="Buckets for confidence mode.")
TRAIN_FRACTION_OPTION = typer.Option(
    0.7, "--train-fraction", min=0.0, max=1.0, help="Chronological train share for split mode."
)
LOG_LEVEL_OPTION = typer.Option(
    None,
    "--log-level",
    help="Override the configured logging level (DEBUG, INFO, WARNING, ERROR).",
)

SCORE_METRIC_ORDER = [
    "brierScore",
    "logScore",
    "sphericalScore",
    "ece",
    "reliability",
    "resolution",
    "uncertainty",
]


@app.callback()
def callback() -> None:
    """PredictLab CLI commands."""


def _handle_cli_exception(logger_name: str, context: str, exc: Exception) -> None:
    """Log diagnostics and exit with the typed code for ``exc``."""
    logger = get_logger(logger_name)
    logger.exception("%s failed: %s", context, exc)
    raise typer.Exit(code=exit_code_for_exception(exc)) from None


def _setup(config_path: Path | None, log_level: str | None) -> AppConfig:
    """Load config (or defaults) and configure logging."""
    app_config = load_config(config_path) if config_path is not None else AppConfig()
    configure_logging(log_level or app_config.logging.level)
    return app_config


def _echo_json(payload: dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))


def _resolved_pairs(records: list[PredictionRecord]) -> tuple[list[float], list[int]]:
    resolved = [record for record in records if record.resolved]
    return (
        [record.probability for record in resolved],
        [int(record.outcome) for record in resolved],
    )


def _fold_metrics(
    train: list[PredictionRecord], validation: list[PredictionRecord]
) -> dict[str, Any]:
    predictions, outcomes = _resolved_pairs(validation)
    return evaluate_predictions(predictions, outcomes)


@app.command("score")
def score(
    records: Path = RECORDS_OPTION,
    config: Path | None = CONFIG_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
) -> None:
    """Print scoring and calibration metrics for the resolved records."""
    logger_name = __name__
    try:
        _setup(config, log_level)
        loaded = load_records(records)
        predictions, outcomes = _resolved_pairs(loaded)
        metrics = evaluate_predictions(predictions, outcomes)
    except Exception as exc:
        _handle_cli_exception(logger_name=logger_name, context="Score command", exc=exc)

    typer.echo(f"records={len(loaded)}")
    typer.echo(f"resolved={len(predictions)}")
    if "note" in metrics:
        typer.echo(f"note={metrics['note']}")
        return
    for key in SCORE_METRIC_ORDER:
        value = metrics.get(key)
        typer.echo(f"{key}={value:.6f}" if value is not None else f"{key}=n/a")


@app.command("backtest")
def backtest(
    records: Path = RECORDS_OPTION,
    config: Path | None = CONFIG_OPTION,
    scenario: str | None = SCENARIO_OPTION,
    mode: BacktestMode = MODE_OPTION,
    interval_days: float = INTERVAL_DAYS_OPTION,
    num_buckets: int = NUM_BUCKETS_OPTION,
    train_fraction: float = TRAIN_FRACTION_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
) -> None:
    """
    Run one backtest mode over stored forecasts and print the JSON result.

    Insufficient data is reported in the JSON payload (``success: false``)
    with exit code 0.
    """
    logger_name = __name__
    logger = get_logger(logger_name)
    try:
        app_config = _setup(config, log_level)
        loaded = load_records(records)
        if scenario is not None:
            engine = create_backtest_engine(scenario)
        else:
            engine = BacktestEngine(app_config.backtest)

        if mode is BacktestMode.rolling:
            result = engine.run_rolling_window_backtest(loaded)
        elif mode is BacktestMode.interval:
            result = engine.backtest_by_time_interval(loaded, interval_days=interval_days)
        elif mode is BacktestMode.confidence:
            result = engine.accuracy_by_confidence(loaded, num_buckets=num_buckets)
        elif mode is BacktestMode.split:
            split = time_series_split(loaded, train_fraction=train_fraction)
            result = engine.backtest_split(list(split.train), list(split.test))
        else:
            result = engine.sequential_backtest(loaded)
    except Exception as exc:
        _handle_cli_exception(logger_name=logger_name, context="Backtest command", exc=exc)

    if isinstance(result, BacktestFailure):
        logger.warning("Backtest (%s) reported: %s", mode.value, result.error)
    _echo_json(result.to_dict())


@app.command("evaluate")
def evaluate(
    records: Path = RECORDS_OPTION,
    config: Path | None = CONFIG_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
) -> None:
    """
    Quick evaluation of stored forecasts plus a seeded held-out split.

    The ``split`` section scores the resolved records of the test partition
    and drives the readiness assessment. ``brierInterval`` and
    ``crossValidation`` use the bootstrap and k-fold settings of the
    ``evaluation`` config section; ``dataset`` reports age and resolution
    rate warnings.
    """
    logger_name = __name__
    logger = get_logger(logger_name)
    try:
        app_config = _setup(config, log_level)
        settings = app_config.evaluation
        loaded = load_records(records)
        result = quick_evaluate(
            loaded, num_bins=settings.num_bins, min_resolved=settings.min_resolved
        )
        if not isinstance(result, BacktestFailure):
            resolved = [record for record in loaded if record.resolved]
            partition = partition_records(
                resolved,
                test_ratio=settings.test_ratio,
                validation_ratio=settings.validation_ratio,
                seed=settings.seed,
            )
            test_predictions, test_outcomes = _resolved_pairs(list(partition.test))
            test_metrics = evaluate_predictions(test_predictions, test_outcomes)
            result["split"] = {
                "seed": partition.seed,
                "trainSize": len(partition.train),
                "validationSize": len(partition.validation),
                "testSize": len(partition.test),
                "testMetrics": test_metrics,
            }
            result["readiness"] = assess_readiness(
                test_metrics, result["calibration"], len(partition.test)
            )

            predictions, outcomes = _resolved_pairs(resolved)
            result["brierInterval"] = brier_confidence_interval(
                predictions,
                outcomes,
                iterations=settings.bootstrap_iterations,
                confidence_level=settings.confidence_level,
                seed=settings.seed,
            ).to_dict()
            if len(resolved) >= settings.kfolds:
                cross_validation = kfold_cross_validation(
                    resolved, _fold_metrics, k=settings.kfolds, seed=settings.seed
                )
                result["crossValidation"] = {
                    "k": settings.kfolds,
                    "avgMetrics": cross_validation.mean_metrics,
                    "stdMetrics": cross_validation.std_metrics,
                }
            else:
                logger.warning(
                    "Cross-validation skipped: %s resolved records for %s folds",
                    len(resolved),
                    settings.kfolds,
                )
                result["crossValidation"] = None
            result["dataset"] = validate_dataset(loaded)
    except Exception as exc:
        _handle_cli_exception(logger_name=logger_name, context="Evaluate command", exc=exc)

    _echo_json(result.to_dict() if isinstance(result, BacktestFailure) else result)


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
