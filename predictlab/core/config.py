"""Configuration models and YAML loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from predictlab.core.utils.errors import BacktestConfigError, ConfigLoadError

BACKTEST_SCENARIOS: dict[str, dict[str, float | int]] = {
    "default": {"window_size_days": 30, "step_days": 7, "min_events_per_window": 10},
    "shortTerm": {"window_size_days": 7, "step_days": 1, "min_events_per_window": 5},
    "longTerm": {"window_size_days": 90, "step_days": 30, "min_events_per_window": 50},
}
_SCENARIO_ALIASES = {
    "short_term": "shortTerm",
    "long_term": "longTerm",
}


def resolve_scenario_name(name: str) -> str:
    """
    Return the canonical scenario name for ``name``.

    Accepts the canonical camelCase names and their snake_case spellings.

    Raises:
        BacktestConfigError: Unknown scenario.
    """
    canonical = _SCENARIO_ALIASES.get(name, name)
    if canonical not in BACKTEST_SCENARIOS:
        known = ", ".join(sorted(BACKTEST_SCENARIOS))
        raise BacktestConfigError(f"Unknown backtest scenario '{name}'. Known scenarios: {known}")
    return canonical


class BacktestConfig(BaseModel):
    """
    Rolling-window backtest configuration.

    When ``scenario`` is set, its preset seeds every field not given
    explicitly.
    """

    window_size_days: float = 30.0
    step_days: float = 7.0
    min_events_per_window: int = 10
    max_windows: int = 100_000
    scenario: str | None = None

    @model_validator(mode="before")
    @classmethod
    def apply_scenario_preset(cls, data: Any) -> Any:
        """Fill unset fields from the named scenario preset."""
        if not isinstance(data, dict) or data.get("scenario") is None:
            return data
        try:
            name = resolve_scenario_name(str(data["scenario"]))
        except BacktestConfigError as exc:
            raise ValueError(str(exc)) from exc
        return {**BACKTEST_SCENARIOS[name], **data, "scenario": name}

    @model_validator(mode="after")
    def validate_backtest(self) -> BacktestConfig:
        """Validate window geometry."""
        if self.window_size_days <= 0:
            raise ValueError("backtest.window_size_days must be > 0.")
        if self.step_days <= 0:
            raise ValueError("backtest.step_days must be > 0.")
        if self.min_events_per_window < 1:
            raise ValueError("backtest.min_events_per_window must be >= 1.")
        if self.max_windows < 1:
            raise ValueError("backtest.max_windows must be >= 1.")
        return self


class EvaluationConfig(BaseModel):
    """Offline evaluation settings."""

    seed: int = 42
    test_ratio: float = 0.2
    validation_ratio: float = 0.15
    kfolds: int = 5
    num_bins: int = 10
    min_resolved: int = 10
    bootstrap_iterations: int = 1000
    confidence_level: float = 0.95

    @model_validator(mode="after")
    def validate_evaluation(self) -> EvaluationConfig:
        """Validate split ratios and resampling settings."""
        if not 0.0 < self.test_ratio < 1.0:
            raise ValueError("evaluation.test_ratio must be in (0, 1).")
        if not 0.0 <= self.validation_ratio < 1.0:
            raise ValueError("evaluation.validation_ratio must be in [0, 1).")
        if self.test_ratio + self.validation_ratio >= 1.0:
            raise ValueError("evaluation.test_ratio + validation_ratio must be < 1.")
        if self.kfolds < 2:
            raise ValueError("evaluation.kfolds must be >= 2.")
        if self.num_bins < 1:
            raise ValueError("evaluation.num_bins must be >= 1.")
        if self.min_resolved < 1:
            raise ValueError("evaluation.min_resolved must be >= 1.")
        if self.bootstrap_iterations < 1:
            raise ValueError("evaluation.bootstrap_iterations must be >= 1.")
        if not 0.0 < self.confidence_level < 1.0:
            raise ValueError("evaluation.confidence_level must be in (0, 1).")
        return self


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class AppConfig(BaseModel):
    """Top-level application configuration."""

    backtest: BacktestConfig = Field(default_factory=BacktestConfig)
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _resolve_config_path(path: Path) -> Path:
    """Resolve and validate a config file path."""
    resolved_path = path.expanduser().resolve()
    if not resolved_path.exists():
        raise ConfigLoadError(f"Config file not found: {resolved_path}")
    if not resolved_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {resolved_path}")
    return resolved_path


def load_config(path: Path) -> AppConfig:
    """
    Load and validate application config from YAML.

    Args:
        path: YAML config file path.

    Returns:
        Validated application config.
    """
    config_path = _resolve_config_path(path)
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw_config: Any = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ConfigLoadError(f"Failed to read config file {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Invalid YAML in config file {config_path}: {exc}") from exc

    if not isinstance(raw_config, dict):
        raise ConfigLoadError("YAML root must be a mapping/object.")

    return _build_config(raw_config)


def _build_config(raw_config: dict[str, Any]) -> AppConfig:
    """Validate raw config data."""
    try:
        return AppConfig.model_validate(raw_config)
    except Exception as exc:
        raise ConfigLoadError(f"Config validation failed: {exc}") from exc


def load_config_from_yaml_text(yaml_text: str) -> AppConfig:
    """
    Load and validate config from YAML text.

    Args:
        yaml_text: YAML string.

    Returns:
        Validated application config.
    """
    try:
        raw_config: Any = yaml.safe_load(yaml_text) or {}
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Invalid YAML text: {exc}") from exc
    if not isinstance(raw_config, dict):
        raise ConfigLoadError("YAML root must be a mapping/object.")
    return _build_config(raw_config)


def dump_config_to_yaml(config: AppConfig) -> str:
    """
    Serialize config to canonical YAML for reproducibility.

    Args:
        config: App config.

    Returns:
        YAML string.
    """
    payload = config.model_dump(mode="json")
    return yaml.safe_dump(payload, sort_keys=True, default_flow_style=False)
