"""Unit tests for configuration loading."""

from __future__ import annotations

import tempfile
import textwrap
import unittest
from pathlib import Path

from pydantic import ValidationError

from predictlab.core.config import (
    AppConfig,
    BacktestConfig,
    dump_config_to_yaml,
    load_config,
    load_config_from_yaml_text,
)
from predictlab.core.utils.errors import ConfigLoadError


class TestConfig(unittest.TestCase):
    """Validate YAML loading and scenario presets."""

    def test_defaults(self) -> None:
        config = load_config_from_yaml_text("")
        self.assertEqual(config.backtest.window_size_days, 30.0)
        self.assertEqual(config.evaluation.seed, 42)
        self.assertEqual(config.logging.level, "INFO")

    def test_scenario_seeds_unset_fields(self) -> None:
        config = load_config_from_yaml_text(
            textwrap.dedent("""
                backtest:
                  scenario: short_term
                  step_days: 2
                """)
        )
        self.assertEqual(config.backtest.scenario, "shortTerm")
        self.assertEqual(config.backtest.window_size_days, 7)
        self.assertEqual(config.backtest.step_days, 2)
        self.assertEqual(config.backtest.min_events_per_window, 5)

    def test_invalid_values_raise_config_error(self) -> None:
        invalid_documents = [
            "backtest:\n  step_days: 0\n",
            "backtest:\n  scenario: weekly\n",
            "evaluation:\n  test_ratio: 0.9\n  validation_ratio: 0.2\n",
            "logging:\n  level: LOUD\n",
            "- not\n- a mapping\n",
            "backtest: [unclosed\n",
        ]
        for document in invalid_documents:
            with self.assertRaises(ConfigLoadError, msg=document):
                load_config_from_yaml_text(document)

    def test_model_validation(self) -> None:
        with self.assertRaises(ValidationError):
            BacktestConfig(window_size_days=-1)

    def test_dump_and_reload(self) -> None:
        original = load_config_from_yaml_text("backtest:\n  scenario: longTerm\n")
        reloaded = load_config_from_yaml_text(dump_config_to_yaml(original))
        self.assertEqual(reloaded, original)

    def test_load_from_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            config_path = root / "config.yaml"
            config_path.write_text("evaluation:\n  seed: 7\n", encoding="utf-8")
            self.assertEqual(load_config(config_path).evaluation.seed, 7)
            with self.assertRaises(ConfigLoadError):
                load_config(root / "missing.yaml")
            with self.assertRaises(ConfigLoadError):
                load_config(root)

    def test_app_config_is_constructible_without_input(self) -> None:
        self.assertEqual(AppConfig().backtest.min_events_per_window, 10)


if __name__ == "__main__":
    unittest.main()
