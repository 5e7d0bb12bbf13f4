"""Integration tests for CLI typed exit codes."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from typer.testing import CliRunner

from predictlab.cli import app
from predictlab.tests.helpers import alternating_records, write_records_json

QUIET = ["--log-level", "ERROR"]


class TestCliFailures(unittest.TestCase):
    """Validate typed exit codes for bad inputs and configuration."""

    def test_missing_records_file_returns_record_exit_code(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as temp_dir:
            missing_path = Path(temp_dir) / "missing.json"
            result = runner.invoke(app, ["score", "--records", str(missing_path), *QUIET])
            self.assertEqual(result.exit_code, 3, msg=result.output)

    def test_out_of_range_probability_returns_record_exit_code(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as temp_dir:
            records_path = Path(temp_dir) / "records.json"
            records_path.write_text(
                json.dumps(
                    [
                        {
                            "id": "bad",
                            "createdAt": "2024-01-01T00:00:00Z",
                            "probability": 1.5,
                            "outcome": 1,
                        }
                    ]
                ),
                encoding="utf-8",
            )
            result = runner.invoke(app, ["backtest", "--records", str(records_path), *QUIET])
            self.assertEqual(result.exit_code, 3, msg=result.output)

    def test_unknown_scenario_returns_backtest_config_exit_code(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as temp_dir:
            records_path = write_records_json(
                Path(temp_dir) / "records.json", alternating_records(12)
            )
            result = runner.invoke(
                app,
                ["backtest", "--records", str(records_path), "--scenario", "weekly", *QUIET],
            )
            self.assertEqual(result.exit_code, 5, msg=result.output)

    def test_non_positive_interval_returns_backtest_config_exit_code(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as temp_dir:
            records_path = write_records_json(
                Path(temp_dir) / "records.json", alternating_records(12)
            )
            result = runner.invoke(
                app,
                [
                    "backtest",
                    "--records",
                    str(records_path),
                    "--mode",
                    "interval",
                    "--interval-days",
                    "0",
                    *QUIET,
                ],
            )
            self.assertEqual(result.exit_code, 5, msg=result.output)

    def test_config_failures_return_config_exit_code(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            records_path = write_records_json(root / "records.json", alternating_records(12))

            missing = runner.invoke(
                app,
                [
                    "score",
                    "--records",
                    str(records_path),
                    "--config",
                    str(root / "missing.yaml"),
                    *QUIET,
                ],
            )
            self.assertEqual(missing.exit_code, 4, msg=missing.output)

            invalid_path = root / "invalid.yaml"
            invalid_path.write_text("backtest:\n  step_days: 0\n", encoding="utf-8")
            invalid = runner.invoke(
                app,
                [
                    "backtest",
                    "--records",
                    str(records_path),
                    "--config",
                    str(invalid_path),
                    *QUIET,
                ],
            )
            self.assertEqual(invalid.exit_code, 4, msg=invalid.output)

    def test_unknown_mode_is_a_usage_error(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as temp_dir:
            records_path = write_records_json(
                Path(temp_dir) / "records.json", alternating_records(12)
            )
            result = runner.invoke(
                app, ["backtest", "--records", str(records_path), "--mode", "monthly"]
            )
            self.assertEqual(result.exit_code, 2, msg=result.output)


if __name__ == "__main__":
    unittest.main()
