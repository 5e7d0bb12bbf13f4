"""Unit tests for prediction record validation and loading."""

from __future__ import annotations

import json
import tempfile
import unittest
from datetime import UTC, datetime
from pathlib import Path

from predictlab.core.data.records import (
    PredictionRecord,
    load_records,
    records_from_mappings,
    records_to_frame,
)
from predictlab.core.utils.errors import RecordValidationError


class TestPredictionRecord(unittest.TestCase):
    """Validate ingestion-boundary rules."""

    def test_naive_datetime_is_treated_as_utc(self) -> None:
        record = PredictionRecord("a", datetime(2024, 1, 1, 12), True, 0.6, 1)
        self.assertEqual(record.created_at.tzinfo, UTC)
        self.assertEqual(record.to_dict()["createdAt"], "2024-01-01T12:00:00+00:00")

    def test_resolved_requires_binary_outcome(self) -> None:
        with self.assertRaises(RecordValidationError):
            PredictionRecord("a", datetime(2024, 1, 1), True, 0.6, None)
        with self.assertRaises(RecordValidationError):
            PredictionRecord("a", datetime(2024, 1, 1), False, 0.6, 1)

    def test_probability_range(self) -> None:
        with self.assertRaises(RecordValidationError):
            PredictionRecord("a", datetime(2024, 1, 1), True, 1.5, 1)
        with self.assertRaises(RecordValidationError):
            PredictionRecord("a", datetime(2024, 1, 1), True, float("nan"), 1)

    def test_from_mapping_accepts_camel_case_and_tokens(self) -> None:
        record = PredictionRecord.from_mapping(
            {
                "eventId": 7,
                "createdAt": "2024-03-01T00:00:00Z",
                "probability": "0.25",
                "outcome": "no",
            }
        )
        self.assertEqual(record.id, "7")
        self.assertTrue(record.resolved)
        self.assertEqual(record.outcome, 0)
        self.assertEqual(record.probability, 0.25)

    def test_from_mapping_epoch_milliseconds(self) -> None:
        record = PredictionRecord.from_mapping(
            {"id": "x", "created": 1_704_067_200_000, "probability": 0.5, "resolved": False}
        )
        self.assertEqual(record.created_at, datetime(2024, 1, 1, tzinfo=UTC))
        self.assertEqual(record.timestamp_ms, 1_704_067_200_000)
        self.assertIsNone(record.outcome)

    def test_missing_probability_is_rejected(self) -> None:
        with self.assertRaises(RecordValidationError):
            PredictionRecord.from_mapping({"id": "x", "createdAt": "2024-01-01"})

    def test_records_to_frame_columns(self) -> None:
        records = records_from_mappings(
            [
                {"id": "a", "createdAt": "2024-01-02", "probability": 0.7, "outcome": 1},
                {"id": "b", "createdAt": "2024-01-01", "probability": 0.2},
            ]
        )
        frame = records_to_frame(records)
        self.assertEqual(
            list(frame.columns), ["id", "created_at", "resolved", "probability", "outcome"]
        )
        self.assertEqual(frame["resolved"].tolist(), [True, False])


class TestLoadRecords(unittest.TestCase):
    """Validate JSON and CSV loading."""

    def test_load_json_with_records_key(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "records.json"
            path.write_text(
                json.dumps(
                    {
                        "records": [
                            {"id": "a", "createdAt": "2024-01-01", "probability": 0.4, "outcome": 0}
                        ]
                    }
                ),
                encoding="utf-8",
            )
            records = load_records(path)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].outcome, 0)

    def test_load_csv_with_unresolved_rows(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "records.csv"
            path.write_text(
                "id,created_at,probability,outcome\n"
                "a,2024-01-01T00:00:00Z,0.9,1\n"
                "b,2024-01-02T00:00:00Z,0.1,\n",
                encoding="utf-8",
            )
            records = load_records(path)
        self.assertEqual([record.resolved for record in records], [True, False])
        self.assertEqual(records[0].outcome, 1)

    def test_missing_and_unsupported_files(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            with self.assertRaises(RecordValidationError):
                load_records(root / "missing.json")
            text_path = root / "records.txt"
            text_path.write_text("nope", encoding="utf-8")
            with self.assertRaises(RecordValidationError):
                load_records(text_path)


if __name__ == "__main__":
    unittest.main()
