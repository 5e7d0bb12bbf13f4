"""Test helpers for deterministic prediction-record cases."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path

from predictlab.core.data.records import PredictionRecord

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)
FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def fixed_clock() -> datetime:
    """Deterministic timestamp source for engine results."""
    return FIXED_NOW


def make_records(
    probabilities: Sequence[float],
    outcomes: Sequence[int | None],
    day_offsets: Sequence[float] | None = None,
    prefix: str = "evt",
) -> list[PredictionRecord]:
    """
    Build records created ``day_offsets`` days after ``BASE_TIME``.

    A ``None`` outcome yields an unresolved record. Offsets default to one
    record per day.
    """
    if len(probabilities) != len(outcomes):
        raise ValueError("probabilities and outcomes must align.")
    offsets = list(day_offsets) if day_offsets is not None else list(range(len(probabilities)))
    return [
        PredictionRecord(
            id=f"{prefix}-{index}",
            created_at=BASE_TIME + timedelta(days=float(offset)),
            resolved=outcome is not None,
            probability=float(probability),
            outcome=outcome,
        )
        for index, (probability, outcome, offset) in enumerate(
            zip(probabilities, outcomes, offsets, strict=True)
        )
    ]


def alternating_records(count: int, prefix: str = "evt") -> list[PredictionRecord]:
    """``count`` resolved daily records alternating 0.8/1 and 0.3/0."""
    probabilities = [0.8 if index % 2 == 0 else 0.3 for index in range(count)]
    outcomes = [1 if index % 2 == 0 else 0 for index in range(count)]
    return make_records(probabilities, outcomes, prefix=prefix)


def write_records_json(path: Path, records: Sequence[PredictionRecord]) -> Path:
    """Write records as a JSON array of camelCase objects."""
    payload = [record.to_dict() for record in records]
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path
