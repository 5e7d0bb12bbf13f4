"""Prediction record model and ingestion-boundary validation."""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from predictlab.core.utils.errors import RecordValidationError

_ID_KEYS: tuple[str, ...] = ("id", "event_id", "eventId")
_CREATED_KEYS: tuple[str, ...] = ("created_at", "createdAt", "created")
_OUTCOME_TOKENS: dict[str, int] = {
    "1": 1,
    "0": 0,
    "yes": 1,
    "no": 0,
    "true": 1,
    "false": 0,
}


@dataclass(frozen=True)
class PredictionRecord:
    """
    One forecast/outcome pair.

    ``outcome`` is ``0`` or ``1`` exactly when ``resolved`` is true and ``None``
    otherwise. ``created_at`` is always timezone-aware UTC.
    """

    id: str
    created_at: datetime
    resolved: bool
    probability: float
    outcome: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise RecordValidationError("Prediction record id must be a non-empty string.")
        if not isinstance(self.created_at, datetime):
            raise RecordValidationError(f"Record '{self.id}' created_at must be a datetime.")
        if self.created_at.tzinfo is None:
            object.__setattr__(self, "created_at", self.created_at.replace(tzinfo=UTC))
        else:
            object.__setattr__(self, "created_at", self.created_at.astimezone(UTC))

        probability = self.probability
        if isinstance(probability, bool) or not isinstance(probability, (int, float)):
            raise RecordValidationError(f"Record '{self.id}' probability must be numeric.")
        if not math.isfinite(probability) or not 0.0 <= probability <= 1.0:
            raise RecordValidationError(
                f"Record '{self.id}' probability must be in [0, 1], got {probability}."
            )
        object.__setattr__(self, "probability", float(probability))

        if self.resolved:
            if self.outcome not in (0, 1) or isinstance(self.outcome, float):
                raise RecordValidationError(
                    f"Resolved record '{self.id}' must have outcome 0 or 1, got {self.outcome!r}."
                )
            object.__setattr__(self, "outcome", int(self.outcome))
        elif self.outcome is not None:
            raise RecordValidationError(
                f"Unresolved record '{self.id}' must not carry an outcome."
            )

    @property
    def timestamp_ms(self) -> int:
        """Creation time as integer milliseconds since the Unix epoch."""
        return int(round(self.created_at.timestamp() * 1000))

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-safe dictionary."""
        return {
            "id": self.id,
            "createdAt": self.created_at.isoformat(),
            "resolved": self.resolved,
            "probability": self.probability,
            "outcome": self.outcome,
        }

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> PredictionRecord:
        """
        Build a validated record from a loosely-shaped mapping.

        Accepts the dashboard's camelCase keys as well as snake_case. Missing
        ``probability`` or creation time is rejected rather than defaulted.
        """
        if not isinstance(payload, Mapping):
            raise RecordValidationError(
                f"Prediction record must be a mapping, got {type(payload).__name__}."
            )

        record_id = _first_present(payload, _ID_KEYS)
        if record_id is None:
            raise RecordValidationError("Prediction record is missing an id.")

        raw_created = _first_present(payload, _CREATED_KEYS)
        if raw_created is None:
            raise RecordValidationError(f"Record '{record_id}' is missing a creation time.")

        if "probability" not in payload or _is_missing(payload["probability"]):
            raise RecordValidationError(f"Record '{record_id}' is missing a probability.")

        raw_outcome = payload.get("outcome")
        outcome = _parse_outcome(raw_outcome, str(record_id))
        raw_resolved = payload.get("resolved")
        resolved = outcome is not None if _is_missing(raw_resolved) else _parse_bool(raw_resolved)

        return cls(
            id=str(record_id),
            created_at=_parse_timestamp(raw_created, str(record_id)),
            resolved=resolved,
            probability=_parse_probability(payload["probability"], str(record_id)),
            outcome=outcome,
        )


def _is_missing(value: Any) -> bool:
    """Return whether a raw value is absent (None, NaN or NaT)."""
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _first_present(payload: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in payload and not _is_missing(payload[key]):
            return payload[key]
    return None


def _parse_timestamp(value: Any, record_id: str) -> datetime:
    """Parse ISO strings, datetimes, pandas timestamps or epoch milliseconds."""
    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            parsed = pd.to_datetime(value, unit="ms", utc=True)
        else:
            parsed = pd.Timestamp(value)
    except (TypeError, ValueError) as exc:
        raise RecordValidationError(
            f"Record '{record_id}' has an unparseable creation time: {value!r}"
        ) from exc
    if pd.isna(parsed):
        raise RecordValidationError(f"Record '{record_id}' has an empty creation time.")
    if parsed.tzinfo is None:
        parsed = parsed.tz_localize("UTC")
    return parsed.tz_convert("UTC").to_pydatetime()


def _parse_probability(value: Any, record_id: str) -> float:
    if isinstance(value, bool):
        raise RecordValidationError(f"Record '{record_id}' probability must be numeric.")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise RecordValidationError(
            f"Record '{record_id}' probability must be numeric, got {value!r}."
        ) from exc


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _parse_outcome(value: Any, record_id: str) -> int | None:
    if _is_missing(value):
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        if value in (0, 1):
            return int(value)
        raise RecordValidationError(f"Record '{record_id}' outcome must be 0 or 1, got {value}.")
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _OUTCOME_TOKENS:
            return _OUTCOME_TOKENS[token]
    raise RecordValidationError(f"Record '{record_id}' has an unrecognized outcome: {value!r}")


def records_from_mappings(payloads: Sequence[Mapping[str, Any]]) -> list[PredictionRecord]:
    """Validate a sequence of raw mappings into prediction records."""
    if isinstance(payloads, (str, bytes)) or not isinstance(payloads, Sequence):
        raise RecordValidationError("Prediction records must be supplied as a list of objects.")
    return [PredictionRecord.from_mapping(payload) for payload in payloads]


def records_from_frame(frame: pd.DataFrame) -> list[PredictionRecord]:
    """
    Validate a dataframe of records, one row per forecast.

    Args:
        frame: Dataframe with id, creation-time, probability and optional
            ``resolved``/``outcome`` columns.

    Returns:
        Validated prediction records in row order.
    """
    if not isinstance(frame, pd.DataFrame):
        raise RecordValidationError("records_from_frame() expects a pandas DataFrame.")
    rows = frame.to_dict(orient="records")
    return [PredictionRecord.from_mapping(row) for row in rows]


def records_to_frame(records: Sequence[PredictionRecord]) -> pd.DataFrame:
    """Return records as a dataframe indexed by position, sorted as given."""
    return pd.DataFrame(
        {
            "id": [record.id for record in records],
            "created_at": pd.to_datetime([record.created_at for record in records], utc=True),
            "resolved": [record.resolved for record in records],
            "probability": [record.probability for record in records],
            "outcome": pd.array([record.outcome for record in records], dtype="Int64"),
        }
    )


def load_records(path: Path) -> list[PredictionRecord]:
    """
    Load prediction records from a JSON array or CSV file.

    Args:
        path: ``.json`` file holding a list of objects (optionally under a
            top-level ``records`` key) or a ``.csv`` file.

    Returns:
        Validated prediction records.
    """
    resolved_path = path.expanduser().resolve()
    if not resolved_path.is_file():
        raise RecordValidationError(f"Records file not found: {resolved_path}")

    suffix = resolved_path.suffix.lower()
    if suffix == ".csv":
        try:
            frame = pd.read_csv(resolved_path)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            raise RecordValidationError(
                f"Failed to read records CSV {resolved_path}: {exc}"
            ) from exc
        return records_from_frame(frame)

    if suffix == ".json":
        try:
            payload = json.loads(resolved_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise RecordValidationError(
                f"Failed to read records JSON {resolved_path}: {exc}"
            ) from exc
        if isinstance(payload, dict):
            payload = payload.get("records")
        if not isinstance(payload, list):
            raise RecordValidationError(
                "Records JSON root must be a list or an object with a 'records' list."
            )
        return records_from_mappings(payload)

    raise RecordValidationError(f"Unsupported records file type: {resolved_path.suffix}")
