"""Prediction record ingestion."""

from predictlab.core.data.records import (
    PredictionRecord,
    load_records,
    records_from_frame,
    records_from_mappings,
    records_to_frame,
)

__all__ = [
    "PredictionRecord",
    "load_records",
    "records_from_frame",
    "records_from_mappings",
    "records_to_frame",
]
