"""Logging utilities for PredictLab."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _parse_level(level: str) -> int:
    """Parse a logging level string into a logging numeric level."""
    resolved_level = getattr(logging, level.upper(), None)
    if not isinstance(resolved_level, int):
        raise ValueError(f"Invalid logging level: {level}")
    return resolved_level


def configure_logging(level: str = "INFO") -> None:
    """
    Configure process-wide logging.

    Args:
        level: Logging level (for example ``INFO`` or ``DEBUG``).
    """
    logging.basicConfig(
        level=_parse_level(level),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S%z",
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """Return a named logger."""
    return logging.getLogger(name)


def format_metrics(metrics: Mapping[str, float | int | None]) -> str:
    """
    Render a metrics mapping as a compact ``key=value`` string for log lines.

    Undefined values (``None`` or ``NaN``) render as ``n/a``.
    """
    parts: list[str] = []
    for key in sorted(metrics):
        value = metrics[key]
        if value is None or (isinstance(value, float) and math.isnan(value)):
            parts.append(f"{key}=n/a")
        elif isinstance(value, float):
            parts.append(f"{key}={value:.4f}")
        else:
            parts.append(f"{key}={value}")
    return " ".join(parts)
