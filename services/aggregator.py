"""Aggregation logic for decibel readings."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable

from datastore.mock_firestore import StoreError


class CorruptMeasurement(StoreError):
    """A stored decibel leaf is not a number."""


def coerce_decibel(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise CorruptMeasurement(f"Stored decibel value {value!r} is not numeric.")
    try:
        number = float(value)
    except ValueError as exc:
        raise CorruptMeasurement(f"Stored decibel value {value!r} is not numeric.") from exc
    if math.isnan(number):
        raise CorruptMeasurement("Stored decibel value is NaN.")
    return number


@dataclass
class DecibelSummary:
    """Computed statistics for a batch of decibel readings."""

    count: int = 0
    min_db: float | None = None
    max_db: float | None = None
    average_db: float | None = None


class Aggregator:
    """Single-pass count/min/max/average over decibel leaves."""

    def aggregate(self, values: Iterable[Any]) -> DecibelSummary:
        summary = DecibelSummary()
        total = 0.0

        for raw in values:
            value = coerce_decibel(raw)
            summary.count += 1
            total += value

            if summary.min_db is None or value < summary.min_db:
                summary.min_db = value
            if summary.max_db is None or value > summary.max_db:
                summary.max_db = value

        if summary.count:
            summary.average_db = total / summary.count

        return summary
