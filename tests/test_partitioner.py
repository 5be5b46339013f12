from __future__ import annotations

from datetime import datetime, timezone

import pytest

from models.records import PartitionKey
from services.partitioner import InvalidTimestamp, parse_timestamp, partition_timestamp


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2025-01-01T12:34:00.000Z", PartitionKey("2025-01-01", "12", "34")),
        ("2025-01-02T14:45:59Z", PartitionKey("2025-01-02", "14", "45")),
        ("2025-03-09T05:07:00+00:00", PartitionKey("2025-03-09", "05", "07")),
        # offsets are normalised to UTC, which can move the date
        ("2025-01-01T23:30:00-03:00", PartitionKey("2025-01-02", "02", "30")),
        ("2025-06-15T00:10:00+02:00", PartitionKey("2025-06-14", "22", "10")),
        ("2025-06-15T08:01:00", PartitionKey("2025-06-15", "08", "01")),
        ("2025-06-15", PartitionKey("2025-06-15", "00", "00")),
    ],
)
def test_partition_timestamp_uses_utc_components(value: str, expected: PartitionKey) -> None:
    assert partition_timestamp(value) == expected


def test_partition_reconstructs_original_utc_components() -> None:
    instant = datetime(2024, 2, 29, 9, 5, 42, tzinfo=timezone.utc)

    key = partition_timestamp(instant.isoformat())

    assert str(key) == "2024-02-29:09:05"
    assert key.date == instant.date().isoformat()
    assert int(key.hour) == instant.hour
    assert int(key.minute) == instant.minute


@pytest.mark.parametrize("value", ["", "   ", "not-a-date", "2025-13-01T00:00:00Z", "2025-01-01T25:00"])
def test_invalid_timestamps_raise(value: str) -> None:
    with pytest.raises(InvalidTimestamp):
        partition_timestamp(value)


def test_invalid_timestamp_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_timestamp(12345)  # type: ignore[arg-type]


def test_parse_timestamp_returns_aware_utc() -> None:
    parsed = parse_timestamp("2025-01-01T10:00:00+05:30")

    assert parsed.tzinfo is timezone.utc
    assert parsed.hour == 4
    assert parsed.minute == 30
