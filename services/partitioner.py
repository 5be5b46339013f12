"""Split ISO-8601 timestamps into date/hour/minute partition keys."""

from __future__ import annotations

from datetime import datetime, timezone

from models.records import PartitionKey


class InvalidTimestamp(ValueError):
    """Raised when a value does not parse to a valid ISO-8601 instant."""


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Naive values are taken to be UTC already.
    """
    if not isinstance(value, str):
        raise InvalidTimestamp(f"Timestamp must be a string, got {type(value).__name__}.")

    candidate = value.strip()
    if not candidate:
        raise InvalidTimestamp("Timestamp is empty.")

    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise InvalidTimestamp(f"Invalid ISO-8601 timestamp: {value!r}") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


def partition_timestamp(value: str) -> PartitionKey:
    instant = parse_timestamp(value)
    return PartitionKey(
        date=instant.strftime("%Y-%m-%d"),
        hour=f"{instant.hour:02d}",
        minute=f"{instant.minute:02d}",
    )
