"""Error kinds raised by the query layer."""

from __future__ import annotations


class NotFound(LookupError):
    """A requested sector, date, hour or minute does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message
