"""Deterministic clock for expiry tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

EPOCH = datetime(2025, 12, 1, 9, 0, 0, tzinfo=UTC)


class FrozenClock:
    """Callable returning a fixed aware UTC ``datetime`` until moved.

    Parameters
    ----------
    start: datetime, optional
        Initial instant. Defaults to :data:`EPOCH`.
    """

    def __init__(self, start: datetime = EPOCH) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        """Move the clock forward and return the new instant."""
        self.now = self.now + timedelta(seconds=seconds)
        return self.now
