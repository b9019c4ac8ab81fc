from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol


@dataclass(frozen=True)
class RefreshRecordView:
    """
    Read-model for a persisted refresh token.

    :ivar token: The refresh token string as issued.
    :ivar user_id: Owner identity id.
    :ivar expires_at: Absolute expiration (aware UTC).
    """

    token: str
    user_id: int
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class RefreshTokenStore(Protocol):
    """
    Persistent set of issued refresh tokens.

    The store does not enforce one token per user; callers decide the policy.
    A token is honored only while its record exists.
    """

    def save(self, *, user_id: int, token: str, expires_at: datetime) -> None:
        """Persist a record. Must complete before the token reaches the client."""

    def find_by_token(self, token: str) -> RefreshRecordView | None:
        """Return the record for ``token`` or ``None``."""

    def delete_by_token(self, token: str) -> bool:
        """Delete the record; ``True`` when one existed."""

    def delete_all_for_user(self, user_id: int) -> int:
        """Delete every record of ``user_id``; return how many were removed."""

    def purge_expired(self, as_of: datetime) -> int:
        """Delete records with ``expires_at < as_of``; return how many were removed."""


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    Thread-safe in-memory implementation for tests and single-process dev.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, RefreshRecordView] = {}

    def save(self, *, user_id: int, token: str, expires_at: datetime) -> None:
        with self._lock:
            self._records[token] = RefreshRecordView(
                token=token, user_id=int(user_id), expires_at=_aware(expires_at)
            )

    def find_by_token(self, token: str) -> RefreshRecordView | None:
        with self._lock:
            return self._records.get(token)

    def delete_by_token(self, token: str) -> bool:
        with self._lock:
            return self._records.pop(token, None) is not None

    def delete_all_for_user(self, user_id: int) -> int:
        with self._lock:
            doomed = [t for t, r in self._records.items() if r.user_id == int(user_id)]
            for t in doomed:
                del self._records[t]
            return len(doomed)

    def purge_expired(self, as_of: datetime) -> int:
        cutoff = _aware(as_of)
        with self._lock:
            doomed = [t for t, r in self._records.items() if r.expires_at < cutoff]
            for t in doomed:
                del self._records[t]
            return len(doomed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
