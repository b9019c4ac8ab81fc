from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Protocol


class LoginStateStore(Protocol):
    """
    Port for the OAuth ``state`` values we hand out at login start.

    Each state is bound to one provider and may be consumed once.
    """

    def put(self, state: str, provider: str, ttl_seconds: int) -> None: ...

    def consume(self, state: str) -> str | None:
        """Remove ``state`` and return its provider, or ``None`` if unknown/expired."""


class InMemoryLoginStateStore(LoginStateStore):
    """Process-local store with lazy expiry. Not shared across workers."""

    def __init__(self, *, monotonic: Callable[[], float] = time.monotonic) -> None:
        self._lock = threading.Lock()
        self._states: dict[str, tuple[str, float]] = {}
        self._monotonic = monotonic

    def put(self, state: str, provider: str, ttl_seconds: int) -> None:
        deadline = self._monotonic() + ttl_seconds
        with self._lock:
            self._evict_expired()
            self._states[state] = (provider, deadline)

    def consume(self, state: str) -> str | None:
        with self._lock:
            entry = self._states.pop(state, None)
        if entry is None:
            return None
        provider, deadline = entry
        if self._monotonic() >= deadline:
            return None
        return provider

    def _evict_expired(self) -> None:
        now = self._monotonic()
        for key in [k for k, (_, dl) in self._states.items() if dl <= now]:
            del self._states[key]
