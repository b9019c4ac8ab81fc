# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass

import redis  # type: ignore[import-untyped]

from advent_auth.services._shared.ports import LoginStateStore


@dataclass(slots=True)
class RedisLoginStateStore(LoginStateStore):
    """
    OAuth ``state`` values shared across workers.

    ``put`` is ``SET key provider EX ttl``; ``consume`` is ``GETDEL`` so a
    state can be redeemed exactly once.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    @staticmethod
    def _k(state: str) -> str:
        return f"oauth:state:{state}"

    def put(self, state: str, provider: str, ttl_seconds: int) -> None:
        self.r.set(self._k(state), provider, ex=max(1, int(ttl_seconds)))

    def consume(self, state: str) -> str | None:
        value = self.r.getdel(self._k(state))
        if value is None:
            return None
        return value.decode() if isinstance(value, bytes) else str(value)
