# comments in English; reST docstrings
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import UTC, datetime

import redis  # type: ignore[import-untyped]

from advent_auth.services._shared.base import Clock, utc_now
from advent_auth.services._shared.ports import RefreshRecordView, RefreshTokenStore


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store.

    Layout
    ------
    ``rt:<sha256(token)>``
        Hash ``{token, user_id, expires_at}`` with a key TTL lasting through the
        record's expiry second, so Redis evicts stale records on its own.
    ``rt:u:<user_id>``
        Set of token digests owned by the user.
    ``rt:exp``
        Sorted set of digests scored by ``expires_at`` for the purge sweep.

    :param r: A Redis client (already connected).
    :param clock: Callable returning an aware UTC ``datetime``.
    """

    r: redis.Redis
    clock: Clock = utc_now

    # -------------------- helpers --------------------

    @staticmethod
    def _digest(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    @staticmethod
    def _k(digest: str) -> str:
        return f"rt:{digest}"

    @staticmethod
    def _ku(user_id: int) -> str:
        return f"rt:u:{int(user_id)}"

    _KEXP = "rt:exp"

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        # Naive datetimes are labelled UTC (no conversion)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return int(dt.timestamp())

    @staticmethod
    def _s(value: bytes | str) -> str:
        return value.decode() if isinstance(value, bytes) else value

    def _drop(self, pipe, digest: str, user_id: int | None) -> None:
        pipe.delete(self._k(digest))
        pipe.zrem(self._KEXP, digest)
        if user_id is not None:
            pipe.srem(self._ku(user_id), digest)

    # -------------------- API ------------------------

    def save(self, *, user_id: int, token: str, expires_at: datetime) -> None:
        digest = self._digest(token)
        exp_ts = self._to_ts(expires_at)
        # A token is still valid during its ``exp`` second; keep the record one second past it.
        ttl = max(1, exp_ts - self._to_ts(self.clock()) + 1)

        pipe = self.r.pipeline(transaction=True)
        pipe.hset(
            self._k(digest),
            mapping={"token": token, "user_id": str(int(user_id)), "expires_at": str(exp_ts)},
        )
        pipe.expire(self._k(digest), ttl)
        pipe.sadd(self._ku(user_id), digest)
        pipe.zadd(self._KEXP, {digest: exp_ts})
        pipe.execute()

    def find_by_token(self, token: str) -> RefreshRecordView | None:
        data = self.r.hgetall(self._k(self._digest(token)))
        if not data:
            return None
        fields = {self._s(k): self._s(v) for k, v in data.items()}
        return RefreshRecordView(
            token=fields["token"],
            user_id=int(fields["user_id"]),
            expires_at=datetime.fromtimestamp(int(fields["expires_at"]), tz=UTC),
        )

    def delete_by_token(self, token: str) -> bool:
        digest = self._digest(token)
        uid = self.r.hget(self._k(digest), "user_id")
        pipe = self.r.pipeline(transaction=True)
        self._drop(pipe, digest, int(self._s(uid)) if uid is not None else None)
        deleted = pipe.execute()[0]
        return bool(deleted)

    def delete_all_for_user(self, user_id: int) -> int:
        digests = [self._s(d) for d in self.r.smembers(self._ku(user_id))]
        if not digests:
            return 0
        pipe = self.r.pipeline(transaction=True)
        for digest in digests:
            pipe.delete(self._k(digest))
        pipe.zrem(self._KEXP, *digests)
        pipe.delete(self._ku(user_id))
        results = pipe.execute()
        return int(sum(results[: len(digests)]))

    def purge_expired(self, as_of: datetime) -> int:
        """
        Remove records that expired strictly before ``as_of``.

        Key TTLs already evict the hashes; this keeps the user index and the
        expiry index in step and reports how many records were due.
        """
        cutoff = self._to_ts(as_of)
        digests = [self._s(d) for d in self.r.zrangebyscore(self._KEXP, "-inf", f"({cutoff}")]
        if not digests:
            return 0
        owners = [self.r.hget(self._k(d), "user_id") for d in digests]
        pipe = self.r.pipeline(transaction=True)
        for digest, uid in zip(digests, owners, strict=True):
            self._drop(pipe, digest, int(self._s(uid)) if uid is not None else None)
        pipe.execute()
        return len(digests)
