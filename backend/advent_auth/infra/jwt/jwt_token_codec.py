# advent_auth/infra/jwt/jwt_token_codec.py
from __future__ import annotations

import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any
from uuid import uuid4

import jwt

from advent_auth.infra.jwt.signing_key import SigningKey
from advent_auth.services._shared.base import Clock, utc_now
from advent_auth.services._shared.errors import ExpiredError, TokenMalformedError
from advent_auth.services._shared.ports import (
    AccessClaims,
    RefreshClaims,
    TempClaims,
    TokenCheck,
    TokenClaims,
    TokenCodec,
    TokenKind,
    TokenStatus,
)

log = logging.getLogger(__name__)

_REQUIRED = ["exp", "iat", "sub", "type"]


@dataclass(slots=True)
class JWTTokenCodec(TokenCodec):
    """
    PyJWT adapter issuing compact HS512 JWS tokens.

    Payload: ``sub`` (identity id as string), ``type``, ``iat``, ``exp``,
    ``jti``; ACCESS and TEMP tokens add ``email`` and ``provider``.

    Expiry is evaluated against the injected ``clock`` rather than PyJWT's
    wall clock, so tests can move time. A token is expired when
    ``now > exp`` in integer UTC seconds.

    :param key: Signing key.
    :param clock: Callable returning an aware UTC ``datetime``.
    :param ttls: Default lifetime per kind.
    """

    key: SigningKey
    clock: Clock = utc_now
    ttls: dict[TokenKind, timedelta] = field(
        default_factory=lambda: {
            TokenKind.ACCESS: timedelta(hours=1),
            TokenKind.REFRESH: timedelta(days=30),
            TokenKind.TEMP: timedelta(minutes=5),
        }
    )

    # -------------------- helpers --------------------

    def _now_ts(self) -> int:
        return int(self.clock().timestamp())

    def ttl_for(self, kind: TokenKind) -> timedelta:
        return self.ttls[kind]

    def _decode(self, token: str) -> dict[str, Any]:
        """Verify the signature and claim presence; leave expiry to the caller."""
        try:
            return jwt.decode(
                token,
                self.key.secret,
                algorithms=[self.key.algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": _REQUIRED},
            )
        except jwt.PyJWTError as exc:
            raise TokenMalformedError() from exc

    @staticmethod
    def _to_claims(payload: Mapping[str, Any]) -> TokenClaims:
        try:
            kind = TokenKind(payload["type"])
            subject_id = int(payload["sub"])
            issued_at = int(payload["iat"])
            expires_at = int(payload["exp"])
        except (KeyError, TypeError, ValueError) as exc:
            raise TokenMalformedError() from exc
        jti = str(payload.get("jti") or "")

        if kind is TokenKind.REFRESH:
            return RefreshClaims(
                subject_id=subject_id, issued_at=issued_at, expires_at=expires_at, jti=jti
            )
        provider = payload.get("provider")
        if not isinstance(provider, str) or not provider:
            raise TokenMalformedError()
        cls = AccessClaims if kind is TokenKind.ACCESS else TempClaims
        return cls(
            subject_id=subject_id,
            email=payload.get("email"),
            provider=provider,
            issued_at=issued_at,
            expires_at=expires_at,
            jti=jti,
        )

    # -------------------- API ------------------------

    def issue(
        self,
        kind: TokenKind,
        subject_id: int,
        claims: Mapping[str, Any] | None = None,
        ttl: timedelta | None = None,
    ) -> str:
        kind = TokenKind(kind)
        extra = dict(claims or {})
        now = self._now_ts()
        lifetime = ttl if ttl is not None else self.ttl_for(kind)
        payload: dict[str, Any] = {
            "sub": str(int(subject_id)),
            "type": kind.value,
            "iat": now,
            "exp": now + int(lifetime.total_seconds()),
            "jti": uuid4().hex,
        }
        if kind is not TokenKind.REFRESH:
            provider = extra.get("provider")
            if not provider:
                raise ValueError(f"{kind.value} tokens require a provider claim.")
            payload["provider"] = str(provider)
            payload["email"] = extra.get("email")
        return jwt.encode(payload, self.key.secret, algorithm=self.key.algorithm)

    def parse(self, token: str) -> TokenClaims:
        claims = self._to_claims(self._decode(token))
        if self._now_ts() > claims.expires_at:
            raise ExpiredError()
        return claims

    def verify(self, token: str) -> bool:
        try:
            self.parse(token)
        except (TokenMalformedError, ExpiredError):
            return False
        return True

    def check(self, token: str, accept: Collection[TokenKind]) -> TokenCheck:
        try:
            claims = self.parse(token)
        except (TokenMalformedError, ExpiredError) as exc:
            log.debug("token.rejected", extra={"token_kind": type(exc).__name__})
            return TokenCheck(TokenStatus.INVALID)
        if claims.kind not in accept:
            return TokenCheck(TokenStatus.WRONG_KIND)
        return TokenCheck(TokenStatus.VALID, claims)
