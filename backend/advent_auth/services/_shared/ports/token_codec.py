from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, ClassVar, Protocol


class TokenKind(str, Enum):
    """Value of the mandatory ``type`` claim."""

    ACCESS = "access"
    REFRESH = "refresh"
    TEMP = "temp"


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Decoded claims of an ACCESS token (ACTIVE identity).

    :ivar subject_id: Identity id (``sub``).
    :ivar email: Email at issuance, when the provider shared one.
    :ivar provider: Identity provider name (``NAVER``/``KAKAO``).
    :ivar issued_at: ``iat`` in integer UTC seconds.
    :ivar expires_at: ``exp`` in integer UTC seconds.
    :ivar jti: Unique token id.
    """

    kind: ClassVar[TokenKind] = TokenKind.ACCESS

    subject_id: int
    email: str | None
    provider: str
    issued_at: int
    expires_at: int
    jti: str


@dataclass(frozen=True, slots=True)
class TempClaims:
    """Decoded claims of a TEMP token (PENDING identity, registration only)."""

    kind: ClassVar[TokenKind] = TokenKind.TEMP

    subject_id: int
    email: str | None
    provider: str
    issued_at: int
    expires_at: int
    jti: str


@dataclass(frozen=True, slots=True)
class RefreshClaims:
    """Decoded claims of a REFRESH token. Carries the subject only."""

    kind: ClassVar[TokenKind] = TokenKind.REFRESH

    subject_id: int
    issued_at: int
    expires_at: int
    jti: str


TokenClaims = AccessClaims | TempClaims | RefreshClaims


class TokenStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    WRONG_KIND = "wrong_kind"


@dataclass(frozen=True, slots=True)
class TokenCheck:
    """
    Outcome of :meth:`TokenCodec.check`.

    ``claims`` is set only when ``status`` is ``VALID``.
    """

    status: TokenStatus
    claims: TokenClaims | None = None

    @property
    def ok(self) -> bool:
        return self.status is TokenStatus.VALID


class TokenCodec(Protocol):
    """Port for issuing and verifying signed tokens."""

    def issue(
        self,
        kind: TokenKind,
        subject_id: int,
        claims: Mapping[str, Any] | None = None,
        ttl: timedelta | None = None,
    ) -> str:
        """Sign a token of ``kind`` for ``subject_id``.

        ACCESS and TEMP tokens require ``claims["provider"]``; ``email`` is
        optional. ``ttl`` defaults to the codec's per-kind lifetime.
        """

    def verify(self, token: str) -> bool:
        """Return ``True`` for a well-formed, correctly signed, unexpired token. Never raises."""

    def parse(self, token: str) -> TokenClaims:
        """Decode a token into its typed claims.

        :raises TokenMalformedError: Bad structure, signature, or ``type``.
        :raises ExpiredError: Signature ok but ``now > exp``.
        """

    def check(self, token: str, accept: Collection[TokenKind]) -> TokenCheck:
        """Verify and classify a token without raising."""

    def ttl_for(self, kind: TokenKind) -> timedelta:
        """Configured lifetime for ``kind``."""
