"""Per-request authentication: find a token, verify it, expose the principal."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from flask import Flask, g, request

from advent_auth.services._shared.ports import TokenCodec, TokenKind

log = logging.getLogger(__name__)

ACCESS_COOKIE = "accessToken"
TEMP_COOKIE = "tempToken"
REFRESH_COOKIE = "refreshToken"

ACCEPTED_KINDS = frozenset({TokenKind.ACCESS, TokenKind.TEMP})


@dataclass(frozen=True, slots=True)
class Principal:
    """
    The authenticated caller.

    :ivar subject_id: Identity id.
    :ivar kind: ``ACCESS`` (ACTIVE identity) or ``TEMP`` (PENDING identity).
    :ivar email: Email claim, if any.
    :ivar provider: Identity provider name.
    """

    subject_id: int
    kind: TokenKind
    email: str | None
    provider: str


class RequestAuthenticator:
    """
    Decide who is calling from the request headers and cookies.

    Token sources, first match wins:

    1. ``Authorization: Bearer <token>``
    2. cookie ``accessToken``
    3. cookie ``tempToken``

    The ``refreshToken`` cookie is never read here. Anything that is not a
    valid ACCESS or TEMP token leaves the request anonymous; nothing raises.
    """

    def __init__(self, codec: TokenCodec) -> None:
        self.codec = codec

    @staticmethod
    def extract(headers: Mapping[str, str], cookies: Mapping[str, str]) -> str | None:
        auth = headers.get("Authorization") or ""
        scheme, _, value = auth.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
        for name in (ACCESS_COOKIE, TEMP_COOKIE):
            token = cookies.get(name)
            if token:
                return token
        return None

    def authenticate(
        self, headers: Mapping[str, str], cookies: Mapping[str, str]
    ) -> Principal | None:
        token = self.extract(headers, cookies)
        if token is None:
            return None
        result = self.codec.check(token, ACCEPTED_KINDS)
        if not result.ok or result.claims is None:
            log.debug("authn.anonymous", extra={"token_kind": result.status.value})
            return None
        claims = result.claims
        return Principal(
            subject_id=claims.subject_id,
            kind=claims.kind,
            email=getattr(claims, "email", None),
            provider=getattr(claims, "provider", ""),
        )

    def init_app(self, app: Flask) -> None:
        """Populate ``g.principal`` (or ``None``) before every request."""

        @app.before_request
        def _authenticate_request() -> None:
            g.principal = self.authenticate(request.headers, request.cookies)
