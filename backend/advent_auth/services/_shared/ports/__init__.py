"""
advent_auth.services._shared.ports
==================================

Collection of *ports* (hexagonal interfaces) the auth services depend on.

Modules
-------
- :mod:`token_codec`:
    :class:`~.TokenCodec` with the typed claim variants and :class:`~.TokenCheck`.

- :mod:`refresh_token_store`:
    :class:`~.RefreshTokenStore` and :class:`~.RefreshRecordView`.

- :mod:`login_state_store`:
    :class:`~.LoginStateStore` for single-use OAuth ``state`` values.

- :mod:`federation_client`:
    :class:`~.FederationClient` and :class:`~.FederationProfile`.

Concrete adapters (PyJWT, requests, Redis, SQL) live under ``advent_auth.infra``.
In-memory and stub implementations live next to their port.
"""

from __future__ import annotations

from .federation_client import FederationClient, FederationProfile, StubFederationClient
from .login_state_store import InMemoryLoginStateStore, LoginStateStore
from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshRecordView,
    RefreshTokenStore,
)
from .token_codec import (
    AccessClaims,
    RefreshClaims,
    TempClaims,
    TokenCheck,
    TokenClaims,
    TokenCodec,
    TokenKind,
    TokenStatus,
)

__all__ = [
    "AccessClaims",
    "FederationClient",
    "FederationProfile",
    "InMemoryLoginStateStore",
    "InMemoryRefreshTokenStore",
    "LoginStateStore",
    "RefreshClaims",
    "RefreshRecordView",
    "RefreshTokenStore",
    "StubFederationClient",
    "TempClaims",
    "TokenCheck",
    "TokenClaims",
    "TokenCodec",
    "TokenKind",
    "TokenStatus",
]
