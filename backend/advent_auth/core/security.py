"""Build the auth components once per app and expose them to the API layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

from flask import Flask, current_app

from advent_auth.core.authn import RequestAuthenticator
from advent_auth.core.extensions import get_redis
from advent_auth.infra.jwt import JWTTokenCodec, SigningKey
from advent_auth.infra.oauth import KakaoOAuthClient, NaverOAuthClient, OAuthProviderSettings
from advent_auth.infra.redis import RedisLoginStateStore, RedisRefreshTokenStore
from advent_auth.infra.sql import SQLRefreshTokenStore
from advent_auth.services._shared.ports import (
    FederationClient,
    InMemoryLoginStateStore,
    InMemoryRefreshTokenStore,
    LoginStateStore,
    RefreshTokenStore,
    TokenKind,
)
from advent_auth.services.auth.dto import AuthPolicy
from advent_auth.services.auth.service import AuthService
from advent_auth.services.identity.service import IdentityService

EXTENSION_KEY = "auth"


@dataclass(slots=True)
class AuthComponents:
    """Process-wide auth collaborators. The signing key inside ``codec`` is immutable."""

    codec: JWTTokenCodec
    authenticator: RequestAuthenticator
    refresh_store: RefreshTokenStore
    login_states: LoginStateStore
    clients: dict[str, FederationClient]
    policy: AuthPolicy


def _refresh_store(backend: str) -> RefreshTokenStore:
    backend = backend.strip().lower()
    if backend == "sql":
        return SQLRefreshTokenStore()
    if backend == "redis":
        return RedisRefreshTokenStore(r=get_redis())
    if backend == "memory":
        return InMemoryRefreshTokenStore()
    raise RuntimeError(f"Unknown REFRESH_TOKEN_BACKEND: {backend!r}")


def _login_state_store(backend: str) -> LoginStateStore:
    backend = backend.strip().lower()
    if backend == "redis":
        return RedisLoginStateStore(r=get_redis())
    if backend == "memory":
        return InMemoryLoginStateStore()
    raise RuntimeError(f"Unknown LOGIN_STATE_BACKEND: {backend!r}")


def _require_shared_stores(app: Flask) -> None:
    """Refuse process-local stores outside debug and test runs.

    Several server workers never see each other's memory, so a login state
    or refresh record written by one is unknown to the next.
    """
    if app.debug or app.testing:
        return
    cfg = app.config
    checked = ["REFRESH_TOKEN_BACKEND"]
    if cfg.get("AUTH_REQUIRE_LOGIN_STATE", True):
        checked.append("LOGIN_STATE_BACKEND")
    for key in checked:
        if str(cfg.get(key, "")).strip().lower() == "memory":
            raise RuntimeError(f"{key}=memory is only allowed in debug or testing mode")


def _clients(cfg: Any) -> dict[str, FederationClient]:
    timeout = float(cfg.get("FEDERATION_HTTP_TIMEOUT", 10))
    clients: dict[str, FederationClient] = {}
    for prefix, client_cls in (("NAVER", NaverOAuthClient), ("KAKAO", KakaoOAuthClient)):
        client_id = cfg.get(f"{prefix}_CLIENT_ID")
        if not client_id:
            continue
        settings = OAuthProviderSettings(
            client_id=client_id,
            client_secret=cfg.get(f"{prefix}_CLIENT_SECRET", ""),
            redirect_uri=cfg.get(f"{prefix}_REDIRECT_URI", ""),
            timeout=timeout,
        )
        clients[prefix] = client_cls(settings)
    return clients


def build_components(app: Flask) -> AuthComponents:
    """
    Assemble the auth collaborators from ``app.config``.

    :raises ValueError: ``JWT_SECRET_KEY`` shorter than 32 bytes.
    :raises RuntimeError: Unknown store backend, Redis requested but not
        configured, or an in-memory store outside debug and testing.
    """
    _require_shared_stores(app)
    cfg = app.config
    codec = JWTTokenCodec(
        key=SigningKey.from_text(cfg["JWT_SECRET_KEY"]),
        ttls={
            TokenKind.ACCESS: timedelta(seconds=int(cfg["ACCESS_TOKEN_TTL_SECONDS"])),
            TokenKind.REFRESH: timedelta(seconds=int(cfg["REFRESH_TOKEN_TTL_SECONDS"])),
            TokenKind.TEMP: timedelta(seconds=int(cfg["TEMP_TOKEN_TTL_SECONDS"])),
        },
    )
    return AuthComponents(
        codec=codec,
        authenticator=RequestAuthenticator(codec),
        refresh_store=_refresh_store(cfg.get("REFRESH_TOKEN_BACKEND", "sql")),
        login_states=_login_state_store(cfg.get("LOGIN_STATE_BACKEND", "memory")),
        clients=_clients(cfg),
        policy=AuthPolicy(
            require_login_state=bool(cfg.get("AUTH_REQUIRE_LOGIN_STATE", True)),
            rotate_refresh_tokens=bool(cfg.get("AUTH_ROTATE_REFRESH_TOKENS", False)),
            login_state_ttl_seconds=int(cfg.get("LOGIN_STATE_TTL_SECONDS", 600)),
        ),
    )


def init_app(app: Flask) -> None:
    """Build the components, store them on ``app.extensions`` and hook the authenticator."""
    components = build_components(app)
    app.extensions[EXTENSION_KEY] = components
    components.authenticator.init_app(app)


def get_components() -> AuthComponents:
    return cast(AuthComponents, current_app.extensions[EXTENSION_KEY])


def auth_service() -> AuthService:
    """Build an :class:`AuthService` over the current app's components."""
    c = get_components()
    return AuthService(
        identities=IdentityService(),
        token_codec=c.codec,
        refresh_store=c.refresh_store,
        login_states=c.login_states,
        clients=c.clients,
        policy=c.policy,
        clock=c.codec.clock,
    )
