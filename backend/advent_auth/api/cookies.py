"""Token cookies: one place for names, lifetimes and attributes."""

from __future__ import annotations

from flask import Response, current_app

from advent_auth.core.authn import ACCESS_COOKIE, REFRESH_COOKIE, TEMP_COOKIE

_MAX_AGE_KEYS = {
    ACCESS_COOKIE: "ACCESS_TOKEN_TTL_SECONDS",
    REFRESH_COOKIE: "REFRESH_TOKEN_TTL_SECONDS",
    TEMP_COOKIE: "TEMP_TOKEN_TTL_SECONDS",
}


def set_token_cookie(response: Response, name: str, token: str) -> None:
    """Attach ``token`` as an ``HttpOnly`` cookie on path ``/``, living as long as the token."""
    response.set_cookie(
        name,
        token,
        max_age=int(current_app.config[_MAX_AGE_KEYS[name]]),
        path="/",
        httponly=True,
        secure=bool(current_app.config.get("AUTH_COOKIE_SECURE", True)),
        samesite="Lax",
    )


def clear_token_cookie(response: Response, name: str) -> None:
    response.delete_cookie(
        name,
        path="/",
        httponly=True,
        secure=bool(current_app.config.get("AUTH_COOKIE_SECURE", True)),
        samesite="Lax",
    )


def clear_all_token_cookies(response: Response) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE, TEMP_COOKIE):
        clear_token_cookie(response, name)
