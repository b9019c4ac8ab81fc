"""Federation login, registration completion and token lifecycle endpoints."""

from __future__ import annotations

import logging
from typing import cast
from urllib.parse import urlencode

from flask import Blueprint, current_app, redirect, request

from advent_auth.api.cookies import clear_all_token_cookies, clear_token_cookie, set_token_cookie
from advent_auth.api.deps import current_principal, json_response, require_principal, timing
from advent_auth.core.authn import ACCESS_COOKIE, REFRESH_COOKIE, TEMP_COOKIE, Principal
from advent_auth.core.security import auth_service
from advent_auth.schemas import (
    CallbackQuerySchema,
    CompleteRegistrationSchema,
    IdentitySchema,
    RegistrationResponseSchema,
)
from advent_auth.services._shared.base import BaseService
from advent_auth.services._shared.errors import ServiceError
from advent_auth.services._shared.ports import TokenKind
from advent_auth.services.auth.dto import CallbackIn, RegisterIn
from advent_auth.services.identity.service import IdentityService

log = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

callback_schema = CallbackQuerySchema()
registration_schema = CompleteRegistrationSchema()
registration_response_schema = RegistrationResponseSchema()
identity_schema = IdentitySchema()


def _frontend(path: str = "") -> str:
    base = str(current_app.config.get("FRONTEND_URL", "")).rstrip("/")
    return f"{base}/{path.lstrip('/')}"


def _error_redirect(code: str):
    return redirect(_frontend(f"auth/error?{urlencode({'code': code})}"))


@bp.get("/<provider>")
@timing
def login(provider: str):
    """Send the browser to the provider's consent page."""

    out = auth_service().begin_login(provider)
    return redirect(out.url)


@bp.get("/oauth/<provider>/callback")
@timing
def oauth_callback(provider: str):
    """Finish a provider login, set token cookies and bounce back to the frontend.

    Failures never render JSON here: the browser is on a top-level navigation,
    so they redirect to ``FRONTEND_URL/auth/error?code=<code>``.
    """

    query = callback_schema.load(request.args)
    if query["error"]:
        log.info("auth.callback.denied", extra={"provider": provider})
        return _error_redirect("federation_error")

    try:
        out = auth_service().handle_callback(
            CallbackIn(provider=provider, code=query["code"] or "", state=query["state"])
        )
    except ServiceError as exc:
        code = BaseService().error_code(exc)
        log.warning("auth.callback.failed code=%s", code, extra={"provider": provider})
        return _error_redirect(code)

    if out.is_existing_active_user:
        response = redirect(_frontend(out.share_id or ""))
        set_token_cookie(response, ACCESS_COOKIE, out.tokens.access_token or "")
        set_token_cookie(response, REFRESH_COOKIE, out.tokens.refresh_token or "")
        clear_token_cookie(response, TEMP_COOKIE)
        return response

    response = redirect(_frontend("new"))
    set_token_cookie(response, TEMP_COOKIE, out.tokens.temp_token or "")
    clear_token_cookie(response, ACCESS_COOKIE)
    clear_token_cookie(response, REFRESH_COOKIE)
    return response


@bp.post("/users")
@require_principal(TokenKind.TEMP)
@timing
def complete_registration():
    """Activate the caller's PENDING identity with the chosen name and color."""

    payload = registration_schema.load(request.get_json(silent=True) or {})
    principal = cast(Principal, current_principal())
    out = auth_service().complete_registration(
        RegisterIn(
            subject_id=principal.subject_id,
            display_name=payload["name"],
            color=payload["color"],
        )
    )
    body = {"data": registration_response_schema.dump({"share_id": out.identity.share_id})}
    response = json_response(body, status=201)
    clear_token_cookie(response, TEMP_COOKIE)
    set_token_cookie(response, ACCESS_COOKIE, out.access_token)
    set_token_cookie(response, REFRESH_COOKIE, out.refresh_token)
    return response


@bp.get("/me")
@require_principal(TokenKind.ACCESS)
@timing
def me():
    """Return the caller's ACTIVE identity."""

    principal = cast(Principal, current_principal())
    identity = IdentityService().get_active(principal.subject_id)
    return json_response({"data": identity_schema.dump(identity)})


@bp.post("/refresh")
@timing
def refresh():
    """Trade the ``refreshToken`` cookie for a new ``accessToken`` cookie."""

    out = auth_service().refresh(request.cookies.get(REFRESH_COOKIE))
    ttl = int(current_app.config["ACCESS_TOKEN_TTL_SECONDS"])
    response = json_response({"data": {"expires_in": ttl, "rotated": out.refresh_token is not None}})
    set_token_cookie(response, ACCESS_COOKIE, out.access_token)
    if out.refresh_token is not None:
        set_token_cookie(response, REFRESH_COOKIE, out.refresh_token)
    return response


@bp.post("/logout")
@timing
def logout():
    """Forget the refresh token, if any, and clear every token cookie. Always 200."""

    auth_service().logout(request.cookies.get(REFRESH_COOKIE))
    response = json_response({"data": {"logged_out": True}})
    clear_all_token_cookies(response)
    return response
