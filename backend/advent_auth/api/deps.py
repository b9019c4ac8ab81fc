"""Shared API helpers for responses, timing and the request principal."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from advent_auth.core.authn import Principal
from advent_auth.core.errors import Forbidden, Unauthorized
from advent_auth.services._shared.ports import TokenKind

F = TypeVar("F", bound=Callable[..., Any])


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


def current_principal() -> Principal | None:
    """Principal set by the request authenticator, or ``None`` when anonymous."""

    return getattr(g, "principal", None)


def require_principal(*kinds: TokenKind) -> Callable[[F], F]:
    """Reject anonymous callers (401) and callers holding another token kind (403)."""

    allowed = frozenset(kinds)

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            principal = current_principal()
            if principal is None:
                raise Unauthorized("Authentication required")
            if allowed and principal.kind not in allowed:
                raise Forbidden(f"This endpoint requires a {'/'.join(k.value for k in kinds)} token")
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
