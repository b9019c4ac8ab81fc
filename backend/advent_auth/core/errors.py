"""Centralized JSON (RFC 7807) error handling for the API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from advent_auth.core.logger import ensure_request_id
from advent_auth.services._shared.errors import ServiceError

log = logging.getLogger(__name__)

# Infrastructure failures rendered without leaking driver messages.
_INFRA_ERRORS: dict[type[Exception], tuple[HTTPStatus, str, str]] = {
    IntegrityError: (HTTPStatus.CONFLICT, "conflict", "Resource conflict"),
    OperationalError: (
        HTTPStatus.SERVICE_UNAVAILABLE,
        "service_unavailable",
        "Service temporarily unavailable",
    ),
}


def _status_code_name(status: int) -> str:
    """``404`` → ``not_found``; stable snake_case codes for plain HTTP errors."""
    try:
        return HTTPStatus(status).phrase.lower().replace(" ", "_").replace("-", "_")
    except ValueError:
        return "error"


def problem_response(
    status: int, code: str, detail: str, details: dict[str, Any] | None = None
) -> tuple[Response, int]:
    """
    Build an ``application/problem+json`` response.

    Every problem carries ``type``, ``title``, ``status``, ``detail``,
    ``instance``, a stable machine ``code`` and the correlation
    ``request_id``; ``details`` only when given.
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": int(status),
        "detail": detail,
        "instance": request.path if request else None,
        "code": code,
        "request_id": ensure_request_id(),
    }
    if details:
        problem["details"] = details
    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    return resp, int(status)


class APIError(Exception):
    """
    Represent a JSON-serializable API error.

    Subclasses fix ``status_code`` and the default ``code``; callers may
    override the code to give clients a finer reason (``expired``,
    ``login_state_mismatch``...).

    Parameters
    ----------
    message : str, optional
        Human-readable description presented to clients.
    status_code : int, optional
        HTTP status code. Defaults to the class value.
    code : str, optional
        Machine-readable identifier. Defaults to the class value.
    details : dict[str, Any] | None, optional
        Optional structured payload included in the response body.
    """

    status_code: int = HTTPStatus.BAD_REQUEST
    code: str = "bad_request"
    default_message: str = "Bad request"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        self.status_code = int(status_code or self.status_code)
        self.code = code or self.code
        self.details = details or {}


class NotFound(APIError):
    """404 when resources are missing."""

    status_code = HTTPStatus.NOT_FOUND
    code = "not_found"
    default_message = "Resource not found"


class Conflict(APIError):
    """409 for duplicate identities and finished registrations."""

    status_code = HTTPStatus.CONFLICT
    code = "conflict"
    default_message = "Conflict"


class Unauthorized(APIError):
    """401 when no usable token accompanies the request."""

    status_code = HTTPStatus.UNAUTHORIZED
    code = "unauthorized"
    default_message = "Unauthorized"


class Forbidden(APIError):
    """403 when the principal holds the wrong kind of token."""

    status_code = HTTPStatus.FORBIDDEN
    code = "forbidden"
    default_message = "Forbidden"


class BadGateway(APIError):
    """502 when an upstream identity provider misbehaves."""

    status_code = HTTPStatus.BAD_GATEWAY
    code = "bad_gateway"
    default_message = "Upstream provider error"


def to_api_error(exc: ServiceError) -> APIError:
    """Translate a service-layer error through :meth:`BaseService.translate_exceptions`."""
    from advent_auth.services._shared.base import BaseService

    translated = BaseService().translate_exceptions(exc)
    if isinstance(translated, APIError):
        return translated
    return APIError(str(exc))


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - 4xx are logged as warnings without traceback, 5xx as errors with one.
    - Token values never reach the logs: only codes and statuses do.
    """

    def _render(err: APIError):
        level = log.error if err.status_code >= 500 else log.warning
        level(
            "APIError: code=%s status=%s msg=%s",
            err.code,
            err.status_code,
            err.message,
        )
        return problem_response(err.status_code, err.code, err.message, err.details or None)

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return _render(err)

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        return _render(to_api_error(err))

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or HTTPStatus(status).phrase).strip()
        (log.error if status >= 500 else log.warning)(
            "HTTPException: status=%s detail=%s", status, message
        )
        return problem_response(status, _status_code_name(status), message)

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        log.warning("ValidationError: fields=%s", sorted(err.normalized_messages()))
        return problem_response(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "validation_error",
            "Validation failed",
            {"errors": err.messages},
        )

    for exc_type, (status, code, message) in _INFRA_ERRORS.items():

        def handle_infra_error(err: Exception, status=status, code=code, message=message):
            log.error("%s: %s", type(err).__name__, code, exc_info=True)
            return problem_response(status, code, message)

        app.register_error_handler(exc_type, handle_infra_error)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        log.error("Unhandled exception", exc_info=True)
        return problem_response(
            HTTPStatus.INTERNAL_SERVER_ERROR, "internal_server_error", "Unexpected error"
        )
