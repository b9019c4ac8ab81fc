# advent_auth/services/_shared/base.py
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from advent_auth.core import errors as api_errors
from advent_auth.services._shared.errors import (
    ConflictError,
    ExpiredError,
    FederationError,
    FederationProfileError,
    FederationTokenError,
    InvalidStateError,
    LoginStateMismatchError,
    NotFoundError,
    ServiceError,
    TokenMalformedError,
    UnauthorizedError,
)
from advent_auth.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware UTC ``now``."""
    return datetime.now(UTC)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data (principal, request ids).

    :param subject_id: Authenticated identity id, when known.
    :param request_id: Correlation id for logging/tracing.
    """

    subject_id: int | None = None
    request_id: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Centralize error translation.
    * Own the clock so expiry decisions are testable.

    Notes
    -----
    - Services never touch the global session; they always use a Unit of Work.
    - Services never import Flask request state; the API layer passes values in.
    """

    # ---- Configuration defaults (override per subclass if needed) ----
    DEFAULT_READ_ISOLATION = "READ COMMITTED"

    def __init__(self, *, ctx: ServiceContext | None = None, clock: Clock | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context.
        :param clock: Callable returning an aware UTC ``datetime``.
        """
        self.ctx = ctx or ServiceContext()
        self._clock = clock or utc_now

    def now_utc(self) -> datetime:
        """Return the current time from the injected clock."""
        return self._clock()

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(
        self, *, isolation: str | None = None, enforce_db_readonly: bool = True
    ) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param isolation: Transaction isolation level.
        :param enforce_db_readonly: Apply ``SET TRANSACTION READ ONLY`` when supported.
        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION,
            enforce_db_readonly=enforce_db_readonly,
        )

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :returns: Translated exception ready to be re-raised or rendered.
        :rtype: Exception
        """
        # Subclasses first: each error has exactly one status/code pair.
        if isinstance(exc, ExpiredError):
            return api_errors.Unauthorized(str(exc), code="expired")
        if isinstance(exc, TokenMalformedError):
            return api_errors.Unauthorized(str(exc), code="token_malformed")
        if isinstance(exc, LoginStateMismatchError):
            return api_errors.Unauthorized(str(exc), code="login_state_mismatch")
        if isinstance(exc, UnauthorizedError):
            return api_errors.Unauthorized(str(exc))

        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))
        if isinstance(exc, ConflictError):
            return api_errors.Conflict(str(exc))
        if isinstance(exc, InvalidStateError):
            return api_errors.Conflict(str(exc), code="invalid_state")

        if isinstance(exc, FederationTokenError):
            return api_errors.BadGateway(str(exc), code="federation_token_error")
        if isinstance(exc, FederationProfileError):
            return api_errors.BadGateway(str(exc), code="federation_profile_error")
        if isinstance(exc, FederationError):
            return api_errors.BadGateway(str(exc), code="federation_error")

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc

    def error_code(self, exc: Exception) -> str:
        """Return the stable machine code ``exc`` renders with."""
        translated = self.translate_exceptions(exc)
        if isinstance(translated, api_errors.APIError):
            return translated.code
        return "internal_server_error"
