"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
machinery. They are the stable contract between the token codec, the
federation clients, the stores and the application services.

The translation to HTTP responses (RFC 7807) is handled by
``advent_auth/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match.

    Returns
    -------
    bool
        True if the IntegrityError mentions the constraint.

    Notes
    -----
    PostgreSQL reports the constraint name; SQLite only reports the columns
    (``UNIQUE constraint failed: identities.provider, identities.provider_id``),
    so callers may pass either form.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories, adapters or domain logic.
    - ``BaseService.translate_exceptions`` maps them to ``APIError``.
    """


# --------------------------------------------------------------------------- #
# Authentication
# --------------------------------------------------------------------------- #


class UnauthorizedError(ServiceError):
    """Credential missing, unverifiable, or of the wrong kind."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class ExpiredError(UnauthorizedError):
    """A token, or the persisted refresh record, is past its expiry."""

    def __init__(self, message: str = "Token expired") -> None:
        super().__init__(message)


class TokenMalformedError(UnauthorizedError):
    """Token is not a well-formed, correctly signed token of a known kind."""

    def __init__(self, message: str = "Malformed token") -> None:
        super().__init__(message)


class LoginStateMismatchError(UnauthorizedError):
    """The OAuth ``state`` echoed by the provider was not issued by us."""

    def __init__(self, message: str = "Login state mismatch") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Lookups and state
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found.

    :param entity: Entity name (e.g., "Identity").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "Identity").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


@dataclass(slots=True)
class InvalidStateError(ServiceError):
    """
    Raised when an identity is not in the state an operation requires.

    :param entity: Entity name.
    :param state: Current state value (e.g. ``"ACTIVE"``).
    :param expected: State the operation needs.
    """

    entity: str
    state: str
    expected: str

    def __str__(self) -> str:
        return f"{self.entity} is {self.state}, expected {self.expected}"


# --------------------------------------------------------------------------- #
# Federation
# --------------------------------------------------------------------------- #


class FederationError(ServiceError):
    """Transport failure or non-2xx answer from an identity provider."""

    def __init__(self, message: str = "Identity provider request failed") -> None:
        super().__init__(message)


class FederationTokenError(FederationError):
    """The provider token response carried no ``access_token``."""

    def __init__(self, message: str = "Identity provider returned no access token") -> None:
        super().__init__(message)


class FederationProfileError(FederationError):
    """The provider profile response was empty or lacked the user id."""

    def __init__(self, message: str = "Identity provider returned no usable profile") -> None:
        super().__init__(message)
