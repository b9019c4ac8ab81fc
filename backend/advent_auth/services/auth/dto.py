# advent_auth/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass

from advent_auth.services.identity.dto import IdentityOut

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class CallbackIn:
    """
    Query parameters a provider sends back to the OAuth callback.

    :param provider: Provider name from the URL (``naver``/``kakao``).
    :param code: Authorization code.
    :param state: CSRF state echoed by the provider.
    """

    provider: str
    code: str
    state: str | None = None


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for completing registration.

    :param subject_id: Identity id taken from the TEMP token.
    :param display_name: Chosen display name.
    :param color: Chosen theme color.
    """

    subject_id: int
    display_name: str
    color: str


# --------------------------- Config DTO ----------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthPolicy:
    """
    Session policy knobs.

    :param require_login_state: Reject callbacks whose ``state`` we did not issue.
    :param rotate_refresh_tokens: Replace the refresh token on every refresh.
    :param login_state_ttl_seconds: Lifetime of an issued ``state``.
    """

    require_login_state: bool = True
    rotate_refresh_tokens: bool = False
    login_state_ttl_seconds: int = 600


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthorizationRedirectOut:
    """Where to send the browser to start a provider login."""

    url: str
    state: str


@dataclass(frozen=True, slots=True)
class SessionTokensOut:
    """
    Tokens handed to the client after a callback.

    Either ``temp_token`` alone (PENDING identity) or ``access_token`` plus
    ``refresh_token`` (ACTIVE identity).
    """

    access_token: str | None = None
    refresh_token: str | None = None
    temp_token: str | None = None


@dataclass(frozen=True, slots=True)
class CallbackOut:
    """
    Outcome of a provider callback.

    :param subject_id: Identity id the tokens were issued for.
    :param is_existing_active_user: ``True`` when the identity was ACTIVE.
    :param tokens: Issued tokens.
    :param share_id: Public share id (ACTIVE identities only).
    """

    subject_id: int
    is_existing_active_user: bool
    tokens: SessionTokensOut
    share_id: str | None = None


@dataclass(frozen=True, slots=True)
class RegistrationOut:
    identity: IdentityOut
    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class RefreshOut:
    """New access token; ``refresh_token`` is set only when rotating."""

    access_token: str
    refresh_token: str | None = None
