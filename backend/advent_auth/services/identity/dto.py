"""
DTOs for IdentityService.

Data Transfer Objects isolate the service layer from ORM models, so callers
never hold a session-bound ``Identity`` outside its Unit of Work.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Input DTOs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class PendingIdentityIn:
    """
    Input DTO for creating a PENDING identity after a first federation login.

    :param provider: Provider name (``NAVER``/``KAKAO``).
    :param provider_id: Provider-assigned user id.
    :param email: Email, if the provider shared one.
    :param display_name: Provider nickname, used until registration completes.
    :param avatar_url: Optional profile image URL.
    """

    provider: str
    provider_id: str
    email: str | None
    display_name: str
    avatar_url: str | None = None


@dataclass(frozen=True, slots=True)
class CompleteRegistrationIn:
    """
    Input DTO for the PENDING → ACTIVE transition.

    :param identity_id: Identity to activate.
    :param display_name: Name chosen by the person.
    :param color: One of :data:`advent_auth.models.identity.COLORS`.
    """

    identity_id: int
    display_name: str
    color: str


# --------------------------------------------------------------------------- #
# Output DTOs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class IdentityOut:
    """Full identity view for the owner and for token issuance."""

    id: int
    provider: str
    provider_id: str
    email: str | None
    display_name: str
    avatar_url: str | None
    color: str | None
    share_id: str | None
    state: str

    @property
    def is_active(self) -> bool:
        return self.state == "ACTIVE"


@dataclass(frozen=True, slots=True)
class PublicIdentityOut:
    """What anyone holding a share id may see."""

    share_id: str
    display_name: str
    color: str | None
