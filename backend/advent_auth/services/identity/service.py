"""
IdentityService
===============

Aggregate service for the federated ``Identity``:
- Lookup by federation key and by public share id.
- Creation of PENDING identities on first login.
- The one-way PENDING → ACTIVE registration transition.
"""

from __future__ import annotations

import logging
from uuid import uuid4

from sqlalchemy.exc import IntegrityError

from advent_auth.models.identity import COLORS, DISPLAY_NAME_MAX, Identity, IdentityState, Provider
from advent_auth.repositories.identity import IdentityRepository
from advent_auth.services._shared.base import BaseService
from advent_auth.services._shared.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ServiceError,
    violates,
)
from advent_auth.services.identity.dto import (
    CompleteRegistrationIn,
    IdentityOut,
    PendingIdentityIn,
    PublicIdentityOut,
)

log = logging.getLogger(__name__)

# PostgreSQL reports the constraint name, SQLite the column list.
_FEDERATION_KEY_VIOLATIONS = (
    "uq_identities_provider_provider_id",
    "identities.provider, identities.provider_id",
)


def _to_out(identity: Identity) -> IdentityOut:
    return IdentityOut(
        id=identity.id,
        provider=Provider(identity.provider).value,
        provider_id=identity.provider_id,
        email=identity.email,
        display_name=identity.display_name,
        avatar_url=identity.avatar_url,
        color=identity.color,
        share_id=identity.share_id,
        state=IdentityState(identity.state).value,
    )


class IdentityService(BaseService):
    """
    Application service for the ``Identity`` aggregate.

    Identities are never deleted here, and ``share_id`` is assigned exactly
    once, together with the ACTIVE state.
    """

    # --------------------------------------------------------------------- #
    # Lookup
    # --------------------------------------------------------------------- #

    def find_by_federation(self, provider: str, provider_id: str) -> IdentityOut | None:
        """
        Return the identity bound to ``(provider, provider_id)``, if any.

        :param provider: Provider name, case-insensitive.
        :param provider_id: Provider-assigned user id.
        """
        with self.ro_uow() as uow:
            repo: IdentityRepository = uow.identities
            identity = repo.get_by_federation(Provider.parse(provider), provider_id)
            return _to_out(identity) if identity is not None else None

    def find_by_share_id(self, share_id: str) -> IdentityOut | None:
        with self.ro_uow() as uow:
            identity = uow.identities.get_by_share_id(share_id)
            return _to_out(identity) if identity is not None else None

    def get_public(self, share_id: str) -> PublicIdentityOut:
        """
        Public profile behind a share id.

        :raises NotFoundError: Unknown share id.
        """
        found = self.find_by_share_id(share_id)
        if found is None or found.share_id is None:
            raise NotFoundError("Identity", share_id)
        return PublicIdentityOut(
            share_id=found.share_id, display_name=found.display_name, color=found.color
        )

    def get(self, identity_id: int) -> IdentityOut:
        """
        :raises NotFoundError: Unknown identity id.
        """
        with self.ro_uow() as uow:
            identity = uow.identities.get(identity_id)
            if identity is None:
                raise NotFoundError("Identity", identity_id)
            return _to_out(identity)

    def get_active(self, identity_id: int) -> IdentityOut:
        """
        Like :meth:`get`, but only for identities that completed registration.

        :raises NotFoundError: Unknown identity id.
        :raises InvalidStateError: Identity is still PENDING.
        """
        identity = self.get(identity_id)
        if not identity.is_active:
            raise InvalidStateError("Identity", identity.state, IdentityState.ACTIVE.value)
        return identity

    # --------------------------------------------------------------------- #
    # Creation
    # --------------------------------------------------------------------- #

    def create_pending(self, dto: PendingIdentityIn) -> IdentityOut:
        """
        Create a PENDING identity for a first-time federation login.

        :param dto: Profile extracted from the provider.
        :returns: The created identity.
        :raises ConflictError: ``(provider, provider_id)`` already exists,
            including when a concurrent request inserted it first.
        """
        provider = Provider.parse(dto.provider)
        with self.rw_uow() as uow:
            repo: IdentityRepository = uow.identities

            if repo.get_by_federation(provider, dto.provider_id) is not None:
                raise ConflictError("Identity", "federation key already registered")

            try:
                identity = repo.add(
                    Identity(
                        provider=provider,
                        provider_id=dto.provider_id,
                        email=dto.email,
                        display_name=dto.display_name,
                        avatar_url=dto.avatar_url,
                        state=IdentityState.PENDING,
                    )
                )
            except IntegrityError as exc:
                if any(violates(exc, name) for name in _FEDERATION_KEY_VIOLATIONS):
                    raise ConflictError("Identity", "federation key already registered") from exc
                raise

            log.info(
                "identity.created_pending",
                extra={"subject_id": identity.id, "provider": provider.value},
            )
            return _to_out(identity)

    # --------------------------------------------------------------------- #
    # Registration
    # --------------------------------------------------------------------- #

    def complete_registration(self, dto: CompleteRegistrationIn) -> IdentityOut:
        """
        Activate a PENDING identity with the chosen name and color.

        The transition is a single conditional UPDATE, so of two concurrent
        completions exactly one succeeds and the other sees the identity as
        ACTIVE.

        :param dto: Identity id plus the chosen profile.
        :returns: The ACTIVE identity with its new share id.
        :raises ServiceError: Blank/oversized name or unknown color.
        :raises NotFoundError: Unknown identity id.
        :raises InvalidStateError: Identity is not PENDING.
        """
        display_name = (dto.display_name or "").strip()
        if not display_name or len(display_name) > DISPLAY_NAME_MAX:
            raise ServiceError("Display name must be between 1 and 50 characters.")
        if dto.color not in COLORS:
            raise ServiceError(f"Unknown color: {dto.color!r}")

        with self.rw_uow() as uow:
            repo: IdentityRepository = uow.identities
            identity = repo.get(dto.identity_id)
            if identity is None:
                raise NotFoundError("Identity", dto.identity_id)
            if identity.state != IdentityState.PENDING:
                raise InvalidStateError(
                    "Identity", IdentityState(identity.state).value, IdentityState.PENDING.value
                )

            activated = repo.activate(
                dto.identity_id,
                display_name=display_name,
                color=dto.color,
                share_id=str(uuid4()),
            )
            current = repo.get(dto.identity_id, refresh=True)
            if current is None:
                raise NotFoundError("Identity", dto.identity_id)
            if not activated:
                # Lost the race: someone else activated it between read and update.
                raise InvalidStateError(
                    "Identity", IdentityState(current.state).value, IdentityState.PENDING.value
                )

            log.info(
                "identity.activated",
                extra={"subject_id": current.id, "provider": Provider(current.provider).value},
            )
            return _to_out(current)
