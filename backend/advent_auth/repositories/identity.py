"""Identity repository: federation lookups and the registration transition."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select, update

from advent_auth.models.identity import Identity, IdentityState, Provider
from advent_auth.repositories.base import BaseRepository


class IdentityRepository(BaseRepository[Identity]):
    """Persistence-only repository for :class:`Identity`.

    It never deletes identities and never flips state outside
    :meth:`activate`.
    """

    model = Identity

    def _filterable_fields(self):
        return {
            "provider": Identity.provider,
            "provider_id": Identity.provider_id,
            "share_id": Identity.share_id,
            "state": Identity.state,
        }

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_federation(self, provider: Provider, provider_id: str) -> Identity | None:
        """Fetch the identity bound to ``(provider, provider_id)``.

        :param provider: Identity provider.
        :param provider_id: Provider-assigned user id.
        :returns: Identity or ``None`` when never seen.
        """
        stmt = select(Identity).where(
            Identity.provider == provider, Identity.provider_id == provider_id
        )
        return cast(Identity | None, self.session.execute(stmt).scalars().first())

    def get_by_share_id(self, share_id: str) -> Identity | None:
        """Fetch an ACTIVE identity by its public share id."""
        stmt = select(Identity).where(Identity.share_id == share_id)
        return cast(Identity | None, self.session.execute(stmt).scalars().first())

    # ---------------------------- Transitions ----------------------------

    def activate(self, identity_id: int, *, display_name: str, color: str, share_id: str) -> bool:
        """Flip a PENDING identity to ACTIVE in one conditional UPDATE.

        Display name, color, share id and state are written together, and only
        while the row is still PENDING. Of two concurrent callers at most one
        sees an affected row.

        :returns: ``True`` when this call performed the transition.
        """
        stmt = (
            update(Identity)
            .where(Identity.id == identity_id, Identity.state == IdentityState.PENDING)
            .values(
                display_name=display_name,
                color=color,
                share_id=share_id,
                state=IdentityState.ACTIVE,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return bool(result.rowcount == 1)
