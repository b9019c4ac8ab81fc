"""Refresh token repository."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, select

from advent_auth.models.refresh_token import RefreshToken
from advent_auth.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`."""

    model = RefreshToken

    def _filterable_fields(self):
        return {"user_id": RefreshToken.user_id, "token": RefreshToken.token}

    def get_by_token(self, token: str) -> RefreshToken | None:
        stmt = select(RefreshToken).where(RefreshToken.token == token)
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def delete_by_token(self, token: str) -> int:
        """Delete the record for ``token``; return the number of rows removed."""
        stmt = delete(RefreshToken).where(RefreshToken.token == token)
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_by_user(self, user_id: int) -> int:
        """Delete every record owned by ``user_id``."""
        stmt = delete(RefreshToken).where(RefreshToken.user_id == user_id)
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_expired(self, as_of: datetime) -> int:
        """Delete records whose ``expires_at`` is strictly before ``as_of``."""
        stmt = delete(RefreshToken).where(RefreshToken.expires_at < as_of)
        return int(self.session.execute(stmt).rowcount or 0)
