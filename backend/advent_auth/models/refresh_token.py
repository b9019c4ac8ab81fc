"""Persisted refresh token records."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from advent_auth.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin, as_utc


class RefreshToken(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Server-side record of an issued refresh token.

    A refresh token is only honored while its record exists and has not
    expired. Records are removed on logout, on expiry detected during
    refresh, and by the ``tokens purge-expired`` sweep.
    """

    __tablename__ = "refresh_tokens"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("identities.id", ondelete="CASCADE"), nullable=False
    )
    token: Mapped[str] = mapped_column(String(1024), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("token", name="uq_refresh_tokens_token"),
        Index("ix_refresh_tokens_user_id", "user_id"),
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` once ``now`` is past ``expires_at``."""
        return as_utc(now) > as_utc(self.expires_at)
