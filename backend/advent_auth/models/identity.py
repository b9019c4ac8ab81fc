"""Federated identity model and its registration states."""

from __future__ import annotations

import enum

from sqlalchemy import CheckConstraint, Enum, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from advent_auth.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

DISPLAY_NAME_MAX = 50
COLORS = (
    "brown",
    "red",
    "orange",
    "yellow",
    "pink",
    "lightGreen",
    "green",
    "blue",
    "navy",
    "violet",
)


class Provider(str, enum.Enum):
    """External identity providers we federate with."""

    NAVER = "NAVER"
    KAKAO = "KAKAO"

    @classmethod
    def parse(cls, raw: str) -> Provider:
        """Resolve a case-insensitive provider name (``"naver"`` → ``NAVER``).

        :raises ValueError: For unknown providers.
        """
        try:
            return cls(raw.strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported identity provider: {raw!r}") from None


class IdentityState(str, enum.Enum):
    """Registration lifecycle. Transitions only PENDING → ACTIVE."""

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"


class Identity(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    A person known through an external identity provider.

    Fields
    ------
    provider : Provider
        Identity provider the person logged in with. Immutable.
    provider_id : str
        Provider-assigned user id. Immutable; unique per provider.
    email : str | None
        Email reported by the provider. Providers may withhold it.
    display_name : str
        Provider nickname at creation, replaced at registration completion.
    avatar_url : str | None
        Profile image URL reported by the provider.
    color : str | None
        Theme color chosen at registration completion.
    share_id : str | None
        Public UUID assigned once, at completion. ``NULL`` while PENDING.
    state : IdentityState
        ``PENDING`` until registration completes, then ``ACTIVE`` forever.
    """

    __tablename__ = "identities"

    provider: Mapped[Provider] = mapped_column(
        Enum(Provider, name="provider", native_enum=False, length=16), nullable=False
    )
    provider_id: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str | None] = mapped_column(String(254), nullable=True)
    display_name: Mapped[str] = mapped_column(String(DISPLAY_NAME_MAX), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    share_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    state: Mapped[IdentityState] = mapped_column(
        Enum(IdentityState, name="identity_state", native_enum=False, length=16),
        nullable=False,
        default=IdentityState.PENDING,
    )

    __table_args__ = (
        UniqueConstraint("provider", "provider_id", name="uq_identities_provider_provider_id"),
        UniqueConstraint("share_id", name="uq_identities_share_id"),
        CheckConstraint(
            "(share_id IS NULL AND state = 'PENDING') OR "
            "(share_id IS NOT NULL AND state = 'ACTIVE')",
            name="share_id_iff_active",
        ),
        Index("ix_identities_state", "state"),
    )

    @property
    def is_active(self) -> bool:
        return self.state == IdentityState.ACTIVE

    # -------------------- Validators --------------------
    @validates("display_name")
    def _normalize_display_name(self, key: str, value: str) -> str:
        """
        Trim and bound the display name.

        Provider nicknames longer than the column are truncated; they are a
        placeholder until the person picks their own name.
        """
        v = (value or "").strip()
        if not v:
            raise ValueError("Display name is required.")
        return v[:DISPLAY_NAME_MAX]

    @validates("color")
    def _validate_color(self, key: str, value: str | None) -> str | None:
        if value is not None and value not in COLORS:
            raise ValueError(f"Unknown color: {value!r}")
        return value
