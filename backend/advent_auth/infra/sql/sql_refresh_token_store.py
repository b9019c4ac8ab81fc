# advent_auth/infra/sql/sql_refresh_token_store.py
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from advent_auth.models.base import as_utc
from advent_auth.models.refresh_token import RefreshToken
from advent_auth.services._shared.ports import RefreshRecordView, RefreshTokenStore
from advent_auth.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork


@dataclass(slots=True)
class SQLRefreshTokenStore(RefreshTokenStore):
    """
    Refresh token records in the ``refresh_tokens`` table.

    Each call runs in its own read-write Unit of Work, so a saved record is
    committed before the caller hands the token out.

    :param uow_factory: Builds the Unit of Work (overridable in tests).
    """

    uow_factory: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork

    @staticmethod
    def _view(row: RefreshToken) -> RefreshRecordView:
        return RefreshRecordView(
            token=row.token, user_id=int(row.user_id), expires_at=as_utc(row.expires_at)
        )

    def save(self, *, user_id: int, token: str, expires_at: datetime) -> None:
        with self.uow_factory() as uow:
            uow.refresh_tokens.add(
                RefreshToken(user_id=int(user_id), token=token, expires_at=as_utc(expires_at))
            )

    def find_by_token(self, token: str) -> RefreshRecordView | None:
        with self.uow_factory() as uow:
            row = uow.refresh_tokens.get_by_token(token)
            return self._view(row) if row is not None else None

    def delete_by_token(self, token: str) -> bool:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.delete_by_token(token) > 0

    def delete_all_for_user(self, user_id: int) -> int:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.delete_by_user(int(user_id))

    def purge_expired(self, as_of: datetime) -> int:
        cutoff = as_of if as_of.tzinfo else as_of.replace(tzinfo=UTC)
        with self.uow_factory() as uow:
            return uow.refresh_tokens.delete_expired(cutoff.astimezone(UTC))
