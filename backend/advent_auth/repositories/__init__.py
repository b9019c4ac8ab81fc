"""Repository package exposing SQLAlchemy-backed data access helpers."""

from .base import BaseRepository
from .identity import IdentityRepository
from .refresh_token import RefreshTokenRepository

__all__ = [
    "BaseRepository",
    "IdentityRepository",
    "RefreshTokenRepository",
]
