from advent_auth.models.identity import COLORS, Identity, IdentityState, Provider
from advent_auth.models.refresh_token import RefreshToken

__all__ = [
    "COLORS",
    "Identity",
    "IdentityState",
    "Provider",
    "RefreshToken",
]
