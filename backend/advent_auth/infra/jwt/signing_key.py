# advent_auth/infra/jwt/signing_key.py
from __future__ import annotations

from dataclasses import dataclass, field

MIN_SECRET_BYTES = 32
ALGORITHM = "HS512"


@dataclass(frozen=True, slots=True)
class SigningKey:
    """
    Immutable HMAC secret shared by every token operation.

    Built once at startup from ``JWT_SECRET_KEY``. The secret never appears
    in ``repr`` or logs.

    :param secret: Raw secret bytes (at least 32).
    :raises ValueError: If the secret is shorter than 32 bytes.
    """

    secret: bytes = field(repr=False)
    algorithm: str = ALGORITHM

    def __post_init__(self) -> None:
        if len(self.secret) < MIN_SECRET_BYTES:
            raise ValueError(
                f"JWT signing secret must be at least {MIN_SECRET_BYTES} bytes long."
            )

    @classmethod
    def from_text(cls, secret: str) -> SigningKey:
        """Build a key from a UTF-8 string (as read from config/env)."""
        return cls(secret=(secret or "").encode("utf-8"))
