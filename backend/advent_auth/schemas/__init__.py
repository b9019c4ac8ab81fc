"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import CallbackQuerySchema, CompleteRegistrationSchema, RegistrationResponseSchema
from .identity import IdentitySchema, PublicIdentitySchema

__all__ = [
    "CallbackQuerySchema",
    "CompleteRegistrationSchema",
    "IdentitySchema",
    "PublicIdentitySchema",
    "RegistrationResponseSchema",
]
