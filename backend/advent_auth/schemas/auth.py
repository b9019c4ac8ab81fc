"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate, validates

from advent_auth.models.identity import COLORS

NAME_MIN = 1
NAME_MAX = 10


class CompleteRegistrationSchema(Schema):
    """Body of ``POST /auth/users``: the profile chosen by a PENDING identity."""

    name = fields.String(required=True)
    color = fields.String(required=True, validate=validate.OneOf(COLORS))

    @validates("name")
    def _validate_name(self, value: str, **kwargs) -> None:
        if not NAME_MIN <= len(value.strip()) <= NAME_MAX:
            raise ValidationError(f"Length must be between {NAME_MIN} and {NAME_MAX}.")

    @post_load
    def _strip_name(self, data, **kwargs):
        data["name"] = data["name"].strip()
        return data


class CallbackQuerySchema(Schema):
    """Query string a provider appends to the OAuth callback."""

    class Meta:
        unknown = EXCLUDE

    code = fields.String(load_default=None)
    state = fields.String(load_default=None)
    error = fields.String(load_default=None)
    error_description = fields.String(load_default=None)


class RegistrationResponseSchema(Schema):
    """Payload returned once registration completes."""

    share_id = fields.String(required=True)
