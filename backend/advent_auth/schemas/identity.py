"""Identity representations."""

from __future__ import annotations

from marshmallow import Schema, fields


class IdentitySchema(Schema):
    """The caller's own identity (``GET /auth/me``)."""

    id = fields.Integer()
    provider = fields.String()
    email = fields.String(allow_none=True)
    name = fields.String(attribute="display_name")
    color = fields.String(allow_none=True)
    avatar_url = fields.String(allow_none=True)
    share_id = fields.String(allow_none=True)
    state = fields.String()


class PublicIdentitySchema(Schema):
    """What a share link reveals."""

    share_id = fields.String()
    name = fields.String(attribute="display_name")
    color = fields.String(allow_none=True)
