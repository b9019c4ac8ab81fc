"""Public profile lookup by share id."""

from __future__ import annotations

from flask import Blueprint

from advent_auth.api.deps import json_response, timing
from advent_auth.schemas import PublicIdentitySchema
from advent_auth.services.identity.service import IdentityService

bp = Blueprint("users", __name__)

public_schema = PublicIdentitySchema()


@bp.get("/<share_id>")
@timing
def get_public_profile(share_id: str):
    identity = IdentityService().get_public(share_id)
    return json_response({"data": public_schema.dump(identity)})
