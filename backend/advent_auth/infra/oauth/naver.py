# advent_auth/infra/oauth/naver.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from advent_auth.infra.oauth.base import OAuthClient
from advent_auth.services._shared.errors import FederationProfileError
from advent_auth.services._shared.ports import FederationProfile


class NaverOAuthClient(OAuthClient):
    """Naver Login. The profile sits under the ``response`` envelope."""

    provider = "NAVER"
    authorize_endpoint = "https://nid.naver.com/oauth2.0/authorize"
    token_endpoint = "https://nid.naver.com/oauth2.0/token"
    profile_endpoint = "https://openapi.naver.com/v1/nid/me"

    def _token_params(self, code: str, state: str) -> dict[str, str]:
        return {
            "grant_type": "authorization_code",
            "client_id": self.settings.client_id,
            "client_secret": self.settings.client_secret,
            "code": code,
            "state": state,
        }

    def _parse_profile(self, payload: Mapping[str, Any]) -> FederationProfile:
        data = payload.get("response")
        if not isinstance(data, Mapping) or not data.get("id"):
            raise FederationProfileError("NAVER profile lacks response.id")
        return FederationProfile(
            provider=self.provider,
            provider_id=str(data["id"]),
            email=data.get("email") or None,
            display_name=self._display_name(data.get("name"), data.get("nickname")),
            avatar_url=data.get("profile_image") or None,
        )
