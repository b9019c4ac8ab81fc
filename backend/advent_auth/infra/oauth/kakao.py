# advent_auth/infra/oauth/kakao.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from advent_auth.infra.oauth.base import OAuthClient
from advent_auth.services._shared.errors import FederationProfileError
from advent_auth.services._shared.ports import FederationProfile


class KakaoOAuthClient(OAuthClient):
    """Kakao Login. Numeric ``id`` at the top level, profile under ``kakao_account``."""

    provider = "KAKAO"
    authorize_endpoint = "https://kauth.kakao.com/oauth/authorize"
    token_endpoint = "https://kauth.kakao.com/oauth/token"
    profile_endpoint = "https://kapi.kakao.com/v2/user/me"

    def _token_params(self, code: str, state: str) -> dict[str, str]:
        # Kakao does not echo ``state`` in the token request.
        return {
            "grant_type": "authorization_code",
            "client_id": self.settings.client_id,
            "client_secret": self.settings.client_secret,
            "redirect_uri": self.settings.redirect_uri,
            "code": code,
        }

    def _parse_profile(self, payload: Mapping[str, Any]) -> FederationProfile:
        user_id = payload.get("id")
        if user_id is None or user_id == "":
            raise FederationProfileError("KAKAO profile lacks id")
        account = payload.get("kakao_account") or {}
        profile = account.get("profile") or {}
        return FederationProfile(
            provider=self.provider,
            provider_id=str(user_id),
            email=account.get("email") or None,
            display_name=self._display_name(profile.get("nickname")),
            avatar_url=profile.get("profile_image_url") or None,
        )
