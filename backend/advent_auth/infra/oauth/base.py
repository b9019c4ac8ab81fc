# advent_auth/infra/oauth/base.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import requests

from advent_auth.services._shared.errors import (
    FederationError,
    FederationProfileError,
    FederationTokenError,
)
from advent_auth.services._shared.ports import FederationClient, FederationProfile

log = logging.getLogger(__name__)

DISPLAY_NAME_FALLBACK = "guest"
DISPLAY_NAME_MAX = 50


@dataclass(frozen=True, slots=True)
class OAuthProviderSettings:
    """
    Client registration at one identity provider.

    :param client_id: OAuth client id.
    :param client_secret: OAuth client secret. Never logged.
    :param redirect_uri: Callback URL registered with the provider.
    :param timeout: Per-request timeout in seconds.
    """

    client_id: str
    client_secret: str
    redirect_uri: str
    timeout: float = 10.0

    def __repr__(self) -> str:
        return f"OAuthProviderSettings(client_id={self.client_id!r}, redirect_uri={self.redirect_uri!r})"


class OAuthClient(FederationClient):
    """
    Authorization-code flow over ``requests``.

    Subclasses set the endpoints and :attr:`provider`, and implement
    :meth:`_token_params` and :meth:`_parse_profile`. Failures are never
    retried.
    """

    provider: str
    authorize_endpoint: str
    token_endpoint: str
    profile_endpoint: str

    def __init__(
        self, settings: OAuthProviderSettings, *, session: requests.Session | None = None
    ) -> None:
        self.settings = settings
        self.http = session or requests.Session()

    # -------------------- provider specifics --------------------

    def _authorize_params(self, state: str) -> dict[str, str]:
        return {
            "response_type": "code",
            "client_id": self.settings.client_id,
            "redirect_uri": self.settings.redirect_uri,
            "state": state,
        }

    def _token_params(self, code: str, state: str) -> dict[str, str]:
        raise NotImplementedError

    def _parse_profile(self, payload: Mapping[str, Any]) -> FederationProfile:
        raise NotImplementedError

    # -------------------- HTTP --------------------

    def _call(self, method: str, url: str, **kwargs: Any) -> Any:
        """Perform one request and return the decoded JSON body.

        :raises FederationError: On transport errors, non-2xx, or a non-JSON body.
        """
        try:
            resp = self.http.request(method, url, timeout=self.settings.timeout, **kwargs)
            resp.raise_for_status()
        except requests.RequestException as exc:
            log.warning(
                "federation.http_error",
                extra={"provider": self.provider, "endpoint": url},
            )
            raise FederationError(f"{self.provider} request failed") from exc
        try:
            return resp.json()
        except ValueError as exc:
            raise FederationError(f"{self.provider} returned a non-JSON body") from exc

    # -------------------- API --------------------

    def authorization_url(self, state: str) -> str:
        return f"{self.authorize_endpoint}?{urlencode(self._authorize_params(state))}"

    def exchange_code(self, code: str, state: str) -> str:
        body = self._call("POST", self.token_endpoint, data=self._token_params(code, state))
        token = body.get("access_token") if isinstance(body, Mapping) else None
        if not token:
            raise FederationTokenError(f"{self.provider} token response lacks access_token")
        return str(token)

    def fetch_profile(self, access_token: str) -> FederationProfile:
        body = self._call(
            "GET", self.profile_endpoint, headers={"Authorization": f"Bearer {access_token}"}
        )
        if not isinstance(body, Mapping) or not body:
            raise FederationProfileError(f"{self.provider} returned an empty profile")
        return self._parse_profile(body)

    # -------------------- helpers --------------------

    @staticmethod
    def _display_name(*candidates: Any) -> str:
        """First non-blank candidate, trimmed to the column size."""
        for value in candidates:
            if isinstance(value, str) and value.strip():
                return value.strip()[:DISPLAY_NAME_MAX]
        return DISPLAY_NAME_FALLBACK
