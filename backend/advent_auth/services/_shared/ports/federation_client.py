from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from advent_auth.services._shared.errors import FederationProfileError, FederationTokenError


@dataclass(frozen=True, slots=True)
class FederationProfile:
    """
    Minimal profile extracted from a provider's user-info response.

    :ivar provider: Provider name (``NAVER``/``KAKAO``).
    :ivar provider_id: Provider-assigned user id, as a string.
    :ivar email: Email, when the person consented to share it.
    :ivar display_name: Nickname or name reported by the provider.
    :ivar avatar_url: Profile image URL, if any.
    """

    provider: str
    provider_id: str
    email: str | None
    display_name: str
    avatar_url: str | None = None


class FederationClient(Protocol):
    """Port for one external identity provider's OAuth2 authorization-code flow."""

    provider: str

    def authorization_url(self, state: str) -> str:
        """Provider URL the browser is sent to at login start."""

    def exchange_code(self, code: str, state: str) -> str:
        """Trade the authorization code for a provider access token.

        :raises FederationError: Transport failure or non-2xx answer.
        :raises FederationTokenError: Response lacks ``access_token``.
        """

    def fetch_profile(self, access_token: str) -> FederationProfile:
        """Load the person's profile with a provider access token.

        :raises FederationError: Transport failure or non-2xx answer.
        :raises FederationProfileError: Empty response or missing user id.
        """


@dataclass
class StubFederationClient(FederationClient):
    """
    Scripted provider used in unit tests.

    ``codes`` maps accepted authorization codes to the profile they yield.
    Unknown codes behave like a provider answering without an access token.
    """

    provider: str
    codes: dict[str, FederationProfile] = field(default_factory=dict)
    authorize_base: str = "https://provider.test/authorize"
    exchanged: list[str] = field(default_factory=list)

    def authorization_url(self, state: str) -> str:
        return f"{self.authorize_base}?state={state}"

    def exchange_code(self, code: str, state: str) -> str:
        if code not in self.codes:
            raise FederationTokenError()
        self.exchanged.append(code)
        return f"provider-token-{code}"

    def fetch_profile(self, access_token: str) -> FederationProfile:
        code = access_token.removeprefix("provider-token-")
        profile = self.codes.get(code)
        if profile is None:
            raise FederationProfileError()
        return profile
