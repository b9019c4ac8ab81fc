# advent_auth/services/auth/service.py
from __future__ import annotations

import logging
import secrets
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from advent_auth.models.identity import IdentityState, Provider
from advent_auth.services._shared.base import BaseService, Clock
from advent_auth.services._shared.errors import (
    ConflictError,
    ExpiredError,
    InvalidStateError,
    LoginStateMismatchError,
    NotFoundError,
    ServiceError,
    TokenMalformedError,
    UnauthorizedError,
)
from advent_auth.services._shared.ports import (
    FederationClient,
    FederationProfile,
    LoginStateStore,
    RefreshTokenStore,
    TokenCodec,
    TokenKind,
)
from advent_auth.services.auth.dto import (
    AuthorizationRedirectOut,
    AuthPolicy,
    CallbackIn,
    CallbackOut,
    RefreshOut,
    RegisterIn,
    RegistrationOut,
    SessionTokensOut,
)
from advent_auth.services.identity.dto import (
    CompleteRegistrationIn,
    IdentityOut,
    PendingIdentityIn,
)
from advent_auth.services.identity.service import IdentityService

log = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Session orchestrator: federation login, registration completion,
    refresh and logout.

    Callback state machine::

        START --code--> FEDERATE --profile--> LOOKUP
        LOOKUP --no match--> CREATE_PENDING --> ISSUE_TEMP
        LOOKUP --PENDING--> ISSUE_TEMP
        LOOKUP --ACTIVE--> ISSUE_ACCESS_REFRESH

    An ACTIVE identity holds at most one refresh record: every new session
    drops the previous records before saving its own.
    """

    def __init__(
        self,
        *,
        identities: IdentityService,
        token_codec: TokenCodec,
        refresh_store: RefreshTokenStore,
        login_states: LoginStateStore,
        clients: Mapping[str, FederationClient],
        policy: AuthPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the service with its collaborators.

        :param identities: Identity aggregate service.
        :param token_codec: Issues and verifies tokens.
        :param refresh_store: Persistent refresh token records.
        :param login_states: Issued OAuth ``state`` values.
        :param clients: Federation clients keyed by provider name (``NAVER``...).
        :param policy: Session policy; defaults to :class:`AuthPolicy`.
        :param clock: Callable returning an aware UTC ``datetime``.
        """
        super().__init__(clock=clock)
        self.identities = identities
        self.tokens = token_codec
        self.refresh_store = refresh_store
        self.login_states = login_states
        self.clients = {name.upper(): client for name, client in clients.items()}
        self.policy = policy or AuthPolicy()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _client(self, provider: str) -> FederationClient:
        try:
            name = Provider.parse(provider).value
        except ValueError:
            raise NotFoundError("Provider", provider) from None
        client = self.clients.get(name)
        if client is None:
            raise NotFoundError("Provider", provider)
        return client

    @staticmethod
    def _identity_claims(identity: IdentityOut) -> dict[str, Any]:
        return {"email": identity.email, "provider": identity.provider}

    def _start_session(self, identity: IdentityOut) -> tuple[str, str]:
        """Issue ACCESS + REFRESH and persist the refresh record."""
        access = self.tokens.issue(TokenKind.ACCESS, identity.id, self._identity_claims(identity))
        refresh = self._issue_refresh(identity.id)
        return access, refresh

    def _issue_refresh(self, subject_id: int, *, replace: str | None = None) -> str:
        refresh = self.tokens.issue(TokenKind.REFRESH, subject_id)
        expires_at = datetime.fromtimestamp(self.tokens.parse(refresh).expires_at, tz=UTC)
        if replace is not None:
            self.refresh_store.delete_by_token(replace)
        else:
            self.refresh_store.delete_all_for_user(subject_id)
        self.refresh_store.save(user_id=subject_id, token=refresh, expires_at=expires_at)
        return refresh

    def _find_or_create(self, profile: FederationProfile) -> IdentityOut:
        found = self.identities.find_by_federation(profile.provider, profile.provider_id)
        if found is not None:
            return found
        try:
            return self.identities.create_pending(
                PendingIdentityIn(
                    provider=profile.provider,
                    provider_id=profile.provider_id,
                    email=profile.email,
                    display_name=profile.display_name,
                    avatar_url=profile.avatar_url,
                )
            )
        except ConflictError:
            # A concurrent callback for the same person inserted first.
            winner = self.identities.find_by_federation(profile.provider, profile.provider_id)
            if winner is None:
                raise
            return winner

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def begin_login(self, provider: str) -> AuthorizationRedirectOut:
        """
        Start a provider login.

        :param provider: Provider name, case-insensitive.
        :returns: Provider authorize URL and the issued ``state``.
        :raises NotFoundError: Unknown or unconfigured provider.
        """
        client = self._client(provider)
        state = secrets.token_urlsafe(32)
        self.login_states.put(state, client.provider, self.policy.login_state_ttl_seconds)
        return AuthorizationRedirectOut(url=client.authorization_url(state), state=state)

    def handle_callback(self, dto: CallbackIn) -> CallbackOut:
        """
        Finish a provider login and issue tokens.

        :param dto: Provider, authorization code and echoed state.
        :returns: TEMP token for new/PENDING identities, ACCESS + REFRESH
            for ACTIVE ones.
        :raises NotFoundError: Unknown provider.
        :raises LoginStateMismatchError: ``state`` missing, unknown, expired,
            or issued for another provider.
        :raises ServiceError: Missing authorization code.
        :raises FederationError: Provider call failed (token or profile).
        """
        client = self._client(dto.provider)

        if self.policy.require_login_state:
            owner = self.login_states.consume(dto.state) if dto.state else None
            if owner != client.provider:
                log.warning("auth.login_state_mismatch", extra={"provider": client.provider})
                raise LoginStateMismatchError()

        if not dto.code:
            raise ServiceError("Missing authorization code.")

        provider_token = client.exchange_code(dto.code, dto.state or "")
        profile = client.fetch_profile(provider_token)
        identity = self._find_or_create(profile)

        if identity.state == IdentityState.ACTIVE.value:
            access, refresh = self._start_session(identity)
            log.info(
                "auth.login.active",
                extra={"subject_id": identity.id, "provider": identity.provider},
            )
            return CallbackOut(
                subject_id=identity.id,
                is_existing_active_user=True,
                tokens=SessionTokensOut(access_token=access, refresh_token=refresh),
                share_id=identity.share_id,
            )

        temp = self.tokens.issue(TokenKind.TEMP, identity.id, self._identity_claims(identity))
        log.info(
            "auth.login.pending", extra={"subject_id": identity.id, "provider": identity.provider}
        )
        return CallbackOut(
            subject_id=identity.id,
            is_existing_active_user=False,
            tokens=SessionTokensOut(temp_token=temp),
        )

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def complete_registration(self, dto: RegisterIn) -> RegistrationOut:
        """
        Activate the caller's PENDING identity and start a full session.

        :param dto: Subject id from the TEMP token plus the chosen profile.
        :raises ConflictError: Registration already completed.
        :raises InvalidStateError: Identity in any other non-PENDING state.
        :raises NotFoundError: Unknown identity.
        """
        try:
            identity = self.identities.complete_registration(
                CompleteRegistrationIn(
                    identity_id=dto.subject_id,
                    display_name=dto.display_name,
                    color=dto.color,
                )
            )
        except InvalidStateError as exc:
            if exc.state == IdentityState.ACTIVE.value:
                raise ConflictError("Identity", "registration already completed") from exc
            raise

        access, refresh = self._start_session(identity)
        return RegistrationOut(identity=identity, access_token=access, refresh_token=refresh)

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, refresh_token: str | None) -> RefreshOut:
        """
        Issue a new ACCESS token from a REFRESH token.

        :param refresh_token: Token from the ``refreshToken`` cookie.
        :raises UnauthorizedError: Missing, malformed, or non-REFRESH token.
        :raises ExpiredError: Token or record expired; the record is deleted.
        :raises NotFoundError: No record for the token (logged out or replaced).
        """
        if not refresh_token:
            raise UnauthorizedError("Refresh token required")
        try:
            claims = self.tokens.parse(refresh_token)
        except ExpiredError:
            self.refresh_store.delete_by_token(refresh_token)
            raise
        except TokenMalformedError as exc:
            raise UnauthorizedError("Invalid refresh token") from exc
        if claims.kind is not TokenKind.REFRESH:
            raise UnauthorizedError("Refresh token required")

        record = self.refresh_store.find_by_token(refresh_token)
        if record is None:
            raise NotFoundError("RefreshToken", claims.jti)
        if record.is_expired(self.now_utc()):
            self.refresh_store.delete_by_token(refresh_token)
            raise ExpiredError("Refresh token expired")
        if record.user_id != claims.subject_id:
            raise UnauthorizedError("Invalid refresh token")

        identity = self.identities.get(record.user_id)
        access = self.tokens.issue(TokenKind.ACCESS, identity.id, self._identity_claims(identity))
        rotated = None
        if self.policy.rotate_refresh_tokens:
            rotated = self._issue_refresh(identity.id, replace=refresh_token)
        log.info("auth.refresh", extra={"subject_id": identity.id})
        return RefreshOut(access_token=access, refresh_token=rotated)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, refresh_token: str | None) -> bool:
        """
        Forget a refresh token. Absent or unknown tokens are a no-op.

        :returns: ``True`` when a record was deleted.
        """
        if not refresh_token:
            return False
        deleted = self.refresh_store.delete_by_token(refresh_token)
        log.info("auth.logout", extra={"deleted": deleted})
        return deleted
