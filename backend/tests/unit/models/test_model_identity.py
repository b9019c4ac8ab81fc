"""Model-level tests for :class:`Identity` and :class:`RefreshToken`."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from advent_auth.models import Identity, RefreshToken
from advent_auth.models.identity import IdentityState, Provider
from sqlalchemy.exc import IntegrityError
from tests.factories.identity import IdentityFactory, RefreshTokenFactory


def test_defaults_to_pending(session):
    identity = Identity(provider=Provider.KAKAO, provider_id="k-1", display_name="Lee")
    session.add(identity)
    session.flush()

    assert identity.state == IdentityState.PENDING
    assert identity.share_id is None
    assert identity.is_active is False
    assert identity.created_at is not None


def test_display_name_is_trimmed_and_truncated():
    identity = Identity(provider=Provider.NAVER, provider_id="n", display_name="  " + "x" * 60)
    assert identity.display_name == "x" * 50


def test_blank_display_name_is_rejected():
    with pytest.raises(ValueError, match="required"):
        Identity(provider=Provider.NAVER, provider_id="n", display_name="   ")


def test_unknown_color_is_rejected():
    with pytest.raises(ValueError, match="Unknown color"):
        Identity(provider=Provider.NAVER, provider_id="n", display_name="a", color="teal")


def test_federation_key_is_unique(session):
    IdentityFactory(provider=Provider.NAVER, provider_id="dup")
    with pytest.raises(IntegrityError), session.begin_nested():
        IdentityFactory(provider=Provider.NAVER, provider_id="dup")


def test_same_provider_id_on_other_provider_is_allowed():
    IdentityFactory(provider=Provider.NAVER, provider_id="same")
    other = IdentityFactory(provider=Provider.KAKAO, provider_id="same")
    assert other.id is not None


def test_active_requires_share_id(session):
    with pytest.raises(IntegrityError), session.begin_nested():
        IdentityFactory(state=IdentityState.ACTIVE, color="red", share_id=None)


def test_pending_cannot_hold_share_id(session):
    with pytest.raises(IntegrityError), session.begin_nested():
        IdentityFactory(share_id="0b7f3c1e-0000-4000-8000-000000000000")


def test_share_id_is_unique(session):
    IdentityFactory(active=True, share_id="11111111-1111-4111-8111-111111111111")
    with pytest.raises(IntegrityError), session.begin_nested():
        IdentityFactory(active=True, share_id="11111111-1111-4111-8111-111111111111")


def test_provider_parse_is_case_insensitive():
    assert Provider.parse(" naver ") is Provider.NAVER
    assert Provider.parse("Kakao") is Provider.KAKAO
    with pytest.raises(ValueError, match="Unsupported"):
        Provider.parse("google")


def test_refresh_token_is_expired_is_strict():
    row = RefreshToken(user_id=1, token="t", expires_at=datetime(2030, 1, 1, tzinfo=UTC))
    assert row.is_expired(datetime(2030, 1, 1, tzinfo=UTC)) is False
    assert row.is_expired(datetime(2030, 1, 1, 0, 0, 1, tzinfo=UTC)) is True


def test_refresh_token_value_is_unique(session):
    RefreshTokenFactory(token="same")
    with pytest.raises(IntegrityError), session.begin_nested():
        RefreshTokenFactory(token="same")
