"""Service-level tests for :class:`IdentityService`."""

from __future__ import annotations

import uuid

import pytest
from advent_auth.models.identity import IdentityState, Provider
from advent_auth.repositories.identity import IdentityRepository
from advent_auth.services._shared.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ServiceError,
)
from advent_auth.services.identity.dto import CompleteRegistrationIn, PendingIdentityIn
from advent_auth.services.identity.service import IdentityService
from tests.factories.identity import IdentityFactory


@pytest.fixture
def service() -> IdentityService:
    return IdentityService()


def _pending_in(**overrides) -> PendingIdentityIn:
    data = {
        "provider": "naver",
        "provider_id": "nv-42",
        "email": "kim@naver.test",
        "display_name": "Kim",
        "avatar_url": None,
    }
    data.update(overrides)
    return PendingIdentityIn(**data)


class TestCreatePending:
    def test_lookup_then_create_for_first_time_login(self, service):
        assert service.find_by_federation("naver", "nv-first") is None

        out = service.create_pending(_pending_in(provider_id="nv-first"))

        assert out.state == IdentityState.PENDING.value
        assert service.find_by_federation("NAVER", "nv-first").id == out.id

    def test_creates_pending_identity(self, service):
        out = service.create_pending(_pending_in())

        assert out.id is not None
        assert out.provider == "NAVER"
        assert out.provider_id == "nv-42"
        assert out.state == "PENDING"
        assert out.share_id is None
        assert out.is_active is False

    def test_duplicate_federation_key_conflicts(self, service):
        service.create_pending(_pending_in())
        with pytest.raises(ConflictError):
            service.create_pending(_pending_in(provider="NAVER"))

    def test_same_id_on_other_provider_is_distinct(self, service):
        naver = service.create_pending(_pending_in())
        kakao = service.create_pending(_pending_in(provider="KAKAO"))
        assert naver.id != kakao.id

    def test_unknown_provider(self, service):
        with pytest.raises(ValueError):
            service.create_pending(_pending_in(provider="google"))


class TestLookup:
    def test_find_by_federation(self, service):
        created = IdentityFactory(provider=Provider.KAKAO, provider_id="kk-1")
        found = service.find_by_federation("kakao", "kk-1")

        assert found is not None and found.id == created.id
        assert service.find_by_federation("KAKAO", "other") is None

    def test_get_unknown(self, service):
        with pytest.raises(NotFoundError):
            service.get(999_999)

    def test_get_active_rejects_pending(self, service):
        pending = IdentityFactory()
        with pytest.raises(InvalidStateError) as exc:
            service.get_active(pending.id)
        assert exc.value.state == "PENDING"

    def test_get_public(self, service):
        active = IdentityFactory(active=True, display_name="Park", color="navy")
        public = service.get_public(active.share_id)

        assert public.share_id == active.share_id
        assert public.display_name == "Park"
        assert public.color == "navy"

    def test_get_public_unknown(self, service):
        with pytest.raises(NotFoundError):
            service.get_public(str(uuid.uuid4()))


class TestCompleteRegistration:
    def test_activates_and_assigns_share_id(self, service):
        pending = IdentityFactory(display_name="provider-nick")

        out = service.complete_registration(
            CompleteRegistrationIn(identity_id=pending.id, display_name="  Kim  ", color="pink")
        )

        assert out.state == "ACTIVE"
        assert out.display_name == "Kim"
        assert out.color == "pink"
        assert uuid.UUID(out.share_id).version == 4

    def test_second_completion_is_rejected(self, service):
        pending = IdentityFactory()
        first = service.complete_registration(
            CompleteRegistrationIn(identity_id=pending.id, display_name="Kim", color="red")
        )

        with pytest.raises(InvalidStateError) as exc:
            service.complete_registration(
                CompleteRegistrationIn(identity_id=pending.id, display_name="Lee", color="blue")
            )

        assert exc.value.state == "ACTIVE"
        assert service.get(pending.id).share_id == first.share_id
        assert service.get(pending.id).display_name == "Kim"

    def test_lost_race_is_reported_as_active(self, service, monkeypatch):
        """Another request activates the row between our read and our UPDATE."""
        pending = IdentityFactory()
        original = IdentityRepository.activate

        def racing_activate(self, identity_id, **kwargs):
            original(
                self, identity_id, display_name="Winner", color="violet", share_id=str(uuid.uuid4())
            )
            return original(self, identity_id, **kwargs)

        monkeypatch.setattr(IdentityRepository, "activate", racing_activate)

        with pytest.raises(InvalidStateError) as exc:
            service.complete_registration(
                CompleteRegistrationIn(identity_id=pending.id, display_name="Loser", color="red")
            )
        assert exc.value.state == IdentityState.ACTIVE.value

    def test_unknown_identity(self, service):
        with pytest.raises(NotFoundError):
            service.complete_registration(
                CompleteRegistrationIn(identity_id=424242, display_name="Kim", color="red")
            )

    @pytest.mark.parametrize("name", ["", "   ", "x" * 51])
    def test_rejects_bad_names(self, service, name):
        pending = IdentityFactory()
        with pytest.raises(ServiceError):
            service.complete_registration(
                CompleteRegistrationIn(identity_id=pending.id, display_name=name, color="red")
            )
        assert service.get(pending.id).state == "PENDING"

    def test_rejects_unknown_color(self, service):
        pending = IdentityFactory()
        with pytest.raises(ServiceError, match="color"):
            service.complete_registration(
                CompleteRegistrationIn(identity_id=pending.id, display_name="Kim", color="teal")
            )
