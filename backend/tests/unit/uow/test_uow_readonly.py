import pytest
from advent_auth.models import Identity
from advent_auth.models.identity import Provider
from advent_auth.uow import SQLAlchemyReadOnlyUnitOfWork as ROuow
from advent_auth.uow import SQLAlchemyUnitOfWork as RWuow
from sqlalchemy import text
from tests.factories.identity import IdentityFactory


def _identity(provider_id: str = "ro-1") -> Identity:
    return Identity(provider=Provider.NAVER, provider_id=provider_id, display_name="ro")


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_blocks_orm_flush_writes(self, session):
        """
        Attempting to flush ORM changes inside the RO UoW raises.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            uow.session.add(_identity())
            uow.session.flush()

    def test_blocks_core_dml(self, session):
        """
        Raw SQL DML is blocked inside the RO UoW.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="SQL statement blocked"):
            uow.session.execute(
                text(
                    "INSERT INTO identities (provider, provider_id, display_name, state) "
                    "VALUES ('NAVER', 'raw', 'raw', 'PENDING')"
                )
            )

    def test_allows_reads(self, session):
        with RWuow() as uow:
            uow.identities.add(_identity("visible"))

        with ROuow() as uow:
            assert uow.identities.count(provider_id="visible") == 1

    def test_disallows_commit(self, session):
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_guards_are_removed_on_exit(self, session):
        with ROuow():
            pass
        IdentityFactory()
        session.flush()

    def test_session_is_usable_after_owned_read_scope(self, session):
        """
        A read scope that opened its own transaction closes it, so a later
        write scope on the same session works.
        """
        with ROuow() as uow:
            assert uow.identities.count(provider_id="after-read") == 0

        with RWuow() as uow:
            uow.identities.add(_identity("after-read"))

        with ROuow() as uow:
            assert uow.identities.count(provider_id="after-read") == 1

    def test_attaches_to_running_transaction(self, session):
        pending = IdentityFactory()
        with ROuow() as uow:
            assert uow.identities.get(pending.id) is not None
        # Still part of the caller's transaction
        assert session.get(Identity, pending.id) is not None


class TestSQLAlchemyUnitOfWork:
    def test_commits_on_success(self, session):
        with RWuow() as uow:
            identity = uow.identities.add(_identity("kept"))
            identity_id = identity.id

        session.expunge_all()
        assert session.get(Identity, identity_id) is not None

    def test_rolls_back_on_error(self, session):
        with pytest.raises(ValueError), RWuow() as uow:
            uow.identities.add(_identity("dropped"))
            raise ValueError("boom")

        with ROuow() as uow:
            assert uow.identities.find_one(provider_id="dropped") is None
