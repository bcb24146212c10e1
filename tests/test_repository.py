"""
Tests for the credential store against a real (temporary) SQLite database.
"""

import pytest
from sqlalchemy import func, select

from database.models import User
from database.repository import DuplicateEmailError, UserPatch, UserRepository


async def _create(repo: UserRepository, email: str = "a@x.com"):
    return await repo.create(
        email=email,
        given_names="Ana",
        surname="Diaz",
        password_hash="$2b$04$hash",
    )


class TestCreateAndFind:
    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamps(self, database):
        async with database.session() as session:
            user = await _create(UserRepository(session))

        assert isinstance(user.id, int)
        assert user.email == "a@x.com"
        assert user.created_at == user.updated_at
        assert user.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_email_is_normalized(self, database):
        async with database.session() as session:
            user = await _create(UserRepository(session), email="  Ana@X.com ")
        assert user.email == "ana@x.com"

        async with database.session() as session:
            found = await UserRepository(session).find_by_email("ANA@x.COM")
        assert found is not None
        assert found.id == user.id

    @pytest.mark.asyncio
    async def test_find_by_id(self, database):
        async with database.session() as session:
            user = await _create(UserRepository(session))

        async with database.session() as session:
            found = await UserRepository(session).find_by_id(user.id)
        assert found == user

    @pytest.mark.asyncio
    async def test_missing_user_returns_none(self, database):
        async with database.session() as session:
            repo = UserRepository(session)
            assert await repo.find_by_id(999) is None
            assert await repo.find_by_email("nobody@x.com") is None

    @pytest.mark.asyncio
    async def test_records_are_immutable(self, database):
        async with database.session() as session:
            user = await _create(UserRepository(session))
        with pytest.raises(AttributeError):
            user.email = "b@x.com"


class TestUniqueness:
    @pytest.mark.asyncio
    async def test_duplicate_email_raises(self, database):
        async with database.session() as session:
            first = await _create(UserRepository(session))

        async with database.session() as session:
            with pytest.raises(DuplicateEmailError):
                await _create(UserRepository(session), email="A@X.COM")

        async with database.session() as session:
            repo = UserRepository(session)
            count = await session.scalar(
                select(func.count()).select_from(User).where(User.email == "a@x.com")
            )
            assert count == 1
            assert await repo.find_by_id(first.id) == first


class TestUpdate:
    @pytest.mark.asyncio
    async def test_patch_applies_only_given_fields(self, database):
        async with database.session() as session:
            user = await _create(UserRepository(session))

        async with database.session() as session:
            updated = await UserRepository(session).update(user.id, UserPatch(surname="Lopez"))

        assert updated.surname == "Lopez"
        assert updated.given_names == "Ana"
        assert updated.email == "a@x.com"
        assert updated.created_at == user.created_at
        assert updated.updated_at >= user.updated_at

    @pytest.mark.asyncio
    async def test_patch_normalizes_email(self, database):
        async with database.session() as session:
            user = await _create(UserRepository(session))

        async with database.session() as session:
            updated = await UserRepository(session).update(user.id, UserPatch(email="New@X.com"))
        assert updated.email == "new@x.com"

    @pytest.mark.asyncio
    async def test_empty_patch_rejected(self, database):
        async with database.session() as session:
            user = await _create(UserRepository(session))
            with pytest.raises(ValueError):
                await UserRepository(session).update(user.id, UserPatch())

    @pytest.mark.asyncio
    async def test_update_missing_user_returns_none(self, database):
        async with database.session() as session:
            assert await UserRepository(session).update(999, UserPatch(surname="Lopez")) is None

    @pytest.mark.asyncio
    async def test_update_to_taken_email_raises(self, database):
        async with database.session() as session:
            repo = UserRepository(session)
            await _create(repo, email="a@x.com")
            other = await _create(repo, email="b@x.com")

        async with database.session() as session:
            with pytest.raises(DuplicateEmailError):
                await UserRepository(session).update(other.id, UserPatch(email="a@x.com"))


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete(self, database):
        async with database.session() as session:
            user = await _create(UserRepository(session))

        async with database.session() as session:
            assert await UserRepository(session).delete(user.id) is True

        async with database.session() as session:
            repo = UserRepository(session)
            assert await repo.find_by_id(user.id) is None
            assert await repo.delete(user.id) is False
