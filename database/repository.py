"""
Credential store: create, look up, patch and delete ``users`` rows.

Rows never leave this module as ORM objects; callers receive frozen
``UserRecord`` values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import User

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they are stored as UTC.
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class DuplicateEmailError(Exception):
    """Raised when the unique constraint on ``users.email`` is violated."""

    def __init__(self, email: str):
        super().__init__(f"Email already registered: {email}")
        self.email = email


@dataclass(frozen=True)
class UserRecord:
    id: int
    email: str
    given_names: str
    surname: str
    password_hash: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: User) -> "UserRecord":
        return cls(
            id=row.id,
            email=row.email,
            given_names=row.given_names,
            surname=row.surname,
            password_hash=row.password_hash,
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
        )


@dataclass(frozen=True)
class UserPatch:
    """Fields that may be changed on an existing user. ``None`` means unchanged."""

    email: Optional[str] = None
    given_names: Optional[str] = None
    surname: Optional[str] = None
    password_hash: Optional[str] = None

    def changes(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository:
    """Data access for the ``users`` table, bound to one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        email: str,
        given_names: str,
        surname: str,
        password_hash: str,
    ) -> UserRecord:
        """Insert a user. Raises ``DuplicateEmailError`` on a taken email."""
        email = normalize_email(email)
        now = datetime.now(timezone.utc)
        row = User(
            email=email,
            given_names=given_names,
            surname=surname,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        self.session.add(row)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise DuplicateEmailError(email) from exc
        logger.debug("Inserted user row id=%s", row.id)
        return UserRecord.from_row(row)

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        result = await self.session.execute(
            select(User).where(User.email == normalize_email(email))
        )
        row = result.scalar_one_or_none()
        return UserRecord.from_row(row) if row is not None else None

    async def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        row = await self.session.get(User, user_id)
        return UserRecord.from_row(row) if row is not None else None

    async def update(self, user_id: int, patch: UserPatch) -> Optional[UserRecord]:
        """
        Apply ``patch`` to the user and refresh ``updated_at``.

        Returns the updated record, or ``None`` when the user does not exist.
        Raises ``ValueError`` for an empty patch and ``DuplicateEmailError``
        when the new email belongs to someone else.
        """
        changes = patch.changes()
        if not changes:
            raise ValueError("No fields to update")

        row = await self.session.get(User, user_id)
        if row is None:
            return None

        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
        target_email = changes.get("email") or row.email
        for name, value in changes.items():
            setattr(row, name, value)
        row.updated_at = datetime.now(timezone.utc)

        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise DuplicateEmailError(target_email) from exc
        return UserRecord.from_row(row)

    async def commit(self) -> None:
        await self.session.commit()

    async def delete(self, user_id: int) -> bool:
        result = await self.session.execute(delete(User).where(User.id == user_id))
        await self.session.flush()
        return result.rowcount > 0
