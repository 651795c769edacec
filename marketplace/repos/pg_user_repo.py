"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.tables import UserRow
from marketplace.models.user import User


class PgUserRepo:
    """Satisfies the UserRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        return await self._one(select(UserRow).where(UserRow.id == user_id))

    async def get_by_email(self, email: str) -> User | None:
        return await self._one(select(UserRow).where(UserRow.email == email))

    async def get_by_username(self, username: str) -> User | None:
        return await self._one(select(UserRow).where(UserRow.username == username))

    async def get_many(self, user_ids: Iterable[UUID]) -> dict[UUID, User]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        stmt = select(UserRow).where(UserRow.id.in_(ids))
        rows = (await self._session.execute(stmt)).scalars().all()
        return {row.id: _row_to_user(row) for row in rows}

    async def add(self, user: User) -> None:
        row = UserRow(
            id=user.id,
            name=user.name,
            username=user.username,
            email=user.email,
            password_hash=user.password_hash,
            avatar=user.avatar,
            bio=user.bio,
            status=user.status,
            roles=list(user.roles),
            created_at=user.created_at,
            updated_at=user.updated_at,
            last_login_at=user.last_login_at,
        )
        self._session.add(row)
        try:
            await self._session.flush()
        except IntegrityError:
            raise ValueError("email already exists") from None

    async def update_password_hash(self, user_id: UUID, password_hash: str) -> None:
        stmt = (
            update(UserRow)
            .where(UserRow.id == user_id)
            .values(password_hash=password_hash)
        )
        await self._session.execute(stmt)

    async def touch_login(self, user_id: UUID, now: int) -> None:
        stmt = update(UserRow).where(UserRow.id == user_id).values(last_login_at=now)
        await self._session.execute(stmt)

    async def _one(self, stmt) -> User | None:
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_user(row)


def _row_to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        created_at=row.created_at,
        updated_at=row.updated_at,
        username=row.username,
        avatar=row.avatar,
        bio=row.bio,
        status=row.status,
        roles=tuple(row.roles) if row.roles else (),
        last_login_at=row.last_login_at,
    )
