from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol
from uuid import UUID

from marketplace.models.user import User


class UserRepo(Protocol):
    async def get_by_id(self, user_id: UUID) -> User | None: ...
    async def get_by_email(self, email: str) -> User | None: ...
    async def get_by_username(self, username: str) -> User | None: ...
    async def get_many(self, user_ids: Iterable[UUID]) -> dict[UUID, User]: ...
    async def add(self, user: User) -> None: ...
    async def update_password_hash(self, user_id: UUID, password_hash: str) -> None: ...
    async def touch_login(self, user_id: UUID, now: int) -> None: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._by_email: dict[str, User] = {}
        self._by_id: dict[UUID, User] = {}

    async def get_by_id(self, user_id: UUID) -> User | None:
        return self._by_id.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        return self._by_email.get(email)

    async def get_by_username(self, username: str) -> User | None:
        for user in self._by_id.values():
            if user.username == username:
                return user
        return None

    async def get_many(self, user_ids: Iterable[UUID]) -> dict[UUID, User]:
        return {uid: self._by_id[uid] for uid in set(user_ids) if uid in self._by_id}

    async def add(self, user: User) -> None:
        if user.email in self._by_email:
            raise ValueError("email already exists")
        self._by_email[user.email] = user
        self._by_id[user.id] = user

    async def update_password_hash(self, user_id: UUID, password_hash: str) -> None:
        self._replace(user_id, password_hash=password_hash)

    async def touch_login(self, user_id: UUID, now: int) -> None:
        self._replace(user_id, last_login_at=now)

    def _replace(self, user_id: UUID, **changes: object) -> None:
        u = self._by_id.get(user_id)
        if u is None:
            raise KeyError("user not found")

        updated = replace(u, **changes)  # type: ignore[arg-type]
        self._by_id[user_id] = updated
        self._by_email[updated.email] = updated
