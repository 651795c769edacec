from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class User:
    id: UUID
    name: str
    email: str
    password_hash: str | None
    created_at: int
    updated_at: int
    username: str | None = None
    avatar: str | None = None
    bio: str | None = None
    status: str = "active"  # active|banned
    roles: tuple[str, ...] = ("student",)
    last_login_at: int | None = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @staticmethod
    def new(
        *,
        name: str,
        email: str,
        password_hash: str | None,
        now: int,
        username: str | None = None,
        roles: tuple[str, ...] = ("student",),
    ) -> User:
        return User(
            id=uuid4(),
            name=name,
            email=email,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
            username=username,
            roles=roles,
        )
