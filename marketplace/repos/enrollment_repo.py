from __future__ import annotations

from typing import Protocol
from uuid import UUID

from marketplace.models.enrollment import Enrollment


class EnrollmentRepo(Protocol):
    async def get(self, user_id: UUID, course_id: UUID) -> Enrollment | None: ...

    async def add_if_absent(self, enrollment: Enrollment) -> Enrollment:
        """Store the enrollment unless (user_id, course_id) is already enrolled.

        Returns whichever enrollment is stored afterwards.
        """
        ...

    async def list_for_user(
        self, user_id: UUID, *, limit: int, offset: int
    ) -> list[Enrollment]: ...


class InMemoryEnrollmentRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[UUID, UUID], Enrollment] = {}

    async def get(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        return self._store.get((user_id, course_id))

    async def add_if_absent(self, enrollment: Enrollment) -> Enrollment:
        return self._store.setdefault((enrollment.user_id, enrollment.course_id), enrollment)

    async def list_for_user(
        self, user_id: UUID, *, limit: int, offset: int
    ) -> list[Enrollment]:
        found = sorted(
            (e for e in self._store.values() if e.user_id == user_id),
            key=lambda e: e.enrolled_at,
            reverse=True,
        )
        return found[offset : offset + limit]
