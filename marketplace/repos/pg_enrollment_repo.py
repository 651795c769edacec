"""PostgreSQL implementation of EnrollmentRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.tables import EnrollmentRow
from marketplace.models.enrollment import Enrollment


class PgEnrollmentRepo:
    """Satisfies the EnrollmentRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        stmt = select(EnrollmentRow).where(
            EnrollmentRow.user_id == user_id,
            EnrollmentRow.course_id == course_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_enrollment(row) if row is not None else None

    async def add_if_absent(self, enrollment: Enrollment) -> Enrollment:
        stmt = (
            insert(EnrollmentRow)
            .values(
                id=enrollment.id,
                user_id=enrollment.user_id,
                course_id=enrollment.course_id,
                source=enrollment.source,
                enrolled_at=enrollment.enrolled_at,
                access_expires_at=enrollment.access_expires_at,
                status=enrollment.status,
            )
            .on_conflict_do_nothing(
                index_elements=[EnrollmentRow.user_id, EnrollmentRow.course_id]
            )
        )
        await self._session.execute(stmt)
        stored = await self.get(enrollment.user_id, enrollment.course_id)
        if stored is None:
            raise RuntimeError("enrollment vanished after insert")
        return stored

    async def list_for_user(
        self, user_id: UUID, *, limit: int, offset: int
    ) -> list[Enrollment]:
        stmt = (
            select(EnrollmentRow)
            .where(EnrollmentRow.user_id == user_id)
            .order_by(EnrollmentRow.enrolled_at.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_enrollment(r) for r in rows]


def _row_to_enrollment(row: EnrollmentRow) -> Enrollment:
    return Enrollment(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        enrolled_at=row.enrolled_at,
        source=row.source,
        status=row.status,
        access_expires_at=row.access_expires_at,
    )
