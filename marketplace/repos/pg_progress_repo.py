"""PostgreSQL implementation of ProgressRepo.

Both writes are single-statement upserts (INSERT ... ON CONFLICT DO UPDATE)
so concurrent first writes for the same key cannot create duplicates.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.tables import (
    CourseProgressSnapshotRow,
    LectureProgressRow,
    LectureRow,
)
from marketplace.models.progress import LectureProgress, ProgressSnapshot


class PgProgressRepo:
    """Satisfies the ProgressRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert_lecture_progress(self, progress: LectureProgress) -> None:
        stmt = insert(LectureProgressRow).values(
            user_id=progress.user_id,
            lecture_id=progress.lecture_id,
            course_id=progress.course_id,
            status=progress.status,
            last_position_seconds=progress.last_position_seconds,
            completed_at=progress.completed_at,
            updated_at=progress.updated_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[LectureProgressRow.user_id, LectureProgressRow.lecture_id],
            set_={
                "course_id": stmt.excluded.course_id,
                "status": stmt.excluded.status,
                "last_position_seconds": stmt.excluded.last_position_seconds,
                "completed_at": func.coalesce(
                    stmt.excluded.completed_at, LectureProgressRow.completed_at
                ),
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self._session.execute(stmt)

    async def get_lecture_progress(
        self, user_id: UUID, lecture_id: UUID
    ) -> LectureProgress | None:
        row = await self._session.get(LectureProgressRow, (user_id, lecture_id))
        return _row_to_progress(row) if row is not None else None

    async def list_lecture_progress(
        self, user_id: UUID, course_id: UUID
    ) -> list[LectureProgress]:
        stmt = select(LectureProgressRow).where(
            LectureProgressRow.user_id == user_id,
            LectureProgressRow.course_id == course_id,
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_progress(r) for r in rows]

    async def count_published_lectures(self, course_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(LectureRow)
            .where(LectureRow.course_id == course_id, LectureRow.status == "published")
        )
        return int((await self._session.execute(stmt)).scalar_one())

    async def count_completed_lectures(self, user_id: UUID, course_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(LectureProgressRow)
            .where(
                LectureProgressRow.user_id == user_id,
                LectureProgressRow.course_id == course_id,
                LectureProgressRow.status == "completed",
            )
        )
        return int((await self._session.execute(stmt)).scalar_one())

    async def upsert_snapshot(self, snapshot: ProgressSnapshot) -> None:
        stmt = insert(CourseProgressSnapshotRow).values(
            user_id=snapshot.user_id,
            course_id=snapshot.course_id,
            percent=snapshot.percent,
            completed_lectures=snapshot.completed_lectures,
            total_lectures=snapshot.total_lectures,
            updated_at=snapshot.updated_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                CourseProgressSnapshotRow.user_id,
                CourseProgressSnapshotRow.course_id,
            ],
            set_={
                "percent": stmt.excluded.percent,
                "completed_lectures": stmt.excluded.completed_lectures,
                "total_lectures": stmt.excluded.total_lectures,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self._session.execute(stmt)

    async def get_snapshot(
        self, user_id: UUID, course_id: UUID
    ) -> ProgressSnapshot | None:
        row = await self._session.get(CourseProgressSnapshotRow, (user_id, course_id))
        if row is None:
            return None
        return ProgressSnapshot(
            user_id=row.user_id,
            course_id=row.course_id,
            percent=row.percent,
            completed_lectures=row.completed_lectures,
            total_lectures=row.total_lectures,
            updated_at=row.updated_at,
        )


def _row_to_progress(row: LectureProgressRow) -> LectureProgress:
    return LectureProgress(
        user_id=row.user_id,
        lecture_id=row.lecture_id,
        course_id=row.course_id,
        status=row.status,
        last_position_seconds=row.last_position_seconds,
        completed_at=row.completed_at,
        updated_at=row.updated_at,
    )
