"""PostgreSQL implementation of ReviewRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.tables import CourseReviewRow
from marketplace.models.review import CourseReview, RatingAggregate


class PgReviewRepo:
    """Satisfies the ReviewRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert_review(self, review: CourseReview) -> CourseReview:
        stmt = insert(CourseReviewRow).values(
            id=review.id,
            course_id=review.course_id,
            user_id=review.user_id,
            rating=review.rating,
            title=review.title,
            body=review.body,
            is_public=review.is_public,
            is_flagged=review.is_flagged,
            created_at=review.created_at,
            updated_at=review.updated_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[CourseReviewRow.user_id, CourseReviewRow.course_id],
            set_={
                "rating": stmt.excluded.rating,
                "title": stmt.excluded.title,
                "body": stmt.excluded.body,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(CourseReviewRow)
        # populate_existing: the row may already sit in the identity map
        # with pre-update values.
        result = await self._session.execute(
            stmt, execution_options={"populate_existing": True}
        )
        return _row_to_review(result.scalar_one())

    async def get_for_user(self, user_id: UUID, course_id: UUID) -> CourseReview | None:
        stmt = select(CourseReviewRow).where(
            CourseReviewRow.user_id == user_id,
            CourseReviewRow.course_id == course_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_review(row) if row is not None else None

    async def aggregate_public(self, course_id: UUID) -> RatingAggregate:
        stmt = select(
            func.count(),
            func.coalesce(func.avg(CourseReviewRow.rating), 0),
        ).where(
            CourseReviewRow.course_id == course_id,
            CourseReviewRow.is_public.is_(True),
        )
        count, avg = (await self._session.execute(stmt)).one()
        # avg() over integers comes back as Decimal
        return RatingAggregate(count=int(count), avg=float(avg))

    async def list_public(
        self, course_id: UUID, *, limit: int, offset: int
    ) -> tuple[int, list[CourseReview]]:
        where = (
            CourseReviewRow.course_id == course_id,
            CourseReviewRow.is_public.is_(True),
        )
        total_stmt = select(func.count()).select_from(CourseReviewRow).where(*where)
        total = (await self._session.execute(total_stmt)).scalar_one()

        stmt = (
            select(CourseReviewRow)
            .where(*where)
            .order_by(CourseReviewRow.created_at.desc(), CourseReviewRow.id)
            .limit(limit)
            .offset(offset)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return int(total), [_row_to_review(r) for r in rows]


def _row_to_review(row: CourseReviewRow) -> CourseReview:
    return CourseReview(
        id=row.id,
        course_id=row.course_id,
        user_id=row.user_id,
        rating=row.rating,
        created_at=row.created_at,
        updated_at=row.updated_at,
        title=row.title,
        body=row.body,
        is_public=row.is_public,
        is_flagged=row.is_flagged,
    )
