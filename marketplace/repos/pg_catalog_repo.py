"""PostgreSQL implementation of CatalogRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.tables import (
    CategoryRow,
    CourseRow,
    CourseSectionRow,
    CourseTagRow,
    LectureRow,
)
from marketplace.models.course import (
    Category,
    Course,
    CourseSection,
    CourseTag,
    Lecture,
    normalize_tag,
)
from marketplace.models.review import RatingAggregate
from marketplace.repos.catalog_repo import CourseQuery, InstructorStats

_SORT_COLUMNS = {
    "popular": CourseRow.student_count.desc(),
    "rating": CourseRow.rating_avg.desc(),
    "price_low": CourseRow.price_current.asc(),
    "price_high": CourseRow.price_current.desc(),
    "newest": CourseRow.published_at.desc().nulls_last(),
}


class PgCatalogRepo:
    """Satisfies the CatalogRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # --- categories ---

    async def list_categories(self, parent_id: UUID | None) -> list[Category]:
        if parent_id is None:
            where = CategoryRow.parent_id.is_(None)
        else:
            where = CategoryRow.parent_id == parent_id
        stmt = select(CategoryRow).where(where).order_by(CategoryRow.sort_order)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_category(r) for r in rows]

    async def get_category(self, category_id: UUID) -> Category | None:
        row = await self._session.get(CategoryRow, category_id)
        return _row_to_category(row) if row is not None else None

    async def get_category_by_slug(self, slug: str) -> Category | None:
        stmt = select(CategoryRow).where(CategoryRow.slug == slug)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_category(row) if row is not None else None

    async def add_category(self, category: Category) -> None:
        self._session.add(
            CategoryRow(
                id=category.id,
                parent_id=category.parent_id,
                name=category.name,
                slug=category.slug,
                sort_order=category.sort_order,
            )
        )
        await self._flush_unique()

    # --- courses ---

    async def get_course(self, course_id: UUID) -> Course | None:
        row = await self._session.get(CourseRow, course_id)
        return _row_to_course(row) if row is not None else None

    async def get_course_by_slug(self, slug: str) -> Course | None:
        stmt = select(CourseRow).where(CourseRow.slug == slug)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_course(row) if row is not None else None

    async def search_courses(self, query: CourseQuery) -> tuple[int, list[Course]]:
        where = [CourseRow.status == query.status]
        if query.category_id is not None:
            where.append(CourseRow.category_id == query.category_id)
        if query.instructor_id is not None:
            where.append(CourseRow.instructor_id == query.instructor_id)
        if query.min_price is not None:
            where.append(CourseRow.price_current >= query.min_price)
        if query.max_price is not None:
            where.append(CourseRow.price_current <= query.max_price)
        if query.tag is not None:
            tagged = select(CourseTagRow.course_id).where(CourseTagRow.tag == query.tag)
            where.append(CourseRow.id.in_(tagged))
        if query.q:
            pattern = f"%{query.q}%"
            where.append(
                or_(CourseRow.title.ilike(pattern), CourseRow.subtitle.ilike(pattern))
            )

        total_stmt = select(func.count()).select_from(CourseRow).where(*where)
        total = (await self._session.execute(total_stmt)).scalar_one()

        stmt = (
            select(CourseRow)
            .where(*where)
            .order_by(_SORT_COLUMNS[query.sort], CourseRow.id)
            .limit(query.limit)
            .offset(query.offset)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return int(total), [_row_to_course(r) for r in rows]

    async def add_course(self, course: Course) -> None:
        self._session.add(
            CourseRow(
                id=course.id,
                instructor_id=course.instructor_id,
                category_id=course.category_id,
                title=course.title,
                slug=course.slug,
                subtitle=course.subtitle,
                description=course.description,
                language=course.language,
                thumbnail_url=course.thumbnail_url,
                currency=course.currency,
                price_base=course.price_base,
                price_current=course.price_current,
                status=course.status,
                rating_avg=course.rating_avg,
                rating_count=course.rating_count,
                student_count=course.student_count,
                created_at=course.created_at,
                updated_at=course.updated_at,
                published_at=course.published_at,
            )
        )
        await self._flush_unique()

    async def update_course_rating(
        self, course_id: UUID, rating: RatingAggregate, now: int
    ) -> None:
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course_id)
            .values(rating_avg=rating.avg, rating_count=rating.count, updated_at=now)
        )
        await self._session.execute(stmt)

    async def list_instructor_courses(
        self, instructor_id: UUID, *, include_drafts: bool = False
    ) -> list[Course]:
        stmt = select(CourseRow).where(CourseRow.instructor_id == instructor_id)
        if not include_drafts:
            stmt = stmt.where(CourseRow.status == "published")
        stmt = stmt.order_by(CourseRow.updated_at.desc())
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_course(r) for r in rows]

    async def list_instructor_stats(
        self, *, limit: int, offset: int
    ) -> tuple[int, list[InstructorStats]]:
        published = CourseRow.status == "published"
        total_stmt = select(func.count(func.distinct(CourseRow.instructor_id))).where(
            published
        )
        total = (await self._session.execute(total_stmt)).scalar_one()

        latest = func.max(CourseRow.published_at)
        stmt = (
            select(
                CourseRow.instructor_id,
                func.count(),
                func.coalesce(func.sum(CourseRow.student_count), 0),
                latest,
            )
            .where(published)
            .group_by(CourseRow.instructor_id)
            .order_by(latest.desc().nulls_last(), CourseRow.instructor_id)
            .limit(limit)
            .offset(offset)
        )
        rows = (await self._session.execute(stmt)).all()
        return int(total), [
            InstructorStats(
                instructor_id=instructor_id,
                course_count=int(count),
                student_count=int(students),
                latest_published_at=latest_at,
            )
            for instructor_id, count, students, latest_at in rows
        ]

    # --- tags ---

    async def set_course_tags(self, course_id: UUID, tags: list[str]) -> None:
        cleaned = sorted({normalize_tag(t) for t in tags} - {""})
        await self._session.execute(
            delete(CourseTagRow).where(CourseTagRow.course_id == course_id)
        )
        if cleaned:
            stmt = insert(CourseTagRow).values(
                [{"course_id": course_id, "tag": tag} for tag in cleaned]
            )
            await self._session.execute(stmt.on_conflict_do_nothing())

    async def list_course_tags(self, course_ids: list[UUID]) -> list[CourseTag]:
        if not course_ids:
            return []
        stmt = (
            select(CourseTagRow)
            .where(CourseTagRow.course_id.in_(course_ids))
            .order_by(CourseTagRow.course_id, CourseTagRow.tag)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [CourseTag(course_id=r.course_id, tag=r.tag) for r in rows]

    # --- curriculum ---

    async def list_sections(self, course_id: UUID) -> list[CourseSection]:
        stmt = (
            select(CourseSectionRow)
            .where(CourseSectionRow.course_id == course_id)
            .order_by(CourseSectionRow.sort_order)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            CourseSection(
                id=r.id, course_id=r.course_id, title=r.title, sort_order=r.sort_order
            )
            for r in rows
        ]

    async def add_section(self, section: CourseSection) -> None:
        self._session.add(
            CourseSectionRow(
                id=section.id,
                course_id=section.course_id,
                title=section.title,
                sort_order=section.sort_order,
            )
        )
        await self._session.flush()

    async def list_lectures(self, course_id: UUID) -> list[Lecture]:
        stmt = (
            select(LectureRow)
            .where(LectureRow.course_id == course_id)
            .order_by(LectureRow.sort_order)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_lecture(r) for r in rows]

    async def get_lecture(self, lecture_id: UUID) -> Lecture | None:
        row = await self._session.get(LectureRow, lecture_id)
        return _row_to_lecture(row) if row is not None else None

    async def add_lecture(self, lecture: Lecture) -> None:
        self._session.add(
            LectureRow(
                id=lecture.id,
                course_id=lecture.course_id,
                section_id=lecture.section_id,
                type=lecture.type,
                title=lecture.title,
                description=lecture.description,
                duration_seconds=lecture.duration_seconds,
                is_preview=lecture.is_preview,
                sort_order=lecture.sort_order,
                status=lecture.status,
                published_at=lecture.published_at,
            )
        )
        await self._session.flush()

    async def _flush_unique(self) -> None:
        try:
            await self._session.flush()
        except IntegrityError:
            raise ValueError("slug already taken") from None


def _row_to_category(row: CategoryRow) -> Category:
    return Category(
        id=row.id,
        name=row.name,
        slug=row.slug,
        parent_id=row.parent_id,
        sort_order=row.sort_order,
    )


def _row_to_course(row: CourseRow) -> Course:
    return Course(
        id=row.id,
        instructor_id=row.instructor_id,
        title=row.title,
        slug=row.slug,
        created_at=row.created_at,
        updated_at=row.updated_at,
        category_id=row.category_id,
        subtitle=row.subtitle,
        description=row.description,
        language=row.language,
        thumbnail_url=row.thumbnail_url,
        currency=row.currency,
        price_base=row.price_base,
        price_current=row.price_current,
        status=row.status,
        rating_avg=float(row.rating_avg),
        rating_count=row.rating_count,
        student_count=row.student_count,
        published_at=row.published_at,
    )


def _row_to_lecture(row: LectureRow) -> Lecture:
    return Lecture(
        id=row.id,
        course_id=row.course_id,
        section_id=row.section_id,
        title=row.title,
        type=row.type,
        description=row.description,
        duration_seconds=row.duration_seconds,
        is_preview=row.is_preview,
        sort_order=row.sort_order,
        status=row.status,
        published_at=row.published_at,
    )
