"""Catalog repository: categories, courses, sections and lectures."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Protocol
from uuid import UUID

from marketplace.models.course import (
    Category,
    Course,
    CourseSection,
    CourseTag,
    Lecture,
    normalize_tag,
)
from marketplace.models.review import RatingAggregate

CourseSort = Literal["newest", "popular", "rating", "price_low", "price_high"]


@dataclass(frozen=True, slots=True)
class CourseQuery:
    """Filters for the course listing. `offset`/`limit` come from pagination."""

    limit: int
    offset: int
    q: str | None = None
    category_id: UUID | None = None
    instructor_id: UUID | None = None
    min_price: int | None = None
    max_price: int | None = None
    tag: str | None = None
    sort: CourseSort = "newest"
    status: str = "published"


@dataclass(frozen=True, slots=True)
class InstructorStats:
    """Published-course totals for one instructor."""

    instructor_id: UUID
    course_count: int
    student_count: int
    latest_published_at: int | None


class CatalogRepo(Protocol):
    async def list_categories(self, parent_id: UUID | None) -> list[Category]: ...
    async def get_category(self, category_id: UUID) -> Category | None: ...
    async def get_category_by_slug(self, slug: str) -> Category | None: ...
    async def add_category(self, category: Category) -> None: ...

    async def get_course(self, course_id: UUID) -> Course | None: ...
    async def get_course_by_slug(self, slug: str) -> Course | None: ...
    async def search_courses(self, query: CourseQuery) -> tuple[int, list[Course]]: ...
    async def add_course(self, course: Course) -> None: ...
    async def update_course_rating(
        self, course_id: UUID, rating: RatingAggregate, now: int
    ) -> None: ...
    async def list_instructor_courses(
        self, instructor_id: UUID, *, include_drafts: bool = False
    ) -> list[Course]: ...
    async def list_instructor_stats(
        self, *, limit: int, offset: int
    ) -> tuple[int, list[InstructorStats]]: ...

    async def set_course_tags(self, course_id: UUID, tags: list[str]) -> None: ...
    async def list_course_tags(self, course_ids: list[UUID]) -> list[CourseTag]: ...

    async def list_sections(self, course_id: UUID) -> list[CourseSection]: ...
    async def add_section(self, section: CourseSection) -> None: ...
    async def list_lectures(self, course_id: UUID) -> list[Lecture]: ...
    async def get_lecture(self, lecture_id: UUID) -> Lecture | None: ...
    async def add_lecture(self, lecture: Lecture) -> None: ...


def _matches(course: Course, query: CourseQuery, tags: set[str]) -> bool:
    if course.status != query.status:
        return False
    if query.category_id is not None and course.category_id != query.category_id:
        return False
    if query.instructor_id is not None and course.instructor_id != query.instructor_id:
        return False
    if query.min_price is not None and course.price_current < query.min_price:
        return False
    if query.max_price is not None and course.price_current > query.max_price:
        return False
    if query.tag is not None and query.tag not in tags:
        return False
    if query.q:
        needle = query.q.lower()
        haystack = f"{course.title} {course.subtitle or ''}".lower()
        if needle not in haystack:
            return False
    return True


def _sort_key(sort: CourseSort):
    if sort == "popular":
        return lambda c: -c.student_count
    if sort == "rating":
        return lambda c: -c.rating_avg
    if sort == "price_low":
        return lambda c: c.price_current
    if sort == "price_high":
        return lambda c: -c.price_current
    return lambda c: -(c.published_at or 0)


class InMemoryCatalogRepo:
    def __init__(self) -> None:
        self._categories: dict[UUID, Category] = {}
        self._courses: dict[UUID, Course] = {}
        self._sections: dict[UUID, CourseSection] = {}
        self._lectures: dict[UUID, Lecture] = {}
        self._tags: dict[UUID, set[str]] = {}

    # --- categories ---

    async def list_categories(self, parent_id: UUID | None) -> list[Category]:
        found = [c for c in self._categories.values() if c.parent_id == parent_id]
        return sorted(found, key=lambda c: c.sort_order)

    async def get_category(self, category_id: UUID) -> Category | None:
        return self._categories.get(category_id)

    async def get_category_by_slug(self, slug: str) -> Category | None:
        for category in self._categories.values():
            if category.slug == slug:
                return category
        return None

    async def add_category(self, category: Category) -> None:
        if await self.get_category_by_slug(category.slug) is not None:
            raise ValueError("slug already taken")
        self._categories[category.id] = category

    # --- courses ---

    async def get_course(self, course_id: UUID) -> Course | None:
        return self._courses.get(course_id)

    async def get_course_by_slug(self, slug: str) -> Course | None:
        for course in self._courses.values():
            if course.slug == slug:
                return course
        return None

    async def search_courses(self, query: CourseQuery) -> tuple[int, list[Course]]:
        found = [
            c
            for c in self._courses.values()
            if _matches(c, query, self._tags.get(c.id, set()))
        ]
        found.sort(key=_sort_key(query.sort))
        return len(found), found[query.offset : query.offset + query.limit]

    async def add_course(self, course: Course) -> None:
        if await self.get_course_by_slug(course.slug) is not None:
            raise ValueError("slug already taken")
        self._courses[course.id] = course

    async def update_course_rating(
        self, course_id: UUID, rating: RatingAggregate, now: int
    ) -> None:
        course = self._courses.get(course_id)
        if course is None:
            return
        self._courses[course_id] = replace(
            course,
            rating_avg=rating.avg,
            rating_count=rating.count,
            updated_at=now,
        )

    async def list_instructor_courses(
        self, instructor_id: UUID, *, include_drafts: bool = False
    ) -> list[Course]:
        found = [
            c
            for c in self._courses.values()
            if c.instructor_id == instructor_id and (include_drafts or c.is_published)
        ]
        return sorted(found, key=lambda c: -c.updated_at)

    async def list_instructor_stats(
        self, *, limit: int, offset: int
    ) -> tuple[int, list[InstructorStats]]:
        grouped: dict[UUID, list[Course]] = {}
        for course in self._courses.values():
            if course.is_published:
                grouped.setdefault(course.instructor_id, []).append(course)

        stats = [
            InstructorStats(
                instructor_id=instructor_id,
                course_count=len(courses),
                student_count=sum(c.student_count for c in courses),
                latest_published_at=max((c.published_at or 0) for c in courses) or None,
            )
            for instructor_id, courses in grouped.items()
        ]
        stats.sort(key=lambda s: (-(s.latest_published_at or 0), str(s.instructor_id)))
        return len(stats), stats[offset : offset + limit]

    # --- tags ---

    async def set_course_tags(self, course_id: UUID, tags: list[str]) -> None:
        cleaned = {normalize_tag(t) for t in tags}
        cleaned.discard("")
        self._tags[course_id] = cleaned

    async def list_course_tags(self, course_ids: list[UUID]) -> list[CourseTag]:
        return [
            CourseTag(course_id=course_id, tag=tag)
            for course_id in course_ids
            for tag in sorted(self._tags.get(course_id, ()))
        ]

    # --- curriculum ---

    async def list_sections(self, course_id: UUID) -> list[CourseSection]:
        found = [s for s in self._sections.values() if s.course_id == course_id]
        return sorted(found, key=lambda s: s.sort_order)

    async def add_section(self, section: CourseSection) -> None:
        self._sections[section.id] = section

    async def list_lectures(self, course_id: UUID) -> list[Lecture]:
        found = [lec for lec in self._lectures.values() if lec.course_id == course_id]
        return sorted(found, key=lambda lec: lec.sort_order)

    async def get_lecture(self, lecture_id: UUID) -> Lecture | None:
        return self._lectures.get(lecture_id)

    async def add_lecture(self, lecture: Lecture) -> None:
        self._lectures[lecture.id] = lecture

    def published_lecture_count(self, course_id: UUID) -> int:
        return sum(
            1
            for lec in self._lectures.values()
            if lec.course_id == course_id and lec.is_published
        )
