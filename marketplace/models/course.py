from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Category:
    id: UUID
    name: str
    slug: str
    parent_id: UUID | None = None
    sort_order: int = 0

    @staticmethod
    def new(
        *, name: str, slug: str, parent_id: UUID | None = None, sort_order: int = 0
    ) -> Category:
        return Category(
            id=uuid4(), name=name, slug=slug, parent_id=parent_id, sort_order=sort_order
        )


@dataclass(frozen=True, slots=True)
class Course:
    """A course listing.

    `rating_avg` and `rating_count` are derived from the public reviews
    of the course and are only written by the rating aggregator.
    """

    id: UUID
    instructor_id: UUID
    title: str
    slug: str
    created_at: int
    updated_at: int
    category_id: UUID | None = None
    subtitle: str | None = None
    description: str | None = None
    language: str = "id"
    thumbnail_url: str | None = None
    currency: str = "IDR"
    price_base: int = 0
    price_current: int = 0
    status: str = "draft"  # draft|review|published|archived
    rating_avg: float = 0.0
    rating_count: int = 0
    student_count: int = 0
    published_at: int | None = None

    @property
    def is_published(self) -> bool:
        return self.status == "published"

    @staticmethod
    def new(
        *,
        instructor_id: UUID,
        title: str,
        slug: str,
        now: int,
        category_id: UUID | None = None,
        subtitle: str | None = None,
        price_current: int = 0,
        status: str = "draft",
    ) -> Course:
        return Course(
            id=uuid4(),
            instructor_id=instructor_id,
            title=title,
            slug=slug,
            created_at=now,
            updated_at=now,
            category_id=category_id,
            subtitle=subtitle,
            price_base=price_current,
            price_current=price_current,
            status=status,
            published_at=now if status == "published" else None,
        )


@dataclass(frozen=True, slots=True)
class CourseSection:
    id: UUID
    course_id: UUID
    title: str
    sort_order: int = 0

    @staticmethod
    def new(*, course_id: UUID, title: str, sort_order: int = 0) -> CourseSection:
        return CourseSection(
            id=uuid4(), course_id=course_id, title=title, sort_order=sort_order
        )


@dataclass(frozen=True, slots=True)
class Lecture:
    id: UUID
    course_id: UUID
    section_id: UUID
    title: str
    type: str = "video"  # video|article|quiz|assignment|resource|live
    description: str | None = None
    duration_seconds: int | None = None
    is_preview: bool = False
    sort_order: int = 0
    status: str = "draft"  # draft|published
    published_at: int | None = None

    @property
    def is_published(self) -> bool:
        return self.status == "published"

    @staticmethod
    def new(
        *,
        course_id: UUID,
        section_id: UUID,
        title: str,
        sort_order: int = 0,
        type: str = "video",
        status: str = "published",
        duration_seconds: int | None = None,
        is_preview: bool = False,
        now: int | None = None,
    ) -> Lecture:
        return Lecture(
            id=uuid4(),
            course_id=course_id,
            section_id=section_id,
            title=title,
            type=type,
            duration_seconds=duration_seconds,
            is_preview=is_preview,
            sort_order=sort_order,
            status=status,
            published_at=now if status == "published" else None,
        )


@dataclass(frozen=True, slots=True)
class CourseTag:
    course_id: UUID
    tag: str


def normalize_tag(raw: str) -> str:
    """Tags are stored trimmed and lower-cased: " Pandas " -> "pandas"."""
    return raw.strip().lower()
