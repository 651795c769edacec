from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class CourseReview:
    """One review per (user_id, course_id); re-submission updates in place."""

    id: UUID
    course_id: UUID
    user_id: UUID
    rating: int  # 1..5
    created_at: int
    updated_at: int
    title: str | None = None
    body: str | None = None
    is_public: bool = True
    is_flagged: bool = False


@dataclass(frozen=True, slots=True)
class RatingAggregate:
    count: int = 0
    avg: float = 0.0
