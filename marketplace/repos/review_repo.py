"""Course review repository."""

from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from marketplace.models.review import CourseReview, RatingAggregate


class ReviewRepo(Protocol):
    async def upsert_review(self, review: CourseReview) -> CourseReview:
        """Insert, or update rating/title/body/updated_at of the existing
        (user_id, course_id) review.  Returns the stored review."""
        ...

    async def get_for_user(self, user_id: UUID, course_id: UUID) -> CourseReview | None: ...

    async def aggregate_public(self, course_id: UUID) -> RatingAggregate: ...

    async def list_public(
        self, course_id: UUID, *, limit: int, offset: int
    ) -> tuple[int, list[CourseReview]]: ...


class InMemoryReviewRepo:
    def __init__(self) -> None:
        self._by_key: dict[tuple[UUID, UUID], CourseReview] = {}

    async def upsert_review(self, review: CourseReview) -> CourseReview:
        key = (review.user_id, review.course_id)
        existing = self._by_key.get(key)
        if existing is not None:
            review = replace(
                existing,
                rating=review.rating,
                title=review.title,
                body=review.body,
                updated_at=review.updated_at,
            )
        self._by_key[key] = review
        return review

    async def get_for_user(self, user_id: UUID, course_id: UUID) -> CourseReview | None:
        return self._by_key.get((user_id, course_id))

    async def aggregate_public(self, course_id: UUID) -> RatingAggregate:
        ratings = [r.rating for r in self._public(course_id)]
        if not ratings:
            return RatingAggregate()
        return RatingAggregate(count=len(ratings), avg=sum(ratings) / len(ratings))

    async def list_public(
        self, course_id: UUID, *, limit: int, offset: int
    ) -> tuple[int, list[CourseReview]]:
        found = sorted(
            self._public(course_id), key=lambda r: r.created_at, reverse=True
        )
        return len(found), found[offset : offset + limit]

    def set_visibility(self, user_id: UUID, course_id: UUID, is_public: bool) -> None:
        """Moderation hook used by tests and the seed script."""
        key = (user_id, course_id)
        self._by_key[key] = replace(self._by_key[key], is_public=is_public)

    def _public(self, course_id: UUID) -> list[CourseReview]:
        return [
            r for r in self._by_key.values() if r.course_id == course_id and r.is_public
        ]
