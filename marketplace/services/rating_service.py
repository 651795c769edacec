"""Course rating aggregation.

  upsert course_reviews (user, course)  -- one review per user per course
  -> count + avg over the course's public reviews
  -> write rating_count / rating_avg / updated_at onto the course

Out-of-range ratings are coerced, not rejected.
"""

from __future__ import annotations

import logging
import math
from uuid import UUID

from marketplace.core.clock import now_ts
from marketplace.core.metrics import RATING_RECOMPUTES
from marketplace.models.review import CourseReview, RatingAggregate
from marketplace.repos.catalog_repo import CatalogRepo
from marketplace.repos.review_repo import ReviewRepo

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def clamp_rating(rating: float) -> int:
    """Floor, then clamp into [1, 5]: 0 -> 1, -5 -> 1, 8 -> 5, 4.7 -> 4.

    Infinities clamp to the nearest bound; NaN raises ValueError.
    """
    if math.isnan(rating):
        raise ValueError("rating must be a number")
    if math.isinf(rating):
        return MAX_RATING if rating > 0 else MIN_RATING
    return max(MIN_RATING, min(MAX_RATING, math.floor(rating)))


async def recompute_course_rating(
    reviews: ReviewRepo,
    catalog: CatalogRepo,
    course_id: UUID,
    *,
    now: int | None = None,
) -> RatingAggregate:
    now = now_ts() if now is None else now

    aggregate = await reviews.aggregate_public(course_id)
    await catalog.update_course_rating(course_id, aggregate, now)
    RATING_RECOMPUTES.inc()

    logger.debug(
        "Rating recomputed course=%s count=%d avg=%.2f",
        course_id,
        aggregate.count,
        aggregate.avg,
        extra={"course_id": str(course_id)},
    )
    return aggregate


async def rate_course(
    reviews: ReviewRepo,
    catalog: CatalogRepo,
    *,
    review_id: UUID,
    user_id: UUID,
    course_id: UUID,
    rating: float,
    title: str | None = None,
    body: str | None = None,
    now: int | None = None,
) -> bool:
    """Create or overwrite the user's review, then refresh the course rating.

    `review_id` is only used when the review is new; a re-submission keeps
    the original id, created_at and moderation flags.
    """
    now = now_ts() if now is None else now

    stored = await reviews.upsert_review(
        CourseReview(
            id=review_id,
            course_id=course_id,
            user_id=user_id,
            rating=clamp_rating(rating),
            title=title,
            body=body,
            created_at=now,
            updated_at=now,
        )
    )
    logger.info(
        "Review saved review=%s user=%s course=%s rating=%d",
        stored.id,
        user_id,
        course_id,
        stored.rating,
        extra={"user_id": str(user_id), "course_id": str(course_id)},
    )

    await recompute_course_rating(reviews, catalog, course_id, now=now)
    return True
