from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest

from marketplace.models.course import Course
from marketplace.repos.catalog_repo import InMemoryCatalogRepo
from marketplace.repos.review_repo import InMemoryReviewRepo
from marketplace.services.rating_service import (
    clamp_rating,
    rate_course,
    recompute_course_rating,
)


@pytest.fixture
def repos():
    catalog = InMemoryCatalogRepo()
    reviews = InMemoryReviewRepo()
    course = Course.new(
        instructor_id=uuid4(), title="C", slug="c", now=1, status="published"
    )
    asyncio.run(catalog.add_course(course))
    return catalog, reviews, course


def _rate(catalog, reviews, course, user_id, rating, now=100):
    return asyncio.run(
        rate_course(
            reviews,
            catalog,
            review_id=uuid4(),
            user_id=user_id,
            course_id=course.id,
            rating=rating,
            now=now,
        )
    )


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(0, 1), (-5, 1), (8, 5), (1, 1), (5, 5), (3, 3), (4.7, 4), (0.5, 1)],
)
def test_clamp_rating(raw: float, expected: int) -> None:
    assert clamp_rating(raw) == expected


def test_clamp_rating_infinities_hit_the_bounds() -> None:
    assert clamp_rating(float("inf")) == 5
    assert clamp_rating(float("-inf")) == 1


def test_clamp_rating_rejects_nan() -> None:
    with pytest.raises(ValueError):
        clamp_rating(float("nan"))


def test_rate_course_returns_true_and_updates_course(repos) -> None:
    catalog, reviews, course = repos

    assert _rate(catalog, reviews, course, uuid4(), 4) is True

    stored = asyncio.run(catalog.get_course(course.id))
    assert stored is not None
    assert stored.rating_count == 1
    assert stored.rating_avg == 4.0


def test_out_of_range_rating_is_stored_clamped(repos) -> None:
    catalog, reviews, course = repos
    user_id = uuid4()

    _rate(catalog, reviews, course, user_id, 8)

    review = asyncio.run(reviews.get_for_user(user_id, course.id))
    assert review is not None
    assert review.rating == 5


def test_second_rating_overwrites_first(repos) -> None:
    catalog, reviews, course = repos
    user_id = uuid4()

    _rate(catalog, reviews, course, user_id, 2, now=100)
    first = asyncio.run(reviews.get_for_user(user_id, course.id))
    _rate(catalog, reviews, course, user_id, 5, now=200)
    second = asyncio.run(reviews.get_for_user(user_id, course.id))

    assert first is not None and second is not None
    assert second.id == first.id
    assert second.created_at == 100
    assert second.updated_at == 200
    assert second.rating == 5

    stored = asyncio.run(catalog.get_course(course.id))
    assert stored is not None
    assert stored.rating_count == 1
    assert stored.rating_avg == 5.0


def test_average_over_three_reviewers(repos) -> None:
    catalog, reviews, course = repos

    for rating in (5, 4, 3):
        _rate(catalog, reviews, course, uuid4(), rating)

    stored = asyncio.run(catalog.get_course(course.id))
    assert stored is not None
    assert stored.rating_count == 3
    assert stored.rating_avg == 4.0


def test_average_is_not_rounded(repos) -> None:
    catalog, reviews, course = repos

    for rating in (5, 4, 4):
        _rate(catalog, reviews, course, uuid4(), rating)

    stored = asyncio.run(catalog.get_course(course.id))
    assert stored is not None
    assert stored.rating_avg == pytest.approx(13 / 3)


def test_private_reviews_are_excluded(repos) -> None:
    catalog, reviews, course = repos
    hidden_user = uuid4()

    _rate(catalog, reviews, course, uuid4(), 5)
    _rate(catalog, reviews, course, hidden_user, 1)
    reviews.set_visibility(hidden_user, course.id, False)

    aggregate = asyncio.run(recompute_course_rating(reviews, catalog, course.id))

    assert aggregate.count == 1
    assert aggregate.avg == 5.0


def test_no_public_reviews_resets_to_zero(repos) -> None:
    catalog, reviews, course = repos
    user_id = uuid4()

    _rate(catalog, reviews, course, user_id, 3)
    reviews.set_visibility(user_id, course.id, False)
    asyncio.run(recompute_course_rating(reviews, catalog, course.id, now=300))

    stored = asyncio.run(catalog.get_course(course.id))
    assert stored is not None
    assert stored.rating_count == 0
    assert stored.rating_avg == 0.0
    assert stored.updated_at == 300


def test_resubmission_keeps_moderation_flags(repos) -> None:
    catalog, reviews, course = repos
    user_id = uuid4()

    _rate(catalog, reviews, course, user_id, 1)
    reviews.set_visibility(user_id, course.id, False)
    _rate(catalog, reviews, course, user_id, 5)

    review = asyncio.run(reviews.get_for_user(user_id, course.id))
    assert review is not None
    assert review.is_public is False
    stored = asyncio.run(catalog.get_course(course.id))
    assert stored is not None
    assert stored.rating_count == 0
