"""PUT /v1/courses/{identifier}/review and the public review listing."""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from marketplace.api import dependencies
from marketplace.services import rating_service
from tests.conftest import create_learner, enroll


def _review(client: TestClient, learner, slug: str, rating, **extra):
    return client.put(
        f"/v1/courses/{slug}/review",
        json={"rating": rating, **extra},
        headers=learner.headers,
    )


def test_review_requires_token(client: TestClient, seeded) -> None:
    resp = client.put(f"/v1/courses/{seeded.course.slug}/review", json={"rating": 5})
    assert resp.status_code == 401


def test_review_requires_enrollment(client: TestClient, seeded, learner) -> None:
    resp = _review(client, learner, seeded.course.slug, 5)
    assert resp.status_code == 403


def test_review_rejected_for_revoked_enrollment(client: TestClient, seeded, learner) -> None:
    enroll(learner.user.id, seeded.course.id, status="revoked")
    resp = _review(client, learner, seeded.course.slug, 5)
    assert resp.status_code == 403


def test_review_rejected_for_expired_access(client: TestClient, seeded, learner) -> None:
    enroll(learner.user.id, seeded.course.id, access_expires_at=1)
    resp = _review(client, learner, seeded.course.slug, 5)
    assert resp.status_code == 403


def test_review_updates_course_rating(client: TestClient, seeded) -> None:
    slug = seeded.course.slug
    for i, rating in enumerate((5, 4, 3)):
        learner = create_learner(f"r{i}@example.com")
        enroll(learner.user.id, seeded.course.id)
        resp = _review(client, learner, slug, rating)
        assert resp.status_code == 200

    body = resp.json()
    assert body["rating_count"] == 3
    assert body["rating_avg"] == 4.0


def test_review_resubmission_overwrites(client: TestClient, seeded, learner) -> None:
    enroll(learner.user.id, seeded.course.id)
    _review(client, learner, seeded.course.slug, 1, title="meh")
    resp = _review(client, learner, seeded.course.slug, 5, title="grew on me")

    assert resp.json() == {
        "course_id": str(seeded.course.id),
        "rating_count": 1,
        "rating_avg": 5.0,
    }
    listing = client.get(f"/v1/courses/{seeded.course.slug}/reviews").json()
    assert listing["total"] == 1
    assert listing["items"][0]["title"] == "grew on me"


def test_out_of_range_rating_is_clamped(client: TestClient, seeded, learner) -> None:
    enroll(learner.user.id, seeded.course.id)
    resp = _review(client, learner, seeded.course.slug, 9)
    assert resp.status_code == 200
    assert resp.json()["rating_avg"] == 5.0

    resp = _review(client, learner, seeded.course.slug, 0)
    assert resp.json()["rating_avg"] == 1.0


def test_review_visible_on_next_detail_read(client: TestClient, seeded, learner) -> None:
    enroll(learner.user.id, seeded.course.id)
    before = client.get(f"/v1/courses/{seeded.course.slug}").json()
    assert before["rating_count"] == 0

    _review(client, learner, seeded.course.slug, 4)

    after = client.get(f"/v1/courses/{seeded.course.slug}").json()
    assert after["rating_count"] == 1
    assert after["rating_avg"] == 4.0


def test_review_listing_hides_private_and_includes_author(
    client: TestClient, seeded
) -> None:
    visible = create_learner("visible@example.com", username="visible")
    hidden = create_learner("hidden@example.com")
    for learner in (visible, hidden):
        enroll(learner.user.id, seeded.course.id)
        _review(client, learner, seeded.course.slug, 4, body="solid")
    dependencies.review_repo.set_visibility(hidden.user.id, seeded.course.id, False)

    resp = client.get(f"/v1/courses/{seeded.course.slug}/reviews")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 1
    assert body["page_size"] == 10
    item = body["items"][0]
    assert item["user"]["username"] == "visible"
    assert "email" not in item["user"]


def test_rating_recomputed_outside_review_route_is_served(
    client: TestClient, seeded, learner
) -> None:
    enroll(learner.user.id, seeded.course.id)
    _review(client, learner, seeded.course.slug, 4)
    assert client.get(f"/v1/courses/{seeded.course.slug}").json()["rating_count"] == 1

    # Moderation hides the review and recomputes without going through PUT.
    dependencies.review_repo.set_visibility(learner.user.id, seeded.course.id, False)
    asyncio.run(
        rating_service.recompute_course_rating(
            dependencies.review_repo, dependencies.catalog_repo, seeded.course.id
        )
    )

    detail = client.get(f"/v1/courses/{seeded.course.slug}").json()
    assert detail["rating_count"] == 0
    assert detail["rating_avg"] == 0.0


@pytest.mark.parametrize("rating", ["inf", "-inf", "nan"])
def test_non_finite_rating_is_rejected(client: TestClient, seeded, learner, rating) -> None:
    enroll(learner.user.id, seeded.course.id)
    resp = _review(client, learner, seeded.course.slug, rating)
    assert resp.status_code == 422

    listing = client.get(f"/v1/courses/{seeded.course.slug}/reviews").json()
    assert listing["total"] == 0
