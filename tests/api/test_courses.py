"""Catalog listing, course detail, curriculum and enrollment endpoints."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from uuid import uuid4

from fastapi.testclient import TestClient

from marketplace.api import dependencies
from marketplace.models.course import Course
from tests.conftest import create_learner


def _add_course(instructor_id, slug: str, **fields) -> Course:
    course = Course.new(
        instructor_id=instructor_id,
        title=fields.pop("title", slug.replace("-", " ").title()),
        slug=slug,
        now=fields.pop("now", 1000),
        status=fields.pop("status", "published"),
        price_current=fields.pop("price_current", 0),
    )
    course = replace(course, **fields)
    asyncio.run(dependencies.catalog_repo.add_course(course))
    return course


# ---- GET /v1/courses ----


def test_list_courses_only_published(client: TestClient, seeded) -> None:
    _add_course(seeded.instructor.id, "draft-course", status="draft")

    resp = client.get("/v1/courses")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 1
    assert body["page"] == 1
    assert body["page_size"] == 12
    assert [c["slug"] for c in body["items"]] == [seeded.course.slug]


def test_list_courses_filters_and_sorts(client: TestClient, seeded) -> None:
    iid = seeded.instructor.id
    _add_course(iid, "cheap-sql", price_current=50000, title="SQL basics")
    _add_course(iid, "pricey-ml", price_current=900000, title="Machine learning")

    resp = client.get("/v1/courses", params={"sort": "price_low"})
    prices = [c["price_current"] for c in resp.json()["items"]]
    assert prices == sorted(prices)

    resp = client.get("/v1/courses", params={"min_price": 100000, "max_price": 500000})
    assert [c["slug"] for c in resp.json()["items"]] == [seeded.course.slug]

    resp = client.get("/v1/courses", params={"q": "sql"})
    assert [c["slug"] for c in resp.json()["items"]] == ["cheap-sql"]

    resp = client.get("/v1/courses", params={"category_id": str(seeded.category.id)})
    assert [c["slug"] for c in resp.json()["items"]] == [seeded.course.slug]


def test_list_courses_paginates_and_clamps(client: TestClient, seeded) -> None:
    for i in range(3):
        _add_course(seeded.instructor.id, f"extra-{i}", now=2000 + i)

    resp = client.get("/v1/courses", params={"page": 2, "page_size": 2})
    body = resp.json()
    assert body["total"] == 4
    assert len(body["items"]) == 2

    resp = client.get("/v1/courses", params={"page": 0, "page_size": 1000})
    body = resp.json()
    assert body["page"] == 1
    assert body["page_size"] == 50


def test_list_courses_rejects_unknown_sort(client: TestClient) -> None:
    assert client.get("/v1/courses", params={"sort": "random"}).status_code == 422


# ---- GET /v1/courses/{identifier} ----


def test_course_detail_by_slug_and_id(client: TestClient, seeded) -> None:
    by_slug = client.get(f"/v1/courses/{seeded.course.slug}")
    by_id = client.get(f"/v1/courses/{seeded.course.id}")
    assert by_slug.status_code == by_id.status_code == 200
    assert by_slug.json() == by_id.json()
    assert by_slug.json()["rating_count"] == 0
    assert by_slug.json()["tags"] == ["data-analysis", "pandas", "python"]


def test_course_detail_404s(client: TestClient, seeded) -> None:
    _add_course(seeded.instructor.id, "hidden", status="draft")
    assert client.get("/v1/courses/does-not-exist").status_code == 404
    assert client.get(f"/v1/courses/{uuid4()}").status_code == 404
    assert client.get("/v1/courses/hidden").status_code == 404


# ---- GET /v1/courses/{identifier}/curriculum ----


def test_curriculum_anonymous_hides_drafts(client: TestClient, seeded) -> None:
    resp = client.get(f"/v1/courses/{seeded.course.slug}/curriculum")
    assert resp.status_code == 200
    sections = resp.json()
    assert [s["title"] for s in sections] == ["Getting started", "Working with pandas"]
    titles = [lec["title"] for s in sections for lec in s["lectures"]]
    assert "Group-by recipes" not in titles
    assert len(titles) == 3
    assert all(lec["progress_status"] is None for s in sections for lec in s["lectures"])


def test_curriculum_with_token_includes_progress(client: TestClient, seeded, learner) -> None:
    client.post(f"/v1/courses/{seeded.course.slug}/enroll", headers=learner.headers)
    first = seeded.lectures[0]
    client.post(
        f"/v1/progress/lectures/{first.id}",
        json={"last_position_seconds": 90},
        headers=learner.headers,
    )

    resp = client.get(
        f"/v1/courses/{seeded.course.slug}/curriculum", headers=learner.headers
    )
    lectures = {lec["id"]: lec for s in resp.json() for lec in s["lectures"]}
    assert lectures[str(first.id)]["progress_status"] == "in_progress"
    assert lectures[str(first.id)]["last_position_seconds"] == 90
    assert lectures[str(seeded.lectures[1].id)]["progress_status"] == "not_started"


# ---- POST /v1/courses/{identifier}/enroll ----


def test_enroll_requires_token(client: TestClient, seeded) -> None:
    resp = client.post(f"/v1/courses/{seeded.course.slug}/enroll")
    assert resp.status_code == 401


def test_enroll_is_idempotent(client: TestClient, seeded, learner) -> None:
    first = client.post(f"/v1/courses/{seeded.course.slug}/enroll", headers=learner.headers)
    second = client.post(f"/v1/courses/{seeded.course.id}/enroll", headers=learner.headers)

    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["id"] == second.json()["id"]
    assert first.json()["source"] == "free"
    assert first.json()["status"] == "active"


def test_enroll_unknown_course_404(client: TestClient, learner) -> None:
    resp = client.post("/v1/courses/no-such-course/enroll", headers=learner.headers)
    assert resp.status_code == 404


def test_enrollments_are_per_user(client: TestClient, seeded, learner) -> None:
    other = create_learner("other@example.com")
    client.post(f"/v1/courses/{seeded.course.slug}/enroll", headers=learner.headers)

    resp = client.get(
        f"/v1/enrollments/{seeded.course.slug}/check", headers=other.headers
    )
    assert resp.json() == {"enrolled": False, "has_access": False}


# ---- tags ----


def test_course_tags_for_several_courses(client: TestClient, seeded) -> None:
    other = _add_course(seeded.instructor.id, "sql-basics")
    asyncio.run(dependencies.catalog_repo.set_course_tags(other.id, [" SQL ", "", "sql"]))

    resp = client.get(
        "/v1/courses/tags", params={"course_id": f"{seeded.course.id},{other.id}"}
    )
    assert resp.status_code == 200
    pairs = {(t["course_id"], t["tag"]) for t in resp.json()}
    assert (str(other.id), "sql") in pairs
    assert (str(seeded.course.id), "pandas") in pairs
    assert len(pairs) == 4


def test_course_tags_rejects_bad_ids(client: TestClient) -> None:
    assert client.get("/v1/courses/tags", params={"course_id": "nope"}).status_code == 422
    assert client.get("/v1/courses/tags", params={"course_id": " , "}).status_code == 422
    assert client.get("/v1/courses/tags").status_code == 422


def test_list_courses_filters_by_tag(client: TestClient, seeded) -> None:
    _add_course(seeded.instructor.id, "untagged")

    resp = client.get("/v1/courses", params={"tag": "Pandas"})
    assert [c["slug"] for c in resp.json()["items"]] == [seeded.course.slug]
    assert client.get("/v1/courses", params={"tag": "rust"}).json()["total"] == 0
