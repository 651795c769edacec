"""End-to-end walk: register -> enroll -> progress -> review."""

from __future__ import annotations

from fastapi.testclient import TestClient

from marketplace.main import app

client = TestClient(app)


def _register(email: str) -> dict[str, str]:
    resp = client.post(
        "/auth/register",
        json={"name": "Walker", "email": email, "password": "walker-pass"},
    )
    assert resp.status_code == 201
    return {"Authorization": f"Bearer {resp.json()['accessToken']}"}


def test_app_title() -> None:
    assert app.title == "course-marketplace-api"


def test_learner_journey(seeded) -> None:
    headers = _register("walker@example.com")
    slug = seeded.course.slug

    assert client.post(f"/v1/courses/{slug}/enroll", headers=headers).status_code == 201

    check = client.get(f"/v1/enrollments/{slug}/check", headers=headers).json()
    assert check == {"enrolled": True, "has_access": True}

    for lecture in seeded.lectures[:3]:
        resp = client.post(
            f"/v1/progress/lectures/{lecture.id}",
            json={"completed": True},
            headers=headers,
        )
    assert resp.json()["percent"] == 100

    resp = client.put(f"/v1/courses/{slug}/review", json={"rating": 5}, headers=headers)
    assert resp.json()["rating_count"] == 1

    mine = client.get("/v1/enrollments/me", headers=headers).json()
    assert [e["course"]["slug"] for e in mine] == [slug]
    assert mine[0]["course"]["rating_avg"] == 5.0
