"""Tests for lecture progress ingestion and the cached course snapshot."""

from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from marketplace.api import dependencies
from marketplace.db.engine import get_async_session
from marketplace.main import app
from marketplace.services.cache import cache_service, progress_key
from tests.conftest import create_learner, enroll


def _post(client: TestClient, learner, lecture_id, **payload):
    return client.post(
        f"/v1/progress/lectures/{lecture_id}", json=payload, headers=learner.headers
    )


# ---- 401 / 403 / 404 ----


def test_progress_rejects_missing_token(client: TestClient, seeded) -> None:
    resp = client.post(f"/v1/progress/lectures/{seeded.lectures[0].id}", json={})
    assert resp.status_code == 401


def test_progress_requires_enrollment(client: TestClient, seeded, learner) -> None:
    resp = _post(client, learner, seeded.lectures[0].id, completed=True)
    assert resp.status_code == 403


def test_progress_unknown_lecture_404(client: TestClient, seeded, learner) -> None:
    enroll(learner.user.id, seeded.course.id)
    assert _post(client, learner, uuid4(), completed=True).status_code == 404


def test_progress_draft_lecture_404(client: TestClient, seeded, learner) -> None:
    enroll(learner.user.id, seeded.course.id)
    draft = seeded.lectures[-1]
    assert _post(client, learner, draft.id, completed=True).status_code == 404


def test_progress_rejects_unknown_status(client: TestClient, seeded, learner) -> None:
    enroll(learner.user.id, seeded.course.id)
    resp = _post(client, learner, seeded.lectures[0].id, status="done")
    assert resp.status_code == 422


# ---- aggregation ----


def test_completing_lectures_updates_snapshot(client: TestClient, seeded, learner) -> None:
    enroll(learner.user.id, seeded.course.id)

    resp = _post(client, learner, seeded.lectures[0].id, completed=True)
    assert resp.status_code == 200
    assert resp.json()["percent"] == 33
    assert resp.json()["completed"] == 1
    assert resp.json()["total"] == 3

    resp = _post(client, learner, seeded.lectures[1].id, completed=True)
    resp = _post(client, learner, seeded.lectures[2].id, completed=True)
    assert resp.json()["percent"] == 100


def test_repeat_completion_does_not_double_count(client: TestClient, seeded, learner) -> None:
    enroll(learner.user.id, seeded.course.id)
    lecture_id = seeded.lectures[0].id

    _post(client, learner, lecture_id, completed=True)
    resp = _post(client, learner, lecture_id, completed=True)

    assert resp.json()["completed"] == 1


def test_uncomplete_keeps_completed_at(client: TestClient, seeded, learner) -> None:
    enroll(learner.user.id, seeded.course.id)
    lecture_id = seeded.lectures[0].id

    _post(client, learner, lecture_id, completed=True)
    resp = _post(client, learner, lecture_id, completed=False)
    assert resp.json()["completed"] == 0

    row = asyncio.run(
        dependencies.progress_repo.get_lecture_progress(learner.user.id, lecture_id)
    )
    assert row is not None
    assert row.completed_at is not None


# ---- GET /v1/progress/courses/{identifier} ----


def test_snapshot_defaults_to_zero(client: TestClient, seeded, learner) -> None:
    resp = client.get(
        f"/v1/progress/courses/{seeded.course.slug}", headers=learner.headers
    )
    assert resp.status_code == 200
    body = resp.json()
    assert (body["percent"], body["completed"], body["total"]) == (0, 0, 0)


def test_snapshot_unknown_course_404(client: TestClient, learner) -> None:
    resp = client.get("/v1/progress/courses/nope", headers=learner.headers)
    assert resp.status_code == 404


def test_progress_write_invalidates_cached_snapshot(
    client: TestClient, seeded, learner
) -> None:
    enroll(learner.user.id, seeded.course.id)
    url = f"/v1/progress/courses/{seeded.course.id}"

    first = client.get(url, headers=learner.headers).json()
    assert first["percent"] == 0

    _post(client, learner, seeded.lectures[0].id, completed=True)

    second = client.get(url, headers=learner.headers).json()
    assert second["completed"] == 1
    assert second["percent"] == 33


def test_cached_snapshot_is_user_isolated(client: TestClient, seeded, learner) -> None:
    other = create_learner("other@example.com")
    enroll(learner.user.id, seeded.course.id)
    _post(client, learner, seeded.lectures[0].id, completed=True)

    url = f"/v1/progress/courses/{seeded.course.slug}"
    assert client.get(url, headers=learner.headers).json()["completed"] == 1
    assert client.get(url, headers=other.headers).json()["completed"] == 0


# ---- write ordering against a database session ----


class _RecordingSession:
    """Stands in for the request AsyncSession; only commit() is reached."""

    def __init__(self, events: list[str]) -> None:
        self._events = events

    async def commit(self) -> None:
        self._events.append("commit")


@pytest.fixture
def recorded_events(monkeypatch: pytest.MonkeyPatch):
    events: list[str] = []

    async def session_override():
        yield _RecordingSession(events)

    # Repos stay in memory; only the session seen by the route is swapped.
    app.dependency_overrides[get_async_session] = session_override
    app.dependency_overrides[dependencies.get_catalog_repo] = lambda: dependencies.catalog_repo
    app.dependency_overrides[dependencies.get_progress_repo] = lambda: dependencies.progress_repo
    app.dependency_overrides[dependencies.get_enrollment_repo] = (
        lambda: dependencies.enrollment_repo
    )

    real_delete = cache_service.delete

    async def recording_delete(key: str) -> None:
        events.append(f"invalidate {key}")
        await real_delete(key)

    monkeypatch.setattr(cache_service, "delete", recording_delete)
    yield events
    app.dependency_overrides.clear()


def test_progress_write_commits_before_invalidating(
    client: TestClient, seeded, learner, recorded_events
) -> None:
    enroll(learner.user.id, seeded.course.id)

    resp = _post(client, learner, seeded.lectures[0].id, completed=True)

    assert resp.status_code == 200
    assert recorded_events == [
        "commit",
        f"invalidate {progress_key(learner.user.id, seeded.course.id)}",
    ]


def test_rejected_write_neither_commits_nor_invalidates(
    client: TestClient, seeded, learner, recorded_events
) -> None:
    resp = _post(client, learner, seeded.lectures[0].id, completed=True)

    assert resp.status_code == 403
    assert recorded_events == []
