"""Request ids on responses and on every log line emitted while serving.

The summary line for /v1/progress writes and the rating aggregator's
"Review saved" line must both carry the id the client sent, so one
grep over the logs reconstructs a learner's write end to end.
"""

from __future__ import annotations

import logging
import uuid

import pytest
from fastapi.testclient import TestClient

from tests.conftest import enroll


def _summary_lines(caplog: pytest.LogCaptureFixture, path: str) -> list[logging.LogRecord]:
    return [
        r
        for r in caplog.records
        if r.name == "marketplace.middleware.request_context"
        and getattr(r, "path", None) == path
    ]


def test_progress_write_summary_line(
    client: TestClient, seeded, learner, caplog: pytest.LogCaptureFixture
) -> None:
    enroll(learner.user.id, seeded.course.id)
    path = f"/v1/progress/lectures/{seeded.lectures[0].id}"

    with caplog.at_level(logging.INFO):
        resp = client.post(
            path,
            json={"completed": True},
            headers={**learner.headers, "X-Request-ID": "progress-trace-1"},
        )

    assert resp.status_code == 200
    assert resp.headers["x-request-id"] == "progress-trace-1"
    [line] = _summary_lines(caplog, path)
    assert line.request_id == "progress-trace-1"  # type: ignore[attr-defined]
    assert line.method == "POST"  # type: ignore[attr-defined]
    assert line.status_code == 200  # type: ignore[attr-defined]
    assert line.duration_ms >= 0  # type: ignore[attr-defined]


def test_rating_log_line_carries_request_id(
    client: TestClient, seeded, learner, caplog: pytest.LogCaptureFixture
) -> None:
    enroll(learner.user.id, seeded.course.id)

    with caplog.at_level(logging.INFO):
        client.put(
            f"/v1/courses/{seeded.course.slug}/review",
            json={"rating": 4},
            headers={**learner.headers, "X-Request-ID": "review-trace-7"},
        )

    [saved] = [
        r
        for r in caplog.records
        if r.name == "marketplace.services.rating_service"
        and r.getMessage().startswith("Review saved")
    ]
    assert saved.request_id == "review-trace-7"  # type: ignore[attr-defined]
    assert saved.user_id == str(learner.user.id)  # type: ignore[attr-defined]
    assert saved.course_id == str(seeded.course.id)  # type: ignore[attr-defined]


def test_denied_write_gets_generated_id(
    client: TestClient, seeded, learner, caplog: pytest.LogCaptureFixture
) -> None:
    path = f"/v1/progress/lectures/{seeded.lectures[0].id}"

    with caplog.at_level(logging.INFO):
        resp = client.post(path, json={"completed": True}, headers=learner.headers)

    assert resp.status_code == 403
    generated = resp.headers["x-request-id"]
    uuid.UUID(generated)

    [denied] = [r for r in caplog.records if r.getMessage().startswith("Course access denied")]
    assert denied.request_id == generated  # type: ignore[attr-defined]
    [line] = _summary_lines(caplog, path)
    assert line.status_code == 403  # type: ignore[attr-defined]


def test_consecutive_requests_keep_their_own_ids(
    client: TestClient, seeded, caplog: pytest.LogCaptureFixture
) -> None:
    path = f"/v1/courses/{seeded.course.slug}"

    with caplog.at_level(logging.INFO):
        client.get(path, headers={"X-Request-ID": "first"})
        client.get(path, headers={"X-Request-ID": "second"})

    ids = [r.request_id for r in _summary_lines(caplog, path)]  # type: ignore[attr-defined]
    assert ids == ["first", "second"]


def test_log_lines_outside_requests_use_placeholder(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.INFO):
        logging.getLogger("marketplace.db.seed").info("outside any request")

    assert caplog.records[-1].request_id == "-"  # type: ignore[attr-defined]
