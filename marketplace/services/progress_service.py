"""Course progress aggregation.

A lecture progress write is followed by a full recount into the user's
course snapshot:

  upsert lecture_progress (user, lecture)
  -> count published lectures in the course          (denominator)
  -> count the user's completed lectures in the course (numerator)
  -> upsert course_progress_snapshots (user, course)

The snapshot is a pure function of those two counts, so it can be
dropped and rebuilt at any time with recompute_course_progress().
"""

from __future__ import annotations

import logging
from uuid import UUID

from marketplace.core.clock import now_ts
from marketplace.core.metrics import PROGRESS_RECOMPUTES
from marketplace.models.progress import LECTURE_STATUSES, LectureProgress, ProgressSnapshot
from marketplace.repos.progress_repo import ProgressRepo

logger = logging.getLogger(__name__)


def completion_percent(completed: int, total: int) -> int:
    """floor(completed / total * 100), 0 for an empty course, capped at 100.

    Integer arithmetic keeps the floor exact (29/100 is 29, not 28).
    The cap covers lectures completed and later unpublished.
    """
    if total <= 0:
        return 0
    return min(100, max(0, completed) * 100 // total)


async def recompute_course_progress(
    repo: ProgressRepo,
    user_id: UUID,
    course_id: UUID,
    *,
    now: int | None = None,
) -> ProgressSnapshot:
    now = now_ts() if now is None else now

    total = await repo.count_published_lectures(course_id)
    completed = await repo.count_completed_lectures(user_id, course_id)

    snapshot = ProgressSnapshot(
        user_id=user_id,
        course_id=course_id,
        percent=completion_percent(completed, total),
        completed_lectures=completed,
        total_lectures=total,
        updated_at=now,
    )
    await repo.upsert_snapshot(snapshot)
    PROGRESS_RECOMPUTES.inc()

    logger.debug(
        "Progress snapshot user=%s course=%s %d/%d (%d%%)",
        user_id,
        course_id,
        completed,
        total,
        snapshot.percent,
        extra={"user_id": str(user_id), "course_id": str(course_id)},
    )
    return snapshot


async def record_progress(
    repo: ProgressRepo,
    *,
    user_id: UUID,
    course_id: UUID,
    lecture_id: UUID,
    status: str | None = None,
    last_position_seconds: int | None = None,
    completed: bool | None = None,
    now: int | None = None,
) -> ProgressSnapshot:
    """Store one lecture's progress and return the refreshed course snapshot.

    - `completed=True` forces status "completed" and stamps completed_at.
    - Otherwise status defaults to "in_progress" and any earlier
      completed_at is kept (the repo never overwrites it with None).
    - Negative positions are clamped to 0.

    The course/lecture pair is not validated here; callers resolve both
    before calling.  Status transitions are not required to move forward.
    """
    now = now_ts() if now is None else now

    if completed:
        effective_status = "completed"
    else:
        effective_status = status or "in_progress"
    if effective_status not in LECTURE_STATUSES:
        raise ValueError(f"unknown lecture status {effective_status!r}")

    progress = LectureProgress(
        user_id=user_id,
        lecture_id=lecture_id,
        course_id=course_id,
        status=effective_status,
        last_position_seconds=max(0, last_position_seconds or 0),
        completed_at=now if completed else None,
        updated_at=now,
    )
    await repo.upsert_lecture_progress(progress)

    return await recompute_course_progress(repo, user_id, course_id, now=now)
