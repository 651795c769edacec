"""Lecture progress ingestion and cached course progress.

Write path:
  Client -> POST /v1/progress/lectures/{lecture_id}
  -> resolve lecture + course, require an enrollment with access
  -> record_progress (upsert lecture row, recompute course snapshot)
  -> commit, then invalidate cached snapshot
  -> 200 { percent, completed, total }

Read path: GET /v1/progress/courses/{identifier}
  -> read-through cache (check cache -> miss -> load snapshot -> populate -> return)
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from marketplace.api.dependencies import (
    Catalog,
    CurrentUser,
    Enrollments,
    Progress,
    Session,
)
from marketplace.models.progress import LectureStatus, ProgressSnapshot
from marketplace.services import enrollment_service, progress_service
from marketplace.services.cache import cache_service, invalidate, progress_key, read_through
from marketplace.services.catalog_service import find_course

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/progress", tags=["progress"])


class LectureProgressIn(BaseModel):
    status: LectureStatus | None = None
    last_position_seconds: int | None = None
    completed: bool | None = None


class ProgressOut(BaseModel):
    course_id: str
    percent: int
    completed: int
    total: int
    updated_at: int | None

    @classmethod
    def from_snapshot(cls, snapshot: ProgressSnapshot) -> ProgressOut:
        return cls(
            course_id=str(snapshot.course_id),
            percent=snapshot.percent,
            completed=snapshot.completed_lectures,
            total=snapshot.total_lectures,
            updated_at=snapshot.updated_at,
        )


# ---------------------------------------------------------------------------
# POST /v1/progress/lectures/{lecture_id}
# ---------------------------------------------------------------------------


@router.post("/lectures/{lecture_id}", response_model=ProgressOut)
async def record_lecture_progress(
    lecture_id: UUID,
    payload: LectureProgressIn,
    principal: CurrentUser,
    catalog: Catalog,
    progress: Progress,
    enrollments: Enrollments,
    session: Session,
) -> ProgressOut:
    lecture = await catalog.get_lecture(lecture_id)
    if lecture is None or not lecture.is_published:
        raise HTTPException(status_code=404, detail="lecture not found")

    try:
        await enrollment_service.require_access(
            enrollments, user_id=principal.user_id, course_id=lecture.course_id
        )
    except enrollment_service.NoCourseAccessError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="enrollment required to track progress",
        ) from None

    snapshot = await progress_service.record_progress(
        progress,
        user_id=principal.user_id,
        course_id=lecture.course_id,
        lecture_id=lecture.id,
        status=payload.status,
        last_position_seconds=payload.last_position_seconds,
        completed=payload.completed,
    )

    # The snapshot must be committed before its cache key is dropped.
    if session is not None:
        await session.commit()
    await invalidate(cache_service, progress_key(principal.user_id, lecture.course_id))

    return ProgressOut.from_snapshot(snapshot)


# ---------------------------------------------------------------------------
# GET /v1/progress/courses/{identifier}  (read-through cached)
# ---------------------------------------------------------------------------


@router.get("/courses/{identifier}", response_model=ProgressOut)
async def get_course_progress(
    identifier: str,
    principal: CurrentUser,
    catalog: Catalog,
    progress: Progress,
) -> ProgressOut:
    course = await find_course(catalog, identifier)
    if course is None:
        raise HTTPException(status_code=404, detail="course not found")

    async def load() -> str:
        snapshot = await progress.get_snapshot(principal.user_id, course.id)
        if snapshot is None:
            snapshot = ProgressSnapshot(user_id=principal.user_id, course_id=course.id)
        return ProgressOut.from_snapshot(snapshot).model_dump_json()

    cached = await read_through(
        cache_service, progress_key(principal.user_id, course.id), load
    )
    return ProgressOut.model_validate_json(cached)
